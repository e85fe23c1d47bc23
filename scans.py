# scans.py
import json
import logging
import math
from typing import Optional

from sqlalchemy.orm import Session

from config import SCAN_LIST_LIMIT, UPLOAD_URL_PREFIX
from errors import NotFoundError, ValidationError
from models import Scan, User, utc_isoformat
from utils.image_utils import save_image, validate_image

logger = logging.getLogger(__name__)


def scan_to_dict(scan: Scan) -> dict:
    return {
        "id": scan.id,
        "userId": scan.user_id,
        "imageUrl": scan.image_url,
        "imagePath": scan.image_path,
        "diseaseName": scan.disease_name,
        "confidence": scan.confidence,
        "prediction": scan.prediction,
        "notes": scan.notes,
        "timestamp": utc_isoformat(scan.timestamp),
    }


def parse_confidence(value: Optional[str]) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Confidence must be a number")
    if not math.isfinite(confidence):
        raise ValidationError("Confidence must be a number")
    return confidence


def parse_prediction(value: Optional[str]):
    if value is None:
        raise ValidationError("Prediction is required")
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        raise ValidationError("Prediction must be valid JSON")


def create_scan(
    db: Session,
    user_id: int,
    upload_dir: str,
    base_url: str,
    image_bytes: Optional[bytes],
    filename: Optional[str],
    content_type: Optional[str],
    disease_name: Optional[str],
    confidence: Optional[str],
    prediction: Optional[str],
    notes: Optional[str] = None,
) -> dict:
    """
    Validates the upload and the prediction fields, writes the image to
    `upload_dir` and inserts the scan. Nothing is written unless every
    check passes.
    """
    if image_bytes is None:
        raise ValidationError("Image file is required")
    ext = validate_image(filename, content_type, len(image_bytes))

    if not disease_name or not disease_name.strip():
        raise ValidationError("Disease name is required")
    confidence_value = parse_confidence(confidence)
    prediction_value = parse_prediction(prediction)

    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    image_filename, image_path = save_image(image_bytes, upload_dir, ext)
    image_url = f"{base_url.rstrip('/')}{UPLOAD_URL_PREFIX}/{image_filename}"

    scan = Scan(
        user_id=user.id,
        image_url=image_url,
        image_path=image_path,
        disease_name=disease_name.strip(),
        confidence=confidence_value,
        prediction=prediction_value,
        notes=notes,
    )
    db.add(scan)
    db.commit()
    db.refresh(scan)
    logger.info("Saved scan %s for user %s (%s)", scan.id, user.id, scan.disease_name)

    return scan_to_dict(scan)


def list_scans(db: Session, user_id: int) -> list:
    scans = (
        db.query(Scan)
        .filter(Scan.user_id == user_id)
        .order_by(Scan.timestamp.desc(), Scan.id.desc())
        .limit(SCAN_LIST_LIMIT)
        .all()
    )
    return [scan_to_dict(scan) for scan in scans]


def get_scan(db: Session, user_id: int, scan_id: int) -> dict:
    # other users' scans are reported as missing
    scan = db.query(Scan).filter(Scan.id == scan_id, Scan.user_id == user_id).first()
    if scan is None:
        raise NotFoundError("Scan not found")
    return scan_to_dict(scan)
