# users.py
from collections import Counter

from sqlalchemy.orm import Session

from auth import public_user
from chats import message_to_dict
from config import RECENT_SCANS_IN_STATS
from errors import NotFoundError, ValidationError
from models import User, utc_isoformat
from scans import scan_to_dict
from schemas import ProfileUpdate


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def profile_to_dict(user: User) -> dict:
    profile = public_user(user)
    profile["profileImage"] = user.profile_image
    profile["scanHistory"] = [
        {
            "id": scan.id,
            "diseaseName": scan.disease_name,
            "confidence": scan.confidence,
            "timestamp": utc_isoformat(scan.timestamp),
            "imageUrl": scan.image_url,
        }
        for scan in user.scans
    ]
    profile["chatHistory"] = [
        {
            "id": chat.id,
            "createdAt": utc_isoformat(chat.created_at),
            "messageCount": len(chat.messages),
            "messages": [message_to_dict(m) for m in chat.messages],
        }
        for chat in user.chats
    ]
    return profile


def get_profile(db: Session, user_id: int) -> dict:
    return profile_to_dict(_get_user(db, user_id))


def update_profile(db: Session, user_id: int, update: ProfileUpdate) -> dict:
    """Applies only the fields present in `update`."""
    user = _get_user(db, user_id)

    if update.name is not None:
        if not update.name.strip():
            raise ValidationError("Name cannot be empty")
        user.name = update.name.strip()

    if update.profile_image is not None:
        user.profile_image = update.profile_image

    if update.preferences is not None:
        prefs = update.preferences
        if prefs.notifications is not None:
            user.notifications = prefs.notifications
        if prefs.language is not None:
            user.language = prefs.language
        if prefs.dark_mode is not None:
            user.dark_mode = prefs.dark_mode

    db.commit()
    db.refresh(user)
    return profile_to_dict(user)


def get_user_stats(db: Session, user_id: int) -> dict:
    user = _get_user(db, user_id)
    scans = user.scans

    return {
        "totalScans": len(scans),
        "totalChats": len(user.chats),
        "recentScans": [scan_to_dict(scan) for scan in scans[-RECENT_SCANS_IN_STATS:]],
        "commonDiseases": dict(Counter(scan.disease_name for scan in scans)),
    }
