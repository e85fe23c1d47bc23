from contextlib import asynccontextmanager
from typing import Optional
import logging
import os

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

import chats
import scans
import users
from auth import (
    PasswordHasher, TokenSigner, get_current_user_id, get_password_hasher,
    get_token_signer, login_user, register_user
)
from config import MAX_IMAGE_SIZE, UPLOAD_URL_PREFIX, Settings, configure_logging
from database import Database, get_db
from errors import ConfigurationError, register_error_handlers
from schemas import ChatMessageRequest, LoginRequest, ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ============================================================
# AUTH ENDPOINTS
# ============================================================
@router.post("/auth/register", status_code=201)
def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    signer: TokenSigner = Depends(get_token_signer),
):
    return register_user(db, hasher, signer, body.name, body.email, body.password)


@router.post("/auth/login")
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    signer: TokenSigner = Depends(get_token_signer),
):
    return login_user(db, hasher, signer, body.email, body.password)


# ============================================================
# SCAN ENDPOINTS
# ============================================================
@router.post("/scans", status_code=201)
def create_scan(
    request: Request,
    image: Optional[UploadFile] = File(None),
    disease_name: Optional[str] = Form(None, alias="diseaseName"),
    confidence: Optional[str] = Form(None),
    prediction: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    # one byte past the limit is enough to reject an oversized upload
    image_bytes = image.file.read(MAX_IMAGE_SIZE + 1) if image is not None else None

    scan = scans.create_scan(
        db,
        user_id,
        upload_dir=request.app.state.settings.upload_dir,
        base_url=str(request.base_url),
        image_bytes=image_bytes,
        filename=image.filename if image is not None else None,
        content_type=image.content_type if image is not None else None,
        disease_name=disease_name,
        confidence=confidence,
        prediction=prediction,
        notes=notes,
    )
    return {"scan": scan}


@router.get("/scans/user")
def list_scans(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"scans": scans.list_scans(db, user_id)}


@router.get("/scans/{scan_id}")
def get_scan(scan_id: int, user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"scan": scans.get_scan(db, user_id, scan_id)}


# ============================================================
# CHAT ENDPOINTS
# ============================================================
@router.post("/chats", status_code=201)
def save_chat_message(
    body: ChatMessageRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    chat = chats.append_message(
        db, user_id, body.message, body.response,
        chat_id=body.chat_id, new_session=body.new_session,
    )
    return {"success": True, "chat": chat}


@router.get("/chats/user")
def list_chats(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"success": True, "chats": chats.list_chats(db, user_id)}


@router.get("/chats/recent/preview")
def recent_chats(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"success": True, "recentChats": chats.preview_recent(db, user_id)}


@router.get("/chats/stats/summary")
def chat_stats(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"success": True, "stats": chats.chat_stats(db, user_id)}


@router.get("/chats/search/{query}")
def search_chats(query: str, user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"success": True, **chats.search_chats(db, user_id, query)}


@router.get("/chats/export/all")
def export_chats(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"success": True, "exportData": chats.export_chats(db, user_id)}


@router.get("/chats/topics/categories")
def chat_categories(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"success": True, "categories": chats.categorize_chats(db, user_id)}


@router.delete("/chats/clear/all")
def clear_chats(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    deleted = chats.clear_all_chats(db, user_id)
    return {"success": True, "message": "All chats cleared successfully", "deletedCount": deleted}


@router.get("/chats/{chat_id}")
def get_chat(chat_id: int, user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"success": True, "chat": chats.get_chat(db, user_id, chat_id)}


@router.delete("/chats/{chat_id}")
def delete_chat(chat_id: int, user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    chats.delete_chat(db, user_id, chat_id)
    return {"success": True, "message": "Chat deleted successfully"}


# ============================================================
# USER ENDPOINTS
# ============================================================
@router.get("/users/profile")
def get_profile(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"user": users.get_profile(db, user_id)}


@router.put("/users/profile")
def update_profile(
    body: ProfileUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return {"user": users.update_profile(db, user_id, body)}


@router.get("/users/stats")
def user_stats(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"stats": users.get_user_stats(db, user_id)}


# ============================================================
# APP FACTORY
# ============================================================
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    if not settings.jwt_secret:
        raise ConfigurationError("JWT_SECRET is not defined")

    database = Database(settings.database_url)
    database.create_all()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Plant Scan API started")
        yield
        database.dispose()

    app = FastAPI(title="Plant Scan API", lifespan=lifespan)

    # ------------------------
    # CORS
    # ------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.db = database
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.token_signer = TokenSigner(settings.jwt_secret)

    register_error_handlers(app)
    app.include_router(router)

    # ------------------------
    # Uploaded images
    # ------------------------
    os.makedirs(settings.upload_dir, exist_ok=True)
    app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=settings.upload_dir), name="uploads")

    return app


# ============================================================
# RUN
# ============================================================
if __name__ == "__main__":
    import uvicorn
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
