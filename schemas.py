# schemas.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ChatMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    response: Optional[str] = None
    # Session to append to; the user's first session when neither is given
    chat_id: Optional[int] = Field(None, alias="chatId")
    new_session: bool = Field(False, alias="newSession")


class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    notifications: Optional[bool] = None
    language: Optional[str] = Field(None, min_length=1)
    dark_mode: Optional[bool] = Field(None, alias="darkMode")


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    profile_image: Optional[str] = Field(None, alias="profileImage")
    preferences: Optional[PreferencesUpdate] = None
