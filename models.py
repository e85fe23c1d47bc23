# models.py
from sqlalchemy import Column, Integer, String, DateTime, Float, Boolean, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from database import Base


def utc_isoformat(value):
    """ISO 8601 with a trailing Z; naive values are stored as UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    profile_image = Column(String, nullable=True)

    # Preferences
    notifications = Column(Boolean, default=True, nullable=False)
    language = Column(String, default="en", nullable=False)
    dark_mode = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    scans = relationship("Scan", back_populates="user", order_by="Scan.id")
    chats = relationship("Chat", back_populates="user", order_by="Chat.id")

    @property
    def preferences(self):
        return {
            "notifications": self.notifications,
            "language": self.language,
            "darkMode": self.dark_mode,
        }


class Scan(Base):
    __tablename__ = "scans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    image_url = Column(String, nullable=False)
    image_path = Column(String, nullable=False)

    disease_name = Column(String, nullable=False)
    confidence = Column(Float, nullable=False)
    prediction = Column(JSON, nullable=False)

    notes = Column(String, nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow)
    user = relationship("User", back_populates="scans")


class Chat(Base):
    __tablename__ = "chats"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="chats")
    messages = relationship(
        "ChatMessage",
        back_populates="chat",
        order_by="ChatMessage.id",
        cascade="all, delete-orphan",
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(Integer, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    is_user = Column(Boolean, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)

    chat = relationship("Chat", back_populates="messages")
