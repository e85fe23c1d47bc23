# chats.py
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from config import (
    CHAT_LIST_LIMIT,
    CHAT_PREVIEW_LIMIT,
    PREVIEW_TEXT_LIMIT,
    SEARCH_RESULT_LIMIT,
    SEARCH_TEXT_LIMIT,
)
from errors import NotFoundError, ValidationError
from models import Chat, ChatMessage, utc_isoformat
from utils.chat_analytics import (
    average_per_chat,
    categorize_texts,
    daily_activity,
    matches_query,
    top_keywords,
    truncate,
)

logger = logging.getLogger(__name__)


def message_to_dict(message: ChatMessage, text_limit: Optional[int] = None) -> dict:
    text = message.text if text_limit is None else truncate(message.text, text_limit)
    return {
        "text": text,
        "isUser": message.is_user,
        "timestamp": utc_isoformat(message.timestamp),
    }


def _user_chats(db: Session, user_id: int, newest_first: bool = False):
    query = db.query(Chat).options(selectinload(Chat.messages)).filter(Chat.user_id == user_id)
    if newest_first:
        return query.order_by(Chat.created_at.desc(), Chat.id.desc())
    return query.order_by(Chat.created_at.asc(), Chat.id.asc())


def _owned_chat(db: Session, user_id: int, chat_id: int) -> Chat:
    chat = db.query(Chat).filter(Chat.id == chat_id, Chat.user_id == user_id).first()
    if chat is None:
        raise NotFoundError("Chat not found")
    return chat


# ============================================================
# Writes
# ============================================================
def append_message(db: Session, user_id: int, message: Optional[str], response: Optional[str],
                   chat_id: Optional[int] = None, new_session: bool = False) -> dict:
    """
    Appends a user entry and a response entry. The pair goes to `chat_id`
    when given, to a fresh session when `new_session` is set, and otherwise
    to the user's first session, created on demand.
    """
    if not message or not response:
        raise ValidationError("Message and response are required")
    if chat_id is not None and new_session:
        raise ValidationError("chatId and newSession cannot be combined")

    if new_session:
        chat = Chat(user_id=user_id)
        db.add(chat)
    elif chat_id is not None:
        chat = _owned_chat(db, user_id, chat_id)
    else:
        chat = (
            db.query(Chat)
            .filter(Chat.user_id == user_id)
            .order_by(Chat.created_at.asc(), Chat.id.asc())
            .first()
        )
        if chat is None:
            chat = Chat(user_id=user_id)
            db.add(chat)

    chat.messages.append(ChatMessage(text=message, is_user=True, timestamp=datetime.utcnow()))
    chat.messages.append(ChatMessage(text=response, is_user=False, timestamp=datetime.utcnow()))
    db.commit()
    db.refresh(chat)

    return {
        "id": chat.id,
        "messages": [message_to_dict(m) for m in chat.messages[-2:]],
    }


def delete_chat(db: Session, user_id: int, chat_id: int) -> None:
    chat = _owned_chat(db, user_id, chat_id)
    db.delete(chat)
    db.commit()
    logger.info("Deleted chat %s of user %s", chat_id, user_id)


def clear_all_chats(db: Session, user_id: int) -> int:
    chats = db.query(Chat).filter(Chat.user_id == user_id).all()
    for chat in chats:
        db.delete(chat)
    db.commit()
    logger.info("Cleared %d chats of user %s", len(chats), user_id)
    return len(chats)


# ============================================================
# Reads
# ============================================================
def list_chats(db: Session, user_id: int) -> List[dict]:
    chats = _user_chats(db, user_id, newest_first=True).limit(CHAT_LIST_LIMIT).all()
    return [
        {
            "id": chat.id,
            "messages": [message_to_dict(m) for m in chat.messages],
            "createdAt": utc_isoformat(chat.created_at),
            "messageCount": len(chat.messages),
            "lastMessage": message_to_dict(chat.messages[-1]) if chat.messages else None,
        }
        for chat in chats
    ]


def get_chat(db: Session, user_id: int, chat_id: int) -> dict:
    chat = _owned_chat(db, user_id, chat_id)
    return {
        "id": chat.id,
        "messages": [message_to_dict(m) for m in chat.messages],
        "createdAt": utc_isoformat(chat.created_at),
    }


def preview_recent(db: Session, user_id: int) -> List[dict]:
    chats = _user_chats(db, user_id, newest_first=True).limit(CHAT_PREVIEW_LIMIT).all()
    previews = []
    for chat in chats:
        last = chat.messages[-1] if chat.messages else None
        previews.append({
            "chatId": chat.id,
            "lastMessage": message_to_dict(last, PREVIEW_TEXT_LIMIT) if last else None,
            "messages": [message_to_dict(m, PREVIEW_TEXT_LIMIT) for m in chat.messages],
            "createdAt": utc_isoformat(chat.created_at),
            "messageCount": len(chat.messages),
        })
    return previews


def search_chats(db: Session, user_id: int, query: str) -> dict:
    if not query or not query.strip():
        raise ValidationError("Search query is required")
    query = query.lower()

    results = []
    for chat in _user_chats(db, user_id):
        matches = [m for m in chat.messages if matches_query(m.text, query)]
        if matches:
            results.append({
                "chatId": chat.id,
                "createdAt": utc_isoformat(chat.created_at),
                "matches": [message_to_dict(m, SEARCH_TEXT_LIMIT) for m in matches],
            })

    return {"query": query, "results": results[:SEARCH_RESULT_LIMIT]}


def chat_stats(db: Session, user_id: int) -> dict:
    chats = _user_chats(db, user_id).all()
    messages = [m for chat in chats for m in chat.messages]

    return {
        "totalChats": len(chats),
        "totalMessages": len(messages),
        "averageMessagesPerChat": average_per_chat(len(messages), len(chats)),
        "topKeywords": top_keywords(m.text for m in messages if m.is_user),
        "dailyActivity": daily_activity(m.timestamp for m in messages),
    }


def categorize_chats(db: Session, user_id: int) -> dict:
    chats = _user_chats(db, user_id).all()
    return categorize_texts(m.text for chat in chats for m in chat.messages if m.is_user)


def export_chats(db: Session, user_id: int) -> dict:
    chats = _user_chats(db, user_id).all()
    return {
        "userId": user_id,
        "exportDate": utc_isoformat(datetime.utcnow()),
        "totalChats": len(chats),
        "chats": [
            {
                "chatId": chat.id,
                "startedAt": utc_isoformat(chat.created_at),
                "messages": [message_to_dict(m) for m in chat.messages],
            }
            for chat in chats
        ],
    }
