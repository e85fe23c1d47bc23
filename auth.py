# auth.py
import logging
from datetime import datetime, timedelta
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import ALGORITHM, ACCESS_TOKEN_EXPIRE_DAYS
from errors import AuthError, ConflictError, ValidationError
from models import User, utc_isoformat

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# -----------------------------
# Password helpers
# -----------------------------
class PasswordHasher:
    """Salted password hashing; bcrypt via passlib."""

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        truncated_password = password[:72]
        return self.context.hash(truncated_password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        truncated_password = plain_password[:72]
        return self.context.verify(truncated_password, hashed_password)


# -----------------------------
# JWT helpers
# -----------------------------
class TokenSigner:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(self, secret_key: str, algorithm: str = ALGORITHM,
                 expires_delta: timedelta = timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = expires_delta

    def create_access_token(self, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
        to_encode = {"sub": str(user_id)}
        expire = datetime.utcnow() + (expires_delta or self.expires_delta)
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_user_id(self, token: str) -> int:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthError("Token has expired")
        except JWTError:
            raise AuthError("Token is not valid")

        try:
            return int(payload.get("sub"))
        except (TypeError, ValueError):
            raise AuthError("Token is not valid")


# -----------------------------
# Dependencies
# -----------------------------
def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_signer(request: Request) -> TokenSigner:
    return request.app.state.token_signer


async def get_current_user_id(
    token: Optional[str] = Depends(oauth2_scheme),
    signer: TokenSigner = Depends(get_token_signer),
) -> int:
    if not token:
        raise AuthError("No token, authorization denied")
    return signer.decode_user_id(token)


# -----------------------------
# Register / login
# -----------------------------
def public_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "preferences": user.preferences,
        "createdAt": utc_isoformat(user.created_at),
    }


def normalize_email(email: str) -> str:
    return email.strip().lower()


def register_user(db: Session, hasher: PasswordHasher, signer: TokenSigner,
                  name: Optional[str], email: Optional[str], password: Optional[str]) -> dict:
    if not name or not name.strip() or not email or not email.strip() or not password:
        raise ValidationError("All fields are required")

    email = normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User already exists")

    user = User(name=name.strip(), email=email, hashed_password=hasher.hash(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race against a concurrent registration
        db.rollback()
        raise ConflictError("User already exists")
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    return {"token": signer.create_access_token(user.id), "user": public_user(user)}


def login_user(db: Session, hasher: PasswordHasher, signer: TokenSigner,
               email: Optional[str], password: Optional[str]) -> dict:
    if not email or not email.strip() or not password:
        raise ValidationError("Email and password are required")

    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user or not hasher.verify(password, user.hashed_password):
        raise AuthError("Invalid credentials")

    logger.info("User %s logged in", user.id)
    return {"token": signer.create_access_token(user.id), "user": public_user(user)}
