"""FastAPI dependencies shared by the routers."""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import AuthenticationError
from app.core.security import decode_token
from app.models.user import User
from app.services.email_service import EmailService
from app.services.google_service import GoogleTokenVerifier


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None)
) -> User:
    # Check token
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Not authorized, no token")

    token = authorization[len("Bearer "):].strip()
    user_id = decode_token(token)
    if not user_id:
        raise AuthenticationError("Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        # deleted account with a still valid token
        raise AuthenticationError("Invalid token")

    return user


def get_email_service() -> EmailService:
    return EmailService.from_settings(settings)


def get_google_verifier() -> GoogleTokenVerifier:
    return GoogleTokenVerifier.from_settings(settings)
