"""
Auth service: registration, login, profile, password reset, Google sign-in, avatars.

Collaborators (session, email service, Google verifier) are passed in by the
routers, which get them from the dependencies in ``app.core.deps``.
"""

import logging
import secrets
import time
from datetime import timedelta
from pathlib import Path
from typing import Tuple

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import AuthenticationError, BadRequestError, ConflictError, UpstreamServiceError
from app.core.security import create_access_token, hash_password
from app.models.common import utcnow
from app.models.user import NAME_MAX_LENGTH, User, normalize_email
from app.services.email_service import EmailService
from app.services.google_service import GoogleTokenVerifier

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."
RESET_REQUEST_MESSAGE = "If your email is registered, you will receive a password reset link."
RESET_TOKEN_EXPIRED = "Reset token has expired. Please request a new one."
RESET_TOKEN_INVALID = "Invalid reset token. Please request a new password reset link."

AVATAR_URL_PREFIX = "/uploads/"
AVATAR_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}
AVATAR_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}


def issue_token(user: User) -> str:
    return create_access_token(user.id, user.email)


def get_user_by_email(db: Session, email: str) -> User:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def _send_welcome(email_service: EmailService, user: User) -> None:
    # a failed welcome email never fails the signup
    try:
        email_service.send_welcome_email(user)
    except UpstreamServiceError as e:
        logger.error(f"Welcome email to {user.email} failed: {e.message}")


# ============ REGISTER / LOGIN ============

def register_user(db: Session, email_service: EmailService, name: str, email: str, password: str) -> Tuple[User, str]:
    if get_user_by_email(db, email) is not None:
        raise ConflictError("User already exists.")

    user = User(name=name, email=email)
    user.set_password(password)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race against a concurrent signup with the same email
        db.rollback()
        raise ConflictError("User already exists.")
    db.refresh(user)

    logger.info(f"User {user.id} registered")
    _send_welcome(email_service, user)
    return user, issue_token(user)


def authenticate_user(db: Session, email: str, password: str) -> Tuple[User, str]:
    """Same error for unknown email and wrong password."""
    user = get_user_by_email(db, email)
    if user is None or not user.verify_password(password):
        logger.info("Failed login attempt")
        raise AuthenticationError(INVALID_CREDENTIALS)
    return user, issue_token(user)


# ============ PROFILE ============

def update_profile(db: Session, user: User, name: str) -> User:
    user.name = name
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not user.verify_password(current_password):
        raise AuthenticationError("Current password incorrect.")
    user.set_password(new_password)
    db.commit()


# ============ PASSWORD RESET ============

def request_password_reset(db: Session, email_service: EmailService, email: str) -> str:
    """Answer with the same message whether or not the email is registered."""
    user = get_user_by_email(db, email)
    if user is None:
        return RESET_REQUEST_MESSAGE

    user.reset_token = secrets.token_hex(32)
    user.reset_token_expiry = utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MIN)
    db.commit()

    try:
        email_service.send_password_reset_email(user, user.reset_token)
    except UpstreamServiceError as e:
        logger.error(f"Password reset email to user {user.id} failed: {e.message}")
    return RESET_REQUEST_MESSAGE


def reset_password(db: Session, token: str, new_password: str) -> None:
    """Consume ``token`` and set the new password in a single conditional UPDATE."""
    now = utcnow()
    consumed = db.query(User).filter(
        User.reset_token == token,
        User.reset_token_expiry > now
    ).update(
        {
            User.password_hash: hash_password(new_password),
            User.reset_token: None,
            User.reset_token_expiry: None,
            User.updated_at: now,
        },
        synchronize_session=False
    )
    db.commit()

    if consumed:
        logger.info("Password reset completed")
        return

    if db.query(User.id).filter(User.reset_token == token).first() is not None:
        raise BadRequestError(RESET_TOKEN_EXPIRED)
    raise BadRequestError(RESET_TOKEN_INVALID)


# ============ GOOGLE ============

def google_login(db: Session, google_verifier: GoogleTokenVerifier, email_service: EmailService,
                 credential: str) -> Tuple[User, str]:
    identity = google_verifier.verify(credential)

    created = False
    user = db.query(User).filter(User.google_id == identity.sub).first()
    if user is None:
        user = get_user_by_email(db, identity.email)
        if user is not None:
            # existing password account: link it
            user.google_id = identity.sub
            if not user.avatar and identity.picture:
                user.avatar = identity.picture
        else:
            user = User(
                name=identity.name[:NAME_MAX_LENGTH],
                email=identity.email,
                google_id=identity.sub,
                avatar=identity.picture
            )
            db.add(user)
            created = True

    try:
        db.commit()
    except IntegrityError:
        # a concurrent first login already created or linked this account
        db.rollback()
        raise ConflictError("User already exists.")
    db.refresh(user)

    if created:
        logger.info(f"User {user.id} registered with Google")
        _send_welcome(email_service, user)
    return user, issue_token(user)


# ============ AVATAR ============

def _avatar_file(upload_dir: str, avatar: str) -> Path:
    """Local file behind a stored avatar path, None for external (Google) pictures."""
    if not avatar or not avatar.startswith(AVATAR_URL_PREFIX):
        return None
    root = Path(upload_dir).resolve()
    path = (root / avatar[len(AVATAR_URL_PREFIX):]).resolve()
    if root not in path.parents:
        return None
    return path


def _delete_avatar_file(upload_dir: str, avatar: str) -> None:
    path = _avatar_file(upload_dir, avatar)
    if path is not None and path.is_file():
        path.unlink()


def save_avatar(db: Session, user: User, upload: UploadFile,
                upload_dir: str = None, max_bytes: int = None) -> str:
    upload_dir = upload_dir or settings.UPLOAD_DIR
    max_bytes = max_bytes or settings.MAX_AVATAR_BYTES

    if upload.content_type not in AVATAR_CONTENT_TYPES:
        raise BadRequestError("Only image files (JPEG, PNG, GIF) are allowed!")

    content = upload.file.read(max_bytes + 1)
    if not content:
        raise BadRequestError("No file uploaded")
    if len(content) > max_bytes:
        raise BadRequestError(f"File too large (max {max_bytes // (1024 * 1024)}MB)")

    ext = Path(upload.filename or "").suffix.lower()
    if ext not in AVATAR_EXTENSIONS:
        ext = AVATAR_CONTENT_TYPES[upload.content_type]

    avatars_dir = Path(upload_dir) / "avatars"
    avatars_dir.mkdir(parents=True, exist_ok=True)
    filename = f"avatar-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"
    (avatars_dir / filename).write_bytes(content)

    previous = user.avatar
    user.avatar = f"{AVATAR_URL_PREFIX}avatars/{filename}"
    db.commit()
    db.refresh(user)

    _delete_avatar_file(upload_dir, previous)
    return user.avatar


def remove_avatar(db: Session, user: User, upload_dir: str = None) -> User:
    _delete_avatar_file(upload_dir or settings.UPLOAD_DIR, user.avatar)
    user.avatar = None
    db.commit()
    db.refresh(user)
    return user
