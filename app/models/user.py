from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import validates

from app.core.database import Base
from app.core.security import check_password, hash_password
from app.models.common import utcnow


NAME_MAX_LENGTH = 255


def normalize_email(email: str) -> str:
    return email.strip().lower()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(NAME_MAX_LENGTH), nullable=False)
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=True)  # NULL for Google-only accounts
    google_id = Column(String(255), unique=True, nullable=True)
    avatar = Column(String(512), nullable=True)

    # Password reset: set by forgot-password, cleared once consumed
    reset_token = Column(String(128), nullable=True, index=True)
    reset_token_expiry = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @validates("email")
    def _normalize_email(self, key, value):
        return normalize_email(value)

    def set_password(self, password: str):
        self.password_hash = hash_password(password)

    def verify_password(self, password: str) -> bool:
        return check_password(password, self.password_hash)
