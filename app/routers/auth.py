from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user, get_email_service, get_google_verifier
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.user import (
    AuthResponse,
    AvatarResponse,
    ForgotPasswordRequest,
    GoogleAuthRequest,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    UserEnvelope,
)
from app.services import auth_service
from app.services.email_service import EmailService
from app.services.google_service import GoogleTokenVerifier

router = APIRouter(prefix="/user", tags=["user"])


# ============ PUBLIC ============

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: RegisterRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Create an account and log it in"""
    user, token = auth_service.register_user(
        db, email_service, user_data.name, user_data.email, user_data.password
    )
    return {"success": True, "token": token, "user": user}


@router.post("/login", response_model=AuthResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user, token = auth_service.authenticate_user(db, credentials.email, credentials.password)
    return {"success": True, "token": token, "user": user}


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    request: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    message = auth_service.request_password_reset(db, email_service, request.email)
    return {"success": True, "message": message}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(request: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, request.token, request.new_password)
    return {"success": True, "message": "Password has been reset successfully."}


@router.post("/google-auth", response_model=AuthResponse)
def google_auth(
    request: GoogleAuthRequest,
    db: Session = Depends(get_db),
    google_verifier: GoogleTokenVerifier = Depends(get_google_verifier),
    email_service: EmailService = Depends(get_email_service)
):
    user, token = auth_service.google_login(db, google_verifier, email_service, request.credential)
    return {"success": True, "token": token, "user": user}


# ============ PROTECTED ============

@router.get("/me", response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "user": current_user}


@router.put("/profile", response_model=UserEnvelope)
def update_profile(
    profile: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    user = auth_service.update_profile(db, current_user, profile.name)
    return {"success": True, "user": user}


@router.put("/password", response_model=MessageResponse)
def change_password(
    passwords: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    auth_service.change_password(db, current_user, passwords.current_password, passwords.new_password)
    return {"success": True, "message": "Password changed."}


@router.post("/avatar", response_model=AvatarResponse)
def upload_avatar(
    request: Request,
    avatar: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    path = auth_service.save_avatar(db, current_user, avatar)
    return {
        "success": True,
        "message": "Avatar uploaded successfully",
        "avatar": path,
        "full_avatar_url": f"{str(request.base_url).rstrip('/')}{path}",
    }


@router.delete("/avatar", response_model=AvatarResponse)
def delete_avatar(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    auth_service.remove_avatar(db, current_user)
    return {"success": True, "message": "Avatar removed successfully", "avatar": None}
