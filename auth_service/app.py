# auth_service/app.py
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from config import AppConfig
from library.routes import folder_router, note_router, playlist_router
from library.youtube import YoutubeClient

from .database import get_db, init_db
from .errors import register_exception_handlers
from .models import User
from .otp import IssueContext, OtpIssuer, OtpVerifier
from .schemas import (
    ChallengeResponse,
    ChangePhoneData,
    LoginData,
    MessageResponse,
    ProfileUpdate,
    RegisterData,
    UserMessageResponse,
    UserResponse,
    VerifyOtpData,
)
from .sessions import clear_session, get_current_user, issue_session
from .sms import TwilioSmsGateway
from .store import UserStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# --- Configuration ---
AppConfig.validate()


# --- Dependencies ---
def get_otp_issuer(request: Request) -> OtpIssuer:
    return OtpIssuer(request.app.state.sms_gateway)


def get_otp_verifier() -> OtpVerifier:
    return OtpVerifier()


# ------------------------------------------------------------------
# --- APPLICATION SETUP ---
# ------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting learning backend...")
    init_db()
    if getattr(app.state, "sms_gateway", None) is None:
        # fails fast when Twilio credentials are missing
        app.state.sms_gateway = TwilioSmsGateway.from_config(AppConfig)
        logger.info("Twilio SMS gateway ready")
    if getattr(app.state, "youtube_client", None) is None:
        app.state.youtube_client = YoutubeClient.from_config(AppConfig)
    yield
    logger.info("Learning backend stopped")


app = FastAPI(title="Playlist Learning Service", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=AppConfig.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

# Routers
auth_router = APIRouter(prefix="/auth", tags=["Authentication"])
user_router = APIRouter(prefix="/user", tags=["User"])


# ------------------------------------------------------------------
# --- ROUTES DEFINITIONS ---
# ------------------------------------------------------------------
@auth_router.post("/register", response_model=ChallengeResponse)
def register_user(
    data: RegisterData,
    db: Session = Depends(get_db),
    issuer: OtpIssuer = Depends(get_otp_issuer),
):
    user_id = issuer.issue_challenge(db, data.phone, IssueContext.REGISTER, name=data.name)
    return {
        "message": "Registration successful. Please verify your phone number.",
        "userId": user_id,
    }


@auth_router.post("/login", response_model=ChallengeResponse)
def login_user(
    data: LoginData,
    db: Session = Depends(get_db),
    issuer: OtpIssuer = Depends(get_otp_issuer),
):
    user_id = issuer.issue_challenge(db, data.phone, IssueContext.LOGIN)
    return {
        "message": "OTP sent successfully. Please verify your phone number.",
        "userId": user_id,
    }


@auth_router.post("/forgot-password", response_model=ChallengeResponse)
def forgot_password(
    data: LoginData,
    db: Session = Depends(get_db),
    issuer: OtpIssuer = Depends(get_otp_issuer),
):
    user_id = issuer.issue_challenge(db, data.phone, IssueContext.FORGOT_PASSWORD)
    return {
        "message": "OTP sent successfully. Verify it to sign back in.",
        "userId": user_id,
    }


@auth_router.post("/verify-otp", response_model=UserMessageResponse)
def verify_otp(
    data: VerifyOtpData,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    verifier: OtpVerifier = Depends(get_otp_verifier),
):
    user = verifier.verify_challenge(db, data.user_id, data.otp)
    issue_session(request, response, user)
    return {
        "message": "Phone number verified successfully",
        "user": user.public_dict(),
    }


@auth_router.post("/logout", response_model=MessageResponse)
def logout_user(response: Response):
    # The token itself stays valid until it expires; only the cookie is dropped.
    clear_session(response)
    return {"message": "Logged out successfully"}


@user_router.get("/profile", response_model=UserResponse)
def get_profile(user: User = Depends(get_current_user)):
    return {"user": user.public_dict()}


@user_router.put("/profile", response_model=UserMessageResponse)
def update_profile(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = UserStore.update_profile(db, user, data.name, data.email or "")
    logger.info("Profile updated for user %s", user.id)
    return {
        "message": "Profile updated successfully",
        "user": user.public_dict(),
    }


@user_router.post("/change-phone", response_model=ChallengeResponse)
def change_phone(
    data: ChangePhoneData,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    issuer: OtpIssuer = Depends(get_otp_issuer),
):
    user_id = issuer.issue_challenge(db, data.new_phone, IssueContext.CHANGE_PHONE, user=user)
    return {
        "message": "OTP sent to new phone number. Please verify to complete the change.",
        "userId": user_id,
    }


# Health check endpoint
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "FastAPI backend is running"}


# ------------------------------------------------------------------
# --- INCLUDE ROUTERS (must be at the END) ---
# ------------------------------------------------------------------
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(playlist_router)
app.include_router(note_router)
app.include_router(folder_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("auth_service.app:app", host="127.0.0.1", port=8000, reload=True)
