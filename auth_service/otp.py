# auth_service/otp.py
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from fastapi import status
from sqlalchemy.orm import Session

from config import AppConfig

from .challenge import PendingChallenge, generate_otp, utcnow
from .errors import (
    Conflict,
    Expired,
    GatewayFailure,
    GatewayTimeout,
    InternalError,
    InvalidCode,
    NotFound,
    Unauthorized,
)
from .models import User
from .sms import INVALID_TO_NUMBER, SmsResult, otp_message
from .store import UserStore

logger = logging.getLogger(__name__)


class IssueContext(str, Enum):
    LOGIN = "login"
    REGISTER = "register"
    FORGOT_PASSWORD = "forgot-password"
    CHANGE_PHONE = "change-phone"


# (status, message) returned to the client when delivery fails, per context
DELIVERY_FAILURES = {
    IssueContext.REGISTER: (
        status.HTTP_400_BAD_REQUEST,
        "Failed to send OTP. Please check your phone number and try again.",
    ),
    IssueContext.LOGIN: (status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send OTP"),
    IssueContext.FORGOT_PASSWORD: (status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send OTP"),
    IssueContext.CHANGE_PHONE: (
        status.HTTP_400_BAD_REQUEST,
        "Failed to send OTP to new phone number",
    ),
}

INVALID_NUMBER_MESSAGE = (
    "Invalid phone number format. Please use E.164 format (e.g., +1234567890)"
)


class OtpIssuer:
    def __init__(
        self,
        gateway,
        code_factory: Callable[[], str] = generate_otp,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.gateway = gateway
        self.code_factory = code_factory
        self.clock = clock

    def issue_challenge(
        self,
        db: Session,
        phone: str,
        context: IssueContext,
        name: Optional[str] = None,
        user: Optional[User] = None,
    ) -> str:
        """Store a fresh challenge for ``phone`` and text it. Returns the user id.

        ``name`` is required for ``register``; ``user`` is the session user for
        ``change-phone``, where ``phone`` is the new number.
        """
        context = IssueContext(context)

        if context is IssueContext.REGISTER:
            if UserStore.find_by_phone(db, phone):
                raise Conflict("User with this phone number already exists")
            challenge = PendingChallenge.issue(self.clock(), self.code_factory())
            user = UserStore.insert(
                db,
                User(phone=phone, name=name, otp_code=challenge.code, otp_expiry=challenge.expiry),
            )
        elif context is IssueContext.CHANGE_PHONE:
            if user is None:
                raise Unauthorized()
            if UserStore.phone_taken_by_other(db, phone, user.id):
                raise Conflict("This phone number is already in use")
            challenge = self._refresh(db, user, pending_phone=phone)
        else:
            user = UserStore.find_by_phone(db, phone)
            if not user:
                raise NotFound("User not found. Please register first.")
            challenge = self._refresh(db, user)

        user_id = user.id
        logger.debug("OTP for %s (%s): %s", phone, context.value, challenge.code)

        try:
            result = self.gateway.send(phone, otp_message(challenge.code))
        except Exception as e:
            logger.exception("❌ SMS gateway raised while sending OTP to %s", phone)
            if context is IssueContext.REGISTER:
                UserStore.delete(db, user)
                logger.warning("⚠️ Rolled back registration of %s after SMS failure", phone)
            raise self._delivery_error(context, SmsResult(success=False)) from e
        if not result.success:
            if context is IssueContext.REGISTER:
                UserStore.delete(db, user)
                logger.warning("⚠️ Rolled back registration of %s after SMS failure", phone)
            raise self._delivery_error(context, result)

        logger.info("OTP issued for user %s (%s)", user_id, context.value)
        return user_id

    def _refresh(self, db: Session, user: User, pending_phone: Optional[str] = None) -> PendingChallenge:
        for _ in range(AppConfig.OTP_ISSUE_ATTEMPTS):
            expected = user.challenge
            new = PendingChallenge.issue(self.clock(), self.code_factory())
            if UserStore.swap_challenge(db, user.id, expected, new, pending_phone=pending_phone):
                return new
            logger.warning("Challenge for user %s changed while issuing, retrying", user.id)
            db.refresh(user)
        raise InternalError("Could not issue OTP, please try again")

    @staticmethod
    def _delivery_error(context: IssueContext, result: SmsResult) -> GatewayFailure:
        if result.timed_out:
            return GatewayTimeout("SMS gateway timed out. Please try again.")
        status_code, message = DELIVERY_FAILURES[context]
        if result.error_code == INVALID_TO_NUMBER and context in (
            IssueContext.REGISTER,
            IssueContext.CHANGE_PHONE,
        ):
            message = INVALID_NUMBER_MESSAGE
        return GatewayFailure(message, status_code=status_code, provider_code=result.error_code)


class OtpVerifier:
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    def verify_challenge(
        self, db: Session, user_id: str, submitted_code: str, now: Optional[datetime] = None
    ) -> User:
        now = now or self.clock()
        user = UserStore.find_by_id(db, user_id)
        if not user:
            raise NotFound("User not found")

        challenge = user.challenge
        if not isinstance(challenge, PendingChallenge) or not challenge.matches(submitted_code):
            raise InvalidCode("Invalid OTP")
        if challenge.is_expired(now):
            raise Expired("OTP has expired")

        if user.pending_phone and UserStore.phone_taken_by_other(db, user.pending_phone, user.id):
            raise Conflict("This phone number is already in use")

        if not UserStore.consume_challenge(db, user, challenge):
            # another request consumed or replaced the challenge first
            raise InvalidCode("Invalid OTP")

        db.refresh(user)
        logger.info("✅ User %s verified", user.id)
        return user
