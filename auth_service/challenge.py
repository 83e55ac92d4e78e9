# auth_service/challenge.py
"""One-time passcode challenges.

A user either has no outstanding challenge or exactly one ``(code, expiry)``
pair. The two nullable columns on ``User`` are only ever read and written
through these types so a code can never exist without its expiry.
"""
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from config import AppConfig

_otp_random = random.SystemRandom()


def utcnow() -> datetime:
    # Naive UTC, which is what the DateTime columns store and return.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_otp() -> str:
    return str(_otp_random.randint(100000, 999999))


@dataclass(frozen=True)
class NoChallenge:
    pass


@dataclass(frozen=True)
class PendingChallenge:
    code: str
    expiry: datetime

    @classmethod
    def issue(cls, now: datetime, code: Optional[str] = None) -> "PendingChallenge":
        return cls(
            code=code or generate_otp(),
            expiry=now + timedelta(minutes=AppConfig.OTP_EXPIRE_MINUTES),
        )

    def matches(self, submitted: str) -> bool:
        return self.code == submitted

    def is_expired(self, now: datetime) -> bool:
        # equal to expiry is still valid
        return now > self.expiry


Challenge = Union[NoChallenge, PendingChallenge]


def challenge_from_columns(code: Optional[str], expiry: Optional[datetime]) -> Challenge:
    if code is None or expiry is None:
        return NoChallenge()
    return PendingChallenge(code=code, expiry=expiry)


def challenge_to_columns(challenge: Challenge) -> dict:
    if isinstance(challenge, PendingChallenge):
        return {"otp_code": challenge.code, "otp_expiry": challenge.expiry}
    return {"otp_code": None, "otp_expiry": None}
