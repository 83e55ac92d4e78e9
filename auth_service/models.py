# auth_service/models.py
import uuid

from sqlalchemy import Boolean, Column, DateTime, String

from .challenge import challenge_from_columns, utcnow
from .database import Base  # Import Base from our database module


def new_id() -> str:
    return uuid.uuid4().hex


# --- Database Model: User ---
class User(Base):
    __tablename__ = "users"
    id = Column(String(32), primary_key=True, default=new_id)
    phone = Column(String(16), unique=True, index=True, nullable=False)
    name = Column(String(150), nullable=False)
    email = Column(String(254), nullable=False, default="")
    is_verified = Column(Boolean, nullable=False, default=False)
    otp_code = Column(String(6), nullable=True)
    otp_expiry = Column(DateTime, nullable=True)
    pending_phone = Column(String(16), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def challenge(self):
        return challenge_from_columns(self.otp_code, self.otp_expiry)

    def public_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email or "",
        }
