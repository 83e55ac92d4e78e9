# auth_service/schemas.py
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")
E164_MESSAGE = "Phone number must be in E.164 format (e.g., +1234567890)"


def check_e164(phone: str) -> str:
    if not E164_PATTERN.match(phone):
        raise ValueError(E164_MESSAGE)
    return phone


class RequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# --- Request bodies ---
class RegisterData(RequestBody):
    phone: Optional[str] = None
    name: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self):
        if not self.phone or not self.name:
            raise ValueError("Phone number and name are required")
        check_e164(self.phone)
        return self


class LoginData(RequestBody):
    phone: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self):
        if not self.phone:
            raise ValueError("Phone number is required")
        check_e164(self.phone)
        return self


class VerifyOtpData(RequestBody):
    user_id: Optional[str] = Field(None, alias="userId")
    otp: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self):
        if not self.user_id or not self.otp:
            raise ValueError("User ID and OTP are required")
        return self


class ChangePhoneData(RequestBody):
    new_phone: Optional[str] = Field(None, alias="newPhone")

    @model_validator(mode="after")
    def check_fields(self):
        if not self.new_phone:
            raise ValueError("New phone number is required")
        check_e164(self.new_phone)
        return self


class ProfileUpdate(RequestBody):
    name: Optional[str] = None
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_fields(self):
        if not self.name:
            raise ValueError("Name is required")
        return self


# --- Responses ---
class UserOut(BaseModel):
    id: str
    name: str
    phone: str
    email: str = ""


class MessageResponse(BaseModel):
    message: str


class ChallengeResponse(MessageResponse):
    userId: str


class UserResponse(BaseModel):
    user: UserOut


class UserMessageResponse(MessageResponse):
    user: UserOut
