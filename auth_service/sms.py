# auth_service/sms.py
import logging
from dataclasses import dataclass
from typing import Optional

import requests
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client as TwilioClient

from config import AppConfig

logger = logging.getLogger(__name__)

# Twilio error raised when the "To" number is not a valid phone number.
INVALID_TO_NUMBER = 21211

OTP_MESSAGE = "Your verification code is: {otp}. This code will expire in {minutes} minutes."


@dataclass
class SmsResult:
    success: bool
    sid: Optional[str] = None
    error_code: Optional[int] = None
    timed_out: bool = False


def otp_message(otp: str) -> str:
    return OTP_MESSAGE.format(otp=otp, minutes=AppConfig.OTP_EXPIRE_MINUTES)


class TwilioSmsGateway:
    """Sends SMS through Twilio. One instance is built at startup and shared."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str, timeout: float = 5):
        if not all([account_sid, auth_token, from_number]):
            raise RuntimeError(
                "Missing Twilio credentials. Set TWILIO_ACCOUNT_SID, "
                "TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER."
            )
        self.from_number = from_number
        self.client = TwilioClient(
            account_sid, auth_token, http_client=TwilioHttpClient(timeout=timeout)
        )

    @classmethod
    def from_config(cls, config=AppConfig) -> "TwilioSmsGateway":
        return cls(
            config.TWILIO_ACCOUNT_SID,
            config.TWILIO_AUTH_TOKEN,
            config.TWILIO_PHONE_NUMBER,
            timeout=config.SMS_TIMEOUT_SECONDS,
        )

    def send(self, to: str, body: str) -> SmsResult:
        try:
            message = self.client.messages.create(to=to, from_=self.from_number, body=body)
        except TwilioRestException as e:
            logger.error("❌ Twilio rejected SMS to %s: [%s] %s", to, e.code, e.msg)
            return SmsResult(success=False, error_code=e.code)
        except TwilioException as e:
            logger.error("❌ Twilio client error sending SMS to %s: %s", to, e)
            return SmsResult(success=False)
        except requests.exceptions.Timeout:
            logger.error("❌ Twilio timed out sending SMS to %s", to)
            return SmsResult(success=False, timed_out=True)
        except requests.exceptions.RequestException as e:
            logger.error("❌ Error sending SMS via Twilio: %s", e)
            return SmsResult(success=False)
        logger.info("✅ SMS sent to %s, sid: %s", to, message.sid)
        return SmsResult(success=True, sid=message.sid)
