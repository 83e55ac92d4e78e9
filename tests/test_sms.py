from unittest.mock import MagicMock

import pytest
import requests
from twilio.base.exceptions import TwilioException, TwilioRestException

from auth_service.sms import TwilioSmsGateway


@pytest.fixture
def gateway():
    gateway = TwilioSmsGateway("ACtest", "token", "+15550000000", timeout=1)
    gateway.client = MagicMock()
    return gateway


def test_send_returns_sid(gateway):
    gateway.client.messages.create.return_value = MagicMock(sid="SM123")

    result = gateway.send("+15551234567", "hello")

    assert result.success is True
    assert result.sid == "SM123"
    gateway.client.messages.create.assert_called_once_with(
        to="+15551234567", from_="+15550000000", body="hello"
    )


def test_rest_error_keeps_provider_code(gateway):
    gateway.client.messages.create.side_effect = TwilioRestException(
        400, "https://api.twilio.com", msg="invalid To", code=21211
    )

    result = gateway.send("+15551234567", "hello")

    assert result.success is False
    assert result.error_code == 21211


def test_client_error_is_a_failed_send(gateway):
    gateway.client.messages.create.side_effect = TwilioException("Credentials are required")

    result = gateway.send("+15551234567", "hello")

    assert result.success is False
    assert result.error_code is None
    assert result.timed_out is False


def test_timeout_is_flagged(gateway):
    gateway.client.messages.create.side_effect = requests.exceptions.ReadTimeout("slow")

    assert gateway.send("+15551234567", "hello").timed_out is True


def test_missing_credentials_fail_fast():
    with pytest.raises(RuntimeError):
        TwilioSmsGateway("", "token", "+15550000000")
