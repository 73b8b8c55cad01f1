from __future__ import annotations

import logging
import re

from botocore.exceptions import BotoCoreError, ClientError

from otp_service.config import settings
from otp_service.services.aws import aws_client
from otp_service.services.errors import DeliveryError

LOGGER = logging.getLogger(__name__)

E164_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")
# Separators people type into phone numbers.
_PHONE_PUNCTUATION = re.compile(r"[\s().-]")


def send_otp_sms(to_phone: str, code: str) -> None:
    to_number = _to_e164(to_phone)
    body = _build_body(code, settings.otp_ttl_seconds)
    try:
        aws_client("sns").publish(
            PhoneNumber=to_number,
            Message=body,
            MessageAttributes={
                "AWS.SNS.SMS.SMSType": {
                    "DataType": "String",
                    "StringValue": "Transactional",
                }
            },
        )
    except ClientError as exc:
        LOGGER.error("SNS rejected OTP SMS: %s", exc.response.get("Error", {}))
        raise DeliveryError("Failed to send OTP SMS") from exc
    except BotoCoreError as exc:
        LOGGER.error("SNS unreachable: %s", exc)
        raise DeliveryError("Failed to reach SNS") from exc


def _to_e164(phone_number: str) -> str:
    candidate = _PHONE_PUNCTUATION.sub("", phone_number)
    if candidate and not candidate.startswith("+"):
        candidate = f"{settings.default_country_code}{candidate}"
    if not E164_PATTERN.match(candidate):
        raise DeliveryError("Phone number is not a valid E.164 number")
    return candidate


def _build_body(code: str, ttl_seconds: int) -> str:
    minutes = max(1, ttl_seconds // 60)
    return f"Your Admin Portal OTP is: {code}. It expires in {minutes} minute(s)."
