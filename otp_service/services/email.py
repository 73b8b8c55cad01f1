from __future__ import annotations

import logging

from botocore.exceptions import BotoCoreError, ClientError

from otp_service.config import settings
from otp_service.services.aws import aws_client
from otp_service.services.errors import DeliveryError

LOGGER = logging.getLogger(__name__)


def send_otp_email(to_email: str, code: str) -> None:
    sender = settings.otp_email_sender
    if not sender:
        raise DeliveryError("OTP email sender is not configured")

    body = _build_body(code, settings.otp_ttl_seconds)
    try:
        aws_client("ses").send_email(
            Source=sender,
            Destination={"ToAddresses": [to_email]},
            Message={
                "Subject": {"Data": settings.otp_email_subject},
                "Body": {"Text": {"Data": body}},
            },
        )
    except ClientError as exc:
        LOGGER.error("SES rejected OTP email: %s", exc.response.get("Error", {}))
        raise DeliveryError("Failed to send OTP email") from exc
    except BotoCoreError as exc:
        LOGGER.error("SES unreachable: %s", exc)
        raise DeliveryError("Failed to reach SES") from exc


def _build_body(code: str, ttl_seconds: int) -> str:
    minutes = max(1, ttl_seconds // 60)
    return (
        f"Your One-Time Password is: {code}\n\n"
        f"It expires in {minutes} minute(s).\n\n"
        "If you did not request this code, you can ignore this email."
    )
