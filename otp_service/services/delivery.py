from typing import Callable, Literal

from otp_service.services.email import send_otp_email
from otp_service.services.otp import is_email
from otp_service.services.sms import send_otp_sms

Channel = Literal["email", "sms"]
Sender = Callable[[str, str], None]


class DeliveryDispatcher:
    """Routes a plaintext code to the email or SMS transport by identifier shape."""

    def __init__(self, send_email: Sender, send_sms: Sender) -> None:
        self._send_email = send_email
        self._send_sms = send_sms

    def channel_for(self, identifier: str) -> Channel:
        return "email" if is_email(identifier) else "sms"

    def dispatch(self, identifier: str, code: str) -> Channel:
        channel = self.channel_for(identifier)
        if channel == "email":
            self._send_email(identifier, code)
        else:
            self._send_sms(identifier, code)
        return channel


dispatcher = DeliveryDispatcher(send_email=send_otp_email, send_sms=send_otp_sms)
