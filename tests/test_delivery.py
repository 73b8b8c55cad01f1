from dataclasses import replace

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from otp_service.config import settings
from otp_service.services import email as email_module
from otp_service.services import sms as sms_module
from otp_service.services.delivery import DeliveryDispatcher
from otp_service.services.errors import DeliveryError


class FakeAwsClient:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def send_email(self, **kwargs):
        self.calls.append(("send_email", kwargs))
        if self.error is not None:
            raise self.error

    def publish(self, **kwargs):
        self.calls.append(("publish", kwargs))
        if self.error is not None:
            raise self.error


def _client_error(operation):
    return ClientError({"Error": {"Code": "Throttling", "Message": "slow down"}}, operation)


class TestDispatcher:
    @pytest.mark.parametrize("identifier", ["user@example.com", "ops.team@school.example.org"])
    def test_email_shaped_goes_to_email(self, outbox, identifier):
        dispatcher = DeliveryDispatcher(outbox.send_email, outbox.send_sms)
        assert dispatcher.dispatch(identifier, "123456") == "email"
        assert outbox.emails == [(identifier, "123456")]
        assert outbox.sms == []

    @pytest.mark.parametrize("identifier", ["+12223334444", "2223334444", "not-an-email"])
    def test_everything_else_goes_to_sms(self, outbox, identifier):
        dispatcher = DeliveryDispatcher(outbox.send_email, outbox.send_sms)
        assert dispatcher.dispatch(identifier, "654321") == "sms"
        assert outbox.sms == [(identifier, "654321")]
        assert outbox.emails == []

    def test_transport_failure_propagates(self, outbox):
        outbox.fail_with = DeliveryError("boom")
        dispatcher = DeliveryDispatcher(outbox.send_email, outbox.send_sms)
        with pytest.raises(DeliveryError):
            dispatcher.dispatch("user@example.com", "123456")


class TestEmailTransport:
    def test_sends_code_through_ses(self, monkeypatch):
        client = FakeAwsClient()
        monkeypatch.setattr(email_module, "aws_client", lambda name: client)
        email_module.send_otp_email("user@example.com", "246810")

        (operation, kwargs), = client.calls
        assert operation == "send_email"
        assert kwargs["Destination"] == {"ToAddresses": ["user@example.com"]}
        assert kwargs["Source"] == settings.otp_email_sender
        assert "246810" in kwargs["Message"]["Body"]["Text"]["Data"]

    def test_missing_sender_is_a_delivery_error(self, monkeypatch):
        monkeypatch.setattr(email_module, "settings", replace(settings, otp_email_sender=""))
        with pytest.raises(DeliveryError):
            email_module.send_otp_email("user@example.com", "246810")

    @pytest.mark.parametrize(
        "error",
        [_client_error("SendEmail"), EndpointConnectionError(endpoint_url="https://ses")],
    )
    def test_ses_errors_become_delivery_errors(self, monkeypatch, error):
        monkeypatch.setattr(email_module, "aws_client", lambda name: FakeAwsClient(error))
        with pytest.raises(DeliveryError):
            email_module.send_otp_email("user@example.com", "246810")


class TestSmsTransport:
    def test_sns_publish(self, monkeypatch):
        client = FakeAwsClient()
        monkeypatch.setattr(sms_module, "aws_client", lambda name: client)
        sms_module.send_otp_sms("+12223334444", "135790")

        (operation, kwargs), = client.calls
        assert operation == "publish"
        assert kwargs["PhoneNumber"] == "+12223334444"
        assert "135790" in kwargs["Message"]
        sms_type = kwargs["MessageAttributes"]["AWS.SNS.SMS.SMSType"]
        assert sms_type["StringValue"] == "Transactional"

    @pytest.mark.parametrize(
        "error",
        [_client_error("Publish"), EndpointConnectionError(endpoint_url="https://sns")],
    )
    def test_sns_errors_become_delivery_errors(self, monkeypatch, error):
        monkeypatch.setattr(sms_module, "aws_client", lambda name: FakeAwsClient(error))
        with pytest.raises(DeliveryError):
            sms_module.send_otp_sms("+12223334444", "135790")

    def test_invalid_number_is_rejected_before_publish(self, monkeypatch):
        client = FakeAwsClient()
        monkeypatch.setattr(sms_module, "aws_client", lambda name: client)
        with pytest.raises(DeliveryError):
            sms_module.send_otp_sms("+123", "135790")
        assert client.calls == []

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("+12223334444", "+12223334444"),
            ("+44 20 7946 0958", "+442079460958"),
            ("(222) 333-4444", "+12223334444"),
        ],
    )
    def test_to_e164(self, raw, expected):
        assert sms_module._to_e164(raw) == expected

    def test_bare_number_uses_configured_country_code(self, monkeypatch):
        monkeypatch.setattr(sms_module, "settings", replace(settings, default_country_code="+44"))
        assert sms_module._to_e164("2079460958") == "+442079460958"

    @pytest.mark.parametrize("raw", ["", "abc", "+123", "+0123456789", "+1234567890123456"])
    def test_to_e164_rejects_unusable_numbers(self, raw):
        with pytest.raises(DeliveryError):
            sms_module._to_e164(raw)
