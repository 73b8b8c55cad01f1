from fastapi import APIRouter, HTTPException

from otp_service.schemas.authorizer import AuthorizeRequest, PolicyResponse
from otp_service.schemas.otp import (
    OtpRequest,
    OtpResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
)
from otp_service.services.auth import auth_service
from otp_service.services.errors import OtpServiceError
from otp_service.services.tokens import token_verifier

router = APIRouter(prefix="/auth", tags=["auth"])


def _http_error(exc: OtpServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.public_message)


@router.post("/request-otp", response_model=OtpResponse)
def request_otp(payload: OtpRequest) -> OtpResponse:
    try:
        message = auth_service.request_otp(payload.email_or_phone)
    except OtpServiceError as exc:
        raise _http_error(exc) from exc
    return OtpResponse(message=message)


@router.post("/verify-otp", response_model=OtpVerifyResponse)
def verify_otp(payload: OtpVerifyRequest) -> OtpVerifyResponse:
    try:
        token = auth_service.verify_otp(payload.email_or_phone, payload.otp)
    except OtpServiceError as exc:
        raise _http_error(exc) from exc
    return OtpVerifyResponse(token=token)


@router.post("/authorize", response_model=PolicyResponse)
def authorize(payload: AuthorizeRequest) -> dict:
    decision = token_verifier.authorize(payload.authorization_token, payload.method_arn)
    return decision.to_policy()
