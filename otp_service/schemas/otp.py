from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OtpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email_or_phone: Optional[str] = Field(
        default=None, alias="emailOrPhone", max_length=255
    )


class OtpResponse(BaseModel):
    message: str


class OtpVerifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email_or_phone: Optional[str] = Field(
        default=None, alias="emailOrPhone", max_length=255
    )
    otp: Optional[str] = Field(default=None, max_length=32)


class OtpVerifyResponse(BaseModel):
    token: str
