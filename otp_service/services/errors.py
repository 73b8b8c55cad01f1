INVALID_OTP_MESSAGE = "Invalid or expired OTP"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class OtpServiceError(Exception):
    status_code = 500
    public_message = INTERNAL_ERROR_MESSAGE


class ClientInputError(OtpServiceError):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.public_message = message


class AuthenticationFailure(OtpServiceError):
    """Absent, expired and mismatched codes all look the same to a caller."""

    status_code = 400
    public_message = INVALID_OTP_MESSAGE

    def __init__(self, reason: str = "otp rejected") -> None:
        super().__init__(reason)


class DependencyFailure(OtpServiceError):
    status_code = 500


class DeliveryError(DependencyFailure):
    pass


class SecretUnavailableError(DependencyFailure):
    pass
