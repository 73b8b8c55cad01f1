from sqlalchemy import BigInteger, Column, Index, String

from otp_service.database import Base


class OtpEntry(Base):
    __tablename__ = "otp_codes"

    identifier = Column(String(255), primary_key=True)
    hashed_code = Column(String(128), nullable=False)
    # Epoch seconds.
    expires_at = Column(BigInteger, nullable=False)
    created_at = Column(BigInteger, nullable=False)

    __table_args__ = (Index("ix_otp_expires_at", "expires_at"),)
