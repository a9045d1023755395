from ..utils.clock import utcnow
from sqlalchemy import Column, String, Integer, Boolean, DateTime
from ..db import Base


class OTPChallenge(Base):
    __tablename__ = "otp_challenges"

    id = Column(Integer, primary_key=True)
    mobile_number = Column(String(16), nullable=False, unique=True, index=True)  # one challenge per number
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
