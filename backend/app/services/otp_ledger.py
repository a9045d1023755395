"""
OTP Ledger: persistent store of outstanding OTP challenges.

At most one challenge row exists per mobile number (UNIQUE constraint).
Every mutation is a single statement followed by a commit, so each call is
one durable state transition or none.
"""
import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import OTPChallenge
from ..utils.clock import utcnow
from ..utils.phone import get_phone_last4

logger = logging.getLogger(__name__)

OTP_TTL_SECONDS = 300
MAX_ATTEMPTS = 3
CODE_MIN = 100000
CODE_MAX = 999999

# Reasons a lookup found nothing; logged, never shown to clients
MISSING_NEVER_ISSUED = "never_issued"
MISSING_EXPIRED = "expired"
MISSING_CONSUMED = "consumed"


def generate_code() -> str:
    """Uniformly random 6-digit code in [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


class OTPLedger:
    """Challenge lifecycle for one database session."""

    # Bounded retries when a concurrent issuance wins the UNIQUE race
    ISSUE_RETRIES = 3

    def __init__(self, db: Session):
        self.db = db

    def get(self, mobile_number: str) -> Optional[OTPChallenge]:
        """Raw lookup regardless of state."""
        return self.db.query(OTPChallenge).filter(
            OTPChallenge.mobile_number == mobile_number
        ).first()

    def issue(self, mobile_number: str) -> OTPChallenge:
        """
        Replace any challenge for the number with a fresh one (last OTP wins).

        Returns:
            The new, committed challenge
        """
        last_error: Optional[IntegrityError] = None
        for _ in range(self.ISSUE_RETRIES):
            now = utcnow()
            self.db.execute(
                delete(OTPChallenge).where(OTPChallenge.mobile_number == mobile_number)
            )
            challenge = OTPChallenge(
                mobile_number=mobile_number,
                code=generate_code(),
                created_at=now,
                expires_at=now + timedelta(seconds=OTP_TTL_SECONDS),
                attempts=0,
                verified=False,
            )
            self.db.add(challenge)
            try:
                self.db.commit()
            except IntegrityError as e:
                # Another request inserted between our delete and insert; replace it
                self.db.rollback()
                last_error = e
                logger.info(f"[OTP] Concurrent issuance for ...{get_phone_last4(mobile_number)}, retrying")
                continue
            self.db.refresh(challenge)
            return challenge

        raise last_error

    def find_active(self, mobile_number: str) -> Optional[OTPChallenge]:
        """Challenge for the number iff it is unverified and unexpired."""
        return self.db.query(OTPChallenge).filter(
            OTPChallenge.mobile_number == mobile_number,
            OTPChallenge.verified == False,  # noqa: E712
            OTPChallenge.expires_at > utcnow(),
        ).first()

    def classify_missing(self, mobile_number: str) -> str:
        """Why find_active came back empty, for logging only."""
        challenge = self.get(mobile_number)
        if challenge is None:
            return MISSING_NEVER_ISSUED
        if challenge.verified:
            return MISSING_CONSUMED
        return MISSING_EXPIRED

    def record_failed_attempt(self, challenge: OTPChallenge) -> int:
        """
        Atomically increment the attempt counter.

        Deletes the challenge once the count reaches MAX_ATTEMPTS.

        Returns:
            Attempt count after this failure (MAX_ATTEMPTS if the challenge
            was already exhausted or removed by a concurrent request)
        """
        result = self.db.execute(
            update(OTPChallenge)
            .where(OTPChallenge.id == challenge.id, OTPChallenge.attempts < MAX_ATTEMPTS)
            .values(attempts=OTPChallenge.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.commit()
            return MAX_ATTEMPTS

        attempts = self.db.query(OTPChallenge.attempts).filter(
            OTPChallenge.id == challenge.id
        ).scalar()
        if attempts is None or attempts >= MAX_ATTEMPTS:
            self.db.execute(delete(OTPChallenge).where(OTPChallenge.id == challenge.id))
            attempts = MAX_ATTEMPTS
        self.db.commit()
        return attempts

    def mark_verified(self, challenge: OTPChallenge) -> bool:
        """
        Compare-and-set the verified flag.

        Returns:
            True for exactly one caller per challenge; False if the challenge
            was already verified, exhausted, expired or removed
        """
        result = self.db.execute(
            update(OTPChallenge)
            .where(
                OTPChallenge.id == challenge.id,
                OTPChallenge.verified == False,  # noqa: E712
                OTPChallenge.attempts < MAX_ATTEMPTS,
                OTPChallenge.expires_at > utcnow(),
            )
            .values(verified=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def delete(self, challenge: OTPChallenge) -> None:
        self.db.execute(delete(OTPChallenge).where(OTPChallenge.id == challenge.id))
        self.db.commit()

    def purge_expired(self) -> int:
        """
        Remove every challenge whose expiry has passed, verified or not.

        Returns:
            Number of rows deleted
        """
        result = self.db.execute(
            delete(OTPChallenge).where(OTPChallenge.expires_at <= utcnow())
        )
        self.db.commit()
        return result.rowcount
