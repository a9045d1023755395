"""
Outbound SMS channel used to deliver OTP codes
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from twilio.rest import Client
from twilio.base.exceptions import TwilioException

from ...core.config import settings
from ...utils.phone import get_phone_last4
from .errors import DeliveryFailure

logger = logging.getLogger(__name__)

OTP_MESSAGE_TEMPLATE = "Your DocVault OTP is: {code}. Valid for 5 minutes."


@dataclass
class DeliveryReceipt:
    message_id: str
    to: str


class SMSChannel(ABC):
    """Abstract base class for SMS delivery channels"""

    @abstractmethod
    def send(self, mobile_number: str, code: str) -> DeliveryReceipt:
        """
        Deliver an OTP code.

        Args:
            mobile_number: Destination number as submitted by the client
            code: 6-digit OTP code

        Returns:
            DeliveryReceipt from the provider

        Raises:
            DeliveryFailure: If the provider rejected or could not send the message
        """


class TwilioSMSChannel(SMSChannel):
    """
    Twilio Programmable SMS channel.

    Requires TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER.
    """

    def __init__(self, account_sid: str, auth_token: str, from_number: str, client: Optional[Client] = None):
        if not account_sid or not auth_token:
            raise ValueError("Twilio credentials not configured")
        if not from_number:
            raise ValueError("TWILIO_FROM_NUMBER not configured for SMS channel")

        self.client = client or Client(account_sid, auth_token)
        self.from_number = from_number

    def send(self, mobile_number: str, code: str) -> DeliveryReceipt:
        try:
            message = self.client.messages.create(
                body=OTP_MESSAGE_TEMPLATE.format(code=code),
                from_=self.from_number,
                to=mobile_number,
            )
        except TwilioException as e:
            logger.error(f"[OTP][Twilio] Twilio rejected SMS to ...{get_phone_last4(mobile_number)}: {e}")
            raise DeliveryFailure(str(e)) from e
        except Exception as e:
            # Transport errors (timeouts, DNS) surface as requests exceptions, not TwilioException
            logger.error(f"[OTP][Twilio] Failed to send SMS to ...{get_phone_last4(mobile_number)}: {e}")
            raise DeliveryFailure(str(e)) from e

        logger.info(f"[OTP][Twilio] SMS sent to ...{get_phone_last4(mobile_number)}, SID: {message.sid}")
        return DeliveryReceipt(message_id=message.sid, to=mobile_number)


_channel_instance: Optional[SMSChannel] = None


def get_sms_channel() -> Optional[SMSChannel]:
    """
    Get the configured SMS channel.

    Returns:
        SMSChannel instance, or None when Twilio is not configured
        (callers then fall back to returning the code inline)
    """
    global _channel_instance

    if not settings.twilio_enabled:
        return None

    if _channel_instance is None:
        _channel_instance = TwilioSMSChannel(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_FROM_NUMBER,
        )
        logger.info("[OTP] Using Twilio SMS channel")
    return _channel_instance
