"""
One-time password challenge for phone sign-in.

Per phone: NONE -> REQUESTED -> VERIFIED | EXPIRED | EXHAUSTED.
A new request overwrites any pending challenge for the same phone.
Challenges live in process memory; codes are never logged.
"""
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from app.core.exceptions import (
    ValidationError, ExternalServiceError,
    OtpNotRequestedError, OtpExpiredError, OtpMismatchError, OtpAttemptsExceededError
)
from app.core.logging import mask_phone
from app.core.security import create_session_token
from app.models.user import Role
from app.services.sms_service import SmsClient

logger = logging.getLogger(__name__)

SMS_TEMPLATE = "Your Party in Bangalore verification code is: {code}"
CODE_LENGTH = 6


def generate_code() -> str:
    """Uniform 6-digit code, leading zeros allowed"""
    return f"{secrets.randbelow(10 ** CODE_LENGTH):0{CODE_LENGTH}d}"


@dataclass
class OtpChallenge:
    code: str
    issued_at: datetime
    attempts: int = 0


class OtpService:
    def __init__(
        self,
        sms_client: SmsClient,
        country_code: str = "+91",
        validity_minutes: int = 5,
        max_attempts: int = 5,
        clock: Callable[[], datetime] = datetime.utcnow,
        code_generator: Callable[[], str] = generate_code
    ):
        self.sms_client = sms_client
        self.country_code = country_code
        self.validity = timedelta(minutes=validity_minutes)
        self.max_attempts = max_attempts
        self._clock = clock
        self._generate = code_generator
        self._challenges: Dict[str, OtpChallenge] = {}
        self._phone_pattern = re.compile(rf"^{re.escape(country_code)}\d{{10}}$")

    def __len__(self) -> int:
        return len(self._challenges)

    def has_challenge(self, phone: str) -> bool:
        return phone in self._challenges

    def validate_phone(self, phone: Optional[str]) -> str:
        phone = (phone or "").strip()
        if not self._phone_pattern.match(phone):
            raise ValidationError(
                f"A valid phone number ({self.country_code}XXXXXXXXXX) is required.",
                {"field": "phone"}
            )
        return phone

    async def request_otp(self, phone: str) -> Dict[str, object]:
        phone = self.validate_phone(phone)

        challenge = OtpChallenge(code=self._generate(), issued_at=self._clock())
        self._challenges[phone] = challenge

        try:
            await self.sms_client.send(phone, SMS_TEMPLATE.format(code=challenge.code))
        except ExternalServiceError:
            # A newer request may have replaced this challenge meanwhile
            if self._challenges.get(phone) is challenge:
                del self._challenges[phone]
            logger.error(f"OTP dispatch failed for {mask_phone(phone)}")
            raise ExternalServiceError("Failed to send OTP. The phone number may be invalid.")

        logger.info(f"OTP issued for {mask_phone(phone)}")
        return {"success": True, "message": "OTP sent successfully."}

    async def verify_otp(self, phone: str, code: str) -> Dict[str, object]:
        phone = (phone or "").strip()
        code = (code or "").strip()
        if not phone or not code:
            raise ValidationError("Phone number and OTP are required.")

        challenge = self._challenges.get(phone)
        if challenge is None:
            raise OtpNotRequestedError()

        if self._clock() > challenge.issued_at + self.validity:
            self._challenges.pop(phone, None)
            logger.info(f"Expired OTP presented for {mask_phone(phone)}")
            raise OtpExpiredError()

        if not secrets.compare_digest(challenge.code.encode(), code.encode()):
            challenge.attempts += 1
            if challenge.attempts >= self.max_attempts:
                self._challenges.pop(phone, None)
                logger.warning(f"OTP attempts exhausted for {mask_phone(phone)}")
                raise OtpAttemptsExceededError()
            raise OtpMismatchError()

        self._challenges.pop(phone, None)
        token = create_session_token(phone, Role.USER.value)
        logger.info(f"OTP verified for {mask_phone(phone)}")
        return {"success": True, "message": "Verification successful!", "token": token}

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [p for p, c in self._challenges.items() if now > c.issued_at + self.validity]
        for phone in expired:
            self._challenges.pop(phone, None)
        return len(expired)
