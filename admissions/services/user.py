"""Account registration, email verification and login with lockout."""

import logging
from datetime import timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from admissions.config import settings
from admissions.errors import (
    ConflictError,
    ErrorKind,
    NotFoundError,
    Result,
    UnauthorizedError,
    ValidationFailedError,
    command,
    query,
)
from admissions.models.user import User, UserRole, UserStatus
from admissions.schemas.user import LoginResponse, UserLogin, UserProfile, UserRegister
from admissions.services.authorization import Actor
from admissions.services.clock import Clock, system_clock
from admissions.services.common import as_utc, parse_payload
from admissions.services.security import (
    generate_token,
    generate_verification_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

SELF_REGISTER_ROLES = frozenset({UserRole.parent, UserRole.student})


class UserService:
    def __init__(self, db: Session, clock: Clock = system_clock) -> None:
        self.db = db
        self.clock = clock

    def _by_email(self, email: str) -> User | None:
        return self.db.scalar(select(User).where(func.lower(User.email) == email.lower()))

    @command
    def register(self, payload: UserRegister | dict[str, Any]) -> User:
        data = parse_payload(UserRegister, payload)
        if data.role not in SELF_REGISTER_ROLES:
            raise ValidationFailedError(
                "Staff accounts are created by the school administration"
            )
        email = str(data.email).lower()
        if self._by_email(email):
            raise ConflictError("Email is already registered")
        if self.db.scalar(select(User.id).where(User.phone_number == data.phone_number)):
            raise ConflictError("Phone number is already registered")

        now = self.clock.now()
        user = User(
            email=email,
            phone_number=data.phone_number,
            password_hash=hash_password(data.password),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            middle_name=data.middle_name,
            role=data.role,
            status=UserStatus.pending_verification,
            state_of_origin=data.state_of_origin,
            local_government=data.local_government,
            is_email_verified=False,
            email_verification_token=generate_verification_token(),
            email_verification_token_expiry=now
            + timedelta(days=settings.email_verification_ttl_days),
            failed_login_attempts=0,
        )
        self.db.add(user)
        self.db.flush()
        logger.info("Registered user: %s", user.id, extra={"actor_id": str(user.id)})
        return user

    @command
    def verify_email(self, token: str) -> User:
        user = (
            self.db.scalar(select(User).where(User.email_verification_token == token))
            if token
            else None
        )
        now = self.clock.now()
        expiry = as_utc(user.email_verification_token_expiry) if user else None
        if user is None or expiry is None or expiry < now:
            raise ValidationFailedError("Invalid or expired verification token")

        user.is_email_verified = True
        user.email_verified_at = now
        user.email_verification_token = None
        user.email_verification_token_expiry = None
        if user.status == UserStatus.pending_verification:
            user.status = UserStatus.active
        self.db.flush()
        logger.info("Verified email for user: %s", user.id, extra={"actor_id": str(user.id)})
        return user

    @command
    def login(self, payload: UserLogin | dict[str, Any]) -> LoginResponse | Result:
        data = parse_payload(UserLogin, payload)
        user = self._by_email(str(data.email))
        if user is None:
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)
        if user.status in (UserStatus.inactive, UserStatus.suspended):
            raise UnauthorizedError(f"Account is {user.status.value}")
        if user.status == UserStatus.pending_verification:
            raise UnauthorizedError("Please verify your email before logging in")

        now = self.clock.now()
        if user.status == UserStatus.locked:
            lockout_end = as_utc(user.lockout_end)
            if lockout_end and lockout_end > now:
                raise UnauthorizedError("Account is locked. Please try again later")
            user.status = UserStatus.active
            user.failed_login_attempts = 0
            user.lockout_end = None
            logger.info("Lockout expired for user: %s", user.id)

        if not verify_password(data.password, user.password_hash):
            user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
            if user.failed_login_attempts >= settings.max_failed_login_attempts:
                user.status = UserStatus.locked
                user.lockout_end = now + timedelta(minutes=settings.lockout_minutes)
                logger.warning(
                    "Locked user %s after %d failed login attempts",
                    user.id,
                    user.failed_login_attempts,
                    extra={"actor_id": str(user.id)},
                )
            self.db.flush()
            # Returned rather than raised so the counter update is committed.
            return Result.failure(ErrorKind.unauthorized, INVALID_CREDENTIALS_MESSAGE)

        user.failed_login_attempts = 0
        user.lockout_end = None
        user.last_login_at = now
        user.last_login_ip = data.ip_address
        token, expires_at = generate_token(user, self.clock)
        self.db.flush()
        logger.info("User logged in: %s", user.id, extra={"actor_id": str(user.id)})
        return LoginResponse(
            user_id=user.id,
            email=user.email,
            full_name=user.full_name,
            token=token,
            expires_at=expires_at,
            role=user.role,
            status=user.status,
        )

    @query
    def get_profile(self, actor: Actor) -> UserProfile:
        user = self.db.get(User, actor.id)
        if user is None:
            raise NotFoundError("User not found")
        return UserProfile.model_validate(user)
