# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service for administrator accounts.

This module provides the UserService that handles:
- Admin account creation (superadmin and school_admin)
- Password login with failed-attempt counting and time-boxed lockout
- Password changes and deactivation
- Binding school admins to their school
- Seeding the bootstrap superadmin at startup

Example:
    >>> service = UserService(ctx, PasswordHasher(), JWTManager(settings.jwt))
    >>> result = await service.login("admin@school.edu", "secret-password")
    >>> result.token.access_token
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from src.core.config.settings import SecuritySettings
from src.core.errors import (
    AccessDeniedError,
    AccountLockedError,
    AuthRequiredError,
    InternalError,
    InvalidInputError,
    ResourceExistsError,
    ResourceNotFoundError,
    SchoolInactiveError,
)
from src.domains.auth.jwt import AccessToken, JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.context import ServiceContext, service_operation
from src.infrastructure.database.models import USER_ROLES, User
from src.infrastructure.events import EventTypes
from src.utils.datetime import format_iso, minutes_from_now, utc_now
from src.utils.ids import parse_object_id

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass
class LoginResult:
    """Successful login.

    Attributes:
        user: Authenticated user.
        token: Issued access token.
    """

    user: User
    token: AccessToken


class UserService:
    """Service for managing administrator accounts.

    Attributes:
        _ctx: Shared service context.
        _db: Async database session.
        _store: Entity store.
        _password_hasher: Password hasher.
        _jwt_manager: Access token issuer.
        _security: Lockout thresholds.
    """

    def __init__(
        self,
        ctx: ServiceContext,
        password_hasher: PasswordHasher,
        jwt_manager: JWTManager | None = None,
        security: SecuritySettings | None = None,
    ) -> None:
        """Initialize the user service.

        Args:
            ctx: Shared service context.
            password_hasher: Password hasher.
            jwt_manager: Token issuer; required for login.
            security: Lockout configuration (defaults when omitted).
        """
        self._ctx = ctx
        self._db = ctx.db
        self._store = ctx.store
        self._password_hasher = password_hasher
        self._jwt_manager = jwt_manager
        self._security = security or SecuritySettings()

    @service_operation("create_user")
    async def create_user(
        self,
        email: str,
        password: str,
        role: str,
        school_id: str | None = None,
    ) -> User:
        """Create an active admin account.

        Args:
            email: Login email, unique across all accounts.
            password: Plain text password.
            role: superadmin or school_admin.
            school_id: School a school_admin is bound to.

        Returns:
            The created user.

        Raises:
            InvalidInputError: If the role, password or school binding is invalid.
            SchoolInactiveError: If a school_admin's school is missing or inactive.
            ResourceExistsError: If the email is taken.
        """
        if role not in USER_ROLES:
            raise InvalidInputError(
                "Invalid role",
                details={"role": role, "allowed": list(USER_ROLES)},
            )
        self._check_password(password)
        email = email.strip().lower()

        if role == "school_admin":
            if school_id is None:
                raise InvalidInputError(
                    "School admins must be bound to a school",
                    details={"field": "school_id"},
                )
            school = await self._store.get_school(school_id)
            if school is None or not school.is_active:
                raise SchoolInactiveError(
                    "School not found or inactive",
                    details={"school_id": school_id},
                )
            school_id = school.id
        else:
            school_id = None

        if await self._store.find_user_by_email(email) is not None:
            raise self._email_taken(email)

        user = User(
            email=email,
            password_hash=self._password_hasher.hash(password),
            role=role,
            school_id=school_id,
            status="active",
            failed_login_attempts=0,
            password_changed_at=utc_now(),
        )
        self._store.add(user)
        try:
            await self._db.commit()
        except IntegrityError as e:
            raise self._email_taken(email) from e

        logger.info("Created %s account %s", role, user.id)
        await self._ctx.notify(
            EventTypes.User.CREATED,
            {"user_id": user.id, "role": role, "school_id": school_id},
        )
        return user

    @service_operation("login")
    async def login(self, email: str, password: str) -> LoginResult:
        """Authenticate an admin by email and password.

        Every failed password check is counted. Reaching
        ``max_failed_logins`` locks the account for ``lock_minutes``.

        Raises:
            AuthRequiredError: If the email or password is wrong.
            AccountLockedError: If the account is inside a lockout window.
            AccessDeniedError: If the account is deactivated.
        """
        if self._jwt_manager is None:
            raise InternalError("Token issuer is not configured")

        user = await self._store.find_user_by_email(email)
        if user is None:
            logger.warning("Login failed: no account for %s", email)
            raise AuthRequiredError("Invalid email or password")

        if user.is_locked:
            logger.warning("Login failed: account %s is locked", user.id)
            raise AccountLockedError(
                details={"locked_until": format_iso(user.locked_until)},
            )

        if not user.is_active:
            logger.warning("Login failed: account %s is inactive", user.id)
            raise AccessDeniedError("Account is not active")

        if not self._password_hasher.verify(password, user.password_hash):
            await self._handle_failed_login(user)
            raise AuthRequiredError("Invalid email or password")

        user.reset_failed_attempts()
        user.record_login()
        await self._db.commit()

        token = self._jwt_manager.create_access_token(
            user_id=user.id,
            role=user.role,
            school_id=user.school_id,
            email=user.email,
        )

        logger.info("User logged in: %s", user.id)
        await self._ctx.notify(
            EventTypes.User.LOGGED_IN,
            {"user_id": user.id, "role": user.role},
        )
        return LoginResult(user=user, token=token)

    @service_operation("change_password")
    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> dict[str, bool]:
        """Replace an active user's password after checking the current one.

        Raises:
            ResourceNotFoundError: If the user does not exist or is inactive.
            InvalidInputError: If the current password is wrong or the new
                one is too short.
        """
        user = await self._get_active_user(user_id)

        if not self._password_hasher.verify(current_password, user.password_hash):
            raise InvalidInputError(
                "Current password is incorrect",
                details={"field": "current_password"},
            )
        self._check_password(new_password)

        user.password_hash = self._password_hasher.hash(new_password)
        user.password_changed_at = utc_now()
        await self._db.commit()

        logger.info("Password changed for user %s", user.id)
        await self._ctx.notify(EventTypes.User.PASSWORD_CHANGED, {"user_id": user.id})
        return {"success": True}

    @service_operation("deactivate_user")
    async def deactivate_user(self, user_id: str) -> dict[str, bool]:
        """Deactivate an account.

        Raises:
            ResourceNotFoundError: If the user does not exist.
        """
        user = await self._store.get_user(user_id)
        if user is None:
            raise self._not_found(user_id)

        user.status = "inactive"
        await self._db.commit()

        logger.info("Deactivated user %s", user.id)
        await self._ctx.notify(EventTypes.User.DEACTIVATED, {"user_id": user.id})
        return {"success": True}

    @service_operation("assign_admin_to_school")
    async def assign_admin_to_school(self, school_id: str, user_id: str) -> dict[str, bool]:
        """Bind an active school admin to an active school.

        Raises:
            SchoolInactiveError: If the school is missing or inactive.
            ResourceNotFoundError: If no active school admin has this id.
        """
        school = await self._store.get_school(school_id)
        if school is None or not school.is_active:
            raise SchoolInactiveError(
                "School not found or inactive",
                details={"school_id": school_id},
            )

        user = await self._store.get_user(user_id)
        if user is None or not user.is_active or user.role != "school_admin":
            raise self._not_found(user_id)

        user.school_id = school.id
        school.admin_id = user.id
        school.updated_at = utc_now()
        await self._db.commit()

        await self._ctx.cache.invalidate(school.id)

        logger.info("Assigned admin %s to school %s", user.id, school.id)
        await self._ctx.notify(
            EventTypes.User.ASSIGNED,
            {"user_id": user.id, "school_id": school.id},
        )
        return {"success": True}

    @service_operation("get_school_admins")
    async def get_school_admins(self, school_id: str) -> list[User]:
        """Active school admins bound to a school."""
        school_id = parse_object_id(school_id, "school_id")
        return await self._store.list_users(
            role="school_admin",
            school_id=school_id,
            status="active",
        )

    @service_operation("get_user")
    async def get_user(self, user_id: str) -> User:
        """Get a user by id.

        Raises:
            ResourceNotFoundError: If the user does not exist.
        """
        user = await self._store.get_user(user_id)
        if user is None:
            raise self._not_found(user_id)
        return user

    @service_operation("list_users")
    async def list_users(
        self,
        role: str | None = None,
        school_id: str | None = None,
        status: str | None = None,
    ) -> list[User]:
        """List accounts filtered by role, school and status."""
        if school_id is not None:
            school_id = parse_object_id(school_id, "school_id")
        return await self._store.list_users(role=role, school_id=school_id, status=status)

    @service_operation("ensure_superadmin")
    async def ensure_superadmin(self, email: str, password: str) -> User | None:
        """Create the bootstrap superadmin when no superadmin exists.

        Returns:
            The created user, or None when one already exists or no
            password is configured.
        """
        if await self._store.has_superadmin():
            logger.debug("Superadmin already exists")
            return None

        if not password:
            logger.warning("No superadmin exists and SUPER_ADMIN_PASSWORD is not set")
            return None

        user = await self.create_user(email=email, password=password, role="superadmin")
        logger.info("Superadmin created: %s", user.email)
        return user

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _handle_failed_login(self, user: User) -> None:
        """Count a failed attempt and lock the account at the threshold."""
        user.increment_failed_attempts()

        if user.failed_login_attempts >= self._security.max_failed_logins:
            user.locked_until = minutes_from_now(self._security.lock_minutes)
            user.failed_login_attempts = 0
            logger.warning(
                "Account %s locked for %d minutes after repeated failed logins",
                user.id,
                self._security.lock_minutes,
            )
            await self._db.commit()
            await self._ctx.notify(EventTypes.User.LOCKED, {"user_id": user.id})
            return

        await self._db.commit()

    async def _get_active_user(self, user_id: str) -> User:
        user = await self._store.get_user(user_id)
        if user is None or not user.is_active:
            raise self._not_found(user_id)
        return user

    @staticmethod
    def _check_password(password: str) -> None:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                details={"field": "password"},
            )

    @staticmethod
    def _not_found(user_id: str) -> ResourceNotFoundError:
        return ResourceNotFoundError(
            "User not found",
            details={"resource": "User", "id": user_id},
        )

    @staticmethod
    def _email_taken(email: str) -> ResourceExistsError:
        return ResourceExistsError(
            "User with this email already exists",
            details={"resource": "User", "field": "email", "value": email},
        )
