import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit import AuditAction, AuditService
from src.core.auth.jwt import create_access_token, create_refresh_token, decode_token
from src.core.auth.models import User, UserRole
from src.core.auth.password import hash_password, verify_password
from src.core.exceptions import AuthenticationError, DuplicateError, ValidationError

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email."""
        stmt = select(User).where(User.email == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(
        self,
        email: str,
        password: str,
        full_name: str,
        role: UserRole,
        phone: str | None = None,
        created_by_id: int | None = None,
    ) -> User:
        """Create a new user."""
        existing = await self.get_user_by_email(email)
        if existing:
            raise DuplicateError("User", "email", email)

        user = User(
            email=email.lower(),
            password_hash=hash_password(password),
            full_name=full_name,
            phone=phone,
            role=role.value,
            is_active=True,
        )

        self.session.add(user)
        await self.session.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="User",
            entity_id=user.id,
            user_id=created_by_id,
            entity_identifier=user.email,
            new_values={"email": user.email, "role": user.role, "full_name": user.full_name},
        )

        return user

    async def get_or_create_student(self, email: str, full_name: str, mobile: str) -> User:
        """
        Account a new admission is linked to.

        An existing account with the same email is reused. New accounts get the
        mobile number as their initial password.
        """
        existing = await self.get_user_by_email(email)
        if existing:
            return existing
        user = await self.create_user(
            email=email,
            password=mobile,
            full_name=full_name,
            role=UserRole.STUDENT,
            phone=mobile,
        )
        logger.info("Created student account %s", user.email)
        return user

    async def authenticate(
        self, email: str, password: str, ip_address: str | None = None
    ) -> tuple[User, str, str]:
        """
        Authenticate user and return tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)

        Raises:
            AuthenticationError: If credentials are invalid
        """
        user = await self.get_user_by_email(email)

        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        user.last_login_at = datetime.now(timezone.utc)
        await self.session.flush()

        access_token = create_access_token(user.id, user.role)
        refresh_token = create_refresh_token(user.id)

        await self.audit.log(
            action=AuditAction.LOGIN,
            entity_type="User",
            entity_id=user.id,
            user_id=user.id,
            entity_identifier=user.email,
            ip_address=ip_address,
        )

        return user, access_token, refresh_token

    async def refresh_tokens(self, refresh_token: str) -> tuple[str, str]:
        """
        Refresh access token using refresh token.

        Returns:
            Tuple of (new_access_token, new_refresh_token)
        """
        payload = decode_token(refresh_token, token_type="refresh")

        user = await self.get_user_by_id(int(payload["sub"]))

        if not user:
            raise AuthenticationError("User not found")

        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        return create_access_token(user.id, user.role), create_refresh_token(user.id)

    async def change_password(
        self, user: User, current_password: str, new_password: str
    ) -> None:
        """
        Replace a user's password.

        Students start with their mobile number as password, so this is the
        first thing a new student account is expected to do.
        """
        if not user.password_hash or not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        if current_password == new_password:
            raise ValidationError(
                "New password must differ from the current one", field="new_password"
            )

        user.password_hash = hash_password(new_password)
        await self.audit.log(
            action=AuditAction.CHANGE_PASSWORD,
            entity_type="User",
            entity_id=user.id,
            user_id=user.id,
            entity_identifier=user.email,
        )
        await self.session.commit()
        logger.info("Password changed for user %s", user.id)
