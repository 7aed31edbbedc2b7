"""
Session service: issuance, validation, organization switching and revocation.

The ``sessions`` table is the source of truth for whether a token is live. The
Redis revocation list is a fast negative cache in front of it, consulted before
the database on every validation.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import jwt
import structlog
from redis.exceptions import RedisError
from sqlalchemy import func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from workforce.core.config import Settings
from workforce.core.errors import AuthenticationError, AuthorizationError, NotFoundError
from workforce.core.permissions import effective_permissions
from workforce.core.redis import RevocationList
from workforce.core.security import (
    create_session_jwt,
    decode_session_jwt,
    generate_refresh_token,
    verify_password,
)
from workforce.models.base import utcnow
from workforce.models.organization import Organization
from workforce.models.session import UserSession
from workforce.models.user import User
from workforce.models.user_org import UserOrg
from workforce_shared.schemas.common import LoginMethod, SessionStatus
from workforce_shared.schemas.sessions import (
    DeviceInfo,
    LoginRequest,
    SessionOrg,
    SessionResponse,
    SessionUser,
)

log = structlog.get_logger()


@dataclass
class SessionValidation:
    """Outcome of ``SessionService.validate_session``.

    ``current_org`` is None for a valid session whose organization can no
    longer be resolved (organization deactivated or membership removed).
    """

    is_valid: bool
    session: Optional[UserSession] = None
    reason: Optional[str] = None
    user: Optional[User] = None
    current_org: Optional[Organization] = None
    membership: Optional[UserOrg] = None


def _invalid(reason: str) -> SessionValidation:
    return SessionValidation(is_valid=False, reason=reason)


def _remaining_seconds(expires_at: datetime) -> int:
    return max(0, int((expires_at - utcnow()).total_seconds()))


def org_summary(org: Organization) -> SessionOrg:
    return SessionOrg(
        id=org.id,
        name=org.name,
        display_name=org.display_name,
        logo=org.logo,
        is_active=org.is_active,
        subscription_tier=org.subscription_tier,
    )


class SessionService:
    """Session lifecycle operations. Constructed once per process."""

    def __init__(self, settings: Settings, revocations: RevocationList):
        self.settings = settings
        self.revocations = revocations

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _active_membership(
        self, db: AsyncSession, user_id: uuid.UUID, org_id: uuid.UUID
    ) -> Optional[UserOrg]:
        result = await db.execute(
            select(UserOrg).where(
                UserOrg.user_id == user_id,
                UserOrg.org_id == org_id,
                UserOrg.is_active == True,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()

    async def _resolve_org(
        self, db: AsyncSession, user_id: uuid.UUID, org_id: Optional[uuid.UUID]
    ) -> tuple[Optional[Organization], Optional[UserOrg]]:
        """Return (org, membership) when both are active, else (None, None)."""
        if org_id is None:
            return None, None
        membership = await self._active_membership(db, user_id, org_id)
        if membership is None:
            return None, None
        org = await db.get(Organization, org_id)
        if org is None or not org.is_active:
            return None, None
        return org, membership

    async def _default_org(
        self, db: AsyncSession, user: User
    ) -> tuple[Optional[Organization], Optional[UserOrg]]:
        """The user's current org if still usable, else their oldest active membership."""
        org, membership = await self._resolve_org(db, user.id, user.current_org_id)
        if org is not None:
            return org, membership

        result = await db.execute(
            select(Organization, UserOrg)
            .join(UserOrg, UserOrg.org_id == Organization.id)
            .where(
                UserOrg.user_id == user.id,
                UserOrg.is_active == True,  # noqa: E712
                Organization.is_active == True,  # noqa: E712
            )
            .order_by(UserOrg.joined_at)
            .limit(1)
        )
        row = result.first()
        if row is None:
            return None, None
        return row[0], row[1]

    async def _available_orgs(self, db: AsyncSession, user_id: uuid.UUID) -> list[Organization]:
        result = await db.execute(
            select(Organization)
            .join(UserOrg, UserOrg.org_id == Organization.id)
            .where(
                UserOrg.user_id == user_id,
                UserOrg.is_active == True,  # noqa: E712
                Organization.is_active == True,  # noqa: E712
            )
            .order_by(Organization.name)
        )
        return list(result.scalars().all())

    async def _by_token(self, db: AsyncSession, token: str) -> Optional[UserSession]:
        result = await db.execute(select(UserSession).where(UserSession.session_token == token))
        return result.scalar_one_or_none()

    async def _revoke_jti(self, jti: str, expires_at: datetime) -> None:
        # The row status already rejects the token; the revocation list only
        # short-circuits lookups, so an unreachable Redis is logged and tolerated.
        try:
            await self.revocations.revoke(jti, _remaining_seconds(expires_at))
        except RedisError as exc:
            log.warning("session.revocation_list_unavailable", error=str(exc))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create_session(
        self,
        db: AsyncSession,
        req: LoginRequest,
        device: Optional[DeviceInfo] = None,
    ) -> SessionResponse:
        """Verify credentials and issue a session bound to a default organization."""
        identifier = req.identifier
        result = await db.execute(
            select(User).where(
                or_(
                    func.lower(User.username) == identifier,
                    func.lower(User.email) == identifier,
                )
            )
        )
        user = result.scalar_one_or_none()
        if user is None or not user.is_active or not verify_password(req.password, user.password_hash):
            log.info("auth.login_failed", identifier=identifier)
            raise AuthenticationError("Invalid credentials", code="INVALID_CREDENTIALS")

        if req.organization_id is not None:
            org, membership = await self._resolve_org(db, user.id, req.organization_id)
            if org is None:
                raise AuthorizationError(
                    "User does not have access to the specified organization",
                    code="ORGANIZATION_ACCESS_DENIED",
                )
        else:
            org, membership = await self._default_org(db, user)
            if org is None:
                raise AuthorizationError("No active organization found for user", code="NO_ORGANIZATION")

        now = utcnow()
        if req.remember_me:
            ttl = timedelta(days=self.settings.extended_session_ttl_days)
        else:
            ttl = timedelta(minutes=self.settings.session_ttl_minutes)

        session_id = uuid.uuid4()
        token, jti = create_session_jwt(user.id, session_id, req.session_type.value, expires_delta=ttl)
        row = UserSession(
            id=session_id,
            session_token=token,
            token_jti=jti,
            refresh_token=generate_refresh_token(),
            user_id=user.id,
            current_org_id=org.id,
            status=SessionStatus.ACTIVE.value,
            type=req.session_type.value,
            login_method=LoginMethod.PASSWORD.value,
            remember_me=req.remember_me,
            expires_at=now + ttl,
            refresh_expires_at=now + timedelta(days=self.settings.refresh_token_ttl_days),
            last_access_at=now,
            device=device.model_dump(exclude_none=True) if device else {},
        )
        db.add(row)

        user.current_org_id = org.id
        user.last_login_at = now
        db.add(user)
        await db.flush()

        log.info(
            "auth.login_success",
            user_id=str(user.id),
            org_id=str(org.id),
            session_id=str(session_id),
            type=row.type,
        )
        return await self.build_session_response(db, row, user, org, membership)

    async def validate_session(self, db: AsyncSession, token: Optional[str]) -> SessionValidation:
        """Resolve a token to its session. Never raises; fails closed."""
        if not token:
            return _invalid("No session token provided")

        try:
            return await self._validate(db, token)
        except Exception:
            log.exception("session.validation_error")
            return _invalid("Session validation failed")

    async def _validate(self, db: AsyncSession, token: str) -> SessionValidation:
        try:
            claims = decode_session_jwt(token)
        except jwt.ExpiredSignatureError:
            row = await self._by_token(db, token)
            if row is not None and row.status == SessionStatus.ACTIVE.value:
                row.status = SessionStatus.EXPIRED.value
                db.add(row)
                await db.flush()
            return _invalid("Session expired")
        except jwt.PyJWTError:
            return _invalid("Invalid session token")

        try:
            revoked = await self.revocations.is_revoked(claims["jti"])
        except RedisError as exc:
            # Revocation also marks the row, so the status check below still rejects it
            log.warning("session.revocation_list_unavailable", error=str(exc))
            revoked = False
        if revoked:
            return _invalid("Session revoked")

        row = await self._by_token(db, token)
        if row is None:
            return _invalid("Session not found")
        if row.status != SessionStatus.ACTIVE.value:
            return _invalid(f"Session {row.status}")

        now = utcnow()
        if row.expires_at <= now:
            row.status = SessionStatus.EXPIRED.value
            db.add(row)
            await db.flush()
            log.info("session.expired", session_id=str(row.id))
            return _invalid("Session expired")

        user = await db.get(User, row.user_id)
        if user is None or not user.is_active:
            return _invalid("User not found or inactive")

        org, membership = await self._resolve_org(db, user.id, row.current_org_id)

        row.last_access_at = now
        db.add(row)
        await db.flush()

        return SessionValidation(
            is_valid=True,
            session=row,
            user=user,
            current_org=org,
            membership=membership,
        )

    async def refresh_session(self, db: AsyncSession, refresh_token: Optional[str]) -> SessionResponse:
        """Rotate both tokens of a session and extend its expiry."""
        if not refresh_token:
            raise AuthenticationError("Refresh token required", code="INVALID_REFRESH_TOKEN")

        result = await db.execute(select(UserSession).where(UserSession.refresh_token == refresh_token))
        row = result.scalar_one_or_none()
        now = utcnow()
        if (
            row is None
            or row.status not in (SessionStatus.ACTIVE.value, SessionStatus.EXPIRED.value)
            or row.refresh_expires_at is None
            or row.refresh_expires_at <= now
        ):
            raise AuthenticationError("Invalid or expired refresh token", code="INVALID_REFRESH_TOKEN")

        user = await db.get(User, row.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid or expired refresh token", code="INVALID_REFRESH_TOKEN")

        old_jti, old_expires_at = row.token_jti, row.expires_at
        ttl = timedelta(minutes=self.settings.session_ttl_minutes)
        token, jti = create_session_jwt(user.id, row.id, row.type, expires_delta=ttl)

        row.session_token = token
        row.token_jti = jti
        row.refresh_token = generate_refresh_token()
        row.status = SessionStatus.ACTIVE.value
        row.expires_at = now + ttl
        row.refresh_expires_at = now + timedelta(days=self.settings.refresh_token_ttl_days)
        row.last_access_at = now
        db.add(row)
        await db.flush()

        await self._revoke_jti(old_jti, old_expires_at)

        org, membership = await self._resolve_org(db, user.id, row.current_org_id)
        log.info("session.refreshed", session_id=str(row.id), user_id=str(user.id))
        return await self.build_session_response(db, row, user, org, membership)

    async def switch_organization(
        self, db: AsyncSession, token: Optional[str], org_id: uuid.UUID
    ) -> SessionResponse:
        """Point the session at another organization the user actively belongs to."""
        validation = await self.validate_session(db, token)
        if not validation.is_valid:
            raise AuthenticationError(validation.reason or "Invalid session", code="INVALID_SESSION")
        user = validation.user
        row = validation.session

        membership = await self._active_membership(db, user.id, org_id)
        if membership is None:
            log.info("org.switch_denied", user_id=str(user.id), org_id=str(org_id))
            raise AuthorizationError(
                "User does not have access to this organization",
                code="ORGANIZATION_ACCESS_DENIED",
            )

        org = await db.get(Organization, org_id)
        if org is None or not org.is_active:
            raise NotFoundError("Organization not found or inactive", code="ORGANIZATION_NOT_FOUND")

        # Single conditional statement keyed by token; concurrent switches
        # resolve last-writer-wins and a revoked session is never revived.
        now = utcnow()
        result = await db.execute(
            update(UserSession)
            .where(
                UserSession.session_token == token,
                UserSession.status == SessionStatus.ACTIVE.value,
            )
            .values(current_org_id=org_id, last_access_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AuthenticationError("Invalid session", code="INVALID_SESSION")

        await db.execute(
            update(User)
            .where(User.id == user.id)
            .values(current_org_id=org_id, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.refresh(row)
        await db.refresh(user)

        log.info("org.switched", user_id=str(user.id), session_id=str(row.id), org_id=str(org_id))
        return await self.build_session_response(db, row, user, org, membership, include_refresh=False)

    async def revoke_session(self, db: AsyncSession, token: Optional[str]) -> None:
        """Revoke a session. Unknown or already-revoked tokens are a no-op."""
        if not token:
            return
        row = await self._by_token(db, token)
        if row is None:
            log.debug("session.revoke_unknown_token")
            return

        if row.status != SessionStatus.REVOKED.value:
            row.status = SessionStatus.REVOKED.value
            db.add(row)
            await db.flush()
            log.info("session.revoked", session_id=str(row.id), user_id=str(row.user_id))
        await self._revoke_jti(row.token_jti, row.expires_at)

    async def revoke_all_user_sessions(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            select(UserSession).where(
                UserSession.user_id == user_id,
                UserSession.status == SessionStatus.ACTIVE.value,
            )
        )
        rows = list(result.scalars().all())
        for row in rows:
            row.status = SessionStatus.REVOKED.value
            db.add(row)
        await db.flush()
        for row in rows:
            await self._revoke_jti(row.token_jti, row.expires_at)

        log.info("session.revoked_all", user_id=str(user_id), count=len(rows))
        return len(rows)

    async def list_active_sessions(self, db: AsyncSession, user_id: uuid.UUID) -> list[UserSession]:
        result = await db.execute(
            select(UserSession)
            .where(
                UserSession.user_id == user_id,
                UserSession.status == SessionStatus.ACTIVE.value,
                UserSession.expires_at > utcnow(),
            )
            .order_by(UserSession.last_access_at.desc())
        )
        return list(result.scalars().all())

    async def cleanup_expired_sessions(self, db: AsyncSession) -> int:
        """Mark every active session past its expiry as expired."""
        result = await db.execute(
            update(UserSession)
            .where(
                UserSession.status == SessionStatus.ACTIVE.value,
                UserSession.expires_at <= utcnow(),
            )
            .values(status=SessionStatus.EXPIRED.value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        count = result.rowcount or 0
        log.info("session.cleanup", expired=count)
        return count

    async def build_session_response(
        self,
        db: AsyncSession,
        row: UserSession,
        user: User,
        org: Optional[Organization],
        membership: Optional[UserOrg],
        *,
        include_refresh: bool = True,
    ) -> SessionResponse:
        available = await self._available_orgs(db, user.id)
        return SessionResponse(
            session_token=row.session_token,
            refresh_token=row.refresh_token if include_refresh else None,
            expires_at=row.expires_at,
            type=row.type,
            user=SessionUser(
                id=user.id,
                name=user.name,
                username=user.username,
                email=user.email,
                title=user.title,
                avatar=user.avatar,
            ),
            current_org=org_summary(org) if org else None,
            available_orgs=[org_summary(o) for o in available],
            role=membership.role if membership else None,
            permissions=(
                effective_permissions(membership.role, membership.permissions) if membership else []
            ),
        )
