"""Invitation lifecycle helpers shared by the API and the scheduled sweep."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from projecthub.config import settings
from projecthub.models.enums import InvitationStatus
from projecthub.models.invitation import Invitation

logger = logging.getLogger(__name__)

OPEN_STATUSES = (InvitationStatus.PENDING, InvitationStatus.ACCEPTED)


def invitation_expiry(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(hours=settings.invitation_expire_hours)


def invitation_link(token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/invitation/{token}"


async def find_open_invitation(session: AsyncSession, token: str) -> Invitation | None:
    """Unexpired invitation with this token that is pending or accepted but not yet used to sign up."""
    r = await session.execute(
        select(Invitation)
        .options(selectinload(Invitation.company))
        .where(
            Invitation.token == token,
            Invitation.status.in_(OPEN_STATUSES),
            Invitation.expires_at > datetime.now(timezone.utc),
        )
    )
    return r.scalar_one_or_none()


async def expire_pending_invitations(session: AsyncSession, now: datetime | None = None) -> int:
    """Mark pending invitations past their expiry as EXPIRED. Returns the number updated."""
    now = now or datetime.now(timezone.utc)
    result = await session.execute(
        update(Invitation)
        .where(Invitation.status == InvitationStatus.PENDING, Invitation.expires_at <= now)
        .values(status=InvitationStatus.EXPIRED)
    )
    count = result.rowcount or 0
    if count:
        logger.info("Expired %d pending invitations", count)
    return count
