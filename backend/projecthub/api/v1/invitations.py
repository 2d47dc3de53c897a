"""Invitations: send by mail, accept by token."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy import select

from projecthub.api.deps import CompanyUser, DbSession
from projecthub.core.auth import create_invitation_token
from projecthub.models.company import Company
from projecthub.models.enums import InvitationStatus
from projecthub.models.invitation import Invitation
from projecthub.models.user import User
from projecthub.schemas.envelope import build_envelope, envelope_response
from projecthub.schemas.company import CompanyOut
from projecthub.schemas.invitation import InvitationCreate, InvitationOut
from projecthub.services.invitations import find_open_invitation, invitation_expiry, invitation_link
from projecthub.services.mail import send_mail

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/invitations", tags=["invitations"])


def _invitation_out(invitation: Invitation, company: Company | None) -> dict:
    out = InvitationOut(
        id=invitation.id,
        email=invitation.email,
        status=invitation.status,
        role=invitation.role,
        expires_at=invitation.expires_at,
        company=CompanyOut.model_validate(company) if company is not None else None,
    )
    return out.model_dump(mode="json", by_alias=True)


@router.post("/send-invitation", summary="Invite an email address to the session company")
async def send_invitation(session: DbSession, user: CompanyUser, body: InvitationCreate) -> JSONResponse:
    email = (body.email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=400, detail="Please provide an email")
    r = await session.execute(select(User.id).where(User.email == email))
    if r.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail="A user with this email already exists")
    company = await session.get(Company, user.company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")

    token = create_invitation_token()
    invitation = Invitation(
        email=email,
        token=token,
        role=body.role,
        status=InvitationStatus.PENDING,
        company_id=company.id,
        expires_at=invitation_expiry(),
    )
    session.add(invitation)
    await session.flush()

    mail_sent = await send_mail(
        to=email,
        subject=f"Invitation to join the company : {company.name}",
        text=(
            f"You have been invited to join the {company.name}. "
            f"Please click on the link to accept the invitation: {invitation_link(token)}"
        ),
    )
    logger.info("Invitation %s created for company %s (mail sent: %s)", invitation.id, company.id, mail_sent)
    return envelope_response(
        build_envelope({"invite": _invitation_out(invitation, company), "mailSent": mail_sent})
    )


@router.get("/{token}", summary="Accept a pending invitation")
async def accept_invitation(session: DbSession, token: str) -> JSONResponse:
    invitation = await find_open_invitation(session, token.strip())
    if invitation is None:
        raise HTTPException(status_code=404, detail="Invitation not found or expired")
    invitation.status = InvitationStatus.ACCEPTED
    await session.flush()
    return envelope_response(build_envelope(_invitation_out(invitation, invitation.company)))
