"""Users and sessions: register, login/logout, invited-user signup, company members listing, CRUD."""

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from projecthub.api.deps import (
    AdminUser,
    CompanyUser,
    CurrentUser,
    DbSession,
    clear_session_cookie,
    read_session_user_id,
    set_session_cookie,
)
from projecthub.core.auth import create_access_token, hash_password, verify_password
from projecthub.models.company import Company
from projecthub.models.enums import InvitationStatus, UserRole
from projecthub.models.user import User
from projecthub.schemas.envelope import ResponseError, build_envelope, envelope_response
from projecthub.schemas.user import (
    InvitedUserRegisterBody,
    LoginBody,
    RegisterBody,
    UserCreate,
    UserDetailsOut,
    UserOut,
    UserUpdate,
)
from projecthub.services import scoping
from projecthub.services.invitations import find_open_invitation
from projecthub.services.listing import ListingSpec, SqlAlchemyListingStore, list_page

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])

USERS_LISTING = ListingSpec(
    entity="users",
    schema=UserOut,
    sortable={"name": "name", "email": "email", "role": "role", "joinedAt": "joined_at"},
    default_sort="joinedAt",
    default_limit=4,
)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _user_out(user: User) -> dict:
    return UserOut.model_validate(user).model_dump(mode="json", by_alias=True)


async def _ensure_email_free(session: DbSession, email: str) -> None:
    r = await session.execute(select(User.id).where(User.email == email))
    if r.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail="Email already registered")


async def _flush_new_user(session: DbSession, user: User) -> None:
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as e:
        logger.warning("User insert IntegrityError: %s", e)
        raise HTTPException(status_code=400, detail="Email already registered") from e
    await session.refresh(user)


def _session_response(user: User, data, status_code: int = 200) -> JSONResponse:
    response = envelope_response(build_envelope(data), success_status=status_code)
    set_session_cookie(response, create_access_token(user.id, user.company_id))
    return response


@router.get("/info", summary="Current session user")
async def me(user: CurrentUser) -> JSONResponse:
    return envelope_response(build_envelope(_user_out(user)))


@router.post(
    "/login",
    summary="Login with email and password; sets the session cookie",
    responses={401: {"description": "Incorrect username or password"}},
)
async def login(session: DbSession, body: LoginBody) -> JSONResponse:
    email = _normalize_email(body.email)
    r = await session.execute(select(User).where(User.email == email))
    user = r.scalar_one_or_none()
    if not user or not body.password or not verify_password(body.password, user.password_hash):
        return envelope_response(build_envelope(error=ResponseError.INCORRECT_LOGIN_DATA), status_code=401)
    if not user.company_id:
        raise HTTPException(status_code=400, detail="User is not associated with a company")
    logger.info("User %s logged in", user.id)
    return _session_response(user, {"name": user.name})


@router.post("/logout", summary="Clear the session cookie")
async def logout() -> JSONResponse:
    response = envelope_response(build_envelope(True))
    clear_session_cookie(response)
    return response


@router.post(
    "/register",
    summary="Register the first (admin) user of a company",
    responses={400: {"description": "Role must be ADMIN, company id required, or email taken"}},
)
async def register(session: DbSession, body: RegisterBody) -> JSONResponse:
    if body.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=400,
            detail="Admin user must be created in the company's initial setup.",
        )
    if not body.company_id:
        raise HTTPException(status_code=400, detail="Company ID is required to create a user.")
    if await session.get(Company, body.company_id) is None:
        raise HTTPException(status_code=404, detail="Company not found")
    email = _normalize_email(body.email)
    await _ensure_email_free(session, email)
    user = User(
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        role=UserRole.ADMIN,
        skills=body.skills,
        company_id=body.company_id,
    )
    await _flush_new_user(session, user)
    logger.info("Registered admin %s for company %s", user.id, user.company_id)
    return _session_response(user, _user_out(user), status_code=201)


@router.post(
    "/register-invite-user",
    summary="Create an account from a pending invitation",
    responses={404: {"description": "Invitation not found or expired"}},
)
async def register_invited_user(session: DbSession, body: InvitedUserRegisterBody) -> JSONResponse:
    invitation = await find_open_invitation(session, body.token.strip())
    if invitation is None:
        raise HTTPException(status_code=404, detail="Invitation not found or expired")
    email = _normalize_email(invitation.email)
    await _ensure_email_free(session, email)
    user = User(
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        role=invitation.role,
        skills=body.skills,
        company_id=invitation.company_id,
    )
    await _flush_new_user(session, user)
    invitation.status = InvitationStatus.ACCEPTED
    await session.flush()
    logger.info("Invited user %s joined company %s", user.id, user.company_id)
    return _session_response(user, _user_out(user), status_code=201)


@router.get("/check-token", summary="Whether the session cookie is valid")
async def check_token(request: Request, session: DbSession) -> JSONResponse:
    user_id = read_session_user_id(request)
    if user_id is None:
        return envelope_response(
            build_envelope(False, error=ResponseError.UNAUTHORIZED, error_details="No valid session token"),
            status_code=401,
        )
    user = await session.get(User, user_id)
    if user is None:
        return envelope_response(build_envelope(False, error=ResponseError.NOT_FOUND))
    return envelope_response(build_envelope(True))


@router.post("", summary="Create a user in the admin's company")
async def create_user(session: DbSession, admin: AdminUser, body: UserCreate) -> JSONResponse:
    email = _normalize_email(body.email)
    await _ensure_email_free(session, email)
    user = User(
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        role=body.role,
        skills=body.skills,
        company_id=admin.company_id,
    )
    await _flush_new_user(session, user)
    return envelope_response(build_envelope(_user_out(user)), success_status=201)


@router.get("/company-users", summary="List users of the session company (paginated)")
async def list_company_users(
    session: DbSession,
    user: CurrentUser,
    page: str | None = None,
    limit: str | None = None,
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_dir: str | None = Query(None, alias="sortDir"),
    query: str | None = None,
) -> JSONResponse:
    envelope = await list_page(
        SqlAlchemyListingStore(session, User),
        USERS_LISTING,
        scope={"company_id": user.company_id},
        search={"name": query},
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return envelope_response(envelope)


@router.get("/{user_id}", summary="User details within the session company")
async def get_user_details(session: DbSession, user: CompanyUser, user_id: int) -> JSONResponse:
    target = await scoping.get_company_user(session, user.company_id, user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")
    return envelope_response(
        build_envelope(UserDetailsOut.model_validate(target).model_dump(mode="json", by_alias=True))
    )


@router.patch("/{user_id}", summary="Update a user within the session company")
async def update_user(session: DbSession, user: CompanyUser, user_id: int, body: UserUpdate) -> JSONResponse:
    target = await scoping.get_company_user(session, user.company_id, user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")
    changes = body.model_dump(exclude_unset=True)
    if "role" in changes and user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Only admins can change roles")
    if changes.get("email") is not None:
        email = _normalize_email(changes["email"])
        if email != target.email:
            await _ensure_email_free(session, email)
        changes["email"] = email
    for key, value in changes.items():
        if value is None and key in ("name", "email", "role"):
            continue
        setattr(target, key, value)
    await session.flush()
    return envelope_response(build_envelope(_user_out(target)))


@router.delete("/{user_id}", summary="Delete a user within the admin's company")
async def delete_user(session: DbSession, admin: AdminUser, user_id: int) -> JSONResponse:
    target = await scoping.get_company_user(session, admin.company_id, user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")
    data = _user_out(target)
    await session.delete(target)
    await session.flush()
    return envelope_response(build_envelope(data))
