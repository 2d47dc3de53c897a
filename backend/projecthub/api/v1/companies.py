"""Companies: onboarding (create), directory, session company info, delete."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy import select

from projecthub.api.deps import AdminUser, CompanyUser, DbSession
from projecthub.models.company import Company
from projecthub.schemas.company import CompanyCreate, CompanyOut
from projecthub.schemas.envelope import build_envelope, envelope_response

router = APIRouter(prefix="/companies", tags=["companies"])


def _company_out(company: Company) -> dict:
    return CompanyOut.model_validate(company).model_dump(mode="json", by_alias=True)


@router.post("", summary="Create a company (onboarding)")
async def add_company(session: DbSession, body: CompanyCreate) -> JSONResponse:
    company = Company(name=body.name.strip(), owner_name=body.owner_name, bio=body.bio)
    session.add(company)
    await session.flush()
    await session.refresh(company)
    return envelope_response(build_envelope(_company_out(company)), success_status=201)


@router.get("", summary="List all companies")
async def get_all_companies(session: DbSession) -> JSONResponse:
    r = await session.execute(select(Company).order_by(Company.id))
    return envelope_response(build_envelope([_company_out(c) for c in r.scalars().all()]))


@router.get("/info", summary="Company of the session user")
async def get_company_info(session: DbSession, user: CompanyUser) -> JSONResponse:
    company = await session.get(Company, user.company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return envelope_response(build_envelope(_company_out(company)))


@router.delete("/{company_id}", summary="Delete the admin's own company")
async def delete_company(session: DbSession, admin: AdminUser, company_id: int) -> JSONResponse:
    if admin.company_id != company_id:
        raise HTTPException(status_code=403, detail="Cannot delete another company")
    company = await session.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    data = _company_out(company)
    await session.delete(company)
    await session.flush()
    return envelope_response(build_envelope(data))
