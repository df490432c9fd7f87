"""
Company API endpoints (checklist picker)
"""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from app.api.dependencies import get_gateway
from app.core.exceptions import GatewayError
from app.schemas.checklist import ChecklistResponse, CompanyResponse
from app.services.gateway import ChecklistGateway

router = APIRouter()


@router.get("", response_model=List[CompanyResponse])
async def get_companies(
    gateway: ChecklistGateway = Depends(get_gateway)
):
    """
    Get all companies, alphabetically.
    """
    try:
        companies = await gateway.list_companies()
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not load companies from database."
        ) from e

    return [CompanyResponse.model_validate(company) for company in companies]


@router.get("/{company_id}/checklists", response_model=List[ChecklistResponse])
async def get_company_checklists(
    company_id: int,
    gateway: ChecklistGateway = Depends(get_gateway)
):
    """
    Get a company's checklists, newest year first.
    """
    try:
        checklists = await gateway.list_checklists_for_company(company_id)
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not load checklists for this company."
        ) from e

    return [ChecklistResponse.model_validate(checklist) for checklist in checklists]
