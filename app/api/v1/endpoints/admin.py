"""
Admin API endpoints - upload, list and delete checklists
"""
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from typing import Any, List

from app.api.dependencies import get_gateway, get_import_service
from app.core.config import settings
from app.core.exceptions import ChecklistImportError, ChecklistNotFoundError, GatewayError
from app.schemas.checklist import ChecklistWithCompany
from app.schemas.upload import DeleteChecklistResponse, UploadResponse
from app.services.checklist_import import ChecklistImportService
from app.services.gateway import ChecklistGateway

router = APIRouter()


@router.post("/checklists/upload", response_model=UploadResponse)
async def upload_checklists(
    payload: Any = Body(..., description="Checklist object or list of checklist objects"),
    mode: str = Query(default=settings.DEFAULT_IMPORT_MODE, description="replace | skip"),
    import_service: ChecklistImportService = Depends(get_import_service)
):
    """
    Create or update checklists from JSON documents shaped
    {name|key, location?, format?, devices: [...]}.

    Each document is processed independently; failures are reported per item.
    """
    try:
        return await import_service.upload(payload, mode)
    except ChecklistImportError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        ) from e


@router.get("/checklists", response_model=List[ChecklistWithCompany])
async def get_existing_checklists(
    gateway: ChecklistGateway = Depends(get_gateway)
):
    """
    Get all checklists with their company, ordered by checklist name.
    """
    try:
        checklists = await gateway.list_checklists()
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Error loading checklists."
        ) from e

    return [ChecklistWithCompany.model_validate(checklist) for checklist in checklists]


@router.delete("/checklists/{checklist_id}", response_model=DeleteChecklistResponse)
async def delete_checklist(
    checklist_id: int,
    import_service: ChecklistImportService = Depends(get_import_service)
):
    """
    Delete a checklist and all of its devices and progress.
    The company is removed as well when it has no checklists left.
    """
    try:
        return await import_service.delete_checklist(checklist_id)
    except ChecklistNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Checklist with id {checklist_id} not found"
        ) from e
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Delete failed: {e}"
        ) from e
