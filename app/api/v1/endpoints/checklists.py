"""
Checklist API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List

from app.api.dependencies import get_gateway
from app.core.exceptions import GatewayError
from app.models import Checklist
from app.schemas.checklist import (
    ChecklistDetail,
    CompanyChecklists,
    DeviceListResponse,
)
from app.schemas.progress import ProgressRow, ProgressUpdate, ProgressUpdateResponse
from app.services.gateway import ChecklistGateway
from app.services.picker import list_grouped_checklists
from app.services.workspace import (
    SortSpec,
    search_devices,
    sort_devices,
    to_checklist_detail,
)

router = APIRouter()


async def _get_checklist_or_404(gateway: ChecklistGateway, checklist_id: int) -> Checklist:
    try:
        checklist = await gateway.get_checklist(checklist_id)
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to load checklist from database."
        ) from e

    if not checklist:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Checklist with id {checklist_id} not found"
        )
    return checklist


async def _get_detail(gateway: ChecklistGateway, checklist_id: int) -> ChecklistDetail:
    checklist = await _get_checklist_or_404(gateway, checklist_id)
    try:
        devices = await gateway.list_devices(checklist_id)
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to load devices from database."
        ) from e
    return to_checklist_detail(checklist, devices)


@router.get("", response_model=List[CompanyChecklists])
async def get_checklists_grouped(
    gateway: ChecklistGateway = Depends(get_gateway)
):
    """
    Get every checklist grouped by company, companies alphabetically.
    """
    try:
        return await list_grouped_checklists(gateway)
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not load checklists from database."
        ) from e


@router.get("/{checklist_id}", response_model=ChecklistDetail)
async def get_checklist(
    checklist_id: int,
    gateway: ChecklistGateway = Depends(get_gateway)
):
    """
    Get a checklist with its company name and all devices.
    """
    return await _get_detail(gateway, checklist_id)


@router.get("/{checklist_id}/devices", response_model=DeviceListResponse)
async def get_checklist_devices(
    checklist_id: int,
    sort: str = Query(default="address-asc", description="<key>-<asc|desc>"),
    q: str = Query(default="", description="Case-insensitive text search"),
    gateway: ChecklistGateway = Depends(get_gateway)
):
    """
    Get a checklist's devices sorted and filtered the way the workspace shows them.
    """
    try:
        spec = SortSpec.parse(sort)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        ) from e

    detail = await _get_detail(gateway, checklist_id)
    devices = search_devices(sort_devices(detail.devices, spec), q)

    return DeviceListResponse(
        checklist_id=checklist_id,
        sort=str(spec),
        query=q,
        total=len(detail.devices),
        devices=devices,
    )


@router.get("/{checklist_id}/progress", response_model=List[ProgressRow])
async def get_checklist_progress(
    checklist_id: int,
    gateway: ChecklistGateway = Depends(get_gateway)
):
    """
    Get the persisted progress rows for a checklist.
    """
    try:
        rows = await gateway.list_progress(checklist_id)
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not load shared progress."
        ) from e

    return [ProgressRow.model_validate(row) for row in rows]


@router.put("/{checklist_id}/progress", response_model=ProgressUpdateResponse)
async def update_checklist_progress(
    checklist_id: int,
    update: ProgressUpdate,
    gateway: ChecklistGateway = Depends(get_gateway)
):
    """
    Check or uncheck one device. Last write wins; the change is pushed to live subscribers.
    """
    await _get_checklist_or_404(gateway, checklist_id)

    try:
        row = await gateway.upsert_progress(checklist_id, update.device_uid, update.checked)
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not sync this device to the cloud."
        ) from e

    return ProgressUpdateResponse(**row)
