"""
API Dependencies
"""
from fastapi import Depends

from app.db.session import AsyncSessionLocal
from app.services.change_feed import ChangeFeed, get_change_feed
from app.services.checklist_import import ChecklistImportService
from app.services.gateway import ChecklistGateway

_gateway = None


def get_gateway(change_feed: ChangeFeed = Depends(get_change_feed)) -> ChecklistGateway:
    """
    Shared persistence gateway.
    Usage in FastAPI endpoints:
        async def endpoint(gateway: ChecklistGateway = Depends(get_gateway)):
    """
    global _gateway
    if _gateway is None:
        _gateway = ChecklistGateway(AsyncSessionLocal, change_feed)
    return _gateway


def get_import_service(
    gateway: ChecklistGateway = Depends(get_gateway)
) -> ChecklistImportService:
    """Admin upload / delete service bound to the request's gateway."""
    return ChecklistImportService(gateway)
