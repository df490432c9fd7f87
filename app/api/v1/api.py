"""
API v1 router
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    admin,
    checklists,
    companies,
    realtime,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(companies.router, prefix="/companies", tags=["Companies"])
api_router.include_router(checklists.router, prefix="/checklists", tags=["Checklists"])
api_router.include_router(realtime.router, prefix="/realtime", tags=["Realtime"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])


@api_router.get("/")
async def api_root():
    """API v1 root endpoint"""
    return {
        "message": "Fire Alarm Checklist Tracker API v1",
        "status": "active",
        "version": "1.0.0",
        "endpoints": {
            "companies": "/companies",
            "checklists": "/checklists",
            "realtime": "/realtime/checklists/{checklist_id}/progress (WebSocket)",
            "admin": "/admin",
            "docs": "/docs",
            "health": "/health"
        }
    }
