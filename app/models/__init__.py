"""
SQLAlchemy models - Import all for Alembic autogenerate
"""
from app.models.base import Base, TimestampMixin

# Import all models
from app.models.checklist import Company, Checklist, Device, DeviceProgress

# Export all for easy imports
__all__ = [
    "Base",
    "TimestampMixin",
    "Company",
    "Checklist",
    "Device",
    "DeviceProgress",
]
