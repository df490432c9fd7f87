"""
Checklist models - companies own checklists, checklists own fire-alarm devices
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class Company(Base, TimestampMixin):
    """
    Building owner / customer. Created lazily the first time a checklist
    references it by name (exact, case-sensitive match).
    """
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)

    # Relationships
    checklists = relationship("Checklist", back_populates="company", cascade="all, delete-orphan")


class Checklist(Base, TimestampMixin):
    """
    Named, year-stamped list of devices to inspect.
    Unique per (company_id, name) by convention: uploads look up before inserting.
    """
    __tablename__ = "checklists"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    year = Column(Integer, nullable=False)

    # Relationships
    company = relationship("Company", back_populates="checklists")
    devices = relationship("Device", back_populates="checklist", cascade="all, delete-orphan")
    progress = relationship("DeviceProgress", back_populates="checklist", cascade="all, delete-orphan")


class Device(Base):
    """One inspectable unit (smoke detector, heat sensor, pull station...)"""
    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, index=True)
    checklist_id = Column(Integer, ForeignKey("checklists.id", ondelete="CASCADE"), nullable=False, index=True)

    # Loop / address are null when absent or "N/A" in the source sheet
    loop = Column(Integer, nullable=True)
    address = Column(Integer, nullable=True)
    model = Column(String(255), nullable=True)
    device_type = Column(String(255), nullable=True)
    serial_number = Column(String(255), nullable=True)
    messages = Column(Text, nullable=True)  # Location text

    # Relationships
    checklist = relationship("Checklist", back_populates="devices")


class DeviceProgress(Base):
    """
    Persisted "checked" flag for one device within one checklist.
    device_uid is the composite key built by the workspace, not a foreign key.
    """
    __tablename__ = "device_progress"
    __table_args__ = (
        UniqueConstraint("checklist_id", "device_uid", name="uq_device_progress_checklist_device"),
    )

    id = Column(Integer, primary_key=True, index=True)
    checklist_id = Column(Integer, ForeignKey("checklists.id", ondelete="CASCADE"), nullable=False, index=True)
    device_uid = Column(Text, nullable=False)
    checked = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    checklist = relationship("Checklist", back_populates="progress")
