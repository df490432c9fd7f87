"""
Pydantic schemas for Checklist endpoints
"""
from pydantic import BaseModel
from typing import Optional, List


class CompanyResponse(BaseModel):
    """Response schema for companies"""
    id: int
    name: str

    class Config:
        from_attributes = True


class ChecklistResponse(BaseModel):
    """Response schema for a checklist row"""
    id: int
    company_id: int
    name: str
    year: int

    class Config:
        from_attributes = True


class ChecklistWithCompany(BaseModel):
    """Checklist row with its owning company embedded"""
    id: int
    name: str
    year: int
    company: Optional[CompanyResponse] = None

    class Config:
        from_attributes = True


class CompanyChecklists(BaseModel):
    """Picker group: one company and its checklists"""
    company: CompanyResponse
    checklists: List[ChecklistResponse] = []


class DeviceView(BaseModel):
    """
    Device as shown in the workspace. Missing values are rendered as "".
    uid is the composite progress key for this device.
    """
    uid: str
    loop: str = ""
    address: str = ""
    display_address: str = ""  # "loop:address"
    model: str = ""
    device_type: str = ""
    serial_number: str = ""
    messages: str = ""


class ProgressSummary(BaseModel):
    """Completion counter"""
    done: int
    total: int
    percent: int


class ChecklistDetail(BaseModel):
    """Checklist loaded into the workspace"""
    key: int
    name: str  # company name
    location: str  # checklist name
    year: int
    devices: List[DeviceView] = []


class DeviceListResponse(BaseModel):
    """Sorted / filtered device listing"""
    checklist_id: int
    sort: str
    query: str = ""
    total: int
    devices: List[DeviceView] = []
