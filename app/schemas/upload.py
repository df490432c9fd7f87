"""
Pydantic schemas for the admin checklist upload
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional


class StandardDeviceRecord(BaseModel):
    """Device in the native upload shape"""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    loop: Optional[Any] = None
    address: Optional[Any] = None
    model: Optional[Any] = None
    device_type: Optional[Any] = Field(default=None, alias="deviceType")
    serial_number: Optional[Any] = Field(default=None, alias="serialNumber")
    messages: Optional[Any] = None


class ExcelDeviceRecord(BaseModel):
    """Device exported from the panel programming spreadsheet"""
    model_config = ConfigDict(populate_by_name=True)

    system_address: Optional[Any] = Field(default=None, alias="System Address ( Node : Card : Device )")
    sku: Optional[Any] = Field(default=None, alias="SKU")
    sku_description: Optional[Any] = Field(default=None, alias="SKU Description")
    serial_number: Optional[Any] = Field(default=None, alias="Serial Number")
    location_text: Optional[Any] = Field(default=None, alias="Location Text")


DEVICE_FORMATS = {
    "standard": StandardDeviceRecord,
    "excel": ExcelDeviceRecord,
}


class ChecklistUpload(BaseModel):
    """
    One checklist document: {name|key, location?, format?, devices: [...]}.
    `format` selects the device record shape for the whole document.
    """
    key: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None
    format: Literal["standard", "excel"] = "standard"
    year: Optional[int] = None
    devices: List[Dict[str, Any]] = []


class UploadItemResult(BaseModel):
    """Outcome for one checklist document"""
    index: int
    company_name: Optional[str] = None
    checklist_name: Optional[str] = None
    checklist_id: Optional[int] = None
    created: bool = False
    devices_updated: bool = False
    device_count: int = 0
    error: Optional[str] = None


class UploadResponse(BaseModel):
    """Outcome for a whole upload request"""
    mode: str
    success_count: int
    failure_count: int
    results: List[UploadItemResult] = []


class DeleteChecklistResponse(BaseModel):
    """Outcome of deleting a checklist"""
    checklist_id: int
    company_id: Optional[int] = None
    company_deleted: bool = False
    message: str
