"""
Checklist Import Service
Creates / replaces checklists and their devices from uploaded JSON documents,
and deletes checklists (removing a company once its last checklist is gone).
"""
import logging
import math
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.core.exceptions import ChecklistImportError, ChecklistNotFoundError, GatewayError
from app.schemas.upload import (
    DEVICE_FORMATS,
    ChecklistUpload,
    DeleteChecklistResponse,
    ExcelDeviceRecord,
    StandardDeviceRecord,
    UploadItemResult,
    UploadResponse,
)
from app.services.gateway import ChecklistGateway

logger = logging.getLogger(__name__)

IMPORT_MODES = ("replace", "skip")
UNNAMED_CHECKLIST = "Unnamed Checklist"

_LEADING_INT = re.compile(r"^[+-]?\d+")


def to_int_or_null(value: Any) -> Optional[int]:
    """
    Loop / address values as stored: int, or None when absent, "N/A" or unparseable.
    Strings keep only their leading integer ("12b" -> 12).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None

    trimmed = str(value).strip()
    if not trimmed or trimmed.upper() == "N/A":
        return None
    match = _LEADING_INT.match(trimmed)
    return int(match.group()) if match else None


def _text_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _standard_row(record: StandardDeviceRecord) -> Dict[str, Any]:
    return {
        "loop": to_int_or_null(record.loop),
        "address": to_int_or_null(record.address),
        "model": _text_or_none(record.model),
        "device_type": _text_or_none(record.device_type),
        "serial_number": _text_or_none(record.serial_number),
        "messages": _text_or_none(record.messages),
    }


def _excel_row(record: ExcelDeviceRecord) -> Dict[str, Any]:
    # System address is "Node : Card : Device"; card is the loop
    parts = [part.strip() for part in str(record.system_address or "").split(":")]
    card = parts[1] if len(parts) >= 2 else ""
    device_number = parts[2] if len(parts) >= 3 else ""
    return {
        "loop": to_int_or_null(card),
        "address": to_int_or_null(device_number),
        "model": _text_or_none(record.sku),
        "device_type": _text_or_none(record.sku_description),
        "serial_number": _text_or_none(record.serial_number),
        "messages": _text_or_none(record.location_text),
    }


_ROW_BUILDERS = {
    "standard": _standard_row,
    "excel": _excel_row,
}


def device_rows(upload: ChecklistUpload) -> List[Dict[str, Any]]:
    """Device rows for insertion, using the record shape named by upload.format."""
    record_class = DEVICE_FORMATS[upload.format]
    build_row = _ROW_BUILDERS[upload.format]
    rows = []
    for index, raw in enumerate(upload.devices):
        try:
            record = record_class.model_validate(raw)
        except ValidationError as e:
            raise ChecklistImportError(f"Device {index + 1} is not a valid {upload.format} record: {e}") from e
        rows.append(build_row(record))
    return rows


def parse_checklist_document(document: Any) -> ChecklistUpload:
    if isinstance(document, ChecklistUpload):
        return document
    if not isinstance(document, dict):
        raise ChecklistImportError("Checklist JSON must be an object.")
    try:
        return ChecklistUpload.model_validate(document)
    except ValidationError as e:
        raise ChecklistImportError(f"Invalid checklist JSON: {e}") from e


class ChecklistImportService:
    """Admin upload / delete of checklists"""

    def __init__(self, gateway: ChecklistGateway):
        self.gateway = gateway

    async def upsert_checklist(self, document: Any, mode: str = "replace", index: int = 0) -> UploadItemResult:
        """
        Create or update one checklist from an upload document.

        company name   = name or key
        checklist name = location or name or key or "Unnamed Checklist"

        Modes:
            replace: delete the checklist's devices, then insert the uploaded ones
            skip: leave an existing checklist untouched

        Raises:
            ChecklistImportError: malformed document or unknown mode
            GatewayError: store read / write failed
        """
        if mode not in IMPORT_MODES:
            raise ChecklistImportError(f"Unknown import mode: {mode}")

        upload = parse_checklist_document(document)
        company_name = upload.name or upload.key
        checklist_name = upload.location or upload.name or upload.key or UNNAMED_CHECKLIST
        if not company_name:
            raise ChecklistImportError("Missing 'name' (or 'key') on checklist object.")

        rows = device_rows(upload)
        if not rows:
            logger.warning(
                f'Checklist "{checklist_name}" for company "{company_name}" has 0 devices. Continuing anyway.'
            )
        logger.info(f'Company "{company_name}" / checklist "{checklist_name}": {len(rows)} device(s) in payload')

        company = await self.gateway.get_or_create_company(company_name)
        checklist = await self.gateway.get_checklist_by_name(company.id, checklist_name)
        exists = checklist is not None

        result = UploadItemResult(
            index=index,
            company_name=company_name,
            checklist_name=checklist_name,
        )

        if exists and mode == "skip":
            logger.info(f"Checklist already exists (id={checklist.id}). Mode=skip, not modifying devices.")
            result.checklist_id = checklist.id
            return result

        if not exists:
            checklist = await self.gateway.create_checklist(company.id, checklist_name, upload.year)
            logger.info(f"Created new checklist with id={checklist.id}")
        else:
            logger.info(f"Checklist exists (id={checklist.id}). Mode={mode}, replacing devices.")

        await self.gateway.delete_devices(checklist.id)
        inserted = await self.gateway.insert_devices(checklist.id, rows)
        logger.info(f"Inserted {inserted} device(s) for checklist id={checklist.id}")

        result.checklist_id = checklist.id
        result.created = not exists
        result.devices_updated = True
        result.device_count = inserted
        return result

    async def upload(self, payload: Any, mode: str = "replace") -> UploadResponse:
        """Upload one document or a list of them. A failing document does not stop the rest."""
        if mode not in IMPORT_MODES:
            raise ChecklistImportError(f"Unknown import mode: {mode}")

        documents = payload if isinstance(payload, list) else [payload]
        logger.info(f"Starting upload of {len(documents)} checklist(s). Mode: {mode}")

        results = []
        for index, document in enumerate(documents):
            try:
                results.append(await self.upsert_checklist(document, mode, index=index))
            except (ChecklistImportError, GatewayError) as e:
                logger.error(f"Error on checklist {index + 1}: {e}")
                results.append(UploadItemResult(index=index, error=str(e)))

        failure_count = sum(1 for result in results if result.error)
        success_count = len(results) - failure_count
        logger.info(f"Upload complete. Success: {success_count}, Failed: {failure_count}.")

        return UploadResponse(
            mode=mode,
            success_count=success_count,
            failure_count=failure_count,
            results=results,
        )

    async def delete_checklist(self, checklist_id: int) -> DeleteChecklistResponse:
        """
        Delete a checklist with its devices and progress. The owning company
        is deleted too when this was its last checklist.

        Raises:
            ChecklistNotFoundError: no checklist with this id
            GatewayError: the checklist could not be deleted
        """
        checklist = await self.gateway.get_checklist(checklist_id)
        if checklist is None:
            raise ChecklistNotFoundError(checklist_id)

        company_id = checklist.company_id
        company_name = checklist.company.name if checklist.company else ""
        logger.info(f'Deleting checklist "{checklist.name}" (id={checklist_id}) for company "{company_name}"')

        await self.gateway.delete_checklist(checklist_id)

        company_deleted = False
        try:
            remaining = await self.gateway.count_checklists_for_company(company_id)
            if remaining == 0:
                await self.gateway.delete_company(company_id)
                company_deleted = True
                logger.info(f'Company "{company_name}" (id={company_id}) had no more checklists and was deleted.')
        except GatewayError as e:
            # Checklist is already gone; a leftover company is harmless
            logger.warning(f"Could not clean up company {company_id}: {e}")

        return DeleteChecklistResponse(
            checklist_id=checklist_id,
            company_id=company_id,
            company_deleted=company_deleted,
            message=f'Deleted checklist "{checklist.name}".',
        )
