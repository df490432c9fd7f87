"""
Checklist Workspace
Sort / search / completion view over one checklist's devices, driven by the
Progress Synchronizer's checked-set.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from app.core.exceptions import ChecklistNotFoundError
from app.models import Checklist, Device
from app.schemas.checklist import ChecklistDetail, DeviceView, ProgressSummary
from app.services.gateway import ChecklistGateway
from app.services.progress_sync import ProgressSynchronizer

logger = logging.getLogger(__name__)

SORT_KEYS = ("address", "messages", "device_type", "serial_number", "model")
SORT_DIRECTIONS = ("asc", "desc")

# Browser clients send the camelCase field names
_SORT_KEY_ALIASES = {
    "deviceType": "device_type",
    "serialNumber": "serial_number",
    "location": "messages",
}


def _text(value) -> str:
    return "" if value is None else str(value)


def device_uid(checklist_key, device: Union[Device, DeviceView]) -> str:
    """
    Composite progress key for a device.
    Built from mutable fields: editing a device's message text orphans its progress row.
    """
    return (
        f"{checklist_key}-{_text(device.serial_number)}-{_text(device.loop)}"
        f"-{_text(device.address)}-{_text(device.messages)}"
    )


def display_address(loop, address) -> str:
    """"loop:address", skipping missing or zero parts"""
    return ":".join(_text(part) for part in (loop, address) if part not in (None, "", 0))


def to_device_view(checklist_key, device: Device) -> DeviceView:
    return DeviceView(
        uid=device_uid(checklist_key, device),
        loop=_text(device.loop),
        address=_text(device.address),
        display_address=display_address(device.loop, device.address),
        model=_text(device.model),
        device_type=_text(device.device_type),
        serial_number=_text(device.serial_number),
        messages=_text(device.messages),
    )


def to_checklist_detail(checklist: Checklist, devices: Iterable[Device]) -> ChecklistDetail:
    company = checklist.company
    return ChecklistDetail(
        key=checklist.id,
        name=company.name if company is not None else "Checklist",
        location=checklist.name,
        year=checklist.year,
        devices=[to_device_view(checklist.id, device) for device in devices],
    )


@dataclass(frozen=True)
class SortSpec:
    key: str = "address"
    direction: str = "asc"

    def __post_init__(self):
        if self.key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {self.key}")
        if self.direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction: {self.direction}")

    @classmethod
    def parse(cls, value: str) -> "SortSpec":
        """Parse "address-asc" / "serialNumber-desc" style values."""
        key, _, direction = value.rpartition("-")
        if not key:
            key, direction = direction, "asc"
        return cls(key=_SORT_KEY_ALIASES.get(key, key), direction=direction)

    def __str__(self):
        return f"{self.key}-{self.direction}"


def sort_devices(devices: Sequence[DeviceView], spec: SortSpec) -> List[DeviceView]:
    """
    Stable, case-insensitive string sort on one field.
    Addresses compare as text: "10" sorts before "2".
    """
    return sorted(
        devices,
        key=lambda device: getattr(device, spec.key).lower(),
        reverse=spec.direction == "desc",
    )


def row_text(device: DeviceView) -> str:
    """Visible text of a device row, in column order"""
    return " ".join([
        "",  # check box column
        device.display_address,
        device.messages,
        device.device_type,
        device.model,
        device.serial_number,
    ]).lower()


def search_devices(devices: Sequence[DeviceView], query: str) -> List[DeviceView]:
    needle = (query or "").lower().strip()
    return [device for device in devices if needle in row_text(device)]


def progress_summary(done: int, total: int) -> ProgressSummary:
    # Percent rounds half up
    percent = (done * 200 + total) // (2 * total) if total > 0 else 0
    return ProgressSummary(done=done, total=total, percent=percent)


class ChecklistWorkspace:
    """One inspector's view of the active checklist"""

    def __init__(
        self,
        gateway: ChecklistGateway,
        synchronizer: ProgressSynchronizer,
        sort: Optional[SortSpec] = None,
    ):
        self.gateway = gateway
        self.synchronizer = synchronizer
        self.sort = sort if sort is not None else SortSpec()
        self.data: Optional[ChecklistDetail] = None

    async def open(self, checklist_id) -> ChecklistDetail:
        """
        Load a checklist and its devices, then hand progress loading to the synchronizer.

        Raises:
            ChecklistNotFoundError: checklist was deleted or the id is bad
            GatewayError: checklist or devices could not be read
        """
        # Stop listening to the old checklist before touching the new one
        await self.synchronizer.deactivate()
        self.data = None

        checklist = await self.gateway.get_checklist(checklist_id)
        if checklist is None:
            raise ChecklistNotFoundError(checklist_id)
        devices = await self.gateway.list_devices(checklist_id)

        self.data = to_checklist_detail(checklist, devices)
        await self.synchronizer.activate(checklist_id)
        logger.info(f"Opened checklist {checklist_id} ({len(self.data.devices)} devices)")
        return self.data

    async def close(self):
        await self.synchronizer.deactivate()
        self.data = None

    @property
    def devices(self) -> List[DeviceView]:
        return list(self.data.devices) if self.data else []

    # Sorting --------------------------------------------------------------

    def set_sort(self, key: str, direction: str = "asc") -> SortSpec:
        self.sort = SortSpec(key=_SORT_KEY_ALIASES.get(key, key), direction=direction)
        return self.sort

    def toggle_sort(self, key: str) -> SortSpec:
        """Header click: same key ascending flips to descending, anything else sorts ascending."""
        key = _SORT_KEY_ALIASES.get(key, key)
        direction = "desc" if self.sort.key == key and self.sort.direction == "asc" else "asc"
        return self.set_sort(key, direction)

    def sorted_devices(self) -> List[DeviceView]:
        return sort_devices(self.devices, self.sort)

    def visible_devices(self, query: str = "") -> List[DeviceView]:
        return search_devices(self.sorted_devices(), query)

    # Progress -------------------------------------------------------------

    def is_checked(self, device: DeviceView) -> bool:
        return self.synchronizer.is_checked(device.uid)

    async def toggle(self, device: Union[DeviceView, str]) -> bool:
        uid = device if isinstance(device, str) else device.uid
        return await self.synchronizer.toggle(uid)

    def clear_all(self):
        self.synchronizer.clear_all()

    def progress(self) -> ProgressSummary:
        return progress_summary(len(self.synchronizer.checked), len(self.devices))

    def last_checked_label(self) -> str:
        last_uid = self.synchronizer.last_checked()
        if last_uid is None:
            return "No devices have been checked yet."

        device = next((d for d in self.devices if d.uid == last_uid), None)
        if device is None:
            return ""
        return f"Last checked: Address {device.display_address} - {device.messages}"
