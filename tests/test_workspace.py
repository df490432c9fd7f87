"""
Checklist Workspace tests - sorting, search, device identity, completion
"""
import pytest

from app.core.exceptions import ChecklistNotFoundError
from app.models import Device
from app.schemas.checklist import DeviceView
from app.services.progress_sync import ProgressSynchronizer, SyncState
from app.services.workspace import (
    ChecklistWorkspace,
    SortSpec,
    device_uid,
    display_address,
    progress_summary,
    search_devices,
    sort_devices,
)


def view(uid, **fields):
    return DeviceView(uid=uid, **fields)


class TestSorting:
    """Literal, case-insensitive string sorting"""

    def test_address_sorts_as_text_not_number(self):
        devices = [view("a", address="2"), view("b", address="10"), view("c", address="1")]

        ascending = sort_devices(devices, SortSpec("address", "asc"))
        descending = sort_devices(devices, SortSpec("address", "desc"))

        assert [d.address for d in ascending] == ["1", "10", "2"]
        assert [d.address for d in descending] == ["2", "10", "1"]

    def test_sort_is_case_insensitive(self):
        devices = [view("a", messages="lobby"), view("b", messages="Attic"), view("c", messages="BASEMENT")]

        result = sort_devices(devices, SortSpec("messages", "asc"))

        assert [d.messages for d in result] == ["Attic", "BASEMENT", "lobby"]

    def test_ties_keep_original_order(self):
        devices = [
            view("first", device_type="Smoke"),
            view("second", device_type="heat"),
            view("third", device_type="smoke"),
        ]

        ascending = sort_devices(devices, SortSpec("device_type", "asc"))
        descending = sort_devices(devices, SortSpec("device_type", "desc"))

        assert [d.uid for d in ascending] == ["second", "first", "third"]
        assert [d.uid for d in descending] == ["first", "third", "second"]

    def test_parse_sort_values(self):
        assert SortSpec.parse("address-asc") == SortSpec("address", "asc")
        assert SortSpec.parse("serialNumber-desc") == SortSpec("serial_number", "desc")
        assert SortSpec.parse("device_type-desc") == SortSpec("device_type", "desc")
        assert SortSpec.parse("messages") == SortSpec("messages", "asc")
        assert str(SortSpec("messages", "desc")) == "messages-desc"

    def test_unknown_sort_key_rejected(self):
        with pytest.raises(ValueError):
            SortSpec.parse("colour-asc")
        with pytest.raises(ValueError):
            SortSpec("address", "sideways")


class TestSearch:
    """Free-text filter over the visible row text"""

    devices = [
        view("1", display_address="1:2", messages="Lobby smoke", device_type="Smoke Verified",
             model="PS", serial_number="S2"),
        view("2", display_address="1:10", messages="Basement heat", device_type="Heat ROR",
             model="HRS", serial_number="S10"),
    ]

    def test_matches_any_column_case_insensitively(self):
        assert [d.uid for d in search_devices(self.devices, "LOBBY")] == ["1"]
        assert [d.uid for d in search_devices(self.devices, "hrs")] == ["2"]
        assert [d.uid for d in search_devices(self.devices, "1:10")] == ["2"]

    def test_blank_query_matches_everything(self):
        assert len(search_devices(self.devices, "   ")) == 2
        assert len(search_devices(self.devices, "")) == 2

    def test_search_does_not_mutate_input(self):
        devices = list(self.devices)
        search_devices(devices, "nothing matches this")
        assert devices == self.devices


class TestDeviceIdentity:
    """Composite device uid and address display"""

    def test_uid_renders_missing_fields_as_empty(self):
        device = Device(loop=1, address=None, serial_number="S1", messages="Lobby")
        assert device_uid(7, device) == "7-S1-1--Lobby"

    def test_uid_changes_with_message_text(self):
        before = Device(loop=1, address=1, serial_number="S1", messages="Lobby")
        after = Device(loop=1, address=1, serial_number="S1", messages="Main lobby")
        assert device_uid(7, before) != device_uid(7, after)

    def test_display_address(self):
        assert display_address(1, 2) == "1:2"
        assert display_address(None, 5) == "5"
        assert display_address(0, 5) == "5"
        assert display_address(None, None) == ""


class TestProgressSummary:
    def test_percent_rounds_half_up(self):
        assert progress_summary(1, 8).percent == 13
        assert progress_summary(2, 3).percent == 67
        assert progress_summary(1, 3).percent == 33

    def test_no_devices_is_zero_percent(self):
        summary = progress_summary(0, 0)
        assert (summary.done, summary.total, summary.percent) == (0, 0, 0)


class TestChecklistWorkspace:
    """Workspace wired to a real gateway and synchronizer"""

    @pytest.mark.asyncio
    async def test_open_loads_devices_and_progress(self, gateway, mirror, checklist):
        workspace = ChecklistWorkspace(gateway, ProgressSynchronizer(gateway, mirror))

        detail = await workspace.open(checklist.id)

        assert detail.name == "Acme"
        assert detail.location == "Fire Inspection"
        assert len(detail.devices) == 3
        assert workspace.synchronizer.state == SyncState.LOCAL_ONLY
        assert [d.address for d in workspace.sorted_devices()] == ["1", "10", "2"]
        await workspace.close()

    @pytest.mark.asyncio
    async def test_open_missing_checklist_raises(self, gateway, mirror):
        workspace = ChecklistWorkspace(gateway, ProgressSynchronizer(gateway, mirror))

        with pytest.raises(ChecklistNotFoundError):
            await workspace.open(9999)
        assert workspace.data is None

    @pytest.mark.asyncio
    async def test_toggle_updates_progress_and_last_checked(self, gateway, mirror, checklist):
        workspace = ChecklistWorkspace(gateway, ProgressSynchronizer(gateway, mirror))
        await workspace.open(checklist.id)
        assert workspace.last_checked_label() == "No devices have been checked yet."

        lobby = next(d for d in workspace.devices if d.messages == "Lobby smoke")
        await workspace.toggle(lobby)

        assert workspace.is_checked(lobby)
        assert workspace.progress().done == 1
        assert workspace.progress().percent == 33
        assert workspace.last_checked_label() == "Last checked: Address 1:2 - Lobby smoke"

        rows = await gateway.list_progress(checklist.id)
        assert rows[0]["device_uid"] == f"{checklist.id}-S2-1-2-Lobby smoke"
        await workspace.close()

    @pytest.mark.asyncio
    async def test_toggle_sort_flips_direction(self, gateway, mirror, checklist):
        workspace = ChecklistWorkspace(gateway, ProgressSynchronizer(gateway, mirror))
        await workspace.open(checklist.id)

        assert workspace.toggle_sort("address") == SortSpec("address", "desc")
        assert workspace.toggle_sort("address") == SortSpec("address", "asc")
        assert workspace.toggle_sort("serialNumber") == SortSpec("serial_number", "asc")

        workspace.set_sort("messages", "asc")
        assert [d.messages for d in workspace.visible_devices("smoke")] == ["Attic smoke", "Lobby smoke"]
        await workspace.close()

    @pytest.mark.asyncio
    async def test_last_checked_unknown_device_is_blank(self, gateway, mirror, checklist):
        workspace = ChecklistWorkspace(gateway, ProgressSynchronizer(gateway, mirror))
        await workspace.open(checklist.id)

        await workspace.toggle("not-a-device-on-this-list")

        assert workspace.last_checked_label() == ""
        await workspace.close()
