"""
Inspect a checklist from the terminal: show devices and progress, toggle devices.
Progress is mirrored to LOCAL_MIRROR_DIR and synced to the database.

Usage:
    python scripts/inspect_checklist.py <checklist_id> [sort] [toggle <device_uid> ...]

Examples:
    python scripts/inspect_checklist.py 3
    python scripts/inspect_checklist.py 3 messages-asc
    python scripts/inspect_checklist.py 3 toggle "3-3939747909-1-1-BASEMENT SMOKE ABOVE FACP"
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.exceptions import ChecklistNotFoundError, GatewayError
from app.db.session import AsyncSessionLocal
from app.services.change_feed import get_change_feed
from app.services.gateway import ChecklistGateway
from app.services.local_mirror import JsonFileMirror
from app.services.progress_sync import ProgressSynchronizer
from app.services.workspace import ChecklistWorkspace, SortSpec


def print_notification(message: str, level: str = "info"):
    icon = "⚠️ " if level in ("error", "warning") else "ℹ️ "
    print(f"{icon} {message}")


async def inspect_checklist(checklist_id: int, sort: str, toggles):
    gateway = ChecklistGateway(AsyncSessionLocal, get_change_feed())
    synchronizer = ProgressSynchronizer(
        gateway,
        JsonFileMirror(settings.LOCAL_MIRROR_DIR),
        notify=print_notification,
    )
    workspace = ChecklistWorkspace(gateway, synchronizer, sort=SortSpec.parse(sort))

    try:
        detail = await workspace.open(checklist_id)
    except ChecklistNotFoundError as e:
        print(f"❌ {e}")
        return False
    except GatewayError as e:
        print(f"❌ Failed to load checklist: {e}")
        return False

    try:
        for device_uid in toggles:
            await workspace.toggle(device_uid)

        print(f"\n🏢 {detail.name}")
        print(f"📋 {detail.location} ({detail.year}) - sync: {synchronizer.state.value}")
        print(f"🕒 {workspace.last_checked_label()}")

        summary = workspace.progress()
        print(f"✅ Devices completed: {summary.done} of {summary.total} ({summary.percent}%)\n")

        for device in workspace.sorted_devices():
            mark = "[x]" if workspace.is_checked(device) else "[ ]"
            print(f"  {mark} {device.display_address:>8}  {device.messages}  ({device.device_type}, {device.serial_number})")
            print(f"        uid: {device.uid}")
    finally:
        await workspace.close()

    return True


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    args = sys.argv[2:]
    sort = "address-asc"
    if args and args[0] != "toggle":
        sort = args.pop(0)
    toggles = args[1:] if args and args[0] == "toggle" else []

    ok = asyncio.run(inspect_checklist(int(sys.argv[1]), sort, toggles))
    sys.exit(0 if ok else 1)
