"""
Upload checklist JSON files into the database

Usage:
    python scripts/import_checklists.py <file.json> [replace|skip]

The file holds one checklist object or a list of them:
    {"name": "McFarland Public Safety Center",
     "location": "Fire Alarm Device Inspection",
     "devices": [{"loop": 1, "address": 1, "model": "PS", "deviceType": "Smoke Verified",
                  "serialNumber": "3939747909", "messages": "BASEMENT SMOKE ABOVE FACP"}]}
Spreadsheet exports set "format": "excel" and use the sheet's column titles.
"""
import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.exceptions import ChecklistImportError
from app.db.session import AsyncSessionLocal
from app.services.change_feed import get_change_feed
from app.services.checklist_import import ChecklistImportService
from app.services.gateway import ChecklistGateway


async def import_checklists(path: str, mode: str) -> bool:
    """Upload every checklist in a JSON file"""
    print(f"📄 Reading {Path(path).name}...")
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"❌ Could not read checklist JSON: {e}")
        return False

    service = ChecklistImportService(ChecklistGateway(AsyncSessionLocal, get_change_feed()))
    try:
        response = await service.upload(payload, mode)
    except ChecklistImportError as e:
        print(f"❌ {e}")
        return False

    for result in response.results:
        if result.error:
            print(f"  ❌ Checklist {result.index + 1}: {result.error}")
        elif not result.devices_updated:
            print(f"  ⏭️  {result.company_name} / {result.checklist_name}: already exists, skipped")
        else:
            action = "created" if result.created else "replaced"
            print(f"  ✅ {result.company_name} / {result.checklist_name}: {action} ({result.device_count} devices)")

    print(f"\nUpload complete. Success: {response.success_count}, Failed: {response.failure_count}.")
    return response.failure_count == 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    mode = sys.argv[2] if len(sys.argv) > 2 else "replace"
    ok = asyncio.run(import_checklists(sys.argv[1], mode))
    sys.exit(0 if ok else 1)
