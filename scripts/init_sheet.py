"""Provision the master and contractor tabs of the configured spreadsheet."""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sitetasks.config import get_settings
from sitetasks.logging_setup import setup_logging
from sitetasks.services.sheet_store import SheetStore
from sitetasks.services.task_service import TaskService
from sitetasks.sheets.factory import build_backend


def init_sheet() -> int:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    result = TaskService(SheetStore(build_backend(settings))).initialize()
    if not result["success"]:
        print(f"✗ {result['error']}")
        return 1
    print(f"✓ {result['message']}")
    return 0


if __name__ == "__main__":
    sys.exit(init_sheet())
