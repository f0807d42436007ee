"""Send the weekly contractor digests; meant to be run from a scheduler."""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sitetasks.config import get_settings
from sitetasks.logging_setup import setup_logging
from sitetasks.services.email_service import EmailDigestService, summarize
from sitetasks.services.sheet_store import SheetStore
from sitetasks.sheets.factory import build_backend


async def send_weekly_emails() -> int:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    service = EmailDigestService(SheetStore(build_backend(settings)), settings.email)
    summary = summarize(await service.send_weekly_emails())

    for result in summary["results"]:
        mark = "✓" if result["success"] else "-" if result["skipped"] else "✗"
        name = result["subcontractor"] or "(no recipients)"
        print(f"{mark} {name}: {result['message']}")
    print(f"\nEmails sent: {summary['emailsSent']} of {len(summary['results'])}")
    return 0 if summary["emailsSent"] else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(send_weekly_emails()))
