"""Management CLI for centers and the activity journal.

Usage:
    python -m app.cli reconcile                  # Repair activity mirrors
    python -m app.cli expire-sessions            # Close sessions past session_max_hours
    python -m app.cli list-centers               # Show all centers
    python -m app.cli import-legacy <file.json>  # Import old-dashboard activities
"""

import asyncio
import sys

from sqlalchemy import create_engine, select

from app.config import settings
from app.database import async_session
from app.models.public.center import Center
from app.services.activity_logger import ActivityLogger
from app.services.reconciliation import reconcile_activity_mirrors
from app.services.sessions import SessionManager
from app.utils.legacy import import_legacy_activities, load_legacy_file


def get_centers() -> list[tuple[str, str, bool]]:
    engine = create_engine(settings.database_url_sync)
    with engine.connect() as conn:
        result = conn.execute(
            select(Center.id, Center.name, Center.is_active).order_by(Center.name)
        )
        return [tuple(row) for row in result]


def list_centers():
    centers = get_centers()
    for center_id, name, is_active in centers:
        flag = "" if is_active else "  (inactive)"
        print(f"  {center_id}  {name}{flag}")
    print(f"\n{len(centers)} center(s)")


def reconcile():
    summary = asyncio.run(reconcile_activity_mirrors())
    print(f"  Copied to global: {summary['missing_global']}")
    print(f"  Copied to center: {summary['missing_local']}")
    print(f"  Orphans:          {summary['orphans']}")


async def _expire_sessions() -> int:
    async with async_session() as db:
        return await SessionManager(db, ActivityLogger()).expire_stale_sessions()


def expire_sessions():
    closed = asyncio.run(_expire_sessions())
    print(f"  Closed {closed} stale session(s)")


def import_legacy(path: str):
    docs = load_legacy_file(path)
    result = asyncio.run(import_legacy_activities(docs))
    print(f"  Imported: {result.imported}")
    print(f"  Skipped:  {result.skipped}")
    for err in result.errors:
        print(f"  Row {err.row}: {'; '.join(err.errors)}")
    print(f"\n{result.total_rows} record(s) read")


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    if cmd == "reconcile":
        reconcile()
    elif cmd == "expire-sessions":
        expire_sessions()
    elif cmd == "list-centers":
        list_centers()
    elif cmd == "import-legacy" and len(sys.argv) > 2:
        import_legacy(sys.argv[2])
    else:
        print(
            "Usage: python -m app.cli "
            "[reconcile|expire-sessions|list-centers|import-legacy <file.json>]"
        )
