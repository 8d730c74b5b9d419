"""One-time import of activity records exported from the old dashboard.

Old records came in several shapes: the category under `activityType` or
`type`, the actor under `performedBy`/`userName` and `performedById`/
`userId`, and timestamps as Firestore `{seconds, nanoseconds}` maps,
ISO strings or epoch milliseconds. `normalize_legacy_activity` maps each
shape onto the canonical record once, so readers never have to.

Usage:
    python -m app.cli import-legacy export.json
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.auth.principal import UNKNOWN_ACTOR
from app.database import async_session
from app.models.center.activity import ActivityCategory, CenterActivity
from app.models.public.center import Center
from app.models.public.global_activity import GlobalActivity


@dataclass
class RowError:
    row: int
    errors: list[str]


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    errors: list[RowError] = field(default_factory=list)
    total_rows: int = 0


def parse_legacy_timestamp(value: Any) -> datetime | None:
    """Naive UTC datetime from any of the old timestamp encodings."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            return None
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        return _from_epoch(float(seconds) + nanos / 1e9)
    if isinstance(value, (int, float)):
        # Date.now() style milliseconds
        return _from_epoch(value / 1000)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        return parse_legacy_timestamp(parsed)
    return None


def _from_epoch(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def normalize_legacy_activity(
    doc: dict[str, Any], center_id: str | None = None
) -> dict[str, Any]:
    """Canonical activity fields for one legacy document.

    Raises ValueError when the record has no center or no usable timestamp.
    """
    center = doc.get("centerId") or center_id
    if not center:
        raise ValueError("missing centerId")

    timestamp = parse_legacy_timestamp(doc.get("timestamp"))
    if timestamp is None:
        raise ValueError("missing or unreadable timestamp")

    actor_name = doc.get("performedBy") or doc.get("userName") or UNKNOWN_ACTOR
    actor_id = doc.get("performedById") or doc.get("userId") or actor_name
    action = doc.get("action") or doc.get("description") or "Activity"

    return {
        "id": str(doc.get("id") or uuid.uuid4()),
        "center_id": str(center),
        "actor_id": str(actor_id),
        "actor_name": str(actor_name),
        "category": ActivityCategory.resolve(
            doc.get("activityType") or doc.get("type")
        ).value,
        "action": str(action)[:500],
        "description": doc.get("description") or action,
        "target_id": doc.get("targetId"),
        "target_name": doc.get("targetName"),
        "details": doc.get("details"),
        "timestamp": timestamp,
    }


def load_legacy_file(path: str) -> list[dict[str, Any]]:
    """Read an export: a list of records or {"activities": [...]}."""
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("activities", [])
    if not isinstance(data, list):
        raise ValueError("expected a list of activity records")
    return data


async def import_legacy_activities(
    docs: list[dict[str, Any]],
    session_factory: async_sessionmaker | None = None,
) -> ImportResult:
    """Write normalized records to both activity tables.

    Records already in both tables, or whose center is unknown, are skipped.
    A record present in only one table is written to the other.
    """
    session_factory = session_factory or async_session
    result = ImportResult()

    async with session_factory() as db:
        centers = {
            row.id: row.name
            for row in (await db.execute(select(Center.id, Center.name))).all()
        }
        local_ids = set((await db.execute(select(CenterActivity.id))).scalars().all())
        global_ids = set(
            (await db.execute(select(GlobalActivity.id))).scalars().all()
        )

        for row_num, doc in enumerate(docs, start=1):
            result.total_rows += 1
            try:
                fields = normalize_legacy_activity(doc)
            except (ValueError, TypeError) as exc:
                result.errors.append(RowError(row=row_num, errors=[str(exc)]))
                continue

            record_id = fields["id"]
            in_local, in_global = record_id in local_ids, record_id in global_ids
            if (in_local and in_global) or fields["center_id"] not in centers:
                result.skipped += 1
                continue

            # a half-mirrored id only gets its missing side
            if not in_local:
                db.add(CenterActivity(**fields))
                local_ids.add(record_id)
            if not in_global:
                db.add(GlobalActivity(
                    **fields, center_name=centers[fields["center_id"]]
                ))
                global_ids.add(record_id)
            result.imported += 1

        await db.commit()

    return result
