"""
sync_service.py — Offline sync
Push applies a batch of client mutations item by item; a bad item is
recorded and skipped, never aborting the batch. Pull returns habits and logs
modified strictly after a timestamp (default: the last SYNC_LOOKBACK_DAYS).
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from config import SYNC_LOOKBACK_DAYS
from exceptions import HabitTrackerError, ValidationError
from schemas import SyncPushItem, parse_payload
from services.habit_service import HabitService
from services.log_service import LogService
from utils.dates import lookback, now_utc

logger = logging.getLogger(__name__)


def _as_naive_utc(ts: datetime) -> datetime:
    # Stored timestamps are naive UTC on SQLite
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


class SyncService:
    @staticmethod
    def _apply(db: Session, user_id: str, item: SyncPushItem) -> None:
        payload = dict(item.payload)
        # Ownership always comes from the token, never from the payload
        payload.pop("user_id", None)
        payload.pop("id", None)

        if item.entity_type == "habit":
            if item.action == "create":
                HabitService.create(db, user_id, payload, habit_id=item.entity_id)
            elif item.action == "update":
                HabitService.update(db, user_id, item.entity_id, payload)
            else:
                HabitService.delete(db, user_id, item.entity_id)
            return

        if item.action == "delete":
            # Logs are never hard-deleted; clients send completed=false instead
            return
        LogService.create_or_update_log(db, user_id, payload, log_id=item.entity_id)

    @staticmethod
    def push_changes(db: Session, user_id: str, items: list) -> dict:
        synced = failed = 0
        failed_items = []
        for raw in items:
            entity_id = raw.get("entity_id") if isinstance(raw, dict) else None
            try:
                if not isinstance(raw, dict):
                    raise ValidationError("Sync item must be an object", value=raw)
                item = parse_payload(SyncPushItem, raw)
                SyncService._apply(db, user_id, item)
                synced += 1
            except HabitTrackerError as e:
                db.rollback()
                logger.warning(f"Sync item {entity_id} failed for user {user_id}: {e.message}")
                failed += 1
                if entity_id is not None:
                    failed_items.append(str(entity_id))

        logger.info(f"Sync push for user {user_id}: {synced} synced, {failed} failed")
        return {
            "synced_count": synced,
            "failed_count": failed,
            "failed_items": failed_items,
            "last_synced_at": now_utc().isoformat(),
        }

    @staticmethod
    def pull_changes(db: Session, user_id: str, since: datetime | None = None) -> dict:
        cursor = _as_naive_utc(since or lookback(SYNC_LOOKBACK_DAYS))
        habits = HabitService.get_updated_since(db, user_id, cursor)
        logs = LogService.get_updated_since(db, user_id, cursor)
        return {
            "habits": [h.to_dict() for h in habits],
            "daily_logs": [l.to_dict() for l in logs],
            "last_synced_at": now_utc().isoformat(),
        }

    @staticmethod
    def get_status(db: Session, user_id: str) -> dict:
        # The server keeps no outbound queue; clients track their own pending items
        return {
            "pending_count": 0,
            "is_synced": True,
            "last_synced_at": now_utc().isoformat(),
        }
