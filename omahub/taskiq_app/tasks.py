"""Taskiq tasks for favourites maintenance."""

import logging
from typing import Any, cast

from omahub.config import get_settings
from omahub.db.repositories import delete_favourites_by_ids, fetch_orphaned_favourites
from omahub.db.session import session_context
from omahub.notifications.telegram import TelegramNotifier
from omahub.taskiq_app.broker import broker
from omahub.taskiq_app.dedup import acquire_dedup_lock, build_dedup_key, dedup_lock

logger = logging.getLogger(__name__)
settings = get_settings()

PRUNE_BATCH_SIZE = 500


async def _prune_orphans() -> dict[str, int]:
    """Delete favourites whose brand, catalogue or product was removed."""

    async with session_context() as session:
        orphans = await fetch_orphaned_favourites(session, limit=PRUNE_BATCH_SIZE)
        by_type: dict[str, int] = {}
        for favourite in orphans:
            by_type[favourite.item_type] = by_type.get(favourite.item_type, 0) + 1
        removed = await delete_favourites_by_ids(session, [f.id for f in orphans])
    return {"removed": removed, **by_type}


@broker.task(
    task_name="prune_orphaned_favourites",
    schedule=[{"cron": "15 */6 * * *"}],
    retry_on_error=True,
    max_retries=3,
)
async def prune_orphaned_favourites() -> dict[str, object]:
    dedup_key = build_dedup_key(
        scope="execution", task_name="prune_orphaned_favourites", fingerprint="default"
    )
    async with dedup_lock(dedup_key, settings.prune_dedup_ttl_seconds) as acquired:
        if not acquired:
            logger.info("prune_orphaned_favourites skipped due to dedup lock")
            return {"status": "skipped_duplicate_execution", "removed": 0}

        counts = await _prune_orphans()
        removed = counts.pop("removed")
        logger.info("Pruned %s orphaned favourites %s", removed, counts)

        if removed > 0:
            breakdown = ", ".join(
                f"{item_type}: {count}" for item_type, count in sorted(counts.items())
            )
            await TelegramNotifier().send(
                f"Removed {removed} favourites pointing at deleted items ({breakdown})",
                title="Favourites cleanup",
            )

        return {"status": "ok", "removed": removed, "by_type": counts}


async def enqueue_prune_orphaned_favourites(
    *, fingerprint: str = "manual"
) -> dict[str, object]:
    """Enqueue the prune task once per dedup window."""

    dedup_key = build_dedup_key(
        scope="enqueue", task_name="prune_orphaned_favourites", fingerprint=fingerprint
    )
    if not await acquire_dedup_lock(dedup_key, settings.prune_dedup_ttl_seconds):
        return {"enqueued": False, "reason": "duplicate_enqueue"}

    task = await cast(Any, prune_orphaned_favourites).kiq()
    return {"enqueued": True, "task_id": task.task_id}
