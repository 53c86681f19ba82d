"""Celery tasks for background maintenance."""

import asyncio
import logging
from datetime import timedelta

from forexnepal.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="prune_usage_logs")
def prune_usage_logs_task(self) -> dict:
    """Delete usage-ledger rows older than the retention window.

    Bridges to async code via asyncio.run() with its own engine + session.
    """
    return asyncio.run(_prune_usage_logs_async())


async def _prune_usage_logs_async() -> dict:
    from forexnepal.config import settings
    from forexnepal.db.session import build_engine, build_session_factory
    from forexnepal.gate.ledger import UsageLedger

    engine = build_engine(settings.database_url, echo=False)
    session_factory = build_session_factory(engine)
    try:
        ledger = UsageLedger(session_factory)
        deleted = await ledger.prune(timedelta(seconds=settings.usage_log_retention_seconds))
        return {"status": "ok", "deleted": deleted}
    except Exception as e:
        logger.exception("Failed to prune usage logs")
        return {"status": "error", "message": str(e)}
    finally:
        await engine.dispose()
