"""Startup cleanup run from the FastAPI lifespan.

Upload stages are in-process timers, so a restart drops any job that was
still moving through the pipeline. ``cleanup_orphaned_jobs()`` marks those
jobs as failed so clients never poll a job that can no longer finish.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ORPHANED_STATUSES = ("queued", "validating", "converting", "opened_pr")


def cleanup_orphaned_jobs(session_factory: Callable[[], Session] | None = None) -> int:
    """Mark any upload jobs stuck in a non-terminal state as failed.

    Returns the number of orphaned jobs cleaned up.
    """
    from assettrackr.models import UploadJob

    if session_factory is None:
        from assettrackr.database import SessionLocal
        session_factory = SessionLocal

    count = 0
    db = session_factory()
    try:
        orphaned = (
            db.query(UploadJob)
            .filter(UploadJob.status.in_(ORPHANED_STATUSES))
            .all()
        )
        now = datetime.now(timezone.utc)
        for job in orphaned:
            logger.warning(
                "Marking orphaned upload job %s (status=%s) as failed on startup",
                job.id[:8], job.status,
            )
            job.status = "failed"
            job.error_message = (
                "Job was interrupted by a server restart. "
                "Please upload the files again."
            )
            job.updated_at = now
            job.transitions = [*(job.transitions or []), {"status": "failed", "at": now.isoformat()}]
        if orphaned:
            db.commit()
            count = len(orphaned)
            logger.info("Cleaned up %d orphaned upload job(s)", count)
    except Exception as exc:
        logger.warning("Could not clean up orphaned upload jobs: %s", exc)
    finally:
        db.close()
    return count


def prepare_jobs(session_factory: Callable[[], Session], pipeline, seed: bool = False) -> int:
    """Fail jobs left over from the previous run, seed, then resume live jobs.

    Cleanup comes first so that freshly seeded jobs still in the pipeline
    are handed to *pipeline* instead of being failed. Returns the number of
    jobs resumed.
    """
    cleanup_orphaned_jobs(session_factory)
    db = session_factory()
    try:
        if seed:
            from assettrackr.utils.seed import seed_demo_data
            seed_demo_data(db)
        return pipeline.resume_active(db)
    finally:
        db.close()
