"""Upload jobs: creation, the job state machine, and the staged pipeline.

A job moves ``queued → validating → converting → opened_pr → done``; any
non-terminal job may instead end in ``failed``. ``UploadPipeline`` drives
the stages from a ``Scheduler`` so the timing is injectable: the server
uses wall-clock timers, tests advance a virtual clock.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from assettrackr.exceptions import InvalidRequestError, InvalidTransitionError, NotFoundError
from assettrackr.models import UploadJob
from assettrackr.schemas.asset import RuleFinding
from assettrackr.schemas.common import Status, UploadJobStatus
from assettrackr.services import asset_service, project_service
from assettrackr.services.scheduler import Handle, Scheduler
from assettrackr.services.status_machine import can_transition
from assettrackr.services.validation import has_errors, plan_conversions, check_known_formats

logger = logging.getLogger(__name__)

PIPELINE: tuple[UploadJobStatus, ...] = (
    UploadJobStatus.QUEUED,
    UploadJobStatus.VALIDATING,
    UploadJobStatus.CONVERTING,
    UploadJobStatus.OPENED_PR,
    UploadJobStatus.DONE,
)
TERMINAL = frozenset({UploadJobStatus.DONE, UploadJobStatus.FAILED})

AUTO_OPTIMIZATION_FIX = {"conversion": "auto-optimization", "tool": "AssetTrackr", "lossy": False}


# ── State machine ──────────────────────────────────────────────────────

def next_status(status: UploadJobStatus | str) -> UploadJobStatus | None:
    status = UploadJobStatus(status)
    if status in TERMINAL:
        return None
    return PIPELINE[PIPELINE.index(status) + 1]


def can_advance(current: UploadJobStatus | str, target: UploadJobStatus | str) -> bool:
    current, target = UploadJobStatus(current), UploadJobStatus(target)
    if current in TERMINAL:
        return False
    return target == UploadJobStatus.FAILED or target == next_status(current)


def advance_job(job: UploadJob, target: UploadJobStatus | str, at: datetime) -> UploadJob:
    """Move *job* to *target*, stamping ``updated_at`` and the transition log."""
    target = UploadJobStatus(target)
    if not can_advance(job.status, target):
        raise InvalidTransitionError(f"Upload job cannot move from '{job.status}' to '{target.value}'")
    job.status = target.value
    job.updated_at = at
    job.transitions = [*(job.transitions or []), {"status": target.value, "at": at.isoformat()}]
    return job


# ── CRUD ───────────────────────────────────────────────────────────────

def list_upload_jobs(db: Session, project_id: str) -> list[UploadJob]:
    return (
        db.query(UploadJob)
        .filter(UploadJob.project_id == project_id)
        .order_by(UploadJob.created_at.desc())
        .all()
    )


def get_upload_job(db: Session, project_id: str, job_id: str) -> UploadJob:
    job = (
        db.query(UploadJob)
        .filter(UploadJob.id == job_id, UploadJob.project_id == project_id)
        .first()
    )
    if not job:
        raise NotFoundError("Upload job not found")
    return job


def create_upload_job(
    db: Session,
    project_id: str | None,
    files: list[str],
    now: datetime,
    sub_asset_id: str | None = None,
) -> UploadJob:
    if not files or not project_id:
        raise InvalidRequestError("Files and project ID are required")
    project_service.get_project(db, project_id)
    if sub_asset_id:
        asset_service.get_sub_asset(db, project_id, sub_asset_id)
    job = UploadJob(
        project_id=project_id,
        sub_asset_id=sub_asset_id,
        status=UploadJobStatus.QUEUED.value,
        files=list(files),
        transitions=[{"status": UploadJobStatus.QUEUED.value, "at": now.isoformat()}],
        created_at=now,
        updated_at=now,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("Queued upload job %s (%d file(s))", job.id[:8], len(job.files))
    return job


def fail_job(db: Session, job: UploadJob, message: str, at: datetime) -> UploadJob:
    advance_job(job, UploadJobStatus.FAILED, at)
    job.error_message = message
    db.commit()
    db.refresh(job)
    logger.warning("Upload job %s failed: %s", job.id[:8], message)
    return job


# ── Pipeline ───────────────────────────────────────────────────────────

class UploadPipeline:
    """Advances upload jobs through their stages on a scheduler.

    Each stage runs in its own session from *session_factory*, so no
    session outlives a request. A job has at most one pending stage; the
    next one is scheduled once the current stage commits, so stages of a
    job never overlap. Stage runs hold *lock*, which callers sharing a
    single database connection pass in to serialise their own sessions
    against the scheduler's threads.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        scheduler: Scheduler,
        delays: dict[str, float],
        lock: threading.RLock | None = None,
    ):
        self.session_factory = session_factory
        self.scheduler = scheduler
        self.delays = delays
        self.lock = lock or threading.RLock()
        self._handles: dict[str, Handle] = {}
        # Findings computed while validating, attached to the version on done
        self._findings: dict[str, list[RuleFinding]] = {}

    # ── Public API ─────────────────────────────────────────────────────

    def submit(
        self,
        db: Session,
        project_id: str | None,
        files: list[str],
        sub_asset_id: str | None = None,
    ) -> UploadJob:
        """Create a job and schedule its stages."""
        job = create_upload_job(db, project_id, files, self.scheduler.now(), sub_asset_id)
        self.start(job.id)
        return job

    def start(self, job_id: str) -> None:
        self.resume(job_id, UploadJobStatus.QUEUED)

    def resume(self, job_id: str, status: UploadJobStatus | str) -> None:
        """Schedule the stage after *status*, keeping the configured offsets."""
        status = UploadJobStatus(status)
        stage = next_status(status)
        if stage is None:
            return
        delay = self.delays[stage.value] - self.delays.get(status.value, 0.0)
        with self.lock:
            self._handles[job_id] = self.scheduler.call_later(delay, self._stage_callback(job_id, stage))

    def resume_active(self, db: Session) -> int:
        """Pick up every non-terminal job, e.g. ones inserted by the demo seed."""
        jobs = (
            db.query(UploadJob)
            .filter(UploadJob.status.notin_([s.value for s in TERMINAL]))
            .order_by(UploadJob.created_at)
            .all()
        )
        for job in jobs:
            self.resume(job.id, job.status)
        if jobs:
            logger.info("Resumed %d active upload job(s)", len(jobs))
        return len(jobs)

    def cancel(self, db: Session, project_id: str, job_id: str) -> UploadJob:
        with self.lock:
            job = get_upload_job(db, project_id, job_id)
            if UploadJobStatus(job.status) in TERMINAL:
                raise InvalidTransitionError(f"Cannot cancel job in '{job.status}' state")
            self._forget(job_id)
            return fail_job(db, job, "Canceled by user", self.scheduler.now())

    def active_jobs(self) -> list[str]:
        with self.lock:
            return list(self._handles)

    # ── Stages ─────────────────────────────────────────────────────────

    def _stage_callback(self, job_id: str, stage: UploadJobStatus) -> Callable[[], None]:
        def run() -> None:
            self.run_stage(job_id, stage)
        return run

    def run_stage(self, job_id: str, stage: UploadJobStatus) -> None:
        with self.lock:
            self._handles.pop(job_id, None)
            db = self.session_factory()
            try:
                job = db.query(UploadJob).filter(UploadJob.id == job_id).first()
                if job is None or UploadJobStatus(job.status) in TERMINAL:
                    self._forget(job_id)
                    return
                now = self.scheduler.now()
                try:
                    handler = {
                        UploadJobStatus.VALIDATING: self._validate,
                        UploadJobStatus.CONVERTING: self._convert,
                        UploadJobStatus.OPENED_PR: self._open_pr,
                        UploadJobStatus.DONE: self._finish,
                    }[stage]
                    handler(db, job, now)
                except Exception as exc:
                    db.rollback()
                    logger.exception("Stage %s failed for job %s", stage.value, job_id[:8])
                    job = db.query(UploadJob).filter(UploadJob.id == job_id).first()
                    if job is not None and UploadJobStatus(job.status) not in TERMINAL:
                        fail_job(db, job, f"{stage.value} failed: {exc}", now)
                if job is None or UploadJobStatus(job.status) in TERMINAL:
                    self._forget(job_id)
                else:
                    self.resume(job_id, job.status)
            finally:
                db.close()

    def _validate(self, db: Session, job: UploadJob, now: datetime) -> None:
        advance_job(job, UploadJobStatus.VALIDATING, now)
        db.commit()

        if job.sub_asset_id:
            sub = asset_service.get_sub_asset(db, job.project_id, job.sub_asset_id)
            findings = asset_service.validate_delivery(db, job.project_id, sub, job.files)
            self._findings[job.id] = findings
            if has_errors(findings):
                settings = project_service.project_settings_dict(project_service.get_project(db, job.project_id))
                if settings.get("validation_strict"):
                    first = next(f for f in findings if f.severity.value == "error")
                    fail_job(db, job, f"Validation failed: {first.message}", now)
        else:
            unknown = check_known_formats(job.files)
            if unknown:
                fail_job(db, job, f"File format validation failed: unsupported file type '{unknown[0]}'", now)

    def _convert(self, db: Session, job: UploadJob, now: datetime) -> None:
        advance_job(job, UploadJobStatus.CONVERTING, now)
        fixes: list[dict] = []
        if job.sub_asset_id:
            sub = asset_service.get_sub_asset(db, job.project_id, job.sub_asset_id)
            settings = project_service.project_settings_dict(project_service.get_project(db, job.project_id))
            _, fixes = plan_conversions(job.files, sub.required_format, bool(settings.get("allow_lossy_autofix")))
        job.fixes_applied = fixes or [dict(AUTO_OPTIMIZATION_FIX)]
        db.commit()

    def _open_pr(self, db: Session, job: UploadJob, now: datetime) -> None:
        advance_job(job, UploadJobStatus.OPENED_PR, now)
        db.commit()

    def _finish(self, db: Session, job: UploadJob, now: datetime) -> None:
        if job.sub_asset_id:
            sub = asset_service.get_sub_asset(db, job.project_id, job.sub_asset_id)
            settings = project_service.project_settings_dict(project_service.get_project(db, job.project_id))
            files, _ = plan_conversions(job.files, sub.required_format, bool(settings.get("allow_lossy_autofix")))
            asset_service.add_version(
                db, job.project_id, sub.id, files,
                notes=f"Uploaded via job {job.id[:8]}",
                findings=self._findings.get(job.id, []),
            )
            if can_transition(sub.status, Status.REVIEW):
                sub.status = Status.REVIEW.value
        advance_job(job, UploadJobStatus.DONE, now)
        db.commit()
        logger.info("Upload job %s done", job.id[:8])

    def _forget(self, job_id: str) -> None:
        handle = self._handles.pop(job_id, None)
        if handle is not None:
            handle.cancel()
        self._findings.pop(job_id, None)
