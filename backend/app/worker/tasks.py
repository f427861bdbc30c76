import asyncio
import logging
import uuid
from datetime import datetime, timezone

import redis
from redis.exceptions import LockNotOwnedError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.worker import celery_app
from app.models import AnalysisRun
from app.models.database import sync_session
from app.services.energy_pipeline import STAGES, Stage, run_all_stages, run_stage
from app.services.solar_reference import build_reference_dataset

logger = logging.getLogger(__name__)

ANALYSIS_LOCK_KEY = "energy-analysis:{project_id}"


def get_redis() -> redis.Redis:
    return redis.from_url(settings.redis_url)


def analysis_lock(client: redis.Redis, project_id: uuid.UUID):
    """Per-project exclusive lock held for the duration of one analysis run."""
    return client.lock(
        ANALYSIS_LOCK_KEY.format(project_id=project_id),
        timeout=settings.analysis_lock_timeout_seconds,
        blocking=False,
    )


def release_lock(lock, project_id: uuid.UUID) -> None:
    """Release ``lock``, tolerating one that already expired."""
    try:
        lock.release()
    except LockNotOwnedError:
        logger.warning(
            "Analysis lock expired before release (timeout %ss)",
            settings.analysis_lock_timeout_seconds,
            extra={"project_id": project_id},
        )


def mark_run_failed(db: Session, run: AnalysisRun, message: str) -> None:
    run.status = "failed"
    run.error_message = message[:2000]
    run.completed_at = datetime.now(timezone.utc)
    db.commit()


def execute_analysis_run(db: Session, run: AnalysisRun, lock) -> dict:
    """Run every pipeline stage for ``run`` while holding ``lock``.

    The run record tracks the current stage and progress.  On failure it is
    marked failed with the stage and error, and the exception propagates.
    """
    try:
        acquired = lock.acquire(blocking=False)
    except redis.RedisError as e:
        mark_run_failed(db, run, f"Analysis lock unavailable: {e}")
        logger.exception(
            "Could not acquire analysis lock",
            extra={"project_id": run.project_id, "run_id": run.id},
        )
        raise
    if not acquired:
        mark_run_failed(db, run, "An energy analysis is already running for this project")
        logger.warning(
            "Analysis already running", extra={"project_id": run.project_id, "run_id": run.id}
        )
        return {"status": "failed", "run_id": str(run.id)}

    try:
        run.status = "running"
        run.progress = 0.0
        db.commit()

        def on_stage(index: int, stage: Stage) -> None:
            run.current_stage = stage.name
            run.progress = round(100.0 * index / len(STAGES), 1)
            db.commit()

        try:
            run_all_stages(db, run.project_id, run.project_life_years, on_stage=on_stage)
        except Exception as e:
            db.rollback()
            mark_run_failed(db, run, f"{run.current_stage}: {e}")
            logger.exception(
                "Energy analysis failed",
                extra={"project_id": run.project_id, "run_id": run.id, "stage": run.current_stage},
            )
            raise

        run.status = "completed"
        run.current_stage = None
        run.progress = 100.0
        run.completed_at = datetime.now(timezone.utc)
        db.commit()
        return {"status": "completed", "run_id": str(run.id)}
    finally:
        release_lock(lock, run.project_id)


@celery_app.task(bind=True, name="run_energy_analysis")
def run_energy_analysis(self, run_id: str) -> dict:
    """Run the full energy analysis pipeline for an AnalysisRun."""
    run_uuid = uuid.UUID(run_id)

    with sync_session() as db:
        run = db.execute(select(AnalysisRun).where(AnalysisRun.id == run_uuid)).scalar_one()
        try:
            lock = analysis_lock(get_redis(), run.project_id)
        except redis.RedisError as e:
            mark_run_failed(db, run, f"Analysis lock unavailable: {e}")
            raise
        return execute_analysis_run(db, run, lock)


@celery_app.task(bind=True, name="run_energy_analysis_stage")
def run_energy_analysis_stage(self, project_id: str, stage: str) -> dict:
    """Run one named pipeline stage for a project."""
    project_uuid = uuid.UUID(project_id)
    lock = analysis_lock(get_redis(), project_uuid)
    if not lock.acquire(blocking=False):
        return {"status": "failed", "error": "analysis already running"}
    try:
        with sync_session() as db:
            run_stage(db, project_uuid, stage)
    finally:
        release_lock(lock, project_uuid)
    return {"status": "completed", "stage": stage}


@celery_app.task(bind=True, name="build_solar_reference_profiles")
def build_solar_reference_profiles(self, lat: float, lon: float) -> dict:
    """Fetch PVGIS reference curves for a site into the solar dataset."""
    count = asyncio.run(build_reference_dataset(lat, lon))
    return {"status": "completed", "curves": count}
