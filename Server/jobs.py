"""
WikiAPI Server - Job Queue

Deferred work stored in the job table. Modules register a handler per
job type; RunJobs executes queued jobs, typically as a FastAPI
background task after the response has been sent.
"""

import json
import logging
from typing import Callable, Dict, Optional

from managers.database_manager import DatabaseManager
from models.database import Job
from timestamps import ToDbTimestamp

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3

# job_type -> handler(db_manager, session, params)
JOB_HANDLERS: Dict[str, Callable] = {}


def RegisterJobHandler(job_type: str, handler: Callable) -> None:
    JOB_HANDLERS[job_type] = handler


def EnqueueJob(session, job_type: str, params: dict) -> Job:
    """
    Queue a job
    Caller commits.

    Args:
        session: Database session
        job_type: Registered job type
        params: JSON-serializable parameters

    Returns:
        Job: The new job row
    """
    job = Job(job_type=job_type, params=json.dumps(params), queued_at=ToDbTimestamp())
    session.add(job)
    session.flush()
    logger.info(f"Queued job {job.job_id} ({job_type})")
    return job


def RunJobs(db_manager: DatabaseManager, max_jobs: Optional[int] = None) -> int:
    """
    Run queued jobs in queue order

    Each job runs in its own session. A failing job is rolled back and
    retried on a later run, up to MAX_ATTEMPTS.

    Args:
        db_manager: DatabaseManager instance
        max_jobs: Stop after this many jobs (None for all)

    Returns:
        int: Number of jobs that completed
    """
    completed = 0
    attempted = set()

    while max_jobs is None or len(attempted) < max_jobs:
        session = db_manager.GetSession()
        try:
            query = session.query(Job).filter(Job.status == "queued")
            if attempted:
                query = query.filter(Job.job_id.notin_(attempted))
            job = query.order_by(Job.job_id).first()
            if job is None:
                break
            attempted.add(job.job_id)

            handler = JOB_HANDLERS.get(job.job_type)
            if handler is None:
                logger.error(f"No handler for job {job.job_id} ({job.job_type})")
                job.status = "failed"
                session.commit()
                continue

            job_id = job.job_id
            try:
                handler(db_manager, session, json.loads(job.params))
                job.status = "done"
                session.commit()
                completed += 1
                logger.info(f"Job {job_id} ({job.job_type}) completed")
            except Exception as e:
                session.rollback()
                logger.error(f"Job {job_id} failed: {str(e)}")
                job = session.query(Job).filter(Job.job_id == job_id).first()
                job.attempts += 1
                if job.attempts >= MAX_ATTEMPTS:
                    job.status = "failed"
                session.commit()
        finally:
            session.close()

    return completed
