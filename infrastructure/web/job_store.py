# infrastructure/web/job_store.py
# In-memory store for processing jobs started through the web service.
# Worker threads write progress here; request handlers read snapshots.
# Thread-safe: all access is guarded by a Lock.

from threading import Lock
from typing import Optional

_jobs: dict = {}
_lock: Lock = Lock()


def new_job_record(file_name: str, params: dict) -> dict:
    """Initial record for a freshly queued job."""
    return {
        "status":    "queued",   # queued | processing | done | error
        "progress":  0,
        "step":      "Waiting to start",
        "file_name": file_name,
        "params":    params,
        "artifact":  None,
        "error":     None,
    }


def get_job(job_id: str) -> Optional[dict]:
    """Return a shallow copy of the job record, or None."""
    with _lock:
        job = _jobs.get(job_id)
        return dict(job) if job is not None else None


def set_job(job_id: str, data: dict) -> None:
    """Create or overwrite a job entry."""
    with _lock:
        _jobs[job_id] = data


def update_job(job_id: str, updates: dict) -> None:
    """Merge *updates* into an existing job (no-op if it has expired)."""
    with _lock:
        if job_id in _jobs:
            _jobs[job_id].update(updates)


def delete_job(job_id: str) -> None:
    """Remove a job entry (no-op if missing)."""
    with _lock:
        _jobs.pop(job_id, None)


def clear_jobs() -> None:
    with _lock:
        _jobs.clear()


def job_count() -> int:
    with _lock:
        return len(_jobs)
