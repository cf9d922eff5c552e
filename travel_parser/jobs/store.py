import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Iterable, List, Optional
from urllib.parse import quote

from ..exceptions import ConfigurationError, JobNotFoundError
from ..models.job_models import JobRecord, JobStatus, ParsedDocumentRecord, check_transition

logger = logging.getLogger(__name__)


class JobStore(ABC):
    """Persistence for job status records and parsed documents.

    Status writes go through ``save_job_status`` which refuses to move a job
    out of a terminal state.
    """

    def __init__(self):
        self._lock = threading.RLock()

    @abstractmethod
    def _load_job(self, job_id: str) -> Optional[JobRecord]:
        pass

    @abstractmethod
    def _write_job(self, record: JobRecord) -> None:
        pass

    @abstractmethod
    def _iter_jobs(self) -> Iterable[JobRecord]:
        pass

    @abstractmethod
    def _load_document(self, drive_file_id: str) -> Optional[ParsedDocumentRecord]:
        pass

    @abstractmethod
    def _write_document(self, record: ParsedDocumentRecord) -> None:
        pass

    def create_job(self, record: JobRecord) -> JobRecord:
        with self._lock:
            if self._load_job(record.job_id) is not None:
                raise ValueError(f"Job {record.job_id} already exists")
            self._write_job(record)
        logger.info(f"Created {record.job_type} job {record.job_id} ({record.status.value})")
        return record

    def save_job_status(self, job_id: str, status: JobStatus, error: Optional[str] = None) -> JobRecord:
        status = JobStatus(status)
        with self._lock:
            record = self._load_job(job_id)
            if record is None:
                raise JobNotFoundError(f"Job not found: {job_id}")
            check_transition(job_id, record.status, status)
            updated = record.model_copy(update={
                "status": status,
                "error": error if status == JobStatus.FAILED else None,
                "updated_at": datetime.now(timezone.utc),
            })
            self._write_job(updated)
        logger.info(f"Job {job_id} is now {status.value}")
        return updated

    def get_job_status(self, job_id: str) -> Optional[JobRecord]:
        with self._lock:
            return self._load_job(job_id)

    def list_active_jobs(self, user_id: str) -> List[JobRecord]:
        """Pending and running jobs of one user, newest first"""
        with self._lock:
            jobs = [
                job for job in self._iter_jobs()
                if job.user_id == user_id and not job.status.is_terminal
            ]
        return sorted(jobs, key=lambda job: job.created_at, reverse=True)

    def save_parsed_document(self, record: ParsedDocumentRecord) -> ParsedDocumentRecord:
        """Insert or update the parsed document of a drive file"""
        with self._lock:
            existing = self._load_document(record.drive_file_id)
            if existing is not None:
                record = record.model_copy(update={
                    "created_at": existing.created_at,
                    "updated_at": datetime.now(timezone.utc),
                })
            self._write_document(record)
        return record

    def get_parsed_document(self, drive_file_id: str) -> Optional[ParsedDocumentRecord]:
        with self._lock:
            return self._load_document(drive_file_id)


class InMemoryJobStore(JobStore):
    def __init__(self):
        super().__init__()
        self._jobs: Dict[str, JobRecord] = {}
        self._documents: Dict[str, ParsedDocumentRecord] = {}

    def _load_job(self, job_id: str) -> Optional[JobRecord]:
        record = self._jobs.get(job_id)
        return record.model_copy(deep=True) if record else None

    def _write_job(self, record: JobRecord) -> None:
        self._jobs[record.job_id] = record.model_copy(deep=True)

    def _iter_jobs(self) -> Iterable[JobRecord]:
        return [record.model_copy(deep=True) for record in self._jobs.values()]

    def _load_document(self, drive_file_id: str) -> Optional[ParsedDocumentRecord]:
        record = self._documents.get(drive_file_id)
        return record.model_copy(deep=True) if record else None

    def _write_document(self, record: ParsedDocumentRecord) -> None:
        self._documents[record.drive_file_id] = record.model_copy(deep=True)


class JsonFileJobStore(JobStore):
    """One JSON file per job and per parsed document under ``base_dir``"""

    def __init__(self, base_dir: str):
        super().__init__()
        self.jobs_dir = Path(base_dir) / "jobs"
        self.documents_dir = Path(base_dir) / "documents"
        self.jobs_dir.mkdir(parents=True, exist_ok=True)
        self.documents_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _filename(key: str) -> str:
        # Percent-encoding keeps distinct keys on distinct files
        return quote(key, safe="") + ".json"

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _write(self, path: Path, data: Dict[str, Any]) -> None:
        tmp_path = path.with_suffix(".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

    def _load_job(self, job_id: str) -> Optional[JobRecord]:
        data = self._read(self.jobs_dir / self._filename(job_id))
        return JobRecord.model_validate(data) if data is not None else None

    def _write_job(self, record: JobRecord) -> None:
        self._write(self.jobs_dir / self._filename(record.job_id), record.model_dump(mode="json", by_alias=True))

    def _iter_jobs(self) -> Iterable[JobRecord]:
        for path in sorted(self.jobs_dir.glob("*.json")):
            yield JobRecord.model_validate(self._read(path))

    def _load_document(self, drive_file_id: str) -> Optional[ParsedDocumentRecord]:
        data = self._read(self.documents_dir / self._filename(drive_file_id))
        return ParsedDocumentRecord.model_validate(data) if data is not None else None

    def _write_document(self, record: ParsedDocumentRecord) -> None:
        self._write(
            self.documents_dir / self._filename(record.drive_file_id),
            record.model_dump(mode="json", by_alias=True),
        )


def create_job_store(config: Dict[str, Any]) -> JobStore:
    kind = config.get('job_store', 'json')
    if kind == 'memory':
        return InMemoryJobStore()
    if kind == 'json':
        return JsonFileJobStore(config.get('jobs_dir', 'parser_jobs'))
    raise ConfigurationError(f"Unsupported job store: {kind}")
