from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from enum import Enum

from ..exceptions import InvalidJobTransitionError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# running -> running happens when the task queue retries an attempt
ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.FAILED},
    JobStatus.RUNNING: {JobStatus.RUNNING, JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


def check_transition(job_id: str, current: JobStatus, new: JobStatus) -> None:
    if new not in ALLOWED_TRANSITIONS[current]:
        raise InvalidJobTransitionError(
            f"Job {job_id} cannot move from {current.value} to {new.value}"
        )


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobRecord(CamelModel):
    job_id: str
    user_id: str
    job_type: str = "parse_document"
    status: JobStatus = JobStatus.PENDING
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ParsedDocumentRecord(CamelModel):
    drive_file_id: str
    user_id: str
    document_type: str
    parsed_data: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = 0.0
    raw_text: Optional[str] = None
    job_id: str
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class JobPayload(CamelModel):
    """Unit of work handed to a job dispatcher."""

    drive_file_id: str
    user_id: str
    file_content_base64: str
    job_id: str
    model_id: str
