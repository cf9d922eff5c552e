import base64
import logging
import uuid
from typing import Dict, Any, Callable, List, Optional

from ..exceptions import ForbiddenError, JobNotFoundError
from ..llm.model_catalog import DEFAULT_MODEL_ID, resolve_model
from ..models.job_models import JobPayload, JobRecord, ParsedDocumentRecord
from .dispatchers import JobDispatcher, create_dispatcher
from .runner import ParseJobRunner, fetch_with_refresh
from .store import JobStore, create_job_store

logger = logging.getLogger(__name__)


class ParserJobService:
    """Entry points for creating parse jobs and reading their outcome"""

    def __init__(self, store: JobStore, dispatcher: JobDispatcher,
                 config: Optional[Dict[str, Any]] = None):
        self.store = store
        self.dispatcher = dispatcher
        self.config = config or {}

    def trigger(self, drive_file_id: str, user_id: str,
                fetch_file: Callable[[], bytes],
                refresh_credentials: Optional[Callable[[], None]] = None,
                model_id: Optional[str] = None) -> Dict[str, str]:
        """Fetch the file, record a pending job and hand it to the dispatcher.

        Unknown model ids and fetch failures raise before any job is created.
        """
        model_id = model_id or self.config.get('default_model', DEFAULT_MODEL_ID)
        resolve_model(model_id, self.config)

        content = fetch_with_refresh(fetch_file, refresh_credentials)

        job = self.store.create_job(JobRecord(
            job_id=str(uuid.uuid4()),
            user_id=user_id,
            metadata={"driveFileId": drive_file_id, "modelId": model_id},
        ))
        payload = JobPayload(
            drive_file_id=drive_file_id,
            user_id=user_id,
            file_content_base64=base64.b64encode(content).decode("ascii"),
            job_id=job.job_id,
            model_id=model_id,
        )
        self.dispatcher.enqueue(payload)
        logger.info(f"Triggered parse job {job.job_id} for {drive_file_id} ({self.dispatcher.mode})")

        return {"jobId": job.job_id, "status": "pending"}

    def get_status(self, job_id: str) -> JobRecord:
        job = self.store.get_job_status(job_id)
        if job is None:
            raise JobNotFoundError(f"Job not found: {job_id}")
        return job

    def get_results(self, drive_file_id: str, user_id: str) -> ParsedDocumentRecord:
        document = self.store.get_parsed_document(drive_file_id)
        if document is None:
            raise JobNotFoundError(f"No parsed document for drive file {drive_file_id}")
        if document.user_id != user_id:
            raise ForbiddenError(f"Parsed document {drive_file_id} belongs to another user")
        return document

    def active_jobs(self, user_id: str) -> List[JobRecord]:
        return self.store.list_active_jobs(user_id)


def build_service(config: Dict[str, Any]) -> ParserJobService:
    """Wire store, runner and dispatcher from configuration"""
    store = create_job_store(config)
    runner = ParseJobRunner(store, config)
    return ParserJobService(store, create_dispatcher(config, runner), config)
