import base64
import binascii
import logging
from typing import Dict, Any, Callable, Optional

from ..exceptions import CredentialExpiredError, InvalidJobTransitionError, PDFExtractionError
from ..models.job_models import JobPayload, JobStatus, ParsedDocumentRecord
from ..models.parser_state import ParserState
from ..pipeline.parser_pipeline import DocumentParserPipeline
from ..utils.io import extract_document_text
from ..utils.pdf_converter import PDFTextExtractor
from .store import JobStore

logger = logging.getLogger(__name__)

RunStep = Callable[..., Any]
PipelineFactory = Callable[[str], DocumentParserPipeline]


def call_directly(step_id: str, handler: Callable[..., Any], *args: Any) -> Any:
    """run_step for the synchronous path: no memoization, no retries"""
    logger.debug(f"Running step {step_id}")
    return handler(*args)


def fetch_with_refresh(fetch: Callable[[], bytes],
                       refresh: Optional[Callable[[], None]] = None) -> bytes:
    """Fetch the source file, refreshing the credential once if it expired"""
    try:
        return fetch()
    except CredentialExpiredError:
        if refresh is None:
            raise
        logger.info("Credential expired, refreshing and retrying fetch once")
        refresh()
        return fetch()


class ParseJobRunner:
    """Steps of one parse job, shared by the task-queue and synchronous modes.

    Each step is handed to ``run_step`` under a stable id. The task queue
    memoizes completed steps by id, so a retried attempt resumes after the
    last step that succeeded. Step results must stay JSON serializable.
    """

    def __init__(self, store: JobStore, config: Optional[Dict[str, Any]] = None,
                 pipeline_factory: Optional[PipelineFactory] = None,
                 pdf_extractor: Optional[PDFTextExtractor] = None):
        self.store = store
        self.config = config or {}
        self.pipeline_factory = pipeline_factory or self._default_pipeline
        self.pdf_extractor = pdf_extractor or PDFTextExtractor(self.config)
        self.raw_text_limit = self.config.get('raw_text_storage_limit', 50_000)

    def _default_pipeline(self, model_id: str) -> DocumentParserPipeline:
        return DocumentParserPipeline(self.config, model_id=model_id)

    def execute(self, payload: JobPayload, run_step: RunStep = call_directly) -> Dict[str, Any]:
        job_id = payload.job_id
        logger.info(f"[Job {job_id}] Parsing drive file {payload.drive_file_id} with {payload.model_id}")

        run_step("update-status-running", self.mark_running, job_id)
        raw_text = run_step("extract-text", self.extract_text, payload.file_content_base64)
        state = run_step("parse-with-agents", self.parse, raw_text, payload.model_id)
        saved = run_step("save-results", self.save_results, payload.model_dump(by_alias=True), raw_text, state)

        logger.info(f"[Job {job_id}] Completed as {saved['documentType']} (confidence {saved['confidence']})")
        return {
            "jobId": job_id,
            "status": JobStatus.COMPLETED.value,
            "documentType": saved["documentType"],
            "confidence": saved["confidence"],
        }

    def mark_running(self, job_id: str) -> str:
        self.store.save_job_status(job_id, JobStatus.RUNNING)
        return JobStatus.RUNNING.value

    def extract_text(self, file_content_base64: str) -> str:
        try:
            data = base64.b64decode(file_content_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise PDFExtractionError(f"File content is not valid base64: {e}") from e
        return extract_document_text(data, self.pdf_extractor)

    def parse(self, raw_text: str, model_id: str) -> ParserState:
        return self.pipeline_factory(model_id).parse_document(raw_text)

    def save_results(self, payload_data: Dict[str, Any], raw_text: str, state: ParserState) -> Dict[str, Any]:
        payload = JobPayload.model_validate(payload_data)
        record = ParsedDocumentRecord(
            drive_file_id=payload.drive_file_id,
            user_id=payload.user_id,
            document_type=state["documentType"],
            parsed_data=state["validatedData"] or state["extractedData"],
            confidence=state["confidence"],
            raw_text=raw_text[:self.raw_text_limit],
            job_id=payload.job_id,
        )
        saved = self.store.save_parsed_document(record)
        self.store.save_job_status(payload.job_id, JobStatus.COMPLETED)
        return saved.model_dump(mode="json", by_alias=True, exclude={"raw_text"})

    def mark_failed(self, job_id: str, error: str) -> None:
        try:
            self.store.save_job_status(job_id, JobStatus.FAILED, error=error)
        except InvalidJobTransitionError as e:
            logger.warning(f"[Job {job_id}] Not marked failed: {e}")
