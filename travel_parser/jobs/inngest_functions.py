import logging
from typing import Dict, Any, Callable, Optional

import inngest

from ..models.job_models import JobPayload
from ..utils.config import inngest_event_key
from .runner import ParseJobRunner

logger = logging.getLogger(__name__)

PARSE_DOCUMENT_EVENT = "parser/document.parse"
PARSE_DOCUMENT_FUNCTION_ID = "parse-document"


def create_inngest_client(config: Dict[str, Any], event_key: Optional[str] = None) -> inngest.Inngest:
    return inngest.Inngest(
        app_id=config.get('inngest_app_id', 'travel-document-parser'),
        event_key=event_key or inngest_event_key(),
        is_production=config.get('inngest_is_production'),
        logger=logging.getLogger("travel_parser.inngest"),
    )


def failed_job_details(failure_data: Dict[str, Any]) -> tuple:
    """Pull (job id, error message) out of an ``inngest/function.failed`` event"""
    original_event = failure_data.get("event") or {}
    job_id = (original_event.get("data") or {}).get("jobId")

    error = failure_data.get("error")
    if isinstance(error, dict):
        message = error.get("message") or error.get("name")
    else:
        message = str(error) if error else None

    return job_id, message or "Parse document job failed"


def make_parse_handler(runner: ParseJobRunner) -> Callable[..., Dict[str, Any]]:
    def parse_document_job(ctx: inngest.Context, step: inngest.StepSync) -> Dict[str, Any]:
        payload = JobPayload.model_validate(dict(ctx.event.data))
        return runner.execute(payload, run_step=step.run)

    return parse_document_job


def make_failure_handler(runner: ParseJobRunner) -> Callable[..., None]:
    """Force the job to failed once the queue gives up retrying"""
    def on_failure(ctx: inngest.Context, step: inngest.StepSync) -> None:
        job_id, message = failed_job_details(dict(ctx.event.data))
        if not job_id:
            logger.error(f"Parse job failed without a job id in its event: {message}")
            return
        logger.error(f"[Job {job_id}] Failed after retries: {message}")
        runner.mark_failed(job_id, message)

    return on_failure


def create_parse_document_function(client: inngest.Inngest, runner: ParseJobRunner,
                                   retries: int = 3):
    return client.create_function(
        fn_id=PARSE_DOCUMENT_FUNCTION_ID,
        trigger=inngest.TriggerEvent(event=PARSE_DOCUMENT_EVENT),
        retries=retries,
        on_failure=make_failure_handler(runner),
    )(make_parse_handler(runner))
