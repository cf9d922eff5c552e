import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

import inngest

from ..models.job_models import JobPayload
from ..utils.config import inngest_event_key
from .inngest_functions import PARSE_DOCUMENT_EVENT, create_inngest_client
from .runner import ParseJobRunner

logger = logging.getLogger(__name__)


class JobDispatcher(ABC):
    """Hands a created job to whatever executes it"""

    mode: str = ""

    @abstractmethod
    def enqueue(self, payload: JobPayload) -> None:
        pass


class SyncJobDispatcher(JobDispatcher):
    """Runs the job steps inline. Used when no task queue is configured."""

    mode = "sync"

    def __init__(self, runner: ParseJobRunner):
        self.runner = runner

    def enqueue(self, payload: JobPayload) -> None:
        try:
            self.runner.execute(payload)
        except Exception as e:
            logger.exception(f"[Job {payload.job_id}] Synchronous parse failed")
            self.runner.mark_failed(payload.job_id, str(e) or type(e).__name__)


class InngestJobDispatcher(JobDispatcher):
    mode = "inngest"

    def __init__(self, client: inngest.Inngest, event_name: str = PARSE_DOCUMENT_EVENT):
        self.client = client
        self.event_name = event_name

    def enqueue(self, payload: JobPayload) -> None:
        self.client.send_sync(inngest.Event(name=self.event_name, data=payload.model_dump(by_alias=True)))
        logger.info(f"[Job {payload.job_id}] Sent {self.event_name} event")


def create_dispatcher(config: Dict[str, Any], runner: ParseJobRunner,
                      client: Optional[inngest.Inngest] = None) -> JobDispatcher:
    """Inngest when an event key is configured, inline execution otherwise"""
    event_key = inngest_event_key()
    if client is None and not event_key:
        logger.warning("INNGEST_EVENT_KEY not set, parse jobs will run synchronously")
        return SyncJobDispatcher(runner)

    return InngestJobDispatcher(client or create_inngest_client(config, event_key))
