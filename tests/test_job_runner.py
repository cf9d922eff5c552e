import base64
from types import SimpleNamespace
from unittest.mock import MagicMock

import inngest
import pytest

from travel_parser.exceptions import PDFExtractionError
from travel_parser.jobs.dispatchers import (
    InngestJobDispatcher,
    SyncJobDispatcher,
    create_dispatcher,
)
from travel_parser.jobs.inngest_functions import (
    PARSE_DOCUMENT_EVENT,
    failed_job_details,
    make_failure_handler,
    make_parse_handler,
)
from travel_parser.jobs.runner import ParseJobRunner
from travel_parser.jobs.store import InMemoryJobStore
from travel_parser.models.job_models import JobPayload, JobRecord, JobStatus
from travel_parser.pipeline.parser_pipeline import DocumentParserPipeline

from conftest import ScriptedLLM, as_json


class RecordingStore(InMemoryJobStore):
    def __init__(self):
        super().__init__()
        self.history = []

    def create_job(self, record):
        self.history.append(record.status.value)
        return super().create_job(record)

    def save_job_status(self, job_id, status, error=None):
        updated = super().save_job_status(job_id, status, error)
        self.history.append(updated.status.value)
        return updated


class MemoizingSteps:
    """Replays completed steps by id, the way the task queue does on retry"""

    def __init__(self):
        self.results = {}
        self.executed = []

    def run(self, step_id, handler, *args):
        if step_id in self.results:
            return self.results[step_id]
        self.executed.append(step_id)
        result = handler(*args)
        self.results[step_id] = result
        return result


def housing_responses():
    extraction = {"propertyName": "Hotel Lutetia", "numberOfNights": 3}
    return [
        as_json({"documentType": "housing", "confidence": 0.9}),
        as_json(extraction),
        as_json({"validatedData": {**extraction, "currency": "EUR"}, "confidence": 0.85}),
    ]


def make_runner(store, responses=None, config=None):
    def pipeline_factory(model_id):
        return DocumentParserPipeline(config, model_id=model_id, llm=ScriptedLLM(responses or housing_responses()))
    return ParseJobRunner(store, config, pipeline_factory=pipeline_factory)


def make_payload(store, text="Hotel Lutetia, 3 nights", job_id="job-1"):
    store.create_job(JobRecord(job_id=job_id, user_id="user-1"))
    return JobPayload(
        drive_file_id="file-1",
        user_id="user-1",
        file_content_base64=base64.b64encode(text.encode("utf-8")).decode("ascii"),
        job_id=job_id,
        model_id="ollama-qwen3-32b",
    )


def test_sync_dispatch_runs_job_to_completion():
    store = RecordingStore()
    payload = make_payload(store)

    SyncJobDispatcher(make_runner(store)).enqueue(payload)

    assert store.history == ["pending", "running", "completed"]
    document = store.get_parsed_document("file-1")
    assert document.document_type == "housing"
    assert document.parsed_data == {"propertyName": "Hotel Lutetia", "numberOfNights": 3, "currency": "EUR"}
    assert document.confidence == 0.85
    assert document.raw_text == "Hotel Lutetia, 3 nights"
    assert document.job_id == "job-1"


def test_sync_dispatch_marks_failed_with_message():
    store = RecordingStore()
    payload = make_payload(store).model_copy(update={"file_content_base64": "%%% not base64 %%%"})

    SyncJobDispatcher(make_runner(store)).enqueue(payload)

    assert store.history == ["pending", "running", "failed"]
    job = store.get_job_status("job-1")
    assert "base64" in job.error
    assert store.get_parsed_document("file-1") is None


def test_steps_run_in_order_with_stable_ids():
    store = InMemoryJobStore()
    steps = MemoizingSteps()

    result = make_runner(store).execute(make_payload(store), run_step=steps.run)

    assert steps.executed == ["update-status-running", "extract-text", "parse-with-agents", "save-results"]
    assert result == {"jobId": "job-1", "status": "completed", "documentType": "housing", "confidence": 0.85}


def test_retry_resumes_after_last_successful_step():
    store = RecordingStore()
    payload = make_payload(store)
    steps = MemoizingSteps()
    attempts = []

    def flaky_factory(model_id):
        attempts.append(model_id)
        if len(attempts) == 1:
            raise RuntimeError("model server restarting")
        return DocumentParserPipeline(model_id=model_id, llm=ScriptedLLM(housing_responses()))

    runner = ParseJobRunner(store, pipeline_factory=flaky_factory)

    with pytest.raises(RuntimeError):
        runner.execute(payload, run_step=steps.run)
    runner.execute(payload, run_step=steps.run)

    assert steps.executed.count("update-status-running") == 1
    assert steps.executed.count("extract-text") == 1
    assert steps.executed.count("parse-with-agents") == 2
    assert store.history == ["pending", "running", "completed"]


def test_unknown_documents_are_still_saved():
    store = InMemoryJobStore()
    payload = make_payload(store)

    make_runner(store, responses=[RuntimeError("offline")]).execute(payload)

    document = store.get_parsed_document("file-1")
    assert document.document_type == "unknown"
    assert document.parsed_data == {}
    assert document.confidence == 0.0
    assert store.get_job_status("job-1").status == JobStatus.COMPLETED


def test_stored_raw_text_is_truncated():
    store = InMemoryJobStore()
    payload = make_payload(store, text="x" * 100)

    make_runner(store, config={"raw_text_storage_limit": 10}).execute(payload)

    assert store.get_parsed_document("file-1").raw_text == "x" * 10


def test_extract_text_rejects_bad_base64():
    with pytest.raises(PDFExtractionError):
        make_runner(InMemoryJobStore()).extract_text("not base64!")


def test_mark_failed_never_reopens_a_completed_job():
    store = InMemoryJobStore()
    runner = make_runner(store)
    runner.execute(make_payload(store))

    runner.mark_failed("job-1", "late failure hook")

    job = store.get_job_status("job-1")
    assert job.status == JobStatus.COMPLETED
    assert job.error is None


def test_inngest_dispatch_sends_camel_case_event():
    client = MagicMock()
    store = InMemoryJobStore()
    payload = make_payload(store)

    InngestJobDispatcher(client).enqueue(payload)

    event = client.send_sync.call_args.args[0]
    assert isinstance(event, inngest.Event)
    assert event.name == PARSE_DOCUMENT_EVENT == "parser/document.parse"
    assert event.data["jobId"] == "job-1"
    assert event.data["driveFileId"] == "file-1"
    assert event.data["modelId"] == "ollama-qwen3-32b"
    assert "fileContentBase64" in event.data
    assert store.get_job_status("job-1").status == JobStatus.PENDING


def test_dispatcher_mode_follows_event_key(monkeypatch):
    runner = make_runner(InMemoryJobStore())

    monkeypatch.delenv("INNGEST_EVENT_KEY", raising=False)
    assert isinstance(create_dispatcher({}, runner), SyncJobDispatcher)

    monkeypatch.setenv("INNGEST_EVENT_KEY", "evt-key")
    dispatcher = create_dispatcher({"inngest_is_production": False}, runner)
    assert isinstance(dispatcher, InngestJobDispatcher)
    assert dispatcher.mode == "inngest"


def test_failure_event_details():
    failure = {
        "event": {"name": PARSE_DOCUMENT_EVENT, "data": {"jobId": "job-9", "userId": "user-1"}},
        "error": {"name": "RuntimeError", "message": "Ollama API error: connection refused"},
    }

    assert failed_job_details(failure) == ("job-9", "Ollama API error: connection refused")
    assert failed_job_details({}) == (None, "Parse document job failed")
    assert failed_job_details({"event": {"data": {"jobId": "j"}}, "error": "boom"}) == ("j", "boom")


def queue_context(data):
    return SimpleNamespace(event=SimpleNamespace(data=data))


def test_failure_handler_marks_running_job_failed():
    store = RecordingStore()
    payload = make_payload(store)
    store.save_job_status(payload.job_id, JobStatus.RUNNING)
    on_failure = make_failure_handler(make_runner(store))

    on_failure(queue_context({
        "event": {"name": PARSE_DOCUMENT_EVENT, "data": payload.model_dump(by_alias=True)},
        "error": {"name": "RuntimeError", "message": "Ollama API error: connection refused"},
    }), MagicMock())

    job = store.get_job_status("job-1")
    assert job.status == JobStatus.FAILED
    assert job.error == "Ollama API error: connection refused"
    assert store.history == ["pending", "running", "failed"]


def test_failure_handler_without_job_id_changes_nothing():
    store = InMemoryJobStore()
    make_payload(store)

    make_failure_handler(make_runner(store))(queue_context({"error": {"message": "boom"}}), MagicMock())

    assert store.get_job_status("job-1").status == JobStatus.PENDING


def test_parse_handler_runs_steps_from_event_data():
    store = RecordingStore()
    payload = make_payload(store)
    steps = MemoizingSteps()

    result = make_parse_handler(make_runner(store))(
        queue_context(payload.model_dump(by_alias=True)), SimpleNamespace(run=steps.run),
    )

    assert result["status"] == "completed"
    assert steps.executed == ["update-status-running", "extract-text", "parse-with-agents", "save-results"]
    assert store.history == ["pending", "running", "completed"]
