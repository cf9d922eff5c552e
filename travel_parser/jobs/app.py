import logging
from typing import Dict, Any, List, Optional

import inngest.fast_api
from fastapi import FastAPI, HTTPException

from ..exceptions import ForbiddenError, JobNotFoundError
from ..utils.config import load_config
from .inngest_functions import create_inngest_client, create_parse_document_function
from .runner import ParseJobRunner
from .service import ParserJobService
from .dispatchers import InngestJobDispatcher
from .store import create_job_store

logger = logging.getLogger(__name__)


def create_app(config: Optional[Dict[str, Any]] = None) -> FastAPI:
    """Worker app: serves the parse-document function and job status reads"""
    config = config or load_config()
    store = create_job_store(config)
    runner = ParseJobRunner(store, config)
    client = create_inngest_client(config)
    function = create_parse_document_function(client, runner, retries=config.get('job_retries', 3))
    service = ParserJobService(store, InngestJobDispatcher(client), config)

    app = FastAPI(title="Travel Document Parser Jobs")
    inngest.fast_api.serve(app, client, [function])

    @app.get("/jobs/{job_id}")
    def get_job(job_id: str) -> Dict[str, Any]:
        try:
            return service.get_status(job_id).model_dump(mode="json", by_alias=True)
        except JobNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.get("/users/{user_id}/jobs/active")
    def get_active_jobs(user_id: str) -> List[Dict[str, Any]]:
        return [job.model_dump(mode="json", by_alias=True) for job in service.active_jobs(user_id)]

    @app.get("/documents/{drive_file_id}")
    def get_parsed_document(drive_file_id: str, user_id: str) -> Dict[str, Any]:
        try:
            document = service.get_results(drive_file_id, user_id)
        except JobNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ForbiddenError as e:
            raise HTTPException(status_code=403, detail=str(e))
        return document.model_dump(mode="json", by_alias=True)

    logger.info(f"Serving {config.get('inngest_app_id')} with job store {config.get('job_store')}")
    return app
