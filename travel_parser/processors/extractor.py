import logging
from typing import Dict, Any, Optional

from pydantic import ValidationError

from ..llm.base_provider import BaseLLMProvider
from ..models.document_models import describe_schema, get_schema, validate_document
from ..models.parser_state import ParserState
from ..prompts.extraction_prompt import get_extraction_prompt, get_extraction_system_prompt
from ..exceptions import JSONExtractionError
from ..utils.json_cleaner import JSONResponseCleaner

logger = logging.getLogger(__name__)


class DataExtractor:
    def __init__(self, llm: BaseLLMProvider, config: Optional[Dict[str, Any]] = None):
        self.llm = llm
        self.config = config or {}
        self.max_chars = self.config.get('extractor_max_chars', 4000)
        self.json_cleaner = JSONResponseCleaner()
        self.system_prompt = get_extraction_system_prompt()
        self.extraction_prompt = get_extraction_prompt()

    def extract(self, state: ParserState) -> ParserState:
        """Fill the schema of the classified document type from the raw text.

        A response that fails schema validation is still kept in
        extractedData so the validator can work on it; the failure is
        recorded in errors.
        """
        document_type = state["documentType"]
        if document_type == "unknown":
            return self._with_error(state, "Cannot extract from unknown document type")

        schema = get_schema(document_type)
        system_prompt = self.system_prompt.format(
            document_type=document_type,
            schema_description=describe_schema(schema),
        )
        prompt = self.extraction_prompt.format(
            document_type=document_type,
            document_text=state["rawText"][:self.max_chars],
        )

        try:
            response = self.llm.invoke(prompt, system_prompt=system_prompt)
        except Exception as e:
            logger.error(f"Extraction error: {e}")
            return self._with_error(state, f"Extraction error: {e}")

        try:
            extracted_data = self.json_cleaner.extract_json(response)
        except JSONExtractionError as e:
            logger.warning(f"Could not parse extraction response: {e}")
            return self._with_error(state, f"Failed to parse extraction response: {e}")

        try:
            validated = validate_document(document_type, extracted_data)
        except ValidationError as e:
            logger.warning(f"Extracted {document_type} data does not match schema")
            return {
                **state,
                "extractedData": extracted_data,
                "errors": [*state["errors"], f"Validation error: {_summarize(e)}"],
            }

        logger.info(f"Extracted {len(validated)} {document_type} fields")
        return {**state, "extractedData": validated, "errors": list(state["errors"])}

    @staticmethod
    def _with_error(state: ParserState, error: str) -> ParserState:
        return {**state, "errors": [*state["errors"], error]}


def _summarize(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in detail['loc'])}: {detail['msg']}"
        for detail in error.errors()
    )
