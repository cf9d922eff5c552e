import copy
import json
import logging
from typing import Dict, Any, Optional

from ..llm.base_provider import BaseLLMProvider
from ..models.parser_state import ParserState, coerce_confidence
from ..prompts.validation_prompt import VALIDATION_SYSTEM_PROMPT, get_validation_prompt
from ..exceptions import JSONExtractionError
from ..utils.json_cleaner import JSONResponseCleaner

logger = logging.getLogger(__name__)


class DataValidator:
    """Second model pass that cross-checks extracted data against the source.

    Whatever happens, validatedData ends up holding a best-effort payload:
    the model's refined data when it returns some, the extracted data otherwise.
    """

    def __init__(self, llm: BaseLLMProvider, config: Optional[Dict[str, Any]] = None):
        self.llm = llm
        self.config = config or {}
        self.max_chars = self.config.get('validator_max_chars', 1000)
        self.json_cleaner = JSONResponseCleaner()
        self.validation_prompt = get_validation_prompt()

    def validate(self, state: ParserState) -> ParserState:
        extracted_data = state["extractedData"]
        if not extracted_data:
            return {**state, "errors": [*state["errors"], "No data extracted to validate"]}

        prompt = self.validation_prompt.format(
            document_text=state["rawText"][:self.max_chars],
            extracted_data=json.dumps(extracted_data, indent=2, ensure_ascii=False, default=str),
        )

        try:
            response = self.llm.invoke(prompt, system_prompt=VALIDATION_SYSTEM_PROMPT)
        except Exception as e:
            logger.error(f"Validation error: {e}")
            return self._fallback(state, f"Validation error: {e}")

        try:
            validation = self.json_cleaner.extract_json(response)
        except JSONExtractionError as e:
            logger.warning(f"Could not parse validation response: {e}")
            return self._fallback(state, f"Failed to parse validation response: {e}")

        validated_data = validation.get("validatedData")
        if not isinstance(validated_data, dict):
            validated_data = copy.deepcopy(extracted_data)

        confidence = coerce_confidence(validation.get("confidence"))
        if confidence is None:
            confidence = state["confidence"]

        errors = list(state["errors"])
        issues = validation.get("issues") or []
        if isinstance(issues, str):
            issues = [issues]
        if isinstance(issues, list):
            errors.extend(issue for issue in issues if isinstance(issue, str) and issue)

        if validation.get("refinements"):
            logger.debug(f"Validator refinements: {validation['refinements']}")
        logger.info(
            f"Validation finished (isValid={validation.get('isValid')}, "
            f"confidence {confidence:.2f}, {len(errors) - len(state['errors'])} issues)"
        )

        return {
            **state,
            "validatedData": validated_data,
            "confidence": confidence,
            "errors": errors,
        }

    @staticmethod
    def _fallback(state: ParserState, error: str) -> ParserState:
        return {
            **state,
            "validatedData": copy.deepcopy(state["extractedData"]),
            "errors": [*state["errors"], error],
        }
