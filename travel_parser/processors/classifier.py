import logging
from typing import Dict, Any, Optional

from ..llm.base_provider import BaseLLMProvider
from ..models.document_models import DOCUMENT_TYPES
from ..models.parser_state import ParserState, coerce_confidence
from ..prompts.classification_prompt import CLASSIFICATION_SYSTEM_PROMPT, get_classification_prompt
from ..exceptions import JSONExtractionError
from ..utils.json_cleaner import JSONResponseCleaner

logger = logging.getLogger(__name__)


class DocumentClassifier:
    """Decides whether raw text is a housing or a transportation booking.

    Never raises for a bad answer: an unreachable model or an unparseable
    response yields documentType "unknown" with confidence 0 and an error.
    """

    def __init__(self, llm: BaseLLMProvider, config: Optional[Dict[str, Any]] = None):
        self.llm = llm
        self.config = config or {}
        self.max_chars = self.config.get('classifier_max_chars', 2000)
        self.json_cleaner = JSONResponseCleaner()
        self.classification_prompt = get_classification_prompt()

    def classify(self, state: ParserState) -> ParserState:
        prompt = self.classification_prompt.format(
            document_text=state["rawText"][:self.max_chars]
        )

        try:
            response = self.llm.invoke(prompt, system_prompt=CLASSIFICATION_SYSTEM_PROMPT)
        except Exception as e:
            logger.error(f"Classification error: {e}")
            return self._unknown(state, f"Classification error: {e}")

        try:
            parsed = self.json_cleaner.extract_json(response)
        except JSONExtractionError as e:
            logger.warning(f"Could not parse classification response: {e}")
            return self._unknown(state, f"Failed to parse classification response: {e}")

        raw_type = parsed.get("documentType")
        document_type = str(raw_type or "unknown").strip().lower()
        if document_type not in DOCUMENT_TYPES:
            return self._unknown(state, f"Unrecognized document type from classifier: {raw_type!r}")

        confidence = coerce_confidence(parsed.get("confidence"))
        errors = list(state["errors"])
        reasoning = parsed.get("reasoning")
        if reasoning:
            errors.append(f"Classifier note: {reasoning}")

        logger.info(f"Classified document as {document_type} (confidence {confidence or 0.0:.2f})")
        return {
            **state,
            "documentType": document_type,
            "confidence": confidence if confidence is not None else 0.0,
            "errors": errors,
        }

    @staticmethod
    def _unknown(state: ParserState, error: str) -> ParserState:
        return {
            **state,
            "documentType": "unknown",
            "confidence": 0.0,
            "errors": [*state["errors"], error],
        }
