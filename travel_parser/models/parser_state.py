from typing_extensions import TypedDict
from typing import List, Dict, Any, Optional

from .document_models import DocumentType


class ParserState(TypedDict):
    rawText: str
    documentType: DocumentType
    extractedData: Dict[str, Any]
    validatedData: Dict[str, Any]
    confidence: float
    errors: List[str]
    currentAgent: str


def create_initial_state(raw_text: str) -> ParserState:
    return ParserState(
        rawText=raw_text,
        documentType="unknown",
        extractedData={},
        validatedData={},
        confidence=0.0,
        errors=[],
        currentAgent="classifier",
    )


def coerce_confidence(value: Any) -> Optional[float]:
    """Read a model-reported confidence, clamped into [0, 1]; None if unusable"""
    if isinstance(value, bool) or value is None:
        return None
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return None
    if confidence != confidence:  # NaN
        return None
    return min(1.0, max(0.0, confidence))
