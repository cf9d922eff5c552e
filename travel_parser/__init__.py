"""LLM agents that turn travel documents into structured housing and transportation records."""

from .pipeline.parser_pipeline import DocumentParserPipeline, parse_document
from .models.parser_state import ParserState, create_initial_state

__version__ = "0.1.0"

__all__ = ["DocumentParserPipeline", "parse_document", "ParserState", "create_initial_state"]
