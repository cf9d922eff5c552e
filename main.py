# main.py
import sys
import json
import logging
import argparse
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from travel_parser.exceptions import TravelParserError
from travel_parser.llm.model_catalog import list_models
from travel_parser.pipeline.parser_pipeline import DocumentParserPipeline
from travel_parser.utils.config import load_config
from travel_parser.utils.io import extract_document_text, read_input_file
from travel_parser.utils.logging_config import setup_logging
from travel_parser.utils.pdf_converter import PDFTextExtractor

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    success: bool
    output_path: Optional[str]
    document_type: str = "unknown"
    confidence: float = 0.0
    errors: List[str] = field(default_factory=list)
    error: Optional[str] = None


def parse_file(pipeline: DocumentParserPipeline,
               input_file: str,
               config: Dict[str, Any],
               output_path: Optional[str] = None) -> ParseResult:
    """Parse a single PDF or text document and write the outcome as JSON"""
    try:
        raw_text = extract_document_text(read_input_file(input_file), PDFTextExtractor(config))
    except (TravelParserError, RuntimeError) as e:
        return ParseResult(success=False, output_path=None, error=str(e))

    print(f"Parsing content ({len(raw_text)} characters)...")
    state = pipeline.parse_document(raw_text)

    output = {
        "documentType": state["documentType"],
        "parsedData": state["validatedData"] or state["extractedData"],
        "confidence": state["confidence"],
        "errors": state["errors"],
    }
    output_file = output_path or f"{Path(input_file).stem}_parsed.json"
    try:
        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False, default=str)
    except OSError as e:
        return ParseResult(success=False, output_path=None, error=f"Failed to save output: {str(e)}")

    return ParseResult(
        success=True,
        output_path=output_file,
        document_type=state["documentType"],
        confidence=state["confidence"],
        errors=state["errors"],
    )


def run_parse(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    if not Path(args.input_file).exists():
        print(f"Error: Input file '{args.input_file}' does not exist")
        return 1

    if args.save_intermediate:
        config['save_intermediate_results'] = True

    pipeline = DocumentParserPipeline(config, model_id=args.model)
    result = parse_file(pipeline, args.input_file, config, output_path=args.output)

    if not result.success:
        print(f"Parsing failed: {result.error}")
        return 1

    print(f"\nParsing complete: {result.document_type} (confidence {result.confidence:.2f})")
    print(f"Output saved to: {result.output_path}")
    for error in result.errors:
        print(f"  - {error}")
    return 0


def run_models(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    default_model = config.get('default_model')
    for model in list_models(config):
        marker = "*" if model["id"] == default_model else " "
        print(f"{marker} {model['id']:<32} {model['provider']:<8} {model['name']}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Parse travel documents (housing and transportation) with LLM agents')
    parser.add_argument('--config', '-c', default='config.yaml', help='Config file path')
    parser.add_argument('--log-level', default='INFO', help='Logging level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    parse_parser = subparsers.add_parser('parse', help='Parse a PDF or text document')
    parse_parser.add_argument('input_file', help='Path to PDF or text document')
    parse_parser.add_argument('--output', '-o', help='Output JSON file path')
    parse_parser.add_argument('--model', '-m', help='Model id from the catalog')
    parse_parser.add_argument('--save-intermediate', action='store_true', help='Save the state after every agent')
    parse_parser.set_defaults(handler=run_parse)

    models_parser = subparsers.add_parser('models', help='List selectable model ids')
    models_parser.set_defaults(handler=run_models)

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args.config)
        return args.handler(args, config)
    except TravelParserError as e:
        logger.error(f"Fatal error: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
