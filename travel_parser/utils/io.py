from pathlib import Path
from typing import Optional

from ..exceptions import PDFExtractionError
from .pdf_converter import PDFTextExtractor

PDF_SIGNATURE = b"%PDF"


def is_pdf_file(file_path: str) -> bool:
    """Check if the input file is a PDF"""
    return Path(file_path).suffix.lower() == '.pdf'


def is_pdf_bytes(data: bytes) -> bool:
    return data[:4].startswith(PDF_SIGNATURE)


def read_input_file(input_file: str) -> bytes:
    """Read a PDF or plain-text document from disk"""
    try:
        return Path(input_file).read_bytes()
    except OSError as e:
        raise RuntimeError(f"Failed to read input file: {str(e)}") from e


def extract_document_text(data: bytes, pdf_extractor: Optional[PDFTextExtractor] = None) -> str:
    """Turn document bytes into text: PDFs go through the extractor, anything else must be UTF-8"""
    if is_pdf_bytes(data):
        return (pdf_extractor or PDFTextExtractor()).extract_text(data)

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PDFExtractionError("Document is neither a PDF nor UTF-8 text") from e
