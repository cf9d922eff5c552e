import logging
import os
import re
import tempfile
from typing import Dict, Any, Optional

from ..exceptions import PDFExtractionError

logger = logging.getLogger(__name__)

PDF_PARSE_ERROR = "Failed to extract text from PDF"


class PDFTextExtractor:
    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.marker_config = self.config.get('marker', {})

    def extract_text(self, pdf_bytes: bytes) -> str:
        """Extract plain text from raw PDF bytes"""
        # marker reads from a path, so the bytes go through a temp file
        with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False) as tmp_file:
            tmp_file.write(pdf_bytes)
            tmp_path = tmp_file.name

        try:
            return self.extract_text_from_file(tmp_path)
        finally:
            try:
                os.unlink(tmp_path)
            except OSError:
                logger.warning(f"Could not remove temporary file {tmp_path}")

    def extract_text_from_file(self, pdf_path: str) -> str:
        try:
            text = self._convert_with_marker(pdf_path)
        except PDFExtractionError:
            raise
        except Exception as e:
            logger.error(f"Error extracting text from PDF: {e}")
            raise PDFExtractionError(f"{PDF_PARSE_ERROR}: {e}") from e

        cleaned = self._post_process_text(text)
        logger.info(f"PDF conversion complete ({len(cleaned)} characters)")
        return cleaned

    def _convert_with_marker(self, pdf_path: str) -> str:
        """Convert PDF to markdown text using marker"""
        try:
            from marker.converters.pdf import PdfConverter
            from marker.models import create_model_dict
            from marker.output import text_from_rendered
            from marker.config.parser import ConfigParser
        except ImportError as ie:
            raise PDFExtractionError(
                f"{PDF_PARSE_ERROR}: {ie}. Install the pdf extra: pip install 'travel-document-parser[pdf]'"
            ) from ie

        config = {
            "output_format": "markdown",
        }
        if self.marker_config.get('max_pages'):
            config['max_pages'] = self.marker_config['max_pages']
        if self.marker_config.get('languages'):
            config['langs'] = self.marker_config['languages']

        config_parser = ConfigParser(config)
        converter = PdfConverter(
            config=config_parser.generate_config_dict(),
            artifact_dict=create_model_dict(),
            processor_list=config_parser.get_processors(),
            renderer=config_parser.get_renderer(),
        )

        logger.debug(f"Converting PDF: {pdf_path}")
        rendered = converter(pdf_path)
        full_text, _, _ = text_from_rendered(rendered)
        return full_text or ""

    def _post_process_text(self, content: str) -> str:
        """Strip conversion artifacts: leading blanks, runs of empty lines, page numbers"""
        if not content:
            return ""

        final_lines = []
        empty_count = 0

        for line in content.split('\n'):
            line = line.rstrip()

            # Skip empty lines at the beginning
            if not final_lines and not line:
                continue

            if not line.strip():
                empty_count += 1
                if empty_count <= 2:
                    final_lines.append(line)
            else:
                empty_count = 0
                final_lines.append(line)

        cleaned_content = '\n'.join(final_lines).rstrip()

        if self.config.get('remove_page_numbers', True):
            cleaned_content = self._remove_page_numbers(cleaned_content)

        return cleaned_content

    def _remove_page_numbers(self, content: str) -> str:
        """Drop bare page-number lines such as '3' or '- 3 -'"""
        cleaned_lines = []
        for line in content.split('\n'):
            stripped = line.strip()
            if re.match(r'^-?\s*\d{1,3}\s*-?$', stripped):
                continue
            cleaned_lines.append(line)

        return '\n'.join(cleaned_lines)
