from unittest.mock import patch

import pytest

from travel_parser.exceptions import ConfigurationError, PDFExtractionError
from travel_parser.utils.config import DEFAULT_CONFIG, inngest_event_key, load_config
from travel_parser.utils.io import extract_document_text, is_pdf_bytes, is_pdf_file, read_input_file
from travel_parser.utils.pdf_converter import PDFTextExtractor


def test_pdf_detection():
    assert is_pdf_file("booking.PDF")
    assert not is_pdf_file("booking.txt")
    assert is_pdf_bytes(b"%PDF-1.7\n...")
    assert not is_pdf_bytes(b"plain text")


def test_text_documents_are_decoded_as_utf8():
    assert extract_document_text("Hôtel à Paris".encode("utf-8")) == "Hôtel à Paris"


def test_undecodable_bytes_fail_extraction():
    with pytest.raises(PDFExtractionError):
        extract_document_text(b"\xff\xfe\xfa binary")


def test_pdf_bytes_go_through_marker():
    extractor = PDFTextExtractor()
    with patch.object(PDFTextExtractor, "_convert_with_marker", return_value="\n\nHotel Lutetia\n\n\n\n\n12\nTotal 645 EUR\n") as convert:
        text = extract_document_text(b"%PDF-1.4 fake", extractor)

    assert text == "Hotel Lutetia\n\n\nTotal 645 EUR"
    assert convert.call_args.args[0].endswith(".pdf")


def test_marker_failures_become_extraction_errors():
    extractor = PDFTextExtractor()
    with patch.object(PDFTextExtractor, "_convert_with_marker", side_effect=RuntimeError("corrupt xref")):
        with pytest.raises(PDFExtractionError, match="corrupt xref"):
            extractor.extract_text(b"%PDF-1.4 fake")


def test_page_number_removal_keeps_years():
    extractor = PDFTextExtractor({"remove_page_numbers": True})

    text = extractor._post_process_text("Check-in\n- 2 -\n2024\n7\nCheck-out")

    assert text == "Check-in\n2024\nCheck-out"


def test_read_input_file_errors(tmp_path):
    with pytest.raises(RuntimeError):
        read_input_file(str(tmp_path / "missing.pdf"))


def test_missing_config_file_gives_defaults(tmp_path):
    config = load_config(str(tmp_path / "config.yaml"))

    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_config_file_overrides_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("default_model: openai-gpt-4o-mini\njob_store: memory\n", encoding="utf-8")

    config = load_config(str(path))

    assert config["default_model"] == "openai-gpt-4o-mini"
    assert config["job_store"] == "memory"
    assert config["classifier_max_chars"] == 2000


@pytest.mark.parametrize("content", ["- just\n- a list\n", "key: [unclosed\n"])
def test_bad_config_file_is_a_configuration_error(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_inngest_event_key(monkeypatch):
    monkeypatch.delenv("INNGEST_EVENT_KEY", raising=False)
    assert inngest_event_key() is None

    monkeypatch.setenv("INNGEST_EVENT_KEY", "evt-key")
    assert inngest_event_key() == "evt-key"
