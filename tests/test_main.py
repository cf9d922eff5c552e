import json
from unittest.mock import patch

import main
from travel_parser.pipeline.parser_pipeline import DocumentParserPipeline

from conftest import ScriptedLLM, as_json


def test_models_command_lists_catalog(tmp_path, capsys):
    exit_code = main.main(["--config", str(tmp_path / "missing.yaml"), "models"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "* ollama-qwen3-32b" in output
    assert "anthropic-claude-3-5-sonnet" in output


def test_parse_command_writes_output(tmp_path, capsys):
    document = tmp_path / "ticket.txt"
    document.write_text("TGV 6611 Paris -> Lyon, seat 72", encoding="utf-8")
    output_path = tmp_path / "ticket.json"
    llm = ScriptedLLM([
        as_json({"documentType": "transportation", "confidence": 0.9}),
        as_json({"transportationType": "train", "seatNumber": "72"}),
        as_json({"issues": ["arrival time missing"], "confidence": 0.7}),
    ])

    def build_pipeline(config, model_id=None):
        return DocumentParserPipeline(config, model_id=model_id, llm=llm)

    with patch.object(main, "DocumentParserPipeline", side_effect=build_pipeline):
        exit_code = main.main([
            "--config", str(tmp_path / "missing.yaml"),
            "parse", str(document), "--output", str(output_path),
        ])

    assert exit_code == 0
    written = json.loads(output_path.read_text(encoding="utf-8"))
    assert written == {
        "documentType": "transportation",
        "parsedData": {"transportationType": "train", "seatNumber": "72"},
        "confidence": 0.7,
        "errors": ["arrival time missing"],
    }
    assert "arrival time missing" in capsys.readouterr().out


def test_parse_command_missing_file(tmp_path):
    assert main.main(["--config", str(tmp_path / "missing.yaml"), "parse", str(tmp_path / "nope.pdf")]) == 1


def test_unknown_model_is_reported(tmp_path):
    document = tmp_path / "ticket.txt"
    document.write_text("text", encoding="utf-8")

    exit_code = main.main([
        "--config", str(tmp_path / "missing.yaml"), "parse", str(document), "--model", "gpt-17",
    ])

    assert exit_code == 1
