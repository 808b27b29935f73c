import json
import logging

from dephaze.cli import build_parser, main
from dephaze.io.field_json import load_model
from dephaze.logging_config import setup_logging
from dephaze.phasefield import PhaseField

BASE = ["--profile", "sphere", "--samples", "200", "--resolution", "8", "--top-k", "5"]


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.profile == "bumpy"
    assert args.mode == "both"
    assert args.resolution is None


def test_json_report(capsys):
    assert main(BASE + ["--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["scan"] == "sphere-200-0"
    assert set(report["modes"]) == {"spatial", "spectral"}
    assert report["modes"]["spectral"]["compressed_bytes"] == 16 + 5 * 16 + 8
    assert report["modes"]["spatial"]["raw_bytes"] == 2400


def test_text_report_with_primitive_and_validation(capsys):
    assert main(BASE + ["--mode", "spatial", "--primitive", "2", "2", "--validate"]) == 0
    out = capsys.readouterr().out
    assert "spatial" in out
    assert "Euclidean Sphere" in out
    assert "octahedron" in out


def test_save_model(tmp_path):
    target = tmp_path / "field.json"
    assert main(BASE + ["--mode", "spatial", "--save", str(target)]) == 0
    assert isinstance(load_model(target), PhaseField)


def test_save_needs_single_mode(tmp_path):
    assert main(BASE + ["--save", str(tmp_path / "x.json")]) == 1


def test_config_file(tmp_path, capsys):
    path = tmp_path / "cfg.yaml"
    path.write_text("metrics:\n  bytes_per_raw_sample: 24\n", encoding="utf-8")
    assert main(BASE + ["--json", "--mode", "spatial", "--config", str(path)]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["modes"]["spatial"]["raw_bytes"] == 4800


def test_setup_logging_replaces_handler(capsys):
    setup_logging(logging.DEBUG)
    logger = setup_logging(logging.INFO)
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
    logger.info("hello")
    logger.debug("hidden")
    err = capsys.readouterr().err
    assert "dephaze - INFO - hello" in err
    assert "hidden" not in err
    setup_logging(logging.WARNING)
