import json
import stat
import sys
import textwrap
from pathlib import Path

import pytest

from epubcheck_service.config import Settings
from epubcheck_service.engine.runner import ProcessInvoker

SAMPLE_REPORT = {
    "customMessageFileName": None,
    "checker": {
        "path": "/books/sample.epub",
        "filename": "sample.epub",
        "checkerVersion": "5.1.0",
        "checkDate": "2026-10-19T10:00:00Z",
        "elapsedTime": 412,
        "nFatal": 0,
        "nError": 1,
        "nWarning": 1,
        "nUsage": 0,
    },
    "publication": {
        "publisher": "Sample Press",
        "title": "Sample Book",
        "creator": ["A. Writer"],
        "date": "2024-01-01",
        "subject": [],
        "language": "en",
        "identifier": "urn:uuid:1234",
        "nSpines": 3,
        "checkSum": 12345,
        "renditionLayout": "reflowable",
        "ePubVersion": "3.0",
        "isBackwardCompatible": False,
        "hasAudio": False,
        "hasVideo": False,
        "hasFixedFormat": False,
        "hasScripts": False,
        "hasEncryption": False,
        "hasSignatures": False,
        "embeddedFonts": [],
        "refFonts": [],
        "hasRemoteResources": False,
        "references": [],
    },
    "items": [
        {
            "id": "chapter1",
            "fileName": "EPUB/chapter1.xhtml",
            "media_type": "application/xhtml+xml",
            "compressedSize": 812,
            "uncompressedSize": 2048,
            "compressionMethod": "Deflated",
            "isSpineItem": True,
            "spineIndex": 0,
            "isLinear": True,
            "referencedItems": ["EPUB/style.css"],
        }
    ],
    "messages": [
        {
            "ID": "RSC-005",
            "severity": "ERROR",
            "message": "Error while parsing file: element \"foo\" not allowed here",
            "additionalLocations": 0,
            "locations": [
                {"path": "EPUB/chapter1.xhtml", "line": 12, "column": 7, "context": None}
            ],
        },
        {
            "ID": "ACC-009",
            "severity": "WARNING",
            "message": "MathML should have alttext attribute",
            "additionalLocations": 2,
            "locations": [{"path": "EPUB/chapter1.xhtml", "line": 30, "column": 3}],
            "suggestion": "Add an alttext attribute",
        },
    ],
}

# Fake engine preamble: records argv and cwd, then runs the test-specific body.
ENGINE_PREAMBLE = """\
#!{python}
import json, os, sys, time
args = sys.argv[1:]
log_path = os.environ.get("FAKE_ENGINE_LOG")
if log_path:
    with open(log_path, "a") as log:
        log.write(json.dumps({{"args": args, "cwd": os.getcwd()}}) + "\\n")
REPORT = json.loads({report!r})
out = args[args.index("--json") + 1] if "--json" in args else None
"""


@pytest.fixture
def sample_report() -> dict:
    return json.loads(json.dumps(SAMPLE_REPORT))


@pytest.fixture
def make_engine(tmp_path):
    """Write an executable stand-in for EPUBCheck and return its path."""

    def _make(body: str, name: str = "epubcheck") -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / name
        preamble = ENGINE_PREAMBLE.format(python=sys.executable, report=json.dumps(SAMPLE_REPORT))
        script.write_text(preamble + textwrap.dedent(body), encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def engine_log(tmp_path, monkeypatch) -> Path:
    path = tmp_path / "engine-calls.jsonl"
    monkeypatch.setenv("FAKE_ENGINE_LOG", str(path))
    return path


@pytest.fixture
def scratch_dir(tmp_path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def make_invoker(scratch_dir):
    """ProcessInvoker pointed at an explicit engine path, no fallback search."""

    def _make(executable: Path, **settings_overrides) -> ProcessInvoker:
        settings = Settings(EPUBCHECK_JAR_PATH=str(executable), **settings_overrides)
        return ProcessInvoker(settings, search_paths=[], scratch_dir=scratch_dir)

    return _make


@pytest.fixture
def engine_calls(engine_log):
    """Reader for the argv/cwd records the fake engine appended."""

    def _read() -> list[dict]:
        if not engine_log.exists():
            return []
        return [json.loads(line) for line in engine_log.read_text().splitlines() if line.strip()]

    return _read
