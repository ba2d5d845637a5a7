# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the pagedigest CLI — commands, exit codes, error output.

Covers:
- digest / prompt output on stdout
- skip outcomes exit 0
- missing file, bad document and missing key exit 1 with Error:/Hint: text
- argparse usage errors exit 2
"""

from __future__ import annotations

import json
import logging

import pytest
import structlog
from _html_helpers import RUNNING_SHOES_PAGE, URL

from pagedigest.analysis import LlmoAnalysis
from pagedigest.cli import main
from pagedigest.reasoner import AnalysisResult


@pytest.fixture(autouse=True)
def _reset_logging():
    """main() reconfigures logging; restore the root logger afterwards."""
    root = logging.getLogger()
    old_handlers = root.handlers[:]
    old_level = root.level
    yield
    root.handlers = old_handlers
    root.setLevel(old_level)
    structlog.reset_defaults()


@pytest.fixture
def page_file(tmp_path):
    path = tmp_path / "page.html"
    path.write_text(RUNNING_SHOES_PAGE, encoding="utf-8")
    return path


class TestDigestCommand:
    def test_prints_json(self, page_file, capsys):
        main(["digest", str(page_file), "--url", URL])
        data = json.loads(capsys.readouterr().out)
        assert data["title"] == "Best Running Shoes 2025"
        assert data["content_type"] == "product"

    def test_compact(self, page_file, capsys):
        main(["digest", str(page_file), "--url", URL, "--compact"])
        out = capsys.readouterr().out
        assert out.count("\n") == 1

    def test_output_file(self, page_file, tmp_path, capsys):
        target = tmp_path / "out" / "digest.json"
        main(["digest", str(page_file), "--url", URL, "-o", str(target)])
        assert json.loads(target.read_text(encoding="utf-8"))["url"] == URL
        assert "Saved to" in capsys.readouterr().err

    def test_skip_is_success(self, page_file, capsys):
        main(["digest", str(page_file), "--url", "https://example.com/tag/shoes"])
        data = json.loads(capsys.readouterr().out)
        assert data["skipped"] is True


class TestPromptCommand:
    def test_prints_prompt(self, page_file, capsys):
        main(["prompt", str(page_file), "--url", URL, "--max-passages", "3"])
        out = capsys.readouterr().out
        assert out.startswith("You are an expert LLM Optimization")
        assert "OUTPUT FORMAT (JSON):" in out

    def test_skip(self, page_file, capsys):
        main(["prompt", str(page_file), "--url", "https://example.com/author/sam"])
        assert capsys.readouterr().out.startswith("=== SKIPPED: URL contains excluded pattern ===")


class TestAnalyzeCommand:
    def test_missing_key(self, page_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["analyze", str(page_file), "--url", URL])
        assert exc_info.value.code == 1
        assert "GEMINI_API_KEY" in capsys.readouterr().err

    def test_report_printed(self, page_file, capsys, monkeypatch):
        class _FakeGemini:
            def __init__(self, config):
                self.config = config

            def __enter__(self):
                return self

            def __exit__(self, *exc_info):
                return None

            def analyze(self, prompt):
                return AnalysisResult(text="{}", analysis=LlmoAnalysis(overall_llmo_score=64))

        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setattr("pagedigest.reasoner.GeminiReasoner", _FakeGemini)
        main(["analyze", str(page_file), "--url", URL])
        assert "OVERALL LLMO SCORE: 64/100" in capsys.readouterr().out

    def test_problem_exits_1(self, page_file, capsys, monkeypatch):
        from pagedigest.errors import ReasoningError

        class _FailingGemini:
            def __init__(self, config):
                pass

            def __enter__(self):
                return self

            def __exit__(self, *exc_info):
                return None

            def analyze(self, prompt):
                raise ReasoningError("API Error 401: key AIzaSyA1234567890abcdefghijklmn rejected", status_code=401)

        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setattr("pagedigest.reasoner.GeminiReasoner", _FailingGemini)
        with pytest.raises(SystemExit) as exc_info:
            main(["analyze", str(page_file), "--url", URL])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert json.loads(err.strip().splitlines()[-1])["upstream_status"] == 401
        assert "AIzaSy" not in err


class TestErrors:
    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["digest", str(tmp_path / "nope.html"), "--url", URL])
        assert exc_info.value.code == 1
        assert "Error: cannot read nope.html" in capsys.readouterr().err

    def test_empty_document(self, tmp_path, capsys):
        path = tmp_path / "empty.html"
        path.write_text("", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["digest", str(path), "--url", URL])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "Error: Document is empty" in err
        assert "Hint:" in err

    def test_invalid_env_config(self, page_file, capsys, monkeypatch):
        monkeypatch.setenv("PAGEDIGEST_MAX_PASSAGES", "lots")
        with pytest.raises(SystemExit) as exc_info:
            main(["digest", str(page_file), "--url", URL])
        assert exc_info.value.code == 1
        assert "PAGEDIGEST_MAX_PASSAGES must be an integer" in capsys.readouterr().err

    def test_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_url_required(self, page_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["digest", str(page_file)])
        assert exc_info.value.code == 2
