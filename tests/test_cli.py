"""Tests for the CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from docbuilder.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DOCBUILDER_ENV_FILE", raising=False)
    monkeypatch.setenv("DOCBUILDER_STORE_BACKEND", "file")


def _complete_document() -> dict[str, dict[str, str]]:
    keys = [
        "problem_statement",
        "goals_and_metrics",
        "user_stories",
        "requirements",
        "technical_considerations",
        "risks",
    ]
    return {key: {"content": "x" * 120, "status": "complete"} for key in keys}


def test_sections_command() -> None:
    """It should list every section with its rule."""

    result = runner.invoke(app, ["sections"])
    assert result.exit_code == 0
    assert "Problem Statement" in result.stdout
    assert "optional" in result.stdout


def test_validate_empty_document(tmp_path: Path) -> None:
    """It should exit 1 and list issues when the document is not ready."""

    path = tmp_path / "doc.json"
    path.write_text("{}", encoding="utf-8")

    result = runner.invoke(app, ["validate", str(path)])
    assert result.exit_code == 1
    assert "Ready: no (0/6 required sections complete)" in result.stdout
    assert "Problem Statement is empty" in result.stdout


def test_validate_ready_stored_document(tmp_path: Path) -> None:
    """It should accept the stored-document file shape and exit 0 when ready."""

    path = tmp_path / "doc.json"
    path.write_text(json.dumps({"document_id": "d", "content": _complete_document()}), encoding="utf-8")

    result = runner.invoke(app, ["validate", str(path)])
    assert result.exit_code == 0
    assert "Ready: yes (6/6 required sections complete)" in result.stdout


def test_apply_writes_document(tmp_path: Path) -> None:
    """It should apply updates, save, and report readiness."""

    updates = tmp_path / "updates.json"
    updates.write_text(
        json.dumps([{"sectionKey": "risks", "content": "Supplier delays", "status": "in_progress"}]),
        encoding="utf-8",
    )
    documents = tmp_path / "documents"

    result = runner.invoke(app, ["apply", "doc1", str(updates), "--documents-dir", str(documents)])
    assert result.exit_code == 0, result.output
    assert "Saved doc1" in result.stdout

    stored = json.loads((documents / "doc1.json").read_text(encoding="utf-8"))
    assert stored["content"]["risks"]["content"] == "Supplier delays"


def test_apply_chat_reply_prints_message(tmp_path: Path) -> None:
    """It should print the assistant message when given a chat reply."""

    reply = tmp_path / "reply.json"
    reply.write_text(
        json.dumps({"aiMessage": "Timeline drafted.", "sectionUpdates": [{"sectionKey": "timeline", "content": "Q3"}]}),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["apply", "doc2", str(reply), "--documents-dir", str(tmp_path / "documents")])
    assert result.exit_code == 0, result.output
    assert "Timeline drafted." in result.stdout


def test_apply_rejects_non_object_payload(tmp_path: Path) -> None:
    """It should report a usage error, and save nothing, for a scalar updates file."""

    updates = tmp_path / "updates.json"
    updates.write_text("42", encoding="utf-8")
    documents = tmp_path / "documents"

    result = runner.invoke(app, ["apply", "doc3", str(updates), "--documents-dir", str(documents)])
    assert result.exit_code == 2
    assert not (documents / "doc3.json").exists()
