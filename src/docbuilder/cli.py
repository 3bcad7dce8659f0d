"""CLI entrypoints for DocBuilder."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer

from docbuilder.builder.coordinator import DocumentBuilder
from docbuilder.builder.state import BuilderState
from docbuilder.chat.responses import ChatResponseError, ChatServiceError
from docbuilder.config import Settings, load_settings
from docbuilder.core.autosave import SaveStatus
from docbuilder.logging import configure_logging, get_logger
from docbuilder.models.document import load_content
from docbuilder.models.sections import SECTION_DEFINITIONS
from docbuilder.models.validation import CompletionValidation
from docbuilder.storage import DocumentLoadError, build_store
from docbuilder.validation.completion import validate_all_sections

app = typer.Typer(add_completion=False, help="DocBuilder PRD document builder CLI")
logger = get_logger(__name__)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Cannot read JSON from {path}: {exc}") from exc


def _echo_report(report: CompletionValidation) -> None:
    verdict = "yes" if report.is_ready else "no"
    typer.echo(f"Ready: {verdict} ({report.completed_count}/{report.total_required} required sections complete)")
    for result in report.incomplete_required:
        for issue in result.issues:
            typer.echo(f"  - {issue}")


@app.command()
def sections() -> None:
    """List the document sections and their completion rules."""

    for definition in SECTION_DEFINITIONS:
        kind = "required" if definition.required else "optional"
        typer.echo(
            f"{definition.key.value:<26} {definition.title:<26} {kind:<9} "
            f"min {definition.min_content_length} chars"
        )


@app.command()
def validate(
    path: Path = typer.Argument(..., help="JSON file with document content, or a stored document file"),
) -> None:
    """Check whether a document is ready to be marked complete."""

    raw = _read_json(path)
    if isinstance(raw, dict) and isinstance(raw.get("content"), dict):
        raw = raw["content"]
    if not isinstance(raw, dict):
        raise typer.BadParameter("Expected a JSON object mapping section keys to sections")
    try:
        content = load_content(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid document content: {exc}") from exc

    report = validate_all_sections(content)
    _echo_report(report)
    if not report.is_ready:
        raise typer.Exit(code=1)


async def _apply(document_id: str, payload: Any, settings: Settings) -> tuple[BuilderState, str | None]:
    store = build_store(settings)
    async with await DocumentBuilder.open(document_id, store, settings=settings) as builder:
        message: str | None = None
        if isinstance(payload, list):
            builder.apply_section_updates(payload)
        else:
            message = builder.apply_chat_response(payload).ai_message
        await builder.flush()
        return builder.state(), message


@app.command()
def apply(
    document_id: str = typer.Argument(..., help="Document to edit"),
    updates_file: Path = typer.Argument(
        ...,
        help="JSON list of section updates, or an assistant reply with sectionUpdates",
    ),
    documents_dir: Path | None = typer.Option(
        None,
        "--documents-dir",
        help="Documents directory (overrides DOCBUILDER_DOCUMENTS_DIR)",
    ),
) -> None:
    """Apply section updates to a stored document and save it."""

    settings = load_settings()
    if documents_dir is not None:
        settings.documents_dir = documents_dir
    configure_logging(settings.log_level)

    payload = _read_json(updates_file)
    logger.info("CLI apply requested")
    try:
        state, message = asyncio.run(_apply(document_id, payload, settings))
    except DocumentLoadError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except (ChatResponseError, ChatServiceError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    if message:
        typer.echo(message)
    if state.save_status is SaveStatus.ERROR:
        typer.echo(f"Error: {state.save_error}", err=True)
        raise typer.Exit(code=2)
    typer.echo(f"Saved {document_id}")
    _echo_report(state.validation)


if __name__ == "__main__":
    app()
