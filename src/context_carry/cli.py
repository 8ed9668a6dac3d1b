"""CLI entry point for context-carry."""

import json
import logging
from pathlib import Path

import click

from .adapters import PROVIDERS, UnknownProviderError, detect_provider
from .core import CanonicalConversation
from .export import conversation_to_json, conversation_to_markdown, project_to_dict
from .importer import MemorySink, ProviderNotDetectedError, resolve_adapter, run_import

MAX_REPORTED_ERRORS = 5

provider_option = click.option(
    "--provider",
    type=click.Choice(PROVIDERS),
    default=None,
    help="Skip auto-detection and use this provider.",
)


def _safe(value: str) -> str:
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in value)


def _export_name(provider: str, conversation: CanonicalConversation, used: set[str]) -> str:
    """File stem for a conversation, unique within one export run.

    Includes the project key when there is one. A stem already used in this
    run gets a numeric suffix.
    """
    parts = [provider]
    if conversation.project_source_id:
        parts.append(_safe(conversation.project_source_id))
    parts.append(_safe(conversation.source_id))
    base = "-".join(parts)

    name, n = base, 1
    while name in used:
        n += 1
        name = f"{base}-{n}"
    used.add(name)
    return name


def _adapter_or_fail(path: str, provider: str | None):
    try:
        return resolve_adapter(path, provider)
    except (ProviderNotDetectedError, UnknownProviderError) as e:
        raise click.ClickException(str(e))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log skipped records and files.")
def main(verbose: bool):
    """Normalize ChatGPT, Claude and Cowork conversation exports."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("path")
def detect(path: str):
    """Print which provider's layout PATH holds."""
    adapter = detect_provider(path)
    if adapter is None:
        raise click.ClickException(f"No known export layout at {path}")
    click.echo(adapter.provider)


@main.command()
@click.argument("path")
@provider_option
@click.option("--json", "as_json", is_flag=True, help="Print projects as JSON.")
def projects(path: str, provider: str | None, as_json: bool):
    """List the projects found under PATH."""
    adapter = _adapter_or_fail(path, provider)
    found = list(adapter.parse_projects(path))

    if as_json:
        click.echo(json.dumps([project_to_dict(p) for p in found], indent=2, ensure_ascii=False))
        return

    for project in found:
        count = "" if project.conversation_count is None else f"  ({project.conversation_count})"
        click.echo(f"{project.name}  [{project.source_id}]{count}")


@main.command()
@click.argument("path")
@provider_option
@click.option("--format", "fmt", type=click.Choice(["md", "json"]), default="md", help="Export format.")
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write one file per conversation into this directory instead of stdout.",
)
def export(path: str, provider: str | None, fmt: str, output: Path | None):
    """Export every conversation under PATH as Markdown or JSON."""
    adapter = _adapter_or_fail(path, provider)
    render = conversation_to_json if fmt == "json" else conversation_to_markdown

    if output:
        output.mkdir(parents=True, exist_ok=True)

    count = 0
    used_names: set[str] = set()
    for conversation in adapter.parse(path):
        content = render(conversation)
        if output:
            name = _export_name(adapter.provider, conversation, used_names)
            (output / f"{name}.{fmt}").write_text(content, encoding="utf-8")
        else:
            click.echo(content)
        count += 1

    if output:
        click.echo(f"Exported {count} conversations to {output}")


@main.command(name="import")
@click.argument("path")
@provider_option
def import_(path: str, provider: str | None):
    """Parse everything under PATH and print an import summary (dry run)."""
    try:
        result = run_import(path, MemorySink(), provider)
    except (ProviderNotDetectedError, UnknownProviderError) as e:
        raise click.ClickException(str(e))

    click.echo("Import complete:")
    click.echo(f"  Provider:      {result.provider}")
    click.echo(f"  Conversations: {result.conversations_imported}")
    click.echo(f"  Messages:      {result.messages_imported}")
    click.echo(f"  Projects:      {result.projects_imported}")
    if result.conversations_skipped:
        click.echo(f"  Skipped:       {result.conversations_skipped}")
    if result.errors:
        click.echo(f"  Errors:        {len(result.errors)}")
        for err in result.errors[:MAX_REPORTED_ERRORS]:
            click.echo(f"    - {err}")
