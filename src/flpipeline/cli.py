"""``flpipeline`` command line — documentation search and hint selection."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml

from flpipeline.config import FlpipelineConfig
from flpipeline.exceptions import FlpipelineError, ProviderError
from flpipeline.hints import (
    calculate_token_cost,
    create_llm_service,
    format_cost,
    get_listing,
    get_relevant_hints,
    hint_patterns,
    parse_frontmatter,
)
from flpipeline.search import (
    DocumentIndexer,
    DocumentSearcher,
    FallbackDocSearch,
    SQLiteVectorStore,
)
from flpipeline.search.docs import resolve_doc
from flpipeline.search.protocols import SupportsClose
from flpipeline.search.providers import create_embedding_provider

if TYPE_CHECKING:
    from flpipeline.hints.selector import FoundHints

logger = logging.getLogger(__name__)

RULE = "─" * 80
_LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


class _Group(click.Group):
    """Turns library errors into one-line ``Error: ...`` messages with exit code 1."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except FlpipelineError as exc:
            raise click.ClickException(str(exc)) from exc


def _config(ctx: click.Context) -> FlpipelineConfig:
    return ctx.find_object(FlpipelineConfig)


def _query(words: tuple[str, ...]) -> str:
    query = " ".join(words).strip()
    if not query:
        msg = "Search query is required"
        raise click.UsageError(msg)
    return query


def _open_store(config: FlpipelineConfig) -> SQLiteVectorStore:
    return SQLiteVectorStore(config.db_path, dimension=config.embedding.dimension)


def _release(resource: object) -> None:
    if isinstance(resource, SupportsClose):
        resource.close()


@click.group(cls=_Group)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON config file (its directory becomes the project root).",
)
@click.option(
    "--project-root",
    type=click.Path(file_okay=False, path_type=Path),
    help="Project root; defaults to the current directory.",
)
@click.option("-v", "--verbose", count=True, help="-v for INFO logs, -vv for DEBUG.")
@click.version_option(package_name="flpipeline")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    project_root: Path | None,
    verbose: int,
) -> None:
    """Search project documentation and select hint files for a task."""
    logging.basicConfig(
        level=_LOG_LEVELS[min(verbose, len(_LOG_LEVELS) - 1)],
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        if config_file is not None:
            config = FlpipelineConfig.from_file(config_file)
        else:
            config = FlpipelineConfig.from_env(project_root)
    except FlpipelineError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = config


# ------------------------------------------------------------------
# Documentation
# ------------------------------------------------------------------


@cli.command("index-docs")
@click.option(
    "--path",
    "docs_path",
    type=click.Path(path_type=Path),
    help="Documentation directory (default: specs/, then docs/).",
)
@click.pass_context
def index_docs(ctx: click.Context, docs_path: Path | None) -> None:
    """Embed new or changed markdown files into the document store."""
    config = _config(ctx)
    root = docs_path or config.resolve_docs_path()
    if not root.is_dir():
        msg = f"Documentation directory not found: {root}"
        raise click.ClickException(msg)

    click.echo(f"Indexing documentation from: {root}")
    click.echo(f"Using database: {config.db_path}")

    provider = create_embedding_provider(config.embedding)
    try:
        with _open_store(config) as store:
            report = DocumentIndexer(store, provider).index_documents(root)
            stats = store.stats()
    finally:
        _release(provider)

    click.echo("\nIndexing complete!")
    click.echo(f"Indexed: {len(report.indexed)}, unchanged: {len(report.skipped)}")
    click.echo(f"Total documents: {stats.document_count}")
    click.echo(f"Total embeddings: {stats.embedding_count}")


@cli.command("search-docs")
@click.argument("query", nargs=-1)
@click.option("--limit", default=5, show_default=True, help="Maximum number of results.")
@click.option(
    "--similarity", default=0.6, show_default=True, help="Minimum cosine similarity (0-1)."
)
@click.pass_context
def search_docs(ctx: click.Context, query: tuple[str, ...], limit: int, similarity: float) -> None:
    """Semantic search over indexed documentation, printed as JSON."""
    config = _config(ctx)
    text = _query(query)
    provider = create_embedding_provider(config.embedding)
    try:
        with _open_store(config) as store:
            results = DocumentSearcher(store, provider).search(
                text, limit=limit, min_similarity=similarity
            )
    finally:
        _release(provider)

    if not results:
        click.echo("No results found.")
        return
    click.echo(json.dumps([r.to_dict() for r in results], indent=2))


@cli.command("find-docs")
@click.argument("query", nargs=-1)
@click.option("--limit", default=5, show_default=True, help="Maximum number of results.")
@click.pass_context
def find_docs(ctx: click.Context, query: tuple[str, ...], limit: int) -> None:
    """Find documentation with semantic search, falling back to keyword matching."""
    config = _config(ctx)
    text = _query(query)
    with FallbackDocSearch.from_config(config) as chain:
        matches = chain.search(text, limit)

    if not matches:
        click.echo("No matching files found.")
        return
    plural = "" if len(matches) == 1 else "s"
    click.echo(f"Found {len(matches)} matching file{plural}:")
    for match in matches:
        click.echo(f" - {match.filename}")


@cli.command("show-doc")
@click.argument("name")
@click.pass_context
def show_doc(ctx: click.Context, name: str) -> None:
    """Print a documentation file chosen by (partial) name."""
    config = _config(ctx)
    path = resolve_doc(config.resolve_docs_path(), name)
    try:
        contents = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        msg = f'Failed to read document "{path.name}": {exc}'
        raise click.ClickException(msg) from exc
    if contents:
        click.echo(contents, nl=not contents.endswith("\n"))


@cli.command("docs-stats")
@click.pass_context
def docs_stats(ctx: click.Context) -> None:
    """Show document and embedding counts."""
    config = _config(ctx)
    with _open_store(config) as store:
        stats = store.stats()
    click.echo(f"Database: {config.db_path}")
    click.echo(f"Total documents: {stats.document_count}")
    click.echo(f"Total embeddings: {stats.embedding_count}")
    if stats.drift > 0:
        click.echo(f"{stats.drift} document(s) need embedding; run 'flpipeline index-docs'.")
    elif stats.drift < 0:
        click.echo(f"{-stats.drift} embedding(s) without a document.")


# ------------------------------------------------------------------
# Hints
# ------------------------------------------------------------------


def _select_hints(
    config: FlpipelineConfig,
    query: str,
    limit: int,
    model: str | None,
    temperature: float,
) -> FoundHints:
    llm_service = create_llm_service(config.llm_provider)
    try:
        if not llm_service.is_available():
            name = llm_service.provider_name
            msg = (
                f"{name} service is not available. "
                f"Please ensure {name} is running and configured properly."
            )
            raise ProviderError(msg)

        model_to_use = model or (config.llm_provider.model if config.llm_provider else None)
        return get_relevant_hints(
            query,
            patterns=hint_patterns(config),
            llm_service=llm_service,
            model=model_to_use,
            temperature=temperature,
            max_hints=limit,
            hints_dir=config.default_hints_root,
        )
    finally:
        _release(llm_service)


def _hint_options(func: Any) -> Any:
    func = click.option(
        "--temperature", default=0.3, show_default=True, help="Sampling temperature."
    )(func)
    func = click.option("--model", default=None, help="Override the configured model.")(func)
    func = click.option("--limit", default=5, show_default=True, help="Maximum hints.")(func)
    return click.argument("query", nargs=-1)(func)


@cli.command("search-hints")
@_hint_options
@click.option("--show-content", is_flag=True, help="Print the selected hints after the list.")
@click.pass_context
def search_hints(
    ctx: click.Context,
    query: tuple[str, ...],
    limit: int,
    model: str | None,
    temperature: float,
    show_content: bool,
) -> None:
    """Ask the LLM which hint files fit a task and list them."""
    config = _config(ctx)
    found = _select_hints(config, _query(query), limit, model, temperature)

    if not found.has_hints():
        click.echo("No relevant hints found for your query.")
        return

    click.echo(f"Found {found.count} relevant hint file(s):\n")
    for i, name in enumerate(found.names, start=1):
        click.echo(f"{i}. {name}")
    if show_content:
        click.echo("\n" + found.concatenated())
    else:
        click.echo('\nUse "flpipeline show-hints" to display the full content of all hints.')

    usage = found.token_usage
    if usage is not None:
        cost = calculate_token_cost(usage.model, usage.input_tokens, usage.output_tokens)
        if cost is not None:
            click.echo(f"Token Usage: {format_cost(cost)}")
        elif usage.tokens_used is not None:
            click.echo(f"Token Usage: {usage.tokens_used:,} tokens")


@cli.command("show-hints")
@_hint_options
@click.pass_context
def show_hints(
    ctx: click.Context,
    query: tuple[str, ...],
    limit: int,
    model: str | None,
    temperature: float,
) -> None:
    """Ask the LLM which hint files fit a task and print their content."""
    config = _config(ctx)
    found = _select_hints(config, _query(query), limit, model, temperature)

    if not found.has_hints():
        click.echo("No relevant hints found for your query.")
        return

    click.echo(f"Found {found.count} relevant hint file(s):\n")
    for name, content in found.all_contents():
        try:
            data, body = parse_frontmatter(content)
        except yaml.YAMLError as exc:
            logger.warning("Could not parse hint %s: %s", name, exc)
            data, body = {}, content
        click.echo(RULE)
        click.echo(f"\nHint: {name}")
        if data.get("description"):
            click.echo(str(data["description"]))
        if data.get("relevant_for"):
            click.echo(f"Relevant for: {data['relevant_for']}")
        click.echo("\n" + RULE)
        click.echo(body.strip())
        click.echo(RULE + "\n")


@cli.command("list-hints")
@click.option("--verbose", "show_details", is_flag=True, help="Show descriptions and criteria.")
@click.pass_context
def list_hints(ctx: click.Context, show_details: bool) -> None:
    """List every available hint file."""
    config = _config(ctx)
    hints = get_listing(hint_patterns(config))

    if not hints:
        click.echo("No hint files found.")
        return

    click.echo(f"Found {len(hints)} hint file(s):\n")
    if show_details:
        for i, hint in enumerate(hints, start=1):
            click.echo(f"{i}. {hint.name}")
            click.echo(f"   {hint.description}")
            if hint.relevant_for:
                click.echo(f"   Relevant for: {hint.relevant_for}")
            if i < len(hints):
                click.echo("")
        return

    for i, hint in enumerate(hints, start=1):
        click.echo(f"{i}. {hint.name}")
    click.echo("\nUse --verbose to see descriptions and relevance criteria.")
    click.echo('Use "flpipeline show-hints" to see full content of all hints.')


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
