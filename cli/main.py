"""CLI entry point: Typer app for hybridrag commands.

Usage:
    hybridrag ingest docs/ --tenant acme
    hybridrag search "What is the quick ratio?" --document 10k-2023.pdf
    hybridrag query "How did capex change year over year?"
    hybridrag expand "ppne trend"
    hybridrag eval eval_data/scenarios
    hybridrag status
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

app = typer.Typer(
    name="hybridrag",
    help="Hybrid retrieval RAG: ingest, search, query and evaluate.",
    no_args_is_help=True,
)

console = Console()

_INGEST_PATHS = typer.Argument(..., help="Files or directories to ingest")
_EVAL_PATH = typer.Argument(..., help="Path to scenario YAML files")
_SETTINGS = typer.Option(None, "--settings", help="Explicit settings.yaml")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def _settings(path: Path | None):
    from hybridrag.config import load_settings

    return load_settings(path)


def _document_id(path: Path) -> str:
    digest = hashlib.sha256(str(path.resolve()).encode("utf-8")).hexdigest()[:8]
    return f"{path.stem}-{digest}"


def _collect_files(paths: list[Path], formats: list[str]) -> list[Path]:
    files: list[Path] = []
    for p in paths:
        if p.is_dir():
            files.extend(sorted(f for f in p.rglob("*") if f.suffix.lower() in formats))
        else:
            files.append(p)
    return files


@app.command()
def ingest(
    paths: Annotated[list[Path], _INGEST_PATHS],
    tenant: str | None = typer.Option(None, "--tenant", "-t", help="Tenant id"),
    reprocess: bool = typer.Option(
        False, "--reprocess", "-r", help="Replace existing chunks",
    ),
    settings_path: Path | None = _SETTINGS,
) -> None:
    """Chunk, embed and store documents."""
    from hybridrag.documents.schemas import SourceDocument
    from hybridrag.pipeline.builder import build_ingest_pipeline

    settings = _settings(settings_path)
    files = _collect_files(paths, settings.ingestion.supported_formats)
    if not files:
        console.print("[yellow]No supported documents found.[/]")
        raise typer.Exit(code=1)

    pipeline = build_ingest_pipeline(settings, background=len(files) > 1)
    documents = [
        SourceDocument(
            document_id=_document_id(f),
            name=f.name,
            path=str(f),
            tenant_id=tenant,
        )
        for f in files
    ]
    try:
        results = pipeline.ingest_batch(documents, reprocess=reprocess)
    finally:
        pipeline.dispatcher.shutdown()

    if settings.vectorstore.backend.lower() == "faiss":
        pipeline.vector_store.save(settings.vectorstore.path)

    table = Table(title="Ingestion")
    table.add_column("Document", style="cyan")
    table.add_column("Status")
    table.add_column("Chunks", justify="right")
    table.add_column("Detail")
    for r in results:
        colour = "green" if r.ok else "red"
        detail = "skipped (already chunked)" if r.skipped and r.ok else (r.error_message or "")
        table.add_row(r.source, f"[{colour}]{r.status}[/]", str(r.chunks_stored), detail)
        for w in r.warnings:
            console.print(f"  [yellow]Warning ({r.source}):[/] {w}")
    console.print(table)

    if any(not r.ok for r in results):
        raise typer.Exit(code=1)


@app.command()
def search(
    question: str = typer.Argument(..., help="Search query"),
    top_k: int | None = typer.Option(None, "--top-k", "-k", help="Chunks to return"),
    tenant: str | None = typer.Option(None, "--tenant", "-t", help="Tenant id"),
    document: str | None = typer.Option(None, "--document", "-d", help="Document name"),
    expand: bool = typer.Option(True, "--expand/--no-expand", help="Expand the query"),
    settings_path: Path | None = _SETTINGS,
) -> None:
    """Hybrid search without answer generation."""
    from hybridrag.pipeline.builder import build_expander, build_retriever
    from hybridrag.retrieval.schemas import RetrievalConfig

    settings = _settings(settings_path)
    expanded = None
    if expand:
        expansion = build_expander(settings).expand(question)
        expanded = expansion.expanded_query
        console.print(f"[dim]Expansion ({expansion.source}): {expanded}[/]")

    cfg = RetrievalConfig.from_settings(
        settings, top_k=top_k, tenant_id=tenant, document_name=document,
    )
    result = build_retriever(settings).retrieve(question, cfg, expanded_query=expanded)

    if result.empty:
        console.print("[yellow]No results.[/]")
        return

    table = Table(title=f"Results (intent: {result.intent or 'n/a'})")
    table.add_column("#", justify="right")
    table.add_column("Document", style="cyan")
    table.add_column("Type")
    table.add_column("Search")
    table.add_column("Score", justify="right")
    table.add_column("Text")
    for i, chunk in enumerate(result.chunks, 1):
        table.add_row(
            str(i),
            chunk.metadata.document_name or "",
            chunk.metadata.content_type,
            str(chunk.search_type),
            f"{chunk.final_score:.3f}",
            chunk.text[:80].replace("\n", " "),
        )
    console.print(table)


@app.command()
def query(
    question: str = typer.Argument(..., help="Question to ask"),
    top_k: int | None = typer.Option(None, "--top-k", "-k", help="Context chunks"),
    tenant: str | None = typer.Option(None, "--tenant", "-t", help="Tenant id"),
    document: str | None = typer.Option(None, "--document", "-d", help="Document name"),
    settings_path: Path | None = _SETTINGS,
) -> None:
    """Answer a question from the indexed documents, with citations."""
    from hybridrag.pipeline.builder import build_query_pipeline
    from hybridrag.pipeline.citations import format_citations
    from hybridrag.pipeline.schemas import RAGQuery

    pipeline = build_query_pipeline(_settings(settings_path))
    response = pipeline.query(
        RAGQuery(question=question, tenant_id=tenant, document_name=document, top_k=top_k)
    )

    console.print(f"\n[bold]Q:[/] {response.question}")
    console.print(f"\n[bold green]A:[/] {response.answer}")

    if response.citations:
        console.print(format_citations(response.citations))

    console.print(
        f"\n[dim]Model: {response.model} "
        f"| Context chunks: {response.retrieval_count} "
        f"| Expansion: {response.expansion_source} "
        f"| Intent: {response.intent}[/]",
    )


@app.command()
def expand(
    text: str = typer.Argument(..., help="Query to expand"),
    use_llm: bool = typer.Option(True, "--llm/--no-llm", help="Allow the LLM tier"),
    settings_path: Path | None = _SETTINGS,
) -> None:
    """Show how a query is expanded."""
    from hybridrag.pipeline.builder import build_expander

    settings = _settings(settings_path)
    if not use_llm:
        settings.expansion.use_llm = False
    result = build_expander(settings).expand(text)

    console.print(f"[bold]Original:[/] {result.original_query}")
    console.print(f"[bold green]Expanded:[/] {result.expanded_query}")
    console.print(
        f"[dim]Source: {result.source} | cached: {result.cached} "
        f"| applied: {result.expansion_applied}[/]"
    )


@app.command()
def eval(
    scenario_dir: Annotated[Path, _EVAL_PATH],
    settings_path: Path | None = _SETTINGS,
) -> None:
    """Run retrieval scenarios and report metrics."""
    from hybridrag.evaluation.runner import EvalRunner
    from hybridrag.pipeline.builder import build_expander, build_retriever
    from hybridrag.retrieval.schemas import RetrievalConfig

    settings = _settings(settings_path)
    runner = EvalRunner(
        retriever=build_retriever(settings),
        expander=build_expander(settings),
        config=RetrievalConfig.from_settings(settings),
    )
    scenarios = runner.load_scenarios(scenario_dir)
    results = runner.run_retrieval(scenarios)

    table = Table(title="Retrieval Evaluation")
    table.add_column("ID", style="cyan")
    table.add_column("Question")
    table.add_column("Intent")
    table.add_column("P@k", justify="right")
    table.add_column("R@k", justify="right")
    table.add_column("MRR", justify="right")
    table.add_column("nDCG", justify="right")
    for r in results:
        intent = r.intent or ""
        if r.intent_correct is False:
            intent = f"[red]{intent}[/]"
        table.add_row(
            r.scenario_id,
            r.question[:50],
            intent,
            f"{r.precision_at_k:.2f}",
            f"{r.recall_at_k:.2f}",
            f"{r.mrr:.2f}",
            f"{r.ndcg_at_k:.2f}",
        )
    console.print(table)

    for name, value in runner.summary(results).items():
        console.print(f"  {name}: {value:.3f}" if isinstance(value, float) else f"  {name}: {value}")


@app.command()
def status(settings_path: Path | None = _SETTINGS) -> None:
    """Show available components and document status."""
    from hybridrag import __version__
    from hybridrag.embeddings.factory import available_providers as emb_providers
    from hybridrag.llm.factory import available_providers as llm_providers
    from hybridrag.pipeline.registry import DocumentRegistry
    from hybridrag.vectorstore.factory import available_stores

    settings = _settings(settings_path)
    console.print(f"\n[bold green]hybrid-retrieval-rag[/] v{__version__}\n")

    table = Table(title="Available Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")
    table.add_column("Configured")
    table.add_row("Embedding Providers", ", ".join(emb_providers()), settings.embedding.provider)
    table.add_row("Vector Stores", ", ".join(available_stores()), settings.vectorstore.backend)
    table.add_row("LLM Providers", ", ".join(llm_providers()), settings.llm.provider)
    table.add_row(
        "Query Expansion",
        "cache, llm, dictionary",
        "disabled" if not settings.expansion.enabled else settings.expansion.provider,
    )
    console.print(table)

    records = DocumentRegistry(settings.ingestion.registry_path).all()
    if not records:
        console.print("[dim]No documents ingested yet.[/]")
        return

    docs = Table(title="Documents")
    docs.add_column("Document", style="cyan")
    docs.add_column("Status")
    docs.add_column("Chunks", justify="right")
    docs.add_column("Updated")
    docs.add_column("Error")
    for rec in sorted(records, key=lambda r: r.name):
        docs.add_row(rec.name, str(rec.status), str(rec.chunk_count), rec.updated_at, rec.error_message or "")
    console.print(docs)


if __name__ == "__main__":
    app()
