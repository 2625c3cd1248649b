from __future__ import annotations

import json
from collections import Counter
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .config import Settings
from .errors import SiteGraphError
from .graph.build import build_site_graph
from .graph.query import build_records, search as search_records
from .graph.snapshot import load_snapshot
from .ingest.html_meta import extract_meta, first_match, read_head
from .logging_setup import setup_logging


app = typer.Typer(add_completion=False, help="Site graph: index a site's categories and HTML pages into graph.json.")
console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    setup_logging("DEBUG" if verbose else Settings().log_level)


@app.command()
def build(
    categories: Path | None = typer.Argument(None, help="Category definition file (default: settings)"),
    docs: Path | None = typer.Option(None, "--docs", help="Root of the HTML document tree"),
    graph: Path | None = typer.Option(None, "--graph", help="graph.json to read the owner from and overwrite"),
    workers: int | None = typer.Option(None, "--workers", help="Threads used to read documents"),
):
    """Rebuild graph.json from the category file and the docs tree."""
    settings = Settings()
    graph_path = graph or Path(settings.graph_path)

    try:
        res = build_site_graph(
            categories_file=categories or Path(settings.categories_file),
            docs_dir=docs or Path(settings.docs_dir),
            graph_path=graph_path,
            workers=int(workers if workers is not None else settings.workers),
            fallback=settings.fallback_category,
        )
    except SiteGraphError as e:
        err_console.print(str(e), style="red", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)
    except OSError as e:
        err_console.print(f"Could not build graph {graph_path}: {e}", style="red", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)

    console.print(f"OK: wrote {res['graph_path']} (nodes: {res['nodes']}, links: {res['links']})", markup=False, soft_wrap=True)
    if res["fallback_documents"]:
        console.print(
            f"{res['fallback_documents']} document(s) filed under '{settings.fallback_category}'.",
            style="yellow",
            markup=False,
        )


def _load_graph_or_exit(graph: Path | None) -> dict:
    path = graph or Path(Settings().graph_path)
    if not path.exists():
        err_console.print(f"Graph not found: {path}", style="red", markup=False, soft_wrap=True)
        err_console.print("Run: `sitegraph build ...`", style="yellow", markup=False)
        raise typer.Exit(code=2)
    return load_snapshot(path)


@app.command()
def search(
    query: str = typer.Argument(...),
    graph: Path | None = typer.Option(None, "--graph", help="graph.json to search"),
    limit: int = typer.Option(5, help="Max results"),
):
    """Keyword search over the documents in graph.json."""
    settings = Settings()
    data = _load_graph_or_exit(graph)
    hits = search_records(build_records(data, url_prefix=settings.url_prefix), query, limit=int(limit))

    if not hits:
        console.print("No matching documents.", style="yellow")
        raise typer.Exit(code=2)

    table = Table(title=f"Top {len(hits)} Documents")
    table.add_column("#", justify="right", width=4)
    table.add_column("score", justify="right", width=6)
    table.add_column("title")
    table.add_column("url")
    for i, (rec, score) in enumerate(hits, start=1):
        table.add_row(Text(str(i)), Text(f"{score:.1f}"), Text(rec.title), Text(rec.url))
    console.print(table)


@app.command()
def stats(
    graph: Path | None = typer.Option(None, "--graph", help="graph.json to inspect"),
):
    """Show node and edge counts."""
    data = _load_graph_or_exit(graph)
    node_kinds = Counter(str(n.get("kind")) for n in data["nodes"] if isinstance(n, dict))
    link_kinds = Counter(str(e.get("kind")) for e in data["links"] if isinstance(e, dict))

    table = Table(title="Site Graph Stats")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Nodes", str(len(data["nodes"])))
    table.add_row("Links", str(len(data["links"])))
    for kind, n in sorted(node_kinds.items()):
        table.add_row(f"nodes:{kind}", str(n))
    for kind, n in sorted(link_kinds.items()):
        table.add_row(f"links:{kind}", str(n))
    console.print(table)


@app.command()
def meta(
    file: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False),
):
    """Debug: show the metadata extracted from one HTML file."""
    head = read_head(file)
    hit = first_match(head)
    result = extract_meta(head)

    console.print(f"strategy: {hit[0] if hit else 'none'}", markup=False)
    if result is None:
        console.print("No metadata found.", style="yellow")
        raise typer.Exit(code=2)

    out = {
        "title": result.title,
        "category": result.category,
        "subcategory": result.subcategory,
        "tags": list(result.tags) if result.tags is not None else None,
    }
    console.print(json.dumps(out, ensure_ascii=False, indent=2), markup=False)


@app.command()
def serve(
    graph: Path | None = typer.Option(None, "--graph", help="graph.json served by the API (default: settings)"),
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Serve graph.json and a keyword search API (FastAPI)."""
    try:
        import uvicorn
    except ImportError:
        err_console.print("Missing web dependencies. Install: `pip install -e '.[web]'`", style="red")
        raise typer.Exit(code=2)

    from .web.server import create_app

    uvicorn.run(create_app(graph_path=str(graph or Path(Settings().graph_path))), host=host, port=int(port))


if __name__ == "__main__":
    app()
