from __future__ import annotations

from collections import Counter
from pathlib import Path


def create_app(*, graph_path: str | None = None):
    # Lazy import so the core CLI works without web deps.
    from fastapi import FastAPI
    from fastapi.responses import JSONResponse

    from .. import __version__
    from ..config import Settings
    from ..graph.query import build_records, search as search_records
    from ..graph.snapshot import load_snapshot

    settings = Settings()
    graph_file = Path(graph_path or settings.graph_path)

    app = FastAPI(title="Site Graph", version=__version__)

    def _missing():
        return JSONResponse({"ok": False, "error": f"graph not found: {graph_file}"}, status_code=404)

    @app.get("/api/health")
    def health():
        return {"ok": True, "graph_path": str(graph_file), "graph_exists": graph_file.exists()}

    @app.get("/graph.json")
    def graph():
        if not graph_file.exists():
            return _missing()
        return load_snapshot(graph_file)

    @app.get("/api/search")
    def search(q: str = "", limit: int = 5):
        query = q.strip()
        if not query:
            return JSONResponse({"ok": False, "error": "q is required"}, status_code=400)
        if not graph_file.exists():
            return _missing()

        records = build_records(load_snapshot(graph_file), url_prefix=settings.url_prefix)
        hits = search_records(records, query, limit=int(limit))
        return {
            "ok": True,
            "hits": [{"title": r.title, "url": r.url, "score": s} for r, s in hits],
        }

    @app.get("/api/stats")
    def stats():
        if not graph_file.exists():
            return _missing()
        data = load_snapshot(graph_file)
        return {
            "ok": True,
            "nodes": dict(Counter(str(n.get("kind")) for n in data["nodes"] if isinstance(n, dict))),
            "links": dict(Counter(str(e.get("kind")) for e in data["links"] if isinstance(e, dict))),
        }

    return app
