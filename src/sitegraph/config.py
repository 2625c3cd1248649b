from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Settings:
    # Inputs and output used by the CLI and the web server.
    categories_file: str = os.getenv("SITEGRAPH_CATEGORIES_FILE", "categoriasNovas.txt")
    graph_path: str = os.getenv("SITEGRAPH_GRAPH_PATH", "graph.json")
    docs_dir: str = os.getenv("SITEGRAPH_DOCS_DIR", "docs")

    # Prefix joined with a document's relative path to form its search URL.
    url_prefix: str = os.getenv("SITEGRAPH_URL_PREFIX", "docs/")

    # Bucket for documents whose category cannot be resolved.
    fallback_category: str = os.getenv("SITEGRAPH_FALLBACK_CATEGORY", "inbox")

    workers: int = int(os.getenv("SITEGRAPH_WORKERS", "1"))
    log_level: str = os.getenv("SITEGRAPH_LOG_LEVEL", "INFO")
