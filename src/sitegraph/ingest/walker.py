from __future__ import annotations

import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..slug import slugify
from .html_meta import HEAD_CHARS, DocMeta, extract_meta, read_head


log = logging.getLogger(__name__)

HTML_EXTS = {".htm", ".html"}

_EXT_RE = re.compile(r"\.html?$", re.IGNORECASE)


@dataclass(frozen=True)
class ScannedDoc:
    rel_path: str  # posix, relative to the docs root
    meta: DocMeta | None


def iter_html_files(root: Path) -> Iterable[Path]:
    """Yield HTML files depth-first in name order, so runs are reproducible."""
    if not root.is_dir():
        return
    for p in sorted(root.iterdir(), key=lambda x: x.name):
        if p.is_dir():
            yield from iter_html_files(p)
        elif p.is_file() and p.suffix.lower() in HTML_EXTS:
            yield p


def relpath(path: Path, root: Path) -> str:
    return Path(os.path.relpath(path, root)).as_posix()


def strip_ext(rel: str) -> str:
    return _EXT_RE.sub("", rel)


def default_title(rel: str) -> str:
    base = strip_ext(rel.rsplit("/", 1)[-1])
    words = re.sub(r"[-_]+", " ", base)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), words)


def default_category(rel: str) -> str | None:
    parts = rel.split("/")
    return parts[0].lower() if len(parts) > 1 else None


def doc_id(rel: str) -> str:
    return "doc:" + slugify(strip_ext(rel).replace("/", "-"))


def _scan_one(path: Path, root: Path, head_chars: int) -> ScannedDoc | None:
    rel = relpath(path, root)
    try:
        head = read_head(path, head_chars)
    except OSError as e:
        log.warning("Skipping unreadable document %s: %s", rel, e)
        return None
    return ScannedDoc(rel_path=rel, meta=extract_meta(head, head_chars=head_chars))


def scan_documents(root: str | Path, *, workers: int = 1, head_chars: int = HEAD_CHARS) -> list[ScannedDoc]:
    """Extract metadata for every HTML file under `root`, in walk order.

    Files are independent, so extraction may fan out over a thread pool; the
    results are still collected in walk order.
    """
    root = Path(root)
    paths = list(iter_html_files(root))

    if workers > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=int(workers)) as pool:
            results = list(pool.map(lambda p: _scan_one(p, root, head_chars), paths))
    else:
        results = [_scan_one(p, root, head_chars) for p in paths]

    return [r for r in results if r is not None]
