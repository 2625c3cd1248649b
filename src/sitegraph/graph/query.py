from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from ..slug import fold


# Characters encodeURI leaves alone, besides alphanumerics and "-_.~".
_URI_SAFE = ";,/?:@&=+$!*'()#"


@dataclass(frozen=True)
class SearchRecord:
    title: str
    url: str
    keywords: tuple[str, ...]


def doc_url(path: str, *, prefix: str = "docs/") -> str:
    return quote(prefix + path, safe=_URI_SAFE)


def build_records(graph: dict[str, Any], *, url_prefix: str = "docs/") -> list[SearchRecord]:
    """Flatten the doc nodes of a graph snapshot into search records."""
    out: list[SearchRecord] = []
    for n in graph.get("nodes") or []:
        if not isinstance(n, dict) or n.get("kind") != "doc":
            continue
        path = str(n.get("path") or "")
        title = n.get("label") or re.sub(r"[-_]+", " ", re.sub(r"\.[^/.]+$", "", path))

        kw: list[str] = []
        for key in ("category", "subcategory"):
            if n.get(key):
                kw.append(str(n[key]))
        if isinstance(n.get("tags"), list):
            kw.extend(str(t) for t in n["tags"])
        if path:
            kw.append(path)
        if n.get("id"):
            kw.append(str(n["id"]))

        out.append(SearchRecord(title=str(title), url=doc_url(path, prefix=url_prefix), keywords=tuple(kw)))
    return out


def score_record(record: SearchRecord, query: str) -> float:
    hay = fold(record.title + " " + " ".join(record.keywords))
    terms = fold(query).split()
    score = float(sum(1 for t in terms if t in hay))
    # Small bonus for matching more than one term.
    if score > 1:
        score += 0.5
    return score


def search(records: list[SearchRecord], query: str, *, limit: int = 5) -> list[tuple[SearchRecord, float]]:
    scored = [(r, score_record(r, query)) for r in records]
    # sorted() is stable, so ties keep graph order.
    scored = sorted(scored, key=lambda x: x[1], reverse=True)
    return [(r, s) for r, s in scored if s > 0][: int(limit)]
