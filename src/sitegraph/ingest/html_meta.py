"""Heuristic metadata extraction for hand-written HTML pages.

Pages on the site declare their category in several ways, depending on when
and by whom they were written. We never build a DOM: every strategy is a
pattern scan over a bounded prefix of the file, and the strategies are tried
from most to least structured. The first one that yields a field wins.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable


HEAD_CHARS = 20_000
SCAN_LINES = 120


@dataclass(frozen=True)
class DocMeta:
    title: str | None = None
    category: str | None = None
    subcategory: str | None = None
    tags: tuple[str, ...] | None = None

    def is_empty(self) -> bool:
        return not (self.title or self.category or self.subcategory or self.tags)

    def has_classification(self) -> bool:
        return bool(self.category or self.subcategory or self.tags)


Strategy = Callable[[str], "DocMeta | None"]


def read_head(path: str | Path, limit: int = HEAD_CHARS) -> str:
    # Raises OSError; callers decide whether that is fatal.
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read(limit)


def _split_tags(value: str) -> tuple[str, ...]:
    items = (re.sub(r"[#\"']", "", s).strip() for s in value.split(","))
    return tuple(s for s in items if s)


def _first(patterns: tuple[re.Pattern[str], ...], text: str) -> str | None:
    for pat in patterns:
        m = pat.search(text)
        if m:
            return m.group(1).strip()
    return None


# 1. Front matter ------------------------------------------------------------

_FM_COMMENT_RE = re.compile(r"<!--\s*---\s*[\r\n]([\s\S]*?)[\r\n]---\s*-->")
_FM_BARE_RE = re.compile(r"(?:^|\n)\s*---\s*[\r\n]([\s\S]*?)\n---")
_FM_LINE_RE = re.compile(r"^([a-zA-Z_]+):\s*(.+)$")
_LIST_RE = re.compile(r"^\[.*\]$")


def _parse_list(value: str) -> tuple[str, ...]:
    try:
        parsed = json.loads(value.replace("'", '"'))
    except ValueError:
        parsed = None
    if isinstance(parsed, list):
        return tuple(str(x).strip() for x in parsed if str(x).strip())
    return _split_tags(value[1:-1])


def _front_matter_fields(body: str) -> dict[str, str | tuple[str, ...]]:
    fields: dict[str, str | tuple[str, ...]] = {}
    for line in body.splitlines():
        m = _FM_LINE_RE.match(line.strip())
        if not m:
            continue
        key = m.group(1).lower()
        value = m.group(2).strip()
        if _LIST_RE.match(value):
            fields[key] = _parse_list(value)
        else:
            fields[key] = value.strip('"')
    return fields


def _scalar(value: str | tuple[str, ...] | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, tuple):
        return ", ".join(value) or None
    return value or None


def from_front_matter(head: str) -> DocMeta | None:
    m = _FM_COMMENT_RE.search(head) or _FM_BARE_RE.search(head)
    if not m:
        return None

    fields = _front_matter_fields(m.group(1))
    tags = fields.get("tags")
    if isinstance(tags, str):
        tags = _split_tags(tags)

    return DocMeta(
        title=_scalar(fields.get("title")),
        category=_scalar(fields.get("categoria") or fields.get("category")),
        subcategory=_scalar(fields.get("subcategoria") or fields.get("subcategory")),
        tags=tags,
    )


# 2. Meta tags ---------------------------------------------------------------

def _meta_re(names: str, attr: str = "(?:name|property)") -> re.Pattern[str]:
    return re.compile(
        rf"<meta[^>]+{attr}=[\"'](?:{names})[\"'][^>]*content=[\"']([^\"']+)[\"'][^>]*>",
        re.IGNORECASE,
    )


_META_CAT = (_meta_re("categoria|category"),)
_META_SUB = (_meta_re("subcategoria|subcategory"),)
_META_TAGS = (_meta_re("tags", attr="name"),)
_META_TITLE = (
    _meta_re("title", attr="name"),
    re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE),
)


def from_meta_tags(head: str) -> DocMeta | None:
    tags_raw = _first(_META_TAGS, head)
    meta = DocMeta(
        title=_first(_META_TITLE, head),
        category=_first(_META_CAT, head),
        subcategory=_first(_META_SUB, head),
        tags=tuple(s.strip() for s in tags_raw.split(",") if s.strip()) if tags_raw else None,
    )
    return meta if meta.has_classification() else None


def title_hint(head: str) -> str | None:
    """Title from a title meta tag or the <title> element, if any."""
    return _first(_META_TITLE, head)


# 3. Inline markers ----------------------------------------------------------

def _inline_re(key: str) -> re.Pattern[str]:
    return re.compile(rf"\b{key}\s*[:=]\s*[\"']?([^\"'\r\n<]+)[\"']?", re.IGNORECASE)


def _badge_re(key: str) -> re.Pattern[str]:
    return re.compile(rf"<(?:b|strong)>\s*{key}\s*:\s*</(?:b|strong)>\s*([^<\r\n]+)", re.IGNORECASE)


_INLINE_CAT = (_inline_re("categoria"), _inline_re("category"))
_INLINE_SUB = (_inline_re("subcategoria"), _inline_re("subcategory"))
_BADGE_CAT = (_badge_re("categoria"), _badge_re("category"))
_BADGE_SUB = (_badge_re("subcategoria"), _badge_re("subcategory"))
_INLINE_TAGS = (
    re.compile(r"\btags\s*[:=]\s*\[([^\]]+)\]", re.IGNORECASE),
    _meta_re("keywords", attr="name"),
    re.compile(r"\btags\s*[:=]\s*([^\r\n<]+)", re.IGNORECASE),
)


_COMMENT_END_RE = re.compile(r"\s*-->.*$")


def _inline_value(inline, badge, head: str) -> str | None:
    # A marker written inside an HTML comment runs up to "-->".
    value = _first(inline, head)
    if value is not None:
        value = _COMMENT_END_RE.sub("", value).strip()
    return value or _first(badge, head)


def from_inline_markers(head: str) -> DocMeta | None:
    tags_raw = _first(_INLINE_TAGS, head)
    if tags_raw:
        tags_raw = _COMMENT_END_RE.sub("", tags_raw)
    meta = DocMeta(
        category=_inline_value(_INLINE_CAT, _BADGE_CAT, head),
        subcategory=_inline_value(_INLINE_SUB, _BADGE_SUB, head),
        tags=(_split_tags(tags_raw) or None) if tags_raw else None,
    )
    return None if meta.is_empty() else meta


# 4. Line scan ---------------------------------------------------------------

_TAG_MARKUP_RE = re.compile(r"<[^>]+>")
_LINE_CAT = (
    re.compile(r"\bcategoria\b\s*[:=]\s*([^,;\s]+)", re.IGNORECASE),
    re.compile(r"\bcategory\b\s*[:=]\s*([^,;\s]+)", re.IGNORECASE),
)
_LINE_SUB = (
    re.compile(r"\bsubcategoria\b\s*[:=]\s*([^,;\s]+)", re.IGNORECASE),
    re.compile(r"\bsubcategory\b\s*[:=]\s*([^,;\s]+)", re.IGNORECASE),
)
_LINE_TAGS = (re.compile(r"\btags\b\s*[:=]\s*([^\r\n]+)", re.IGNORECASE),)


def from_line_scan(head: str, *, max_lines: int = SCAN_LINES) -> DocMeta | None:
    category = subcategory = tags_raw = None
    for raw in head.splitlines()[:max_lines]:
        line = _TAG_MARKUP_RE.sub(" ", raw)
        if category is None:
            category = _first(_LINE_CAT, line)
        if subcategory is None:
            subcategory = _first(_LINE_SUB, line)
        if tags_raw is None:
            tags_raw = _first(_LINE_TAGS, line)
        if category and subcategory and tags_raw:
            break

    meta = DocMeta(
        category=category or None,
        subcategory=subcategory or None,
        tags=(_split_tags(tags_raw) or None) if tags_raw else None,
    )
    return None if meta.is_empty() else meta


# Pipeline -------------------------------------------------------------------

STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("front-matter", from_front_matter),
    ("meta-tags", from_meta_tags),
    ("inline", from_inline_markers),
    ("line-scan", from_line_scan),
)


def first_match(head: str, strategies=STRATEGIES) -> tuple[str, DocMeta | None] | None:
    """Run strategies in order and return (name, result) for the first one that applies.

    A present front-matter block is authoritative even when it carries no
    recognised fields; every other strategy must produce at least one field.
    """
    for name, strategy in strategies:
        meta = strategy(head)
        if meta is None:
            continue
        if name == "front-matter":
            return name, (None if meta.is_empty() else meta)
        if not meta.is_empty():
            return name, meta
    return None


def extract_meta(text: str, *, head_chars: int = HEAD_CHARS) -> DocMeta | None:
    """Return the metadata a page declares about itself, or None."""
    head = text[:head_chars]
    hit = first_match(head)
    if hit is not None:
        name, meta = hit
        if meta is None or name == "front-matter" or meta.title:
            return meta
        return replace(meta, title=title_hint(head))

    # Nothing classifies the page; a <title> still beats a filename.
    title = title_hint(head)
    return DocMeta(title=title) if title else None
