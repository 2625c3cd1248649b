"""Parse the category definition document.

The document may carry unrelated prose or front matter; only the block that
follows a ``categories:`` line is read, and a ``tags:`` line ends it::

    categories:
      - slug: dev
        title: "Desenvolvimento"
        sub:
          - "Web"
          - "CLI"

    tags:
      ...
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from .errors import CategoryFileError


_START_RE = re.compile(r"^categories:", re.IGNORECASE)
_SLUG_RE = re.compile(r"^\s*-\s*slug:\s*(\S+)", re.IGNORECASE)
_TITLE_RE = re.compile(r'^title:\s*"?(.+?)"?$', re.IGNORECASE)
_SUB_RE = re.compile(r"^sub:\s*$", re.IGNORECASE)
_ITEM_RE = re.compile(r'^\s*-\s*"?(.+?)"?\s*$')
_STOP_RE = re.compile(r"^tags:", re.IGNORECASE)


@dataclass(frozen=True)
class CategoryRecord:
    slug: str
    title: str = ""
    subcategories: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return self.title or self.slug


@dataclass
class _Draft:
    slug: str
    title: str = ""
    subs: list[str] = field(default_factory=list)


def parse_categories_text(text: str) -> list[CategoryRecord]:
    """Return category records in source order. Never raises on bad lines."""
    out: list[CategoryRecord] = []
    active = False
    in_sub = False
    current: _Draft | None = None

    def flush() -> None:
        nonlocal current, in_sub
        if current is not None and current.slug:
            out.append(CategoryRecord(slug=current.slug, title=current.title, subcategories=tuple(current.subs)))
        current = None
        in_sub = False

    for raw in text.splitlines():
        line = raw.strip()
        if not active:
            if _START_RE.match(line):
                active = True
            continue

        if not line:
            in_sub = False
            continue

        m = _SLUG_RE.match(raw)
        if m:
            flush()
            current = _Draft(slug=m.group(1).strip("\"'"))
            continue

        m = _TITLE_RE.match(line)
        if m and current is not None:
            current.title = m.group(1)
            continue

        if _SUB_RE.match(line):
            in_sub = True
            continue

        if in_sub:
            m = _ITEM_RE.match(raw)
            if m and current is not None:
                current.subs.append(m.group(1))
                continue

        if _STOP_RE.match(line):
            break

    flush()
    return out


def load_categories(path: str | Path) -> list[CategoryRecord]:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise CategoryFileError(f"Categories file not found: {p}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise CategoryFileError(f"Categories file unreadable: {p}") from e

    cats = parse_categories_text(text)
    if not cats:
        raise CategoryFileError(f"No categories parsed from file: {p}")
    return cats
