from __future__ import annotations

import re
import unicodedata


_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def _strip_marks(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(text: str | None) -> str:
    """Return a lowercase, accent-free, hyphenated identifier for `text`.

    "Café Ação" -> "cafe-acao". Symbol-only input yields "".
    """
    if not text:
        return ""
    s = _strip_marks(str(text).strip().lower())
    s = _NON_ALNUM_RE.sub("-", s)
    return s.strip("-")


def fold(text: str | None) -> str:
    # Lowercase + accent strip, keeping spacing and punctuation.
    return _strip_marks(str(text or "").lower())
