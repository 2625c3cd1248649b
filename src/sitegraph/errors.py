from __future__ import annotations


class SiteGraphError(RuntimeError):
    pass


class CategoryFileError(SiteGraphError):
    """The category definition input is missing, unreadable or empty."""
