from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


OWNS = "owns"
HAS_SUB = "has-sub"
CONTAINS = "contains"


def category_id(slug: str) -> str:
    return f"cat:{slug}"


def subcategory_id(category_slug: str, sub_slug: str) -> str:
    return f"sub:{category_slug}:{sub_slug}"


@dataclass(frozen=True)
class OwnerNode:
    # Authored by hand and carried through untouched.
    data: dict[str, Any]

    @property
    def id(self) -> str:
        return str(self.data.get("id", "owner"))

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)


@dataclass(frozen=True)
class CategoryNode:
    slug: str
    label: str
    about: str = ""

    @property
    def id(self) -> str:
        return category_id(self.slug)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "slug": self.slug, "kind": "category", "about": self.about}


@dataclass(frozen=True)
class SubcategoryNode:
    category: str
    slug: str
    label: str
    about: str = ""

    @property
    def id(self) -> str:
        return subcategory_id(self.category, self.slug)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "kind": "subcategory", "category": self.category, "about": self.about}


@dataclass(frozen=True)
class DocumentNode:
    id: str
    label: str
    path: str
    category: str
    subcategory: str | None = None
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "label": self.label, "kind": "doc", "category": self.category}
        if self.subcategory:
            d["subcategory"] = self.subcategory
        d["tags"] = list(self.tags)
        d["path"] = self.path
        return d


Node = Union[OwnerNode, CategoryNode, SubcategoryNode, DocumentNode]


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    kind: str

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "target": self.target, "kind": self.kind}


@dataclass(frozen=True)
class Graph:
    nodes: tuple[Node, ...] = ()
    links: tuple[Edge, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [e.to_dict() for e in self.links],
        }

    def of_kind(self, cls: type) -> list[Any]:
        return [n for n in self.nodes if isinstance(n, cls)]
