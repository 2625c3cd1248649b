"""Assemble the site graph from category records and scanned documents.

The category/subcategory/document part of the graph is derived state and is
rebuilt from scratch on every run. Only the hand-authored owner node survives
from the previous snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from ..categories import CategoryRecord, load_categories
from ..ingest.walker import ScannedDoc, default_category, default_title, doc_id, scan_documents
from ..slug import slugify
from .models import (
    CONTAINS,
    HAS_SUB,
    OWNS,
    CategoryNode,
    DocumentNode,
    Edge,
    Graph,
    Node,
    OwnerNode,
    SubcategoryNode,
    category_id,
    subcategory_id,
)
from .snapshot import load_snapshot, owner_from_snapshot, write_snapshot


log = logging.getLogger(__name__)

FALLBACK_LABEL = "Arquivo / Inbox"
FALLBACK_ABOUT = "Entrada automática e rascunhos."


@dataclass
class CategoryIndex:
    # slug -> node id, for every category node in the graph
    node_ids: dict[str, str] = field(default_factory=dict)
    # any accepted spelling (slug, slugified slug, slugified title) -> slug
    slug_by_token: dict[str, str] = field(default_factory=dict)
    # slug -> slugs of its declared subcategories
    subs_by_cat: dict[str, set[str]] = field(default_factory=dict)

    def resolve(self, raw: str | None) -> str | None:
        if not raw:
            return None
        return self.slug_by_token.get(raw) or self.slug_by_token.get(slugify(raw))

    def has_sub(self, category: str, sub_slug: str) -> bool:
        return sub_slug in self.subs_by_cat.get(category, ())


def register_categories(
    categories: Sequence[CategoryRecord],
) -> tuple[list[Node], list[Edge], CategoryIndex]:
    nodes: list[Node] = []
    links: list[Edge] = []
    index = CategoryIndex()
    accepted: list[CategoryRecord] = []

    for c in categories:
        if c.slug in index.node_ids:
            log.warning("Duplicate category slug %r ignored", c.slug)
            continue

        cat = CategoryNode(slug=c.slug, label=c.label, about=" · ".join(c.subcategories[:2]))
        nodes.append(cat)
        index.node_ids[c.slug] = cat.id
        accepted.append(c)

        for token in (c.slug, slugify(c.slug)):
            if token:
                index.slug_by_token.setdefault(token, c.slug)

        known = index.subs_by_cat.setdefault(c.slug, set())
        for label in c.subcategories:
            sub_slug = slugify(label)
            if not sub_slug or sub_slug in known:
                continue
            sub = SubcategoryNode(category=c.slug, slug=sub_slug, label=label.strip('"'), about=label)
            nodes.append(sub)
            links.append(Edge(source=cat.id, target=sub.id, kind=HAS_SUB))
            known.add(sub_slug)

    # Titles only fill tokens no slug has claimed.
    for c in accepted:
        token = slugify(c.title)
        if token:
            index.slug_by_token.setdefault(token, c.slug)

    return nodes, links, index


def resolve_document(doc: ScannedDoc, index: CategoryIndex, *, fallback: str) -> DocumentNode:
    rel = doc.rel_path
    meta = doc.meta

    declared = meta.category if meta is not None else None
    category = index.resolve(declared or default_category(rel)) or fallback
    if declared and index.resolve(declared) is None:
        log.warning("Unknown category for %s: %r -> using %r", rel, declared, fallback)

    sub_raw = meta.subcategory if meta is not None else None
    return DocumentNode(
        id=doc_id(rel),
        label=(meta.title if meta is not None and meta.title else default_title(rel)),
        path=rel,
        category=category,
        subcategory=slugify(sub_raw) or None,
        tags=tuple(meta.tags or ()) if meta is not None else (),
    )


def synthesize(
    previous: dict[str, Any],
    categories: Sequence[CategoryRecord],
    docs: Sequence[ScannedDoc],
    *,
    fallback: str = "inbox",
    fallback_label: str = FALLBACK_LABEL,
    fallback_about: str = FALLBACK_ABOUT,
) -> Graph:
    """Build a fresh graph. Same inputs always give the same node and edge order."""
    owner: OwnerNode | None = owner_from_snapshot(previous)
    nodes: list[Node] = [owner] if owner is not None else []

    cat_nodes, links, index = register_categories(categories)
    nodes.extend(cat_nodes)

    if owner is not None:
        for cid in index.node_ids.values():
            links.append(Edge(source=owner.id, target=cid, kind=OWNS))

    # Resolve every document before touching the fallback bucket.
    doc_nodes = [resolve_document(d, index, fallback=fallback) for d in docs]
    nodes.extend(doc_nodes)

    seen: dict[str, str] = {}
    for d in doc_nodes:
        if d.id in seen:
            log.warning("Document id %s of %s already used by %s", d.id, d.path, seen[d.id])
        else:
            seen[d.id] = d.path

    if fallback not in index.node_ids and any(d.category == fallback for d in doc_nodes):
        inbox = CategoryNode(slug=fallback, label=fallback_label, about=fallback_about)
        nodes.append(inbox)
        index.node_ids[fallback] = inbox.id
        if owner is not None:
            links.append(Edge(source=owner.id, target=inbox.id, kind=OWNS))

    for d in doc_nodes:
        if d.category not in index.node_ids:
            continue
        links.append(Edge(source=category_id(d.category), target=d.id, kind=CONTAINS))
        if d.subcategory and index.has_sub(d.category, d.subcategory):
            links.append(Edge(source=subcategory_id(d.category, d.subcategory), target=d.id, kind=CONTAINS))

    return Graph(nodes=tuple(nodes), links=tuple(links))


def build_site_graph(
    *,
    categories_file: str | Path,
    docs_dir: str | Path,
    graph_path: str | Path,
    workers: int = 1,
    fallback: str = "inbox",
) -> dict[str, Any]:
    """Run the whole pipeline and overwrite `graph_path`.

    Raises CategoryFileError before anything is written when the category
    file is missing or empty.
    """
    categories = load_categories(categories_file)
    previous = load_snapshot(graph_path)
    docs = scan_documents(docs_dir, workers=workers)

    graph = synthesize(previous, categories, docs, fallback=fallback)
    write_snapshot(graph_path, graph)

    doc_nodes = graph.of_kind(DocumentNode)
    return {
        "graph_path": str(graph_path),
        "nodes": len(graph.nodes),
        "links": len(graph.links),
        "categories": len(categories),
        "documents": len(doc_nodes),
        "fallback_documents": sum(1 for d in doc_nodes if d.category == fallback),
    }
