import json
import tempfile
import unittest
from pathlib import Path

from sitegraph.categories import CategoryRecord
from sitegraph.errors import CategoryFileError
from sitegraph.graph.build import build_site_graph, register_categories, synthesize
from sitegraph.graph.models import CategoryNode, DocumentNode, OwnerNode, SubcategoryNode
from sitegraph.ingest.html_meta import DocMeta
from sitegraph.ingest.walker import ScannedDoc


CATS = [
    CategoryRecord(slug="dev", title="Desenvolvimento", subcategories=("Web", "CLI")),
    CategoryRecord(slug="musica", title="Música", subcategories=("Guitarra",)),
]

OWNER = {"id": "owner:me", "label": "Me", "kind": "owner", "about": "hand written"}


def _links(graph):
    return {(e.source, e.target, e.kind) for e in graph.links}


class TestRegisterCategories(unittest.TestCase):
    def test_nodes_edges_and_index(self):
        nodes, links, index = register_categories(CATS)
        self.assertEqual(
            [n.id for n in nodes],
            ["cat:dev", "sub:dev:web", "sub:dev:cli", "cat:musica", "sub:musica:guitarra"],
        )
        self.assertEqual(nodes[0], CategoryNode(slug="dev", label="Desenvolvimento", about="Web · CLI"))
        self.assertEqual(nodes[2], SubcategoryNode(category="dev", slug="cli", label="CLI", about="CLI"))
        self.assertEqual([e.kind for e in links], ["has-sub"] * 3)
        self.assertEqual(index.resolve("Desenvolvimento"), "dev")
        self.assertEqual(index.resolve("MUSICA"), "musica")
        self.assertIsNone(index.resolve("nope"))
        self.assertTrue(index.has_sub("dev", "cli"))
        self.assertFalse(index.has_sub("musica", "cli"))

    def test_slug_beats_earlier_title(self):
        cats = [CategoryRecord(slug="dev", title="Web"), CategoryRecord(slug="web", title="Sites")]
        _, _, index = register_categories(cats)
        self.assertEqual(index.resolve("web"), "web")
        self.assertEqual(index.resolve("Sites"), "web")
        self.assertEqual(index.resolve("dev"), "dev")

        g = synthesize({}, cats, [ScannedDoc("x.html", DocMeta(category="web"))])
        self.assertEqual(g.of_kind(DocumentNode)[0].category, "web")

    def test_duplicate_slug_keeps_first(self):
        cats = [CategoryRecord(slug="dev", title="A"), CategoryRecord(slug="dev", title="B")]
        with self.assertLogs("sitegraph.graph.build", level="WARNING"):
            nodes, _, _ = register_categories(cats)
        self.assertEqual([n.label for n in nodes], ["A"])


class TestSynthesize(unittest.TestCase):
    def test_dev_tool_scenario(self):
        docs = [ScannedDoc("dev/tool.html", DocMeta(category="dev", subcategory="cli"))]
        g = synthesize({"nodes": [], "links": []}, CATS[:1], docs)

        doc = g.of_kind(DocumentNode)[0]
        self.assertEqual(doc.id, "doc:dev-tool")
        self.assertEqual(doc.category, "dev")
        self.assertEqual(doc.subcategory, "cli")
        self.assertEqual(doc.label, "Tool")
        self.assertIn(("cat:dev", "doc:dev-tool", "contains"), _links(g))
        self.assertIn(("sub:dev:cli", "doc:dev-tool", "contains"), _links(g))

    def test_unknown_category_goes_to_inbox_once(self):
        docs = [
            ScannedDoc("a.html", DocMeta(category="nonexistent-xyz")),
            ScannedDoc("b.html", DocMeta(category="nonexistent-xyz")),
        ]
        with self.assertLogs("sitegraph.graph.build", level="WARNING") as cm:
            g = synthesize({"nodes": [OWNER]}, CATS, docs)

        self.assertEqual(len(cm.records), 2)
        inbox = [n for n in g.of_kind(CategoryNode) if n.slug == "inbox"]
        self.assertEqual(len(inbox), 1)
        self.assertEqual({d.category for d in g.of_kind(DocumentNode)}, {"inbox"})
        links = _links(g)
        self.assertIn(("owner:me", "cat:inbox", "owns"), links)
        self.assertIn(("cat:inbox", "doc:a", "contains"), links)
        self.assertIn(("cat:inbox", "doc:b", "contains"), links)

    def test_no_inbox_when_everything_resolves(self):
        g = synthesize({}, CATS, [ScannedDoc("dev/x.html", None)])
        self.assertNotIn("cat:inbox", [n.id for n in g.nodes])

    def test_undeclared_subcategory_keeps_field_without_edge(self):
        docs = [ScannedDoc("dev/app.html", DocMeta(category="dev", subcategory="Mobile Apps"))]
        g = synthesize({}, CATS, docs)
        doc = g.of_kind(DocumentNode)[0]
        self.assertEqual(doc.subcategory, "mobile-apps")
        sub_edges = [e for e in g.links if e.target == doc.id and e.source.startswith("sub:")]
        self.assertEqual(sub_edges, [])
        self.assertIn(("cat:dev", doc.id, "contains"), _links(g))

    def test_subcategory_of_other_category_is_not_linked(self):
        docs = [ScannedDoc("x.html", DocMeta(category="musica", subcategory="cli"))]
        g = synthesize({}, CATS, docs)
        self.assertNotIn(("sub:dev:cli", "doc:x", "contains"), _links(g))

    def test_category_by_title_and_by_path(self):
        docs = [
            ScannedDoc("notes/a.html", DocMeta(category="Desenvolvimento")),
            ScannedDoc("Musica/song_list.html", None),
            ScannedDoc("loose-page.html", DocMeta(title="Loose")),
        ]
        g = synthesize({}, CATS, docs)
        by_path = {d.path: d for d in g.of_kind(DocumentNode)}
        self.assertEqual(by_path["notes/a.html"].category, "dev")
        self.assertEqual(by_path["Musica/song_list.html"].category, "musica")
        self.assertEqual(by_path["Musica/song_list.html"].label, "Song List")
        self.assertEqual(by_path["loose-page.html"].category, "inbox")
        self.assertEqual(by_path["loose-page.html"].label, "Loose")

    def test_path_guess_does_not_warn(self):
        with self.assertNoLogs("sitegraph.graph.build", level="WARNING"):
            synthesize({}, CATS, [ScannedDoc("misc/page.html", None)])

    def test_owner_carried_and_stale_nodes_dropped(self):
        previous = {
            "nodes": [
                {"id": "doc:old", "kind": "doc", "path": "old.html"},
                OWNER,
                {"id": "cat:gone", "kind": "category", "slug": "gone"},
            ],
            "links": [{"source": "cat:gone", "target": "doc:old", "kind": "contains"}],
        }
        g = synthesize(previous, CATS, [])
        self.assertIsInstance(g.nodes[0], OwnerNode)
        self.assertEqual(g.nodes[0].to_dict(), OWNER)
        ids = [n.id for n in g.nodes]
        self.assertNotIn("doc:old", ids)
        self.assertNotIn("cat:gone", ids)
        owns = [e.target for e in g.links if e.kind == "owns"]
        self.assertEqual(owns, ["cat:dev", "cat:musica"])

    def test_node_order_and_determinism(self):
        docs = [
            ScannedDoc("dev/b.html", DocMeta(category="dev", subcategory="web", tags=("x",))),
            ScannedDoc("zzz.html", DocMeta(category="unknown")),
            ScannedDoc("dev/a.html", None),
        ]
        previous = {"nodes": [OWNER]}
        g1 = synthesize(previous, CATS, docs)
        g2 = synthesize(previous, CATS, docs)
        self.assertEqual(json.dumps(g1.to_dict()), json.dumps(g2.to_dict()))
        self.assertEqual(
            [n.id for n in g1.nodes],
            [
                "owner:me",
                "cat:dev",
                "sub:dev:web",
                "sub:dev:cli",
                "cat:musica",
                "sub:musica:guitarra",
                "doc:dev-b",
                "doc:zzz",
                "doc:dev-a",
                "cat:inbox",
            ],
        )

    def test_colliding_document_ids_warn(self):
        docs = [ScannedDoc("a/b.html", None), ScannedDoc("a-b.html", None), ScannedDoc("a/c.html", None)]
        with self.assertLogs("sitegraph.graph.build", level="WARNING") as cm:
            synthesize({}, CATS, docs)
        msgs = [r.getMessage() for r in cm.records if "already used" in r.getMessage()]
        self.assertEqual(len(msgs), 1)
        self.assertIn("doc:a-b", msgs[0])
        self.assertIn("a/b.html", msgs[0])

    def test_real_category_named_like_fallback(self):
        cats = CATS + [CategoryRecord(slug="inbox", title="Caixa")]
        g = synthesize({}, cats, [ScannedDoc("q.html", DocMeta(category="unknown"))])
        inbox = [n for n in g.of_kind(CategoryNode) if n.slug == "inbox"]
        self.assertEqual(len(inbox), 1)
        self.assertEqual(inbox[0].label, "Caixa")
        self.assertIn(("cat:inbox", "doc:q", "contains"), _links(g))

    def test_doc_json_shape(self):
        docs = [ScannedDoc("dev/tool.html", DocMeta(title="Tool", category="dev", tags=("a", "b")))]
        d = synthesize({}, CATS, docs).to_dict()["nodes"][-1]
        self.assertEqual(
            d,
            {"id": "doc:dev-tool", "label": "Tool", "kind": "doc", "category": "dev", "tags": ["a", "b"], "path": "dev/tool.html"},
        )


CATEGORY_TEXT = """\
categories:
  - slug: dev
    title: "Desenvolvimento"
    sub:
      - "Web"
      - "CLI"
"""


class TestBuildSiteGraph(unittest.TestCase):
    def test_end_to_end(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            cats = root / "cats.txt"
            cats.write_text(CATEGORY_TEXT, encoding="utf-8")
            docs = root / "docs"
            (docs / "dev").mkdir(parents=True)
            (docs / "dev" / "tool.html").write_text(
                "<!--\n---\ncategoria: dev\nsubcategoria: cli\n---\n-->\n<html></html>", encoding="utf-8"
            )
            graph_path = root / "graph.json"
            graph_path.write_text(json.dumps({"nodes": [OWNER], "links": []}), encoding="utf-8")

            res = build_site_graph(categories_file=cats, docs_dir=docs, graph_path=graph_path)
            data = json.loads(graph_path.read_text(encoding="utf-8"))

            self.assertEqual(res["documents"], 1)
            self.assertEqual(res["nodes"], len(data["nodes"]))
            ids = [n["id"] for n in data["nodes"]]
            self.assertEqual(ids, ["owner:me", "cat:dev", "sub:dev:web", "sub:dev:cli", "doc:dev-tool"])
            links = {(e["source"], e["target"], e["kind"]) for e in data["links"]}
            self.assertIn(("cat:dev", "doc:dev-tool", "contains"), links)
            self.assertIn(("sub:dev:cli", "doc:dev-tool", "contains"), links)
            self.assertIn(("owner:me", "cat:dev", "owns"), links)

            # Rebuilding from unchanged inputs rewrites the same bytes.
            before = graph_path.read_bytes()
            build_site_graph(categories_file=cats, docs_dir=docs, graph_path=graph_path, workers=4)
            self.assertEqual(graph_path.read_bytes(), before)

    def test_missing_category_file_writes_nothing(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            graph_path = root / "graph.json"
            with self.assertRaises(CategoryFileError):
                build_site_graph(categories_file=root / "missing.txt", docs_dir=root, graph_path=graph_path)
            self.assertFalse(graph_path.exists())


if __name__ == "__main__":
    unittest.main()
