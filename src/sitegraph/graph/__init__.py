"""Site graph: category, subcategory and document nodes linked by ownership.

`build` synthesizes the graph, `snapshot` persists it as graph.json and
`query` flattens it for keyword search.
"""
