"""Tests for call resolution and the call graph."""

from pathlib import Path

import pytest

from codeweaver.call_graph import build_call_graph
from codeweaver.indexer import build_project_index
from codeweaver.models import FileSymbolRecord, FunctionSymbol, ImportRecord, ProjectIndex
from codeweaver.resolver import CallResolver


@pytest.fixture
def sample_graph(sample_project_path: Path):
    return build_call_graph(build_project_index(sample_project_path))


def _node(graph, node_id):
    return next(n for n in graph.functions if n.id == node_id)


class TestSampleProject:
    """Edges across the mixed-language sample."""

    @pytest.mark.parametrize(
        "caller,callee",
        [
            ("f:app/api/users/[id]/route.ts:GET", "f:lib/format.ts:formatUser"),
            ("f:lib/format.ts:formatUser", "f:lib/format.ts:shout"),
            ("f:server/index.js:registerRoutes", "f:lib/format.ts:formatUser"),
            ("f:components/UserCard.tsx:UserList", "f:components/UserCard.tsx:UserList.renderItem"),
            ("f:backend/api.py:read_order", "f:backend/services.py:order_total"),
            ("f:backend/services.py:order_total", "f:backend/utils.py:calculate_total"),
            ("f:backend/utils.py:calculate_total", "f:backend/utils.py:_tax"),
            ("f:cmd/worker/main.go:main", "f:cmd/worker/main.go:process"),
        ],
    )
    def test_edge(self, sample_graph, caller, callee):
        assert callee in _node(sample_graph, caller).calls
        assert caller in _node(sample_graph, callee).called_by

    def test_edges_are_symmetric(self, sample_graph):
        by_id = {n.id: n for n in sample_graph.functions}
        for node in sample_graph.functions:
            for target in node.calls:
                assert node.id in by_id[target].called_by
            for source in node.called_by:
                assert node.id in by_id[source].calls

    def test_unconnected_private_functions_are_dropped(self, sample_graph):
        ids = {n.id for n in sample_graph.functions}
        assert "f:components/UserCard.tsx:UserCard" in ids  # exported, no edges
        assert "f:cmd/worker/main.go:process" in ids  # private, but called
        for node in sample_graph.functions:
            assert node.exported or node.calls or node.called_by

    def test_unresolved_calls_are_ignored(self, sample_graph):
        get = _node(sample_graph, "f:app/api/users/[id]/route.ts:GET")
        assert get.calls == ["f:lib/format.ts:formatUser"]


class TestResolverTiers:
    """Priority order of the three resolution tiers."""

    def _index(self):
        return ProjectIndex(files=[
            FileSymbolRecord(path="a.ts", size=1, language="TypeScript", functions=[
                FunctionSymbol(name="main", exported=True, call_sites=["helper", "shared", "utils.parse", "walk"]),
                FunctionSymbol(name="helper"),
                FunctionSymbol(name="main.walk"),
            ], imports=[
                ImportRecord(source="./b", names=["shared"]),
                ImportRecord(source="./utils", names=["* as utils"]),
            ]),
            FileSymbolRecord(path="b.ts", size=1, language="TypeScript", functions=[
                FunctionSymbol(name="helper", exported=True),
                FunctionSymbol(name="shared", exported=True),
            ]),
            FileSymbolRecord(path="c.ts", size=1, language="TypeScript", functions=[
                FunctionSymbol(name="shared", exported=True),
                FunctionSymbol(name="parse", exported=True),
            ]),
        ])

    def test_local_wins(self):
        index = self._index()
        resolver = CallResolver(index)
        assert resolver.resolve(index.files[0], "main", "helper") == "f:a.ts:helper"

    def test_inner_function_wins_over_same_file(self):
        index = self._index()
        resolver = CallResolver(index)
        assert resolver.resolve(index.files[0], "main", "walk") == "f:a.ts:main.walk"

    def test_imported_name_takes_first_exported(self):
        index = self._index()
        resolver = CallResolver(index)
        assert resolver.resolve_imported(index.files[0], "shared") == "f:b.ts:shared"

    def test_namespace_import(self):
        index = self._index()
        resolver = CallResolver(index)
        assert resolver.resolve_imported(index.files[0], "utils.parse") == "f:c.ts:parse"

    def test_simple_name_fallback(self):
        index = self._index()
        resolver = CallResolver(index)
        assert resolver.resolve_by_simple_name("f:x.ts:caller", "this.store.parse") == "f:c.ts:parse"
        assert resolver.resolve_by_simple_name("f:x.ts:caller", "nothing") is None

    def test_unknown_callee(self):
        index = self._index()
        assert CallResolver(index).resolve(index.files[0], "main", "console.log") is None


def test_self_recursion_is_not_an_edge():
    index = ProjectIndex(files=[
        FileSymbolRecord(path="r.py", size=1, language="Python", functions=[
            FunctionSymbol(name="walk", exported=True, call_sites=["walk"]),
            FunctionSymbol(name="_lonely", call_sites=["_lonely"]),
        ]),
    ])
    graph = build_call_graph(index)

    assert [n.id for n in graph.functions] == ["f:r.py:walk"]
    assert graph.functions[0].calls == []


def test_duplicate_call_sites_give_one_edge():
    index = ProjectIndex(files=[
        FileSymbolRecord(path="d.go", size=1, language="Go", functions=[
            FunctionSymbol(name="Run", exported=True, call_sites=["step", "s.step"]),
            FunctionSymbol(name="step"),
        ]),
    ])
    graph = build_call_graph(index)
    run = next(n for n in graph.functions if n.name == "Run")
    step = next(n for n in graph.functions if n.name == "step")

    assert run.calls == ["f:d.go:step"]
    assert step.called_by == ["f:d.go:Run"]
