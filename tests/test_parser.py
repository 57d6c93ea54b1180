"""Tests for the symbol extractor (tree-sitter and heuristic strategies)."""

import pytest

from codeweaver import parser
from codeweaver.models import FileSymbolRecord
from codeweaver.parser import extract, parse_doc_comment


def _fn(record: FileSymbolRecord, name: str):
    matches = [f for f in record.functions if f.name == name]
    assert matches, f"{name} not in {[f.name for f in record.functions]}"
    return matches[0]


def _type(record: FileSymbolRecord, name: str):
    return next(t for t in record.types if t.name == name)


# ===================================================================
# TypeScript / JavaScript
# ===================================================================

class TestScriptExtraction:
    """Tree-sitter extraction for the TS/JS family."""

    def test_file_description(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        assert record.description == "Account helpers."

    def test_function_declaration(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        add = _fn(record, "add")

        assert add.exported is True
        assert add.line == 7
        assert add.return_type == "number"
        assert [(p.name, p.type) for p in add.params] == [("a", "number"), ("b", "number")]
        assert add.description == "Adds two numbers."

    def test_async_and_call_sites(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        load = _fn(record, "load")

        assert load.exported is False
        assert load.is_async is True
        assert load.call_sites == ["fetchRow", "add"]

    def test_imports_use_local_names(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        imports = {imp.source: imp.names for imp in record.imports}

        assert imports["./lib"] == ["Default", "alpha", "gamma"]
        assert imports["path"] == ["* as path"]
        assert imports["./side-effect"] == []
        assert imports["./shapes"] == ["*"]

    def test_exports(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        for name in ("add", "Shape", "Mode", "Level", "Circle", "MAX_RADIUS", "handler", "plus", "load"):
            assert name in record.exports

    def test_interface_fields(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        shape = _type(record, "Shape")

        assert shape.kind == "interface"
        fields = {f.name: f for f in shape.fields}
        assert fields["area"].type == "area(): number"
        assert fields["label"].type == "string"
        assert fields["label"].optional is True

    def test_union_alias_is_flattened(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        mode = _type(record, "Mode")
        assert mode.kind == "type"
        assert mode.values == ["light", "dark", "auto"]

    def test_enum_members(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        level = _type(record, "Level")
        assert level.kind == "enum"
        assert level.values == ["Low", "High"]

    def test_object_alias_fields(self):
        code = "type Settings = { theme: string; compact?: boolean };\n"
        record = extract(code, "TypeScript", "settings.ts")
        settings = _type(record, "Settings")
        assert [(f.name, f.type, f.optional) for f in settings.fields] == [
            ("theme", "string", None),
            ("compact", "boolean", True),
        ]

    def test_class_heritage_and_members(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        circle = record.classes[0]

        assert circle.name == "Circle"
        assert circle.exported is True
        assert circle.extends == "Base"
        assert circle.implements == ["Shape", "Printable"]
        assert [(p.name, p.type) for p in circle.properties] == [("radius", "number")]
        assert circle.methods[0].name == "area"
        assert circle.methods[0].return_type == "number"

    def test_javascript_class_extends(self):
        code = "class Admin extends models.User {\n  constructor(name) { super(name); }\n}\n"
        record = extract(code, "JavaScript", "admin.js")
        assert record.classes[0].extends == "models.User"
        assert record.classes[0].methods[0].params == ["name"]

    def test_variables(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        max_radius = next(v for v in record.variables if v.name == "MAX_RADIUS")
        assert max_radius.kind == "const"
        assert max_radius.value == "100"
        assert max_radius.exported is True

    def test_long_variable_value_is_truncated(self):
        code = "let banner = '" + "x" * 200 + "';\n"
        record = extract(code, "JavaScript", "banner.js")
        banner = record.variables[0]
        assert banner.kind == "let"
        assert len(banner.value) == 80
        assert banner.value.endswith("...")

    def test_arrow_function_with_inner_function(self, sample_ts_code: str):
        record = extract(sample_ts_code, "TypeScript", "src/shapes.ts")
        handler = _fn(record, "handler")

        assert handler.is_async is True
        assert [p.name for p in handler.params] == ["event"]
        assert handler.call_sites == ["helper", "load"]
        assert _fn(record, "handler.helper").exported is False

    def test_inner_function_calls_belong_to_inner_symbol(self):
        code = (
            "function Outer() {\n"
            "  function inner() { helper(); }\n"
            "  const arrow = () => other();\n"
            "  return inner();\n"
            "}\n"
        )
        record = extract(code, "JavaScript", "outer.js")

        assert [f.name for f in record.functions] == ["Outer", "Outer.inner", "Outer.arrow"]
        assert _fn(record, "Outer").call_sites == ["inner"]
        assert _fn(record, "Outer.inner").call_sites == ["helper"]
        assert _fn(record, "Outer.arrow").call_sites == ["other"]

    def test_member_call_names(self):
        code = "function save() {\n  this.store.put(1);\n  api.users.get();\n  fetch().then(done);\n}\n"
        record = extract(code, "JavaScript", "save.js")
        assert _fn(record, "save").call_sites == ["this.store.put", "api.users.get", "then", "fetch"]

    def test_repeated_route_registrations_are_kept(self):
        """Each registration call is its own route; other repeats collapse."""
        code = "function setup() {\n  app.get('/a', a);\n  app.get('/b', b);\n  log(1);\n  log(2);\n}\n"
        record = extract(code, "JavaScript", "server.js")
        assert _fn(record, "setup").call_sites == ["app.get", "app.get", "log"]

    def test_doc_comment_requires_adjacency(self):
        code = "/** Detached. */\n\nfunction a() {}\n/** Attached. */\nfunction b() {}\n"
        record = extract(code, "JavaScript", "docs.js")
        assert _fn(record, "a").description is None
        assert _fn(record, "b").description == "Attached."

    def test_default_export_of_anonymous_function(self):
        record = extract("export default function () { return 1; }\n", "JavaScript", "anon.js")
        assert _fn(record, "default").exported is True
        assert "default" in record.exports

    def test_component_detection(self):
        code = (
            "import React from 'react';\n"
            "export const Card: React.FC<Props> = (props) => null;\n"
            "export function List() {\n"
            "  return <ul><li /></ul>;\n"
            "}\n"
            "export function plain() { return 1 < 2; }\n"
        )
        record = extract(code, "TypeScript", "components/List.tsx")

        assert _fn(record, "Card").is_component is True
        assert _fn(record, "List").is_component is True
        assert not _fn(record, "plain").is_component

    def test_malformed_source_keeps_valid_declarations(self):
        code = "export function ok() { return 1; }\nfunction broken( {\n"
        record = extract(code, "TypeScript", "broken.ts")
        assert "ok" in [f.name for f in record.functions]


# ===================================================================
# Python heuristics
# ===================================================================

class TestPythonExtraction:
    """Indentation-based extraction for Python."""

    def test_module_docstring(self, sample_python_code: str):
        record = extract(sample_python_code, "Python", "pkg/sample.py")
        assert record.description == "Sample module for testing."

    def test_functions(self, sample_python_code: str):
        record = extract(sample_python_code, "Python", "pkg/sample.py")
        hello = _fn(record, "hello")

        assert hello.line == 11
        assert [(p.name, p.type) for p in hello.params] == [("name", "str"), ("greeting", "str")]
        assert hello.return_type == "str"
        assert hello.description == "Say hello."
        assert hello.call_sites == ["format_greeting"]

    def test_async_function_with_comment_description(self, sample_python_code: str):
        record = extract(sample_python_code, "Python", "pkg/sample.py")
        total = _fn(record, "total")

        assert total.is_async is True
        assert total.description == "Totals with tax."
        assert [p.name for p in total.params] == ["items", "rate"]
        assert total.call_sites == ["sum"]

    def test_imports(self, sample_python_code: str):
        record = extract(sample_python_code, "Python", "pkg/sample.py")
        imports = {imp.source: imp.names for imp in record.imports}

        assert imports["typing"] == ["Dict", "List"]
        assert imports[".models"] == ["OrderModel", "Item"]
        assert imports["json"] == ["json"]
        assert imports["os.path"] == ["osp"]

    def test_constants(self, sample_python_code: str):
        record = extract(sample_python_code, "Python", "pkg/sample.py")
        tax = record.variables[0]

        assert (tax.name, tax.type, tax.value) == ("TAX_RATE", "float", "0.2")
        assert tax.description == "Tax applied to every order."

    def test_class_members(self, sample_python_code: str):
        record = extract(sample_python_code, "Python", "pkg/sample.py")
        calc = next(c for c in record.classes if c.name == "Calculator")

        assert calc.extends == "BaseCalc"
        assert calc.description == "Simple calculator."
        assert [m.name for m in calc.methods] == ["add", "_reset"]
        assert calc.methods[0].params == ["a: int", "b: int"]
        assert calc.methods[0].return_type == "int"
        assert [(p.name, p.type) for p in calc.properties] == [
            ("precision", "int"),
            ("history", "List[OrderModel]"),
        ]

    def test_docstring_content_is_not_parsed(self, sample_python_code: str):
        record = extract(sample_python_code, "Python", "pkg/sample.py")
        names = [m.name for c in record.classes for m in c.methods] + [f.name for f in record.functions]
        assert "not_a_method" not in names

    def test_private_names_are_not_exported(self, sample_python_code: str):
        record = extract(sample_python_code, "Python", "pkg/sample.py")
        private = next(c for c in record.classes if c.name == "_Private")

        assert private.exported is False
        assert record.exports == ["hello", "format_greeting", "total", "Calculator"]

    def test_decorator_calls_become_call_sites(self):
        code = '@router.post("/items")\ndef create_item(item):\n    return save(item)\n'
        record = extract(code, "Python", "api.py")
        assert _fn(record, "create_item").call_sites == ["router.post", "save"]

    def test_one_line_function_body(self):
        code = "def first(): return second()\n\n\ndef scaled(x) -> int: return helper(x) * 2\n"
        record = extract(code, "Python", "short.py")
        assert _fn(record, "first").call_sites == ["second"]
        assert _fn(record, "scaled").call_sites == ["helper"]
        assert _fn(record, "scaled").return_type == "int"

    def test_repeated_route_registrations_are_kept(self):
        code = "def setup():\n    app.get('/a')\n    app.get('/b')\n    log(1)\n    log(2)\n"
        record = extract(code, "Python", "server.py")
        assert _fn(record, "setup").call_sites == ["app.get", "app.get", "log"]

    def test_multiline_import_block(self):
        code = "from .helpers import (\n    alpha,\n    beta as b,\n)\n"
        record = extract(code, "Python", "pkg/mod.py")
        assert record.imports[0].names == ["alpha", "b"]


# ===================================================================
# Go heuristics
# ===================================================================

class TestGoExtraction:
    """Brace/receiver-based extraction for Go."""

    def test_package_comment(self, sample_go_code: str):
        record = extract(sample_go_code, "Go", "shapes/shapes.go")
        assert record.description == "Package shapes computes areas."

    def test_imports(self, sample_go_code: str):
        record = extract(sample_go_code, "Go", "shapes/shapes.go")
        assert [(i.source, i.names) for i in record.imports] == [
            ("math", ["math"]),
            ("fmt", ["fmt"]),
            ("github.com/acme/metrics", ["m"]),
        ]

    def test_grouped_parameters(self, sample_go_code: str):
        record = extract(sample_go_code, "Go", "shapes/shapes.go")
        describe = _fn(record, "Describe")

        assert describe.exported is True
        assert [(p.name, p.type) for p in describe.params] == [("s", "Shape"), ("w", "int"), ("h", "int")]
        assert describe.return_type == "(string, error)"
        assert describe.description == "Describe prints a shape."
        assert describe.call_sites == ["m.Count", "fmt.Sprintf", "s.Name"]

    def test_single_line_function_body(self, sample_go_code: str):
        record = extract(sample_go_code, "Go", "shapes/shapes.go")
        helper = _fn(record, "helper")
        assert helper.exported is False
        assert helper.call_sites == ["Describe"]

    def test_receiver_methods_attach_to_struct(self, sample_go_code: str):
        record = extract(sample_go_code, "Go", "shapes/shapes.go")
        circle = next(c for c in record.classes if c.name == "Circle")

        assert [m.name for m in circle.methods] == ["Area"]
        assert circle.methods[0].return_type == "float64"
        assert [(p.name, p.type) for p in circle.properties] == [("Radius", "float64")]
        assert circle.description == "Circle is a round shape."

    def test_types(self, sample_go_code: str):
        record = extract(sample_go_code, "Go", "shapes/shapes.go")
        kinds = {t.name: t.kind for t in record.types}
        assert kinds == {"Shape": "interface", "Circle": "type", "Meters": "type"}
        shape = _type(record, "Shape")
        assert [(f.name, f.type) for f in shape.fields] == [("Area", "() float64"), ("Name", "() string")]

    def test_values(self, sample_go_code: str):
        record = extract(sample_go_code, "Go", "shapes/shapes.go")
        values = {v.name: v for v in record.variables}

        assert values["Pi"].kind == "const"
        assert values["Pi"].value == "math.Pi"
        assert values["counter"].kind == "var"
        assert values["counter"].exported is False
        assert values["Verbose"].type == "bool"
        assert values["Verbose"].description == "Verbose toggles logging."

    def test_embedded_struct_is_base(self):
        code = "package x\n\ntype Admin struct {\n\tUser\n\tLevel int\n}\n"
        record = extract(code, "Go", "x/admin.go")
        assert record.classes[0].extends == "User"


# ===================================================================
# Dispatch and fault isolation
# ===================================================================

def test_recognised_language_without_strategy_yields_empty_record():
    record = extract("fn main() {}\n", "Rust", "src/main.rs")
    assert record.path == "src/main.rs"
    assert record.size == len("fn main() {}\n")
    assert record.functions == [] and record.classes == [] and record.imports == []


def test_strategy_failure_is_isolated(monkeypatch, caplog):
    def explode(content, path, record):
        record.functions.append(None)
        raise RuntimeError("boom")

    monkeypatch.setitem(parser.EXTRACTION_STRATEGIES, "Python", explode)
    record = extract("def f():\n    pass\n", "Python", "bad.py")

    assert record.language == "Python"
    assert record.functions == []
    assert "Extraction failed for bad.py" in caplog.text


@pytest.mark.parametrize(
    "comment,expected",
    [
        ("/** Simple. */", "Simple."),
        ("/**\n * First line.\n * @param x ignored\n * Second line.\n */", "First line. Second line."),
        ("/* plain block */", None),
        ("/** @deprecated */", None),
    ],
)
def test_parse_doc_comment(comment, expected):
    assert parse_doc_comment(comment) == expected
