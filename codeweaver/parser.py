"""Symbol extraction: raw source text -> language-neutral ``FileSymbolRecord``.

Two strategies, selected per language from ``EXTRACTION_STRATEGIES``:

- **tree-sitter** for the TypeScript / JavaScript family.  Tree-sitter is
  error-tolerant, so half-written files still yield their well-formed
  declarations.
- **line heuristics** (see :mod:`codeweaver.heuristics`) for Python and Go.

Recognised languages without a strategy (Rust, Java, ...) produce an empty
record so they still count towards repository totals.  ``extract`` never
raises: any failure inside a strategy is logged and replaced by an empty
record.
"""

from __future__ import annotations

import importlib
import logging
import re
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

from .heuristics import extract_go, extract_python
from .models import (
    ClassSymbol,
    FileSymbolRecord,
    FunctionSymbol,
    ImportRecord,
    MethodSymbol,
    Param,
    PropertySymbol,
    TypeField,
    TypeSymbol,
    VariableSymbol,
)
from .resolver import registration_method

logger = logging.getLogger(__name__)

# grammar name -> (module, factory function returning the Language capsule)
_GRAMMAR_MODULES: Dict[str, Tuple[str, str]] = {
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
    "javascript": ("tree_sitter_javascript", "language"),
}

_parsers: Dict[str, Any] = {}
_missing_grammars: Set[str] = set()

_FUNCTION_VALUES = {"arrow_function", "function_expression", "function", "generator_function"}
_FUNCTION_DECLS = {"function_declaration", "generator_function_declaration"}
_CLASS_DECLS = {"class_declaration", "abstract_class_declaration"}
# Bodies of these nodes belong to another symbol; call-site collection stops at them.
_SCOPE_BOUNDARIES = _FUNCTION_DECLS | _CLASS_DECLS | {"class", "method_definition"}
_JSX_NODES = {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}
_COMPONENT_TYPE = re.compile(
    r"^React\.\s*(FC|FunctionComponent|VFC|ComponentType)|^FC\b|^FunctionComponent\b"
)


def _load_parser(grammar: str) -> Optional[Any]:
    """Return a cached tree-sitter parser for *grammar*, or None if unavailable."""
    if grammar in _parsers:
        return _parsers[grammar]
    if grammar in _missing_grammars:
        return None

    mod_name, factory = _GRAMMAR_MODULES[grammar]
    try:
        from tree_sitter import Language, Parser as TSParser  # type: ignore[import-untyped]

        mod = importlib.import_module(mod_name)
        parser = TSParser(Language(getattr(mod, factory)()))
    except ImportError:
        logger.warning(
            "Grammar package '%s' not installed -- %s files will be indexed without symbols. "
            "Install with: pip install tree-sitter %s",
            mod_name, grammar, mod_name.replace("_", "-"),
        )
        _missing_grammars.add(grammar)
        return None
    except Exception as exc:
        logger.warning("Could not load tree-sitter grammar for %s: %s", grammar, exc)
        _missing_grammars.add(grammar)
        return None

    _parsers[grammar] = parser
    logger.debug("Loaded tree-sitter parser for %s", grammar)
    return parser


def _grammar_for(path: str, language: str) -> str:
    ext = PurePosixPath(path).suffix.lower()
    if ext in (".tsx", ".jsx"):
        return "tsx"
    if language == "TypeScript":
        return "typescript"
    return "javascript"


# ===================================================================
# Node helpers
# ===================================================================

def _text(node: Any) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _named_child(node: Any, *types: str) -> Optional[Any]:
    for child in node.named_children:
        if child.type in types:
            return child
    return None


def _line(node: Any) -> int:
    return node.start_point[0] + 1


def _walk(node: Any, stop: Set[str] = frozenset(), skip_ids: Set[int] = frozenset()) -> Iterator[Any]:
    """Pre-order descendants of *node*; does not descend into *stop* types or *skip_ids*."""
    stack = list(reversed(node.children))
    while stack:
        current = stack.pop()
        if current.id in skip_ids:
            continue
        yield current
        if current.type in stop:
            continue
        stack.extend(reversed(current.children))


def _annotation(node: Any) -> Optional[str]:
    """``: Foo<Bar>`` -> ``Foo<Bar>``."""
    if node is None:
        return None
    text = re.sub(r"^:\s*", "", _text(node)).strip()
    return text or None


def _unquote(text: str) -> str:
    return re.sub(r"^['\"`]|['\"`]$", "", text)


def _is_async(node: Any) -> bool:
    return any(child.type == "async" for child in node.children)


def parse_doc_comment(comment: str) -> Optional[str]:
    """Extract the prose of a ``/** ... */`` comment, dropping ``@tag`` lines."""
    if not comment.startswith("/**"):
        return None
    body = re.sub(r"^/\*\*\s*", "", comment)
    body = re.sub(r"\s*\*/$", "", body)
    lines = [re.sub(r"^\s*\*\s?", "", line).strip() for line in body.split("\n")]
    text = " ".join(line for line in lines if line and not line.startswith("@")).strip()
    return text or None


def _leading_doc(node: Any) -> Optional[str]:
    """Doc comment directly above *node*, with no blank line in between."""
    prev = node.prev_sibling
    if prev is None or prev.type != "comment":
        return None
    if node.start_point[0] - prev.end_point[0] > 1:
        return None
    return parse_doc_comment(_text(prev))


def _file_description(root: Any) -> Optional[str]:
    for child in root.children:
        if child.type == "comment":
            if child.start_point[0] < 3:
                return parse_doc_comment(_text(child))
            return None
    return None


def _params(node: Any) -> List[Param]:
    if node is None:
        return []
    if node.type == "identifier":  # single-parameter arrow: x => ...
        return [Param(name=_text(node))]

    params: List[Param] = []
    for child in node.named_children:
        kind = child.type
        if kind in ("required_parameter", "optional_parameter"):
            pattern = child.child_by_field_name("pattern")
            if pattern is None:
                continue
            if pattern.type == "rest_pattern":
                name = "..." + _text(_named_child(pattern, "identifier"))
            elif pattern.type in ("identifier", "this"):
                name = _text(pattern)
            else:
                name = _text(pattern)[:40]
            params.append(Param(name=name, type=_annotation(child.child_by_field_name("type"))))
        elif kind == "identifier":
            params.append(Param(name=_text(child)))
        elif kind == "assignment_pattern":
            left = child.child_by_field_name("left")
            if left is not None:
                params.append(Param(name=_text(left)[:40]))
        elif kind == "rest_pattern":
            ident = _named_child(child, "identifier")
            if ident is not None:
                params.append(Param(name="..." + _text(ident)))
        elif kind in ("object_pattern", "array_pattern"):
            params.append(Param(name=_text(child)[:40]))
    return params


def _function_params(fn_node: Any) -> List[Param]:
    params = fn_node.child_by_field_name("parameters")
    if params is None:
        params = fn_node.child_by_field_name("parameter")
    return _params(params)


def _returns_markup(fn_node: Any) -> bool:
    """Heuristic: does the function body return JSX-like markup?"""
    body = fn_node.child_by_field_name("body")
    if body is None:
        return False
    if body.type != "statement_block":
        expr = body
        while expr.type == "parenthesized_expression" and expr.named_children:
            expr = expr.named_children[0]
        return expr.type in _JSX_NODES

    for node in _walk(body, stop=_SCOPE_BOUNDARIES | _FUNCTION_VALUES):
        if node.type != "return_statement":
            continue
        if any(n.type in _JSX_NODES for n in _walk(node)):
            return True
        text = _text(node)
        if "<" in text and ("/>" in text or "</" in text):
            return True
    return False


def is_component_type(type_text: Optional[str]) -> bool:
    return bool(type_text) and bool(_COMPONENT_TYPE.search(type_text or ""))


def _callee_name(node: Any) -> Optional[str]:
    """Textual callee of a call: ``foo``, ``api.users.get``, ``this.save``."""
    if node.type == "identifier":
        return _text(node)
    if node.type == "member_expression":
        prop = node.child_by_field_name("property")
        if prop is None:
            return None
        obj = node.child_by_field_name("object")
        if obj is not None:
            if obj.type in ("identifier", "this", "super"):
                return f"{_text(obj)}.{_text(prop)}"
            if obj.type == "member_expression":
                base = _callee_name(obj)
                if base:
                    return f"{base}.{_text(prop)}"
        return _text(prop)
    return None


def _call_sites(body: Any, skip_ids: Set[int]) -> List[str]:
    seen: Set[str] = set()
    calls: List[str] = []
    for node in _walk(body, stop=_SCOPE_BOUNDARIES, skip_ids=skip_ids):
        if node.type != "call_expression":
            continue
        fn = node.child_by_field_name("function")
        name = _callee_name(fn) if fn is not None else None
        if name and (name not in seen or registration_method(name)):
            seen.add(name)
            calls.append(name)
    return calls


def _base_type_name(text: str) -> str:
    """``Base<T>`` -> ``Base``; implements/extends targets are matched by bare name."""
    return re.split(r"[<(\s]", text.strip(), maxsplit=1)[0]


# ===================================================================
# Tree-sitter visitor for the TS/JS family
# ===================================================================

class _ScriptVisitor:
    """Walks top-level statements of a TS/JS program into a FileSymbolRecord."""

    def __init__(self, record: FileSymbolRecord) -> None:
        self.record = record

    def visit_program(self, root: Any) -> None:
        self.record.description = _file_description(root)
        for node in root.named_children:
            self._visit(node, exported=False, anchor=node)

    def _visit(self, node: Any, exported: bool, anchor: Any) -> None:
        kind = node.type
        if kind == "export_statement":
            self._visit_export(node)
        elif kind in _FUNCTION_DECLS:
            fn = self._function_symbol(node, _text(node.child_by_field_name("name")) or "anonymous",
                                       exported, anchor)
            self._register_function(fn, node)
            self._export(exported, fn.name)
        elif kind in ("lexical_declaration", "variable_declaration"):
            self._visit_variables(node, exported, anchor)
        elif kind in _CLASS_DECLS:
            cls = self._class_symbol(node, exported, anchor)
            self.record.classes.append(cls)
            self._export(exported, cls.name)
        elif kind == "interface_declaration":
            td = self._interface_symbol(node, anchor)
            self.record.types.append(td)
            self._export(exported, td.name)
        elif kind == "type_alias_declaration":
            td = self._type_alias_symbol(node, anchor)
            self.record.types.append(td)
            self._export(exported, td.name)
        elif kind == "enum_declaration":
            td = self._enum_symbol(node, anchor)
            self.record.types.append(td)
            self._export(exported, td.name)
        elif kind == "import_statement":
            self._visit_import(node)

    def _export(self, exported: bool, name: str) -> None:
        if exported and name:
            self.record.exports.append(name)

    # ------------------------------------------------------------------
    # export forms
    # ------------------------------------------------------------------

    def _visit_export(self, node: Any) -> None:
        source = node.child_by_field_name("source")
        clause = _named_child(node, "export_clause")
        if clause is not None:
            local_names: List[str] = []
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                self.record.exports.append(_text(alias if alias is not None else name))
                local_names.append(_text(name))
            if source is not None:
                self.record.imports.append(ImportRecord(source=_unquote(_text(source)), names=local_names))
            return

        if source is not None:  # export * from './x'
            self.record.imports.append(ImportRecord(source=_unquote(_text(source)), names=["*"]))
            return

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            self._visit(declaration, exported=True, anchor=node)
            return

        value = node.child_by_field_name("value")
        if value is None:
            return
        if value.type == "identifier":
            self.record.exports.append(_text(value))
        elif value.type in _FUNCTION_VALUES:
            name = _text(value.child_by_field_name("name")) or "default"
            fn = self._function_symbol(value, name, True, node)
            self._register_function(fn, value)
            self.record.exports.append(name)
        elif value.type == "class":
            cls = self._class_symbol(value, True, node)
            if cls.name == "Unknown":
                cls.name = "default"
            self.record.classes.append(cls)
            self.record.exports.append(cls.name)

    # ------------------------------------------------------------------
    # functions
    # ------------------------------------------------------------------

    def _function_symbol(self, fn_node: Any, name: str, exported: bool, anchor: Any) -> FunctionSymbol:
        fn = FunctionSymbol(
            name=name,
            params=_function_params(fn_node),
            return_type=_annotation(fn_node.child_by_field_name("return_type")),
            exported=exported,
            line=_line(anchor),
            description=_leading_doc(anchor),
            is_async=_is_async(fn_node),
        )
        if _returns_markup(fn_node):
            fn.is_component = True
        return fn

    def _register_function(self, fn: FunctionSymbol, fn_node: Any, nested: bool = True) -> None:
        """Append *fn*, then its one-level inner functions, and collect its call sites."""
        self.record.functions.append(fn)
        body = fn_node.child_by_field_name("body")
        if body is None:
            return
        inner_ids: Set[int] = set()
        if nested and body.type == "statement_block":
            inner_ids = self._inner_functions(body, fn.name)
        if body.type == "statement_block":
            fn.call_sites = _call_sites(body, inner_ids)
        else:
            fn.call_sites = _call_sites(fn_node, inner_ids)

    def _inner_functions(self, body: Any, parent: str) -> Set[int]:
        captured: Set[int] = set()
        for child in body.named_children:
            if child.type in _FUNCTION_DECLS:
                inner = self._function_symbol(
                    child, f"{parent}.{_text(child.child_by_field_name('name'))}", False, child,
                )
                inner.is_component = None
                self._register_function(inner, child, nested=False)
                captured.add(child.id)
            elif child.type in ("lexical_declaration", "variable_declaration"):
                for declarator in child.named_children:
                    if declarator.type != "variable_declarator":
                        continue
                    name_node = declarator.child_by_field_name("name")
                    value = declarator.child_by_field_name("value")
                    if name_node is None or value is None or value.type not in _FUNCTION_VALUES:
                        continue
                    inner = self._function_symbol(value, f"{parent}.{_text(name_node)}", False, child)
                    inner.is_component = None
                    self._register_function(inner, value, nested=False)
                    captured.add(value.id)
        return captured

    # ------------------------------------------------------------------
    # variables (function-valued ones become functions)
    # ------------------------------------------------------------------

    def _visit_variables(self, node: Any, exported: bool, anchor: Any) -> None:
        keyword = node.children[0].type if node.children else "const"
        var_kind = keyword if keyword in ("const", "let", "var") else "const"
        doc = _leading_doc(anchor)

        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue  # destructuring declarations are not indexed
            name = _text(name_node)
            type_text = _annotation(declarator.child_by_field_name("type"))
            value = declarator.child_by_field_name("value")

            if value is not None and value.type in _FUNCTION_VALUES:
                fn = self._function_symbol(value, name, exported, anchor)
                if is_component_type(type_text):
                    fn.is_component = True
                self._register_function(fn, value)
            else:
                preview = None
                if value is not None:
                    preview = _text(value)
                    if len(preview) > 80:
                        preview = preview[:77] + "..."
                self.record.variables.append(VariableSymbol(
                    name=name,
                    kind=var_kind,
                    type=type_text,
                    value=preview,
                    exported=exported,
                    line=_line(anchor),
                    description=doc,
                ))
            self._export(exported, name)

    # ------------------------------------------------------------------
    # classes
    # ------------------------------------------------------------------

    def _class_symbol(self, node: Any, exported: bool, anchor: Any) -> ClassSymbol:
        extends, implements = _heritage(node)
        cls = ClassSymbol(
            name=_text(node.child_by_field_name("name")) or "Unknown",
            exported=exported,
            line=_line(anchor),
            description=_leading_doc(anchor),
            extends=extends,
            implements=implements,
        )
        body = node.child_by_field_name("body")
        if body is None:
            return cls

        for member in body.named_children:
            kind = member.type
            if kind in ("method_definition", "method_signature", "abstract_method_signature"):
                params_node = member.child_by_field_name("parameters")
                cls.methods.append(MethodSymbol(
                    name=_text(member.child_by_field_name("name")) or "unknown",
                    params=[_text(p) for p in params_node.named_children] if params_node is not None else [],
                    return_type=_annotation(member.child_by_field_name("return_type")),
                    description=_leading_doc(member),
                ))
            elif kind in ("public_field_definition", "field_definition"):
                prop = member.child_by_field_name("name") or member.child_by_field_name("property")
                if prop is not None:
                    cls.properties.append(PropertySymbol(
                        name=_text(prop),
                        type=_annotation(member.child_by_field_name("type")),
                    ))
        return cls

    # ------------------------------------------------------------------
    # interfaces, type aliases, enums
    # ------------------------------------------------------------------

    def _interface_symbol(self, node: Any, anchor: Any) -> TypeSymbol:
        body = node.child_by_field_name("body")
        fields = _type_members(body, include_methods=True) if body is not None else []
        return TypeSymbol(
            name=_text(node.child_by_field_name("name")) or "Unknown",
            kind="interface",
            fields=fields or None,
            description=_leading_doc(anchor),
        )

    def _type_alias_symbol(self, node: Any, anchor: Any) -> TypeSymbol:
        value = node.child_by_field_name("value")
        values: Optional[List[str]] = None
        fields: Optional[List[TypeField]] = None
        if value is not None:
            if value.type == "union_type":
                values = _union_members(value)
            elif value.type == "object_type":
                fields = _type_members(value, include_methods=False) or None
        return TypeSymbol(
            name=_text(node.child_by_field_name("name")) or "Unknown",
            kind="type",
            values=values,
            fields=fields,
            description=_leading_doc(anchor),
        )

    def _enum_symbol(self, node: Any, anchor: Any) -> TypeSymbol:
        values: List[str] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                if member.type == "enum_assignment":
                    name = member.child_by_field_name("name")
                    if name is not None:
                        values.append(_unquote(_text(name)))
                elif member.type in ("property_identifier", "string"):
                    values.append(_unquote(_text(member)))
        return TypeSymbol(
            name=_text(node.child_by_field_name("name")) or "Unknown",
            kind="enum",
            values=values or None,
            description=_leading_doc(anchor),
        )

    # ------------------------------------------------------------------
    # imports
    # ------------------------------------------------------------------

    def _visit_import(self, node: Any) -> None:
        source = node.child_by_field_name("source")
        if source is None:
            return
        names: List[str] = []
        clause = _named_child(node, "import_clause")
        if clause is not None:
            for child in clause.named_children:
                if child.type == "identifier":
                    names.append(_text(child))
                elif child.type == "named_imports":
                    for spec in child.named_children:
                        if spec.type != "import_specifier":
                            continue
                        alias = spec.child_by_field_name("alias")
                        local = alias if alias is not None else spec.child_by_field_name("name")
                        if local is not None:
                            names.append(_text(local))
                elif child.type == "namespace_import":
                    ident = _named_child(child, "identifier")
                    if ident is not None:
                        names.append(f"* as {_text(ident)}")
        self.record.imports.append(ImportRecord(source=_unquote(_text(source)), names=names))


def _heritage(class_node: Any) -> Tuple[Optional[str], Optional[List[str]]]:
    heritage = _named_child(class_node, "class_heritage")
    if heritage is None:
        return None, None

    extends: Optional[str] = None
    implements: Optional[List[str]] = None
    extends_clause = _named_child(heritage, "extends_clause")
    if extends_clause is not None:
        value = extends_clause.child_by_field_name("value")
        if value is None and extends_clause.named_children:
            value = extends_clause.named_children[0]
        if value is not None:
            extends = _base_type_name(_text(value))
    elif heritage.named_children and heritage.named_children[0].type != "implements_clause":
        # javascript grammar: `extends <expression>` sits directly under class_heritage
        extends = _base_type_name(_text(heritage.named_children[0]))

    implements_clause = _named_child(heritage, "implements_clause")
    if implements_clause is not None:
        implements = [_base_type_name(_text(t)) for t in implements_clause.named_children]
    return extends, implements


def _type_members(body: Any, include_methods: bool) -> List[TypeField]:
    fields: List[TypeField] = []
    for member in body.named_children:
        if member.type == "property_signature":
            name = member.child_by_field_name("name")
            type_node = member.child_by_field_name("type")
            if name is None or type_node is None:
                continue
            optional = any(child.type == "?" for child in member.children)
            fields.append(TypeField(
                name=_text(name),
                type=_annotation(type_node) or "",
                optional=True if optional else None,
            ))
        elif member.type == "method_signature" and include_methods:
            name = member.child_by_field_name("name")
            if name is None:
                continue
            params = member.child_by_field_name("parameters")
            inner = _text(params)[1:-1] if params is not None else ""
            returns = _annotation(member.child_by_field_name("return_type"))
            signature = f"{_text(name)}({inner})" + (f": {returns}" if returns else "")
            fields.append(TypeField(name=_text(name), type=signature))
    return fields


def _union_members(node: Any) -> List[str]:
    members: List[str] = []
    for child in node.named_children:
        if child.type == "union_type":
            members.extend(_union_members(child))
        else:
            members.append(_unquote(_text(child)))
    return members


# ===================================================================
# Strategy dispatch
# ===================================================================

def extract_script(content: str, path: str, record: FileSymbolRecord) -> None:
    """Tree-sitter strategy for TypeScript / JavaScript sources."""
    parser = _load_parser(_grammar_for(path, record.language))
    if parser is None:
        return
    tree = parser.parse(content.encode("utf-8"))
    _ScriptVisitor(record).visit_program(tree.root_node)


Strategy = Callable[[str, str, FileSymbolRecord], None]

# language label -> extraction strategy; languages absent here get an empty record
EXTRACTION_STRATEGIES: Dict[str, Strategy] = {
    "TypeScript": extract_script,
    "JavaScript": extract_script,
    "Python": extract_python,
    "Go": extract_go,
}


def extract(content: str, language: str, path: str = "") -> FileSymbolRecord:
    """Extract the symbol table of one file.  Never raises."""
    strategy = EXTRACTION_STRATEGIES.get(language)
    record = FileSymbolRecord(path=path, size=len(content), language=language)
    if strategy is None:
        return record
    try:
        strategy(content, path, record)
    except Exception as exc:
        logger.warning("Extraction failed for %s: %s", path or language, exc)
        return FileSymbolRecord(path=path, size=len(content), language=language)
    return record
