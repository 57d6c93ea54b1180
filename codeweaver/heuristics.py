"""Line-oriented symbol extraction for languages without a bundled grammar.

Python is scanned by indentation (class membership, body extent) and Go by
braces and receiver clauses.  Both strategies fill a ``FileSymbolRecord`` in
place and are registered in :data:`codeweaver.parser.EXTRACTION_STRATEGIES`.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

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

_CALL = re.compile(r"(?<![\w.])([A-Za-z_][\w.]*)\s*\(")
_STRING_LITERAL = re.compile(r"\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*'|`[^`]*`")

_PY_KEYWORDS = {
    "if", "elif", "else", "for", "while", "with", "return", "yield", "await", "assert",
    "and", "or", "not", "in", "is", "lambda", "def", "class", "except", "raise",
    "del", "print", "async", "from", "import", "global", "nonlocal", "pass",
}
_GO_KEYWORDS = {
    "if", "for", "switch", "select", "func", "return", "go", "defer", "range",
    "case", "else", "map", "chan", "struct", "interface", "type",
}


def _preview(value: str) -> str:
    value = value.strip()
    return value[:77] + "..." if len(value) > 80 else value


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split on *sep* outside of brackets; ``Dict[str, int], x`` -> 2 parts."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in text:
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def _balanced(lines: List[str], start_line: int, start_col: int) -> Tuple[str, str, int]:
    """Read a parenthesised group beginning at ``lines[start_line][start_col] == "("``.

    Returns ``(inside, rest_of_last_line, last_line_index)``; the group may
    span several lines.
    """
    depth = 0
    inside: List[str] = []
    i, col = start_line, start_col
    while i < len(lines):
        line = lines[i]
        while col < len(line):
            ch = line[col]
            if ch in "([{":
                depth += 1
                if depth == 1 and ch == "(":
                    col += 1
                    continue
            elif ch in ")]}":
                depth -= 1
                if depth == 0:
                    return "".join(inside), line[col + 1:], i
            inside.append(ch)
            col += 1
        inside.append(" ")
        i += 1
        col = 0
    return "".join(inside), "", len(lines) - 1


def _call_names(body: Iterable[str], keywords: Set[str], comment: str) -> List[str]:
    seen: Set[str] = set()
    calls: List[str] = []
    for raw in body:
        line = _STRING_LITERAL.sub('""', raw)
        if comment in line:
            line = line.split(comment, 1)[0]
        line = re.sub(r"\b(?:def|class|func)\s+\w+", "", line)
        for match in _CALL.finditer(line):
            name = match.group(1).rstrip(".")
            if name in keywords or (name in seen and not registration_method(name)):
                continue
            seen.add(name)
            calls.append(name)
    return calls


# ===================================================================
# Python
# ===================================================================

_PY_DEF = re.compile(r"^(\s*)(async\s+)?def\s+(\w+)\s*\(")
_PY_CLASS = re.compile(r"^class\s+(\w+)\s*(\()?")
_PY_FROM_IMPORT = re.compile(r"^from\s+(\S+)\s+import\s+(.+)")
_PY_IMPORT = re.compile(r"^import\s+(.+)")
_PY_CONSTANT = re.compile(r"^([A-Z_][A-Z0-9_]*)\s*(?::\s*([^=]+?))?\s*=(?!=)\s*(.+)$")
_PY_ATTRIBUTE = re.compile(r"^\s+(\w+)\s*:\s*([^=]+?)\s*(?:=.*)?$")
_PY_DECORATOR_CALL = re.compile(r"^@\s*([A-Za-z_][\w.]*)\s*\(")
_DOC_OPEN = re.compile(r"^[rRuUbB]?(\"\"\"|''')")


def _string_mask(lines: List[str]) -> List[bool]:
    """``mask[i]`` is True when line *i* starts inside a triple-quoted string."""
    mask: List[bool] = []
    open_quote: Optional[str] = None
    for line in lines:
        mask.append(open_quote is not None)
        pos = 0
        while True:
            if open_quote:
                idx = line.find(open_quote, pos)
                if idx < 0:
                    break
                open_quote, pos = None, idx + 3
            else:
                hits = [(line.find(q, pos), q) for q in ('"""', "'''")]
                hits = [(idx, q) for idx, q in hits if idx >= 0]
                if not hits:
                    break
                idx, open_quote = min(hits)
                pos = idx + 3
    return mask


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _docstring_at(lines: List[str], idx: int) -> Optional[str]:
    """Docstring starting on the first non-blank line at or after *idx*."""
    while idx < len(lines) and not lines[idx].strip():
        idx += 1
    if idx >= len(lines):
        return None
    first = lines[idx].strip()
    match = _DOC_OPEN.match(first)
    if not match:
        return None
    quote = match.group(1)
    body = first[match.end():]
    if quote in body:
        text = body.split(quote, 1)[0]
    else:
        parts = [body]
        for line in lines[idx + 1:idx + 40]:
            if quote in line:
                parts.append(line.split(quote, 1)[0])
                break
            parts.append(line)
        text = " ".join(p.strip() for p in parts)
    text = " ".join(text.split())
    return text or None


def _comment_above(lines: List[str], idx: int, prefix: str) -> Optional[str]:
    """Consecutive *prefix* comment lines directly above *idx*, joined."""
    block: List[str] = []
    j = idx - 1
    while j >= 0 and lines[j].strip().startswith(prefix):
        block.append(lines[j].strip()[len(prefix):].strip())
        j -= 1
    text = " ".join(reversed([b for b in block if b]))
    return text or None


def _python_params(text: str) -> List[Param]:
    params: List[Param] = []
    for part in split_top_level(text):
        if "=" in part:
            part = split_top_level(part, "=")[0]
        name, _, annotation = part.partition(":")
        name = name.strip()
        if not name or name in ("self", "cls", "/", "*"):
            continue
        params.append(Param(name=name, type=annotation.strip() or None))
    return params


def _python_body(lines: List[str], mask: List[bool], start: int, indent: int) -> Tuple[List[str], int]:
    """Lines after a header ending at *start* that are indented deeper than *indent*."""
    body: List[str] = []
    i = start + 1
    while i < len(lines):
        line = lines[i]
        if line.strip() and not mask[i] and _indent(line) <= indent:
            break
        if not mask[i]:
            body.append(line)
        i += 1
    return body, i


def _python_import_names(spec: str) -> List[str]:
    names: List[str] = []
    for part in spec.strip().strip("()").split(","):
        part = part.strip()
        if not part or part.startswith("#"):
            continue
        original, _, alias = part.partition(" as ")
        names.append((alias or original).strip())
    return names


@dataclass
class _ClassScope:
    symbol: ClassSymbol
    indent: int
    body_indent: Optional[int] = None


def extract_python(content: str, path: str, record: FileSymbolRecord) -> None:
    """Indentation-scoped extraction for Python sources."""
    lines = content.split("\n")
    mask = _string_mask(lines)
    record.description = _module_docstring(lines)

    scope: Optional[_ClassScope] = None
    decorator_calls: List[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if mask[i] or not line.strip():
            i += 1
            continue
        indent = _indent(line)
        stripped = line.strip()

        if scope is not None and indent <= scope.indent:
            scope = None
        if scope is not None and scope.body_indent is None:
            scope.body_indent = indent

        if indent == 0 and stripped.startswith("@"):
            match = _PY_DECORATOR_CALL.match(stripped)
            if match:
                decorator_calls.append(match.group(1))
            i += 1
            continue

        def_match = _PY_DEF.match(line)
        if def_match:
            params_text, rest, end = _balanced(lines, i, def_match.end() - 1)
            returns = re.match(r"\s*->\s*(.+?)\s*:", rest)
            header = re.match(r"\s*(?:->.+?)?:(.*)$", rest)
            doc = _docstring_at(lines, end + 1) or _comment_above(lines, _decorated_start(lines, i), "#")
            name = def_match.group(3)
            if indent == 0:
                body, _ = _python_body(lines, mask, end, 0)
                if header and header.group(1).strip():
                    body.insert(0, header.group(1))
                fn = FunctionSymbol(
                    name=name,
                    params=_python_params(params_text),
                    return_type=returns.group(1) if returns else None,
                    exported=not name.startswith("_"),
                    line=i + 1,
                    description=doc,
                    is_async=True if def_match.group(2) else None,
                    call_sites=_merge(decorator_calls, _call_names(body, _PY_KEYWORDS, "#")),
                )
                record.functions.append(fn)
                if fn.exported:
                    record.exports.append(name)
            elif scope is not None and indent == scope.body_indent:
                scope.symbol.methods.append(MethodSymbol(
                    name=name,
                    params=[p.name + (f": {p.type}" if p.type else "") for p in _python_params(params_text)],
                    return_type=returns.group(1) if returns else None,
                    description=doc,
                ))
            decorator_calls = []
            i = end + 1
            continue

        class_match = _PY_CLASS.match(line)
        if class_match:
            bases: List[str] = []
            end = i
            if class_match.group(2):
                bases_text, _, end = _balanced(lines, i, class_match.end() - 1)
                bases = [b for b in split_top_level(bases_text) if "=" not in b]
            name = class_match.group(1)
            cls = ClassSymbol(
                name=name,
                exported=not name.startswith("_"),
                line=i + 1,
                extends=bases[0] if bases else None,
                description=_docstring_at(lines, end + 1) or _comment_above(lines, _decorated_start(lines, i), "#"),
            )
            record.classes.append(cls)
            if cls.exported:
                record.exports.append(name)
            scope = _ClassScope(symbol=cls, indent=0)
            decorator_calls = []
            i = end + 1
            continue

        if scope is not None and indent == scope.body_indent:
            attr = _PY_ATTRIBUTE.match(line)
            if attr and not stripped.startswith(("return", "#")):
                scope.symbol.properties.append(PropertySymbol(name=attr.group(1), type=attr.group(2)))

        if indent == 0:
            i = _python_top_level(lines, i, stripped, record)
            continue
        i += 1


def _python_top_level(lines: List[str], i: int, stripped: str, record: FileSymbolRecord) -> int:
    """Imports and UPPER_CASE constants; returns the next line index."""
    from_match = _PY_FROM_IMPORT.match(stripped)
    if from_match:
        spec = from_match.group(2)
        if spec.startswith("(") and ")" not in spec:
            while i + 1 < len(lines):
                i += 1
                spec += " " + lines[i].split("#", 1)[0]
                if ")" in lines[i]:
                    break
        record.imports.append(ImportRecord(source=from_match.group(1), names=_python_import_names(spec)))
        return i + 1

    import_match = _PY_IMPORT.match(stripped)
    if import_match:
        for part in import_match.group(1).split("#", 1)[0].split(","):
            module, _, alias = part.strip().partition(" as ")
            if module:
                record.imports.append(ImportRecord(source=module.strip(), names=[(alias or module).strip()]))
        return i + 1

    const_match = _PY_CONSTANT.match(stripped)
    if const_match:
        name = const_match.group(1)
        record.variables.append(VariableSymbol(
            name=name,
            kind="const",
            type=const_match.group(2).strip() if const_match.group(2) else None,
            value=_preview(const_match.group(3)),
            exported=not name.startswith("_"),
            line=i + 1,
            description=_comment_above(lines, i, "#"),
        ))
    return i + 1


def _module_docstring(lines: List[str]) -> Optional[str]:
    for idx, line in enumerate(lines):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        return _docstring_at(lines, idx)
    return None


def _decorated_start(lines: List[str], idx: int) -> int:
    while idx > 0 and lines[idx - 1].strip().startswith("@"):
        idx -= 1
    return idx


def _merge(first: List[str], second: List[str]) -> List[str]:
    merged: List[str] = []
    for name in first + second:
        if name not in merged or registration_method(name):
            merged.append(name)
    return merged


# ===================================================================
# Go
# ===================================================================

_GO_FUNC = re.compile(
    r"^func\s+(?:\(\s*(?:\w+\s+)?\*?(\w+)(?:\[[^\]]*\])?\s*\)\s*)?(\w+)\s*(?:\[[^\]]*\])?\s*\("
)
_GO_IMPORT = re.compile(r'^import\s+(?:([\w.]+)\s+)?"([^"]+)"')
_GO_IMPORT_SPEC = re.compile(r'^\s*(?:([\w.]+)\s+)?"([^"]+)"')
_GO_STRUCT = re.compile(r"^type\s+(\w+)(?:\[[^\]]*\])?\s+struct\b")
_GO_INTERFACE = re.compile(r"^type\s+(\w+)(?:\[[^\]]*\])?\s+interface\b")
_GO_TYPE = re.compile(r"^type\s+(\w+)(?:\[[^\]]*\])?\s+=?\s*(\S.*)$")
_GO_VALUE = re.compile(r"^(\w+)(?:\s+([^=]+?))?\s*(?:=\s*(.+))?$")
_GO_FIELD = re.compile(r"^\s+(\w+)\s+([^`/]+?)\s*(?:`.*`)?\s*(?://.*)?$")
_GO_EMBEDDED = re.compile(r"^\s+\*?([\w.]+)\s*(?://.*)?$")
_GO_METHOD_SPEC = re.compile(r"^\s+(\w+)\s*\((.*)$")


def _is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def _go_params(text: str) -> List[Param]:
    """``a, b int, c string`` -> a:int, b:int, c:string."""
    parts = [p.split() for p in split_top_level(text)]
    if not any(len(p) > 1 for p in parts):
        return [Param(name=p[0]) for p in parts if p]

    params: List[Param] = []
    pending: List[str] = []
    for tokens in parts:
        if len(tokens) == 1:
            pending.append(tokens[0])
            continue
        type_text = " ".join(tokens[1:])
        params.extend(Param(name=name, type=type_text) for name in pending)
        pending = []
        params.append(Param(name=tokens[0], type=type_text))
    params.extend(Param(name=name) for name in pending)
    return params


def _go_block(lines: List[str], start: int) -> Tuple[List[str], int]:
    """Lines after *start* up to the closing ``}`` or ``)`` at column 0."""
    body: List[str] = []
    i = start + 1
    while i < len(lines):
        if lines[i].rstrip() in ("}", ")"):
            return body, i
        body.append(lines[i])
        i += 1
    return body, i


def _go_class(record: FileSymbolRecord, name: str, line: int) -> ClassSymbol:
    for cls in record.classes:
        if cls.name == name:
            return cls
    cls = ClassSymbol(name=name, exported=_is_exported(name), line=line)
    record.classes.append(cls)
    return cls


def _go_export(record: FileSymbolRecord, name: str) -> None:
    if _is_exported(name) and name not in record.exports:
        record.exports.append(name)


def extract_go(content: str, path: str, record: FileSymbolRecord) -> None:
    """Brace-scoped extraction for Go sources."""
    lines = content.split("\n")
    i = 0
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()

        if stripped.startswith("package ") and record.description is None:
            record.description = _comment_above(lines, i, "//")
            i += 1
            continue

        if stripped.startswith("import"):
            i = _go_imports(lines, i, record)
            continue

        func_match = _GO_FUNC.match(line)
        if func_match:
            i = _go_func(lines, i, func_match, record)
            continue

        struct_match = _GO_STRUCT.match(line)
        if struct_match:
            i = _go_struct(lines, i, struct_match.group(1), record)
            continue

        iface_match = _GO_INTERFACE.match(line)
        if iface_match:
            i = _go_interface(lines, i, iface_match.group(1), record)
            continue

        type_match = _GO_TYPE.match(line)
        if type_match:
            name = type_match.group(1)
            record.types.append(TypeSymbol(name=name, kind="type", description=_comment_above(lines, i, "//")))
            _go_export(record, name)
            i += 1
            continue

        if re.match(r"^(var|const)\b", line):
            i = _go_values(lines, i, record)
            continue
        i += 1


def _go_imports(lines: List[str], i: int, record: FileSymbolRecord) -> int:
    single = _GO_IMPORT.match(lines[i])
    if single:
        source = single.group(2)
        record.imports.append(ImportRecord(source=source, names=[single.group(1) or posixpath.basename(source)]))
        return i + 1
    if re.match(r"^import\s*\(", lines[i]):
        block, end = _go_block(lines, i)
        for spec_line in block:
            spec = _GO_IMPORT_SPEC.match(spec_line)
            if spec:
                source = spec.group(2)
                record.imports.append(ImportRecord(source=source, names=[spec.group(1) or posixpath.basename(source)]))
        return end + 1
    return i + 1


def _go_func(lines: List[str], i: int, match: "re.Match[str]", record: FileSymbolRecord) -> int:
    receiver, name = match.group(1), match.group(2)
    params_text, rest, sig_end = _balanced(lines, i, match.end() - 1)
    returns = rest.split("{", 1)[0].strip() or None
    params = _go_params(params_text)
    description = _comment_above(lines, i, "//")

    end = sig_end
    if "{" in rest and rest.rstrip().endswith("}"):
        body = [rest.split("{", 1)[1]]
    elif "{" in rest:
        body, end = _go_block(lines, sig_end)
    else:
        body = []

    if receiver:
        cls = _go_class(record, receiver, i + 1)
        cls.methods.append(MethodSymbol(
            name=name,
            params=[p.name + (f" {p.type}" if p.type else "") for p in params],
            return_type=returns,
            description=description,
        ))
    else:
        record.functions.append(FunctionSymbol(
            name=name,
            params=params,
            return_type=returns,
            exported=_is_exported(name),
            line=i + 1,
            description=description,
            call_sites=_call_names(body, _GO_KEYWORDS, "//"),
        ))
        _go_export(record, name)
    return end + 1


def _go_struct(lines: List[str], i: int, name: str, record: FileSymbolRecord) -> int:
    description = _comment_above(lines, i, "//")
    cls = _go_class(record, name, i + 1)
    cls.line = i + 1
    cls.description = cls.description or description

    end = i
    if "{" in lines[i] and not lines[i].rstrip().endswith("}"):
        body, end = _go_block(lines, i)
        for field_line in body:
            if field_line.strip().startswith("//"):
                continue
            embedded = _GO_EMBEDDED.match(field_line)
            if embedded:
                if cls.extends is None:
                    cls.extends = embedded.group(1).split(".")[-1]
                continue
            field_match = _GO_FIELD.match(field_line)
            if field_match:
                cls.properties.append(PropertySymbol(name=field_match.group(1), type=field_match.group(2)))

    record.types.append(TypeSymbol(name=name, kind="type", description=description))
    _go_export(record, name)
    return end + 1


def _go_interface(lines: List[str], i: int, name: str, record: FileSymbolRecord) -> int:
    fields: List[TypeField] = []
    end = i
    if "{" in lines[i] and not lines[i].rstrip().endswith("}"):
        body, end = _go_block(lines, i)
        for spec_line in body:
            method = _GO_METHOD_SPEC.match(spec_line)
            if method:
                fields.append(TypeField(name=method.group(1), type=f"({method.group(2).strip()}".strip()))
    record.types.append(TypeSymbol(
        name=name,
        kind="interface",
        fields=fields or None,
        description=_comment_above(lines, i, "//"),
    ))
    _go_export(record, name)
    return end + 1


def _go_values(lines: List[str], i: int, record: FileSymbolRecord) -> int:
    keyword = lines[i].split()[0].rstrip("(")
    header = lines[i][len(keyword):].strip()

    if header.startswith("("):
        specs, end = _go_block(lines, i)
        entries = [(i + 2 + n, s.strip()) for n, s in enumerate(specs)]
    else:
        end = i
        entries = [(i + 1, header)]

    for line_no, spec in entries:
        if not spec or spec.startswith("//"):
            continue
        match = _GO_VALUE.match(spec.split("//", 1)[0].strip())
        if not match:
            continue
        name = match.group(1)
        record.variables.append(VariableSymbol(
            name=name,
            kind=keyword,
            type=match.group(2).strip() if match.group(2) else None,
            value=_preview(match.group(3)) if match.group(3) else None,
            exported=_is_exported(name),
            line=line_no,
            description=_comment_above(lines, line_no - 1, "//"),
        ))
    return end + 1
