"""Symbol resolution shared by the map builders.

Everything that turns *text* into an *identity* lives here: type-name
tokens in annotations, class/interface ids, relative import specifiers,
and callee names.  The builders only consume the results.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from .models import FileSymbolRecord, FunctionSymbol, ProjectIndex

# Capitalised tokens that are language or library built-ins, never project types.
BUILTIN_TYPE_NAMES: Set[str] = {
    "Promise", "Array", "Map", "Set", "Record", "Partial", "Required", "Readonly",
    "Pick", "Omit", "Exclude", "Extract", "ReturnType", "Parameters", "NonNullable",
    "Awaited", "String", "Number", "Boolean", "Object", "Function", "Date", "Error",
    "RegExp", "Symbol", "BigInt", "JSX", "React", "HTMLElement", "Element", "Event",
    "Buffer", "WeakMap", "WeakSet", "Iterable", "Iterator", "AsyncIterable",
    "Generator", "AsyncGenerator", "ReadonlyArray", "Uint8Array", "ArrayBuffer",
    # Python typing
    "Any", "Dict", "List", "Optional", "Tuple", "Union", "Callable", "Type",
    "Sequence", "Mapping", "Iterator", "Literal", "None", "True", "False",
}

_TYPE_TOKEN = re.compile(r"\b[A-Z][a-zA-Z0-9]+\b")

# Tried in order after the literal path when resolving a relative import.
IMPORT_SUFFIXES = (
    "", ".ts", ".tsx", ".js", ".jsx",
    "/index.ts", "/index.tsx", "/index.js", "/index.jsx",
    ".py", "/__init__.py", ".go",
)


def type_references(annotation: Optional[str]) -> List[str]:
    """Capitalised identifiers in a type string, minus built-ins."""
    if not annotation:
        return []
    seen: List[str] = []
    for token in _TYPE_TOKEN.findall(annotation):
        if token not in BUILTIN_TYPE_NAMES and token not in seen:
            seen.append(token)
    return seen


def canonical_type_name(text: str) -> str:
    """``ns.Base<T>`` -> ``Base``; ``Generic[T]`` -> ``Generic``."""
    bare = re.split(r"[<\[(]", text.strip(), maxsplit=1)[0].strip()
    return bare.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class SymbolIdentity:
    """Identity of a class (``c``) or interface (``i``) node."""

    kind: str
    name: str

    @property
    def id(self) -> str:
        return f"{self.kind}:{self.name}"


def class_identity(name: str) -> SymbolIdentity:
    return SymbolIdentity("c", name)


def interface_identity(name: str) -> SymbolIdentity:
    return SymbolIdentity("i", name)


# ---------------------------------------------------------------------------
# Import paths
# ---------------------------------------------------------------------------

def is_relative_import(source: str) -> bool:
    return source.startswith(".") or source.startswith("/")


def python_relative_to_path(source: str) -> str:
    """``.a.b`` -> ``./a/b``; ``..a`` -> ``../a``; ``.`` -> ``.``."""
    dots = len(source) - len(source.lstrip("."))
    rest = source[dots:].replace(".", "/")
    prefix = "./" if dots == 1 else "../" * (dots - 1)
    if not rest:
        return prefix.rstrip("/") or "."
    return prefix + rest


def import_base_path(importer: str, source: str, language: str = "") -> str:
    """Normalised repo-relative target path of a relative import, unsuffixed."""
    if language == "Python" and source.startswith(".") and not source.startswith("./"):
        source = python_relative_to_path(source)
    if source.startswith("/"):
        return posixpath.normpath(source.lstrip("/"))
    return posixpath.normpath(posixpath.join(posixpath.dirname(importer), source))


def resolve_import_path(base: str, known_files: Set[str]) -> Optional[str]:
    """First existing file among *base* plus the fixed suffix fallbacks."""
    for suffix in IMPORT_SUFFIXES:
        candidate = base + suffix
        if candidate in known_files:
            return candidate
    if base.endswith(".js"):  # TS sources importing their compiled names
        stem = base[:-3]
        for swap in (".ts", ".tsx"):
            if stem + swap in known_files:
                return stem + swap
    return None


def resolve_import(base: str, names: Iterable[str], known_files: Set[str]) -> Optional[str]:
    """Resolve *base*, then each imported name as a submodule of it.

    ``from . import utils`` names a package, so the file is ``<base>/utils.py``.
    """
    resolved = resolve_import_path(base, known_files)
    if resolved is not None:
        return resolved
    for name in names:
        if not name.isidentifier():
            continue
        resolved = resolve_import_path(posixpath.join(base, name), known_files)
        if resolved is not None:
            return resolved
    return None


def is_package_dir(base: str, known_files: Set[str]) -> bool:
    prefix = base + "/"
    return any(path.startswith(prefix) for path in known_files)


def import_target_dir(base: str, names: Iterable[str], known_files: Set[str]) -> str:
    """Directory an import lands in; unresolved targets fall back to a best guess."""
    resolved = resolve_import(base, names, known_files)
    if resolved is not None:
        return directory_of(resolved)
    if is_package_dir(base, known_files):
        return base
    return directory_of(base)


def directory_of(path: str) -> str:
    return posixpath.dirname(path) or "."


# ---------------------------------------------------------------------------
# Call resolution
# ---------------------------------------------------------------------------

def call_node_id(path: str, name: str) -> str:
    return f"f:{path}:{name}"


HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")

_REGISTRATION = re.compile(r"^(\w+)\.(" + "|".join(HTTP_METHODS) + r")$", re.IGNORECASE)


def registration_method(callee: str) -> Optional[str]:
    """``app.get`` -> ``GET``; None unless the callee is ``<identifier>.<verb>``.

    Every occurrence of such a call is a separate route, so extractors keep
    repeats of these callees instead of deduplicating them.
    """
    match = _REGISTRATION.match(callee)
    return match.group(2).upper() if match else None


class CallResolver:
    """Priority-ordered callee lookup over one index.

    Tiers, tried in order: a same-file function, an imported name matched
    against exported functions, then the trailing ``.segment`` of the
    callee matched against any function by simple name.
    """

    def __init__(self, index: ProjectIndex) -> None:
        self._by_file: Dict[str, Dict[str, FunctionSymbol]] = {}
        self._exported: Dict[str, List[str]] = {}
        self._by_simple_name: Dict[str, List[str]] = {}

        for record in index.files:
            local = self._by_file.setdefault(record.path, {})
            for fn in record.functions:
                local.setdefault(fn.name, fn)
                fid = call_node_id(record.path, fn.name)
                if fn.exported:
                    self._exported.setdefault(fn.name, []).append(fid)
                self._by_simple_name.setdefault(fn.name.rsplit(".", 1)[-1], []).append(fid)

    def resolve_local(self, record: FileSymbolRecord, caller: str, callee: str) -> Optional[str]:
        local = self._by_file.get(record.path, {})
        for candidate in (f"{caller}.{callee}", callee):
            if candidate in local and candidate != caller:
                return call_node_id(record.path, candidate)
        return None

    def resolve_imported(self, record: FileSymbolRecord, callee: str) -> Optional[str]:
        head = callee.split(".", 1)[0]
        imported = _imported_names(record.imports)
        if callee in imported:
            name = callee
        elif head in imported and "." in callee:
            name = callee.rsplit(".", 1)[-1]  # ns.fn() through a namespace import
        else:
            return None
        for fid in self._exported.get(name, []):
            return fid
        return None

    def resolve_by_simple_name(self, caller_id: str, callee: str) -> Optional[str]:
        simple = callee.rsplit(".", 1)[-1]
        for fid in self._by_simple_name.get(simple, []):
            if fid != caller_id:
                return fid
        return None

    def resolve(self, record: FileSymbolRecord, caller: str, callee: str) -> Optional[str]:
        caller_id = call_node_id(record.path, caller)
        return (
            self.resolve_local(record, caller, callee)
            or self.resolve_imported(record, callee)
            or self.resolve_by_simple_name(caller_id, callee)
        )


def _imported_names(imports: Iterable) -> Set[str]:
    names: Set[str] = set()
    for imp in imports:
        for name in imp.names:
            names.add(name[5:] if name.startswith("* as ") else name)
    return names
