"""Read-only query views over a built code-map bundle and the index."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .indexer import search_index
from .models import ProjectIndex

VIEWS = ("summary", "classes", "modules", "calls", "api", "file")

NO_CODE_MAPS = "No code maps found. Run `cw build` first."
NO_INDEX = "No index found. Run `cw index` first."


@dataclass
class QueryResult:
    """Outcome of one engine operation: a payload or a reason there is none."""

    success: bool
    result: Any = None
    message: Optional[str] = None
    view: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.view is not None:
            payload["view"] = self.view
        if self.message is not None:
            payload["message"] = self.message
        if self.result is not None:
            payload["result"] = self.result
        return payload

    @classmethod
    def fail(cls, message: str) -> "QueryResult":
        return cls(success=False, message=message)


def _contains(value: str, needle: str) -> bool:
    return needle in value.lower()


def _summary_view(bundle: Dict[str, Any]) -> Dict[str, Any]:
    class_map, module_map = bundle["classMap"], bundle["moduleMap"]
    endpoints = bundle["apiMap"]["endpoints"]
    return {
        "generatedAt": bundle.get("generatedAt"),
        "classes": len(class_map["classes"]),
        "interfaces": len(class_map["interfaces"]),
        "relationships": len(class_map["relationships"]),
        "modules": len(module_map["modules"]),
        "layers": module_map["layers"],
        "functions": len(bundle["callGraph"]["functions"]),
        "endpoints": len(endpoints),
        "topClasses": [c["name"] for c in class_map["classes"][:5]],
        "topModules": [m["path"] for m in module_map["modules"][:5]],
        "apiRoutes": [f"{e['method']} {e['path']}" for e in endpoints],
    }


def _classes_view(bundle: Dict[str, Any], query: Optional[str]) -> Dict[str, Any]:
    class_map = bundle["classMap"]
    classes, interfaces = class_map["classes"], class_map["interfaces"]
    relationships = class_map["relationships"]
    if query:
        needle = query.lower()
        classes = [c for c in classes if _contains(c["name"], needle)]
        interfaces = [i for i in interfaces if _contains(i["name"], needle)]
        ids = {n["id"] for n in classes} | {n["id"] for n in interfaces}
        relationships = [r for r in relationships if r["from"] in ids or r["to"] in ids]
    return {"classes": classes, "interfaces": interfaces, "relationships": relationships}


def _modules_view(bundle: Dict[str, Any], query: Optional[str]) -> Dict[str, Any]:
    module_map = bundle["moduleMap"]
    modules, connections = module_map["modules"], module_map["connections"]
    if query:
        needle = query.lower()
        modules = [m for m in modules if _contains(m["path"], needle)]
        ids = {m["id"] for m in modules}
        connections = [c for c in connections if c["from"] in ids or c["to"] in ids]
    return {"modules": modules, "connections": connections, "layers": module_map["layers"]}


def _calls_view(bundle: Dict[str, Any], query: Optional[str]) -> Dict[str, Any]:
    functions = bundle["callGraph"]["functions"]
    if query:
        needle = query.lower()
        functions = [f for f in functions if _contains(f["name"], needle)]
    return {"functions": functions}


def _file_view(bundle: Dict[str, Any], file: str) -> Dict[str, Any]:
    class_map = bundle["classMap"]
    classes = [c for c in class_map["classes"] if c["file"] == file]
    interfaces = [i for i in class_map["interfaces"] if i["file"] == file]
    ids = {n["id"] for n in classes} | {n["id"] for n in interfaces}
    directory = posixpath.dirname(file) or "."
    module = next((m for m in bundle["moduleMap"]["modules"] if m["path"] == directory), None)
    return {
        "file": file,
        "module": module,
        "classes": classes,
        "interfaces": interfaces,
        "relationships": [r for r in class_map["relationships"] if r["from"] in ids or r["to"] in ids],
        "functions": [f for f in bundle["callGraph"]["functions"] if f["file"] == file],
        "endpoints": [e for e in bundle["apiMap"]["endpoints"] if e["file"] == file],
    }


def query_code_maps(
    bundle: Optional[Dict[str, Any]],
    view: str,
    query: Optional[str] = None,
    file: Optional[str] = None,
) -> QueryResult:
    """Answer one named view over a stored bundle (camelCase dict form)."""
    if view not in VIEWS:
        return QueryResult.fail(f"Unknown view '{view}'. Expected one of: {', '.join(VIEWS)}.")
    if bundle is None:
        return QueryResult.fail(NO_CODE_MAPS)

    if view == "summary":
        result = _summary_view(bundle)
    elif view == "classes":
        result = _classes_view(bundle, query)
    elif view == "modules":
        result = _modules_view(bundle, query)
    elif view == "calls":
        result = _calls_view(bundle, query)
    elif view == "api":
        result = {"endpoints": bundle["apiMap"]["endpoints"]}
    else:
        if not file:
            return QueryResult.fail('The "file" parameter is required for file view.')
        result = _file_view(bundle, file)
    return QueryResult(success=True, result=result, view=view)


def query_index(
    index: Optional[ProjectIndex],
    file: Optional[str] = None,
    language: Optional[str] = None,
    query: Optional[str] = None,
    include_imports: bool = False,
    include_variables: bool = False,
) -> QueryResult:
    if index is None:
        return QueryResult.fail(NO_INDEX)
    result = search_index(
        index,
        file=file,
        language=language,
        query=query,
        include_imports=include_imports,
        include_variables=include_variables,
    )
    message = f"Found {result['total']} matching files"
    if result["truncated"]:
        message += f" (showing first {result['showing']})"
    return QueryResult(success=True, result=result, message=message)
