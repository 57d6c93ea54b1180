"""Core data models for the project index and the derived code maps.

Attribute names are snake_case; ``to_dict`` renders the camelCase JSON
documents that downstream consumers read (``index.json`` and
``code-maps.json``). Optional fields that are ``None`` are omitted.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Dict, List, Optional


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _jsonify(value: Any) -> Any:
    if is_dataclass(value):
        return value.to_dict()
    if isinstance(value, list):
        return [_jsonify(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonify(v) for k, v in value.items()}
    return value


class JsonModel:
    """Mixin: dataclass -> camelCase dict, dropping ``None`` fields."""

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is None:
                continue
            payload[f.metadata.get("key", _camel(f.name))] = _jsonify(value)
        return payload


# ---------------------------------------------------------------------------
# Per-file symbol table (owned by the extractor)
# ---------------------------------------------------------------------------

@dataclass
class Param(JsonModel):
    name: str
    type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Param":
        return cls(name=data["name"], type=data.get("type"))


@dataclass
class FunctionSymbol(JsonModel):
    name: str
    params: List[Param] = field(default_factory=list)
    return_type: Optional[str] = None
    exported: bool = False
    line: int = 0
    description: Optional[str] = None
    is_async: Optional[bool] = None
    is_component: Optional[bool] = None
    call_sites: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunctionSymbol":
        return cls(
            name=data["name"],
            params=[Param.from_dict(p) for p in data.get("params", [])],
            return_type=data.get("returnType"),
            exported=bool(data.get("exported", False)),
            line=int(data.get("line", 0)),
            description=data.get("description"),
            is_async=data.get("isAsync"),
            is_component=data.get("isComponent"),
            call_sites=list(data.get("callSites", [])),
        )


@dataclass
class MethodSymbol(JsonModel):
    name: str
    params: List[str] = field(default_factory=list)
    return_type: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MethodSymbol":
        return cls(
            name=data["name"],
            params=list(data.get("params", [])),
            return_type=data.get("returnType"),
            description=data.get("description"),
        )


@dataclass
class PropertySymbol(JsonModel):
    name: str
    type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PropertySymbol":
        return cls(name=data["name"], type=data.get("type"))


@dataclass
class ClassSymbol(JsonModel):
    name: str
    methods: List[MethodSymbol] = field(default_factory=list)
    properties: List[PropertySymbol] = field(default_factory=list)
    exported: bool = False
    line: int = 0
    extends: Optional[str] = None
    implements: Optional[List[str]] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassSymbol":
        implements = data.get("implements")
        return cls(
            name=data["name"],
            methods=[MethodSymbol.from_dict(m) for m in data.get("methods", [])],
            properties=[PropertySymbol.from_dict(p) for p in data.get("properties", [])],
            exported=bool(data.get("exported", False)),
            line=int(data.get("line", 0)),
            extends=data.get("extends"),
            implements=list(implements) if implements is not None else None,
            description=data.get("description"),
        )


@dataclass
class TypeField(JsonModel):
    name: str
    type: str
    optional: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypeField":
        return cls(name=data["name"], type=data.get("type", ""), optional=data.get("optional"))


@dataclass
class TypeSymbol(JsonModel):
    name: str
    kind: str  # "interface" | "type" | "enum"
    fields: Optional[List[TypeField]] = None
    values: Optional[List[str]] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypeSymbol":
        raw_fields = data.get("fields")
        values = data.get("values")
        return cls(
            name=data["name"],
            kind=data.get("kind", "type"),
            fields=[TypeField.from_dict(f) for f in raw_fields] if raw_fields is not None else None,
            values=list(values) if values is not None else None,
            description=data.get("description"),
        )


@dataclass
class VariableSymbol(JsonModel):
    name: str
    kind: str = "const"
    type: Optional[str] = None
    value: Optional[str] = None
    exported: bool = False
    line: int = 0
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VariableSymbol":
        return cls(
            name=data["name"],
            kind=data.get("kind", "const"),
            type=data.get("type"),
            value=data.get("value"),
            exported=bool(data.get("exported", False)),
            line=int(data.get("line", 0)),
            description=data.get("description"),
        )


@dataclass
class ImportRecord(JsonModel):
    source: str
    names: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportRecord":
        return cls(source=data["source"], names=list(data.get("names", [])))


@dataclass
class FileSymbolRecord(JsonModel):
    path: str
    size: int
    language: str
    description: Optional[str] = None
    functions: List[FunctionSymbol] = field(default_factory=list)
    classes: List[ClassSymbol] = field(default_factory=list)
    variables: List[VariableSymbol] = field(default_factory=list)
    types: List[TypeSymbol] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    imports: List[ImportRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileSymbolRecord":
        return cls(
            path=data["path"],
            size=int(data.get("size", 0)),
            language=data.get("language", ""),
            description=data.get("description"),
            functions=[FunctionSymbol.from_dict(f) for f in data.get("functions", [])],
            classes=[ClassSymbol.from_dict(c) for c in data.get("classes", [])],
            variables=[VariableSymbol.from_dict(v) for v in data.get("variables", [])],
            types=[TypeSymbol.from_dict(t) for t in data.get("types", [])],
            exports=list(data.get("exports", [])),
            imports=[ImportRecord.from_dict(i) for i in data.get("imports", [])],
        )


@dataclass
class FileTreeEntry(JsonModel):
    path: str
    size: int
    type: str = "file"


@dataclass
class ProjectIndex(JsonModel):
    files: List[FileSymbolRecord] = field(default_factory=list)
    file_tree: List[FileTreeEntry] = field(default_factory=list)
    tech_stack: List[str] = field(default_factory=list)
    root_path: str = ""
    indexed_at: str = ""
    version: str = ""

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_functions(self) -> int:
        return sum(len(f.functions) for f in self.files)

    @property
    def total_classes(self) -> int:
        return sum(len(f.classes) for f in self.files)

    @property
    def total_variables(self) -> int:
        return sum(len(f.variables) for f in self.files)

    @property
    def total_types(self) -> int:
        return sum(len(f.types) for f in self.files)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update(
            totalFiles=self.total_files,
            totalFunctions=self.total_functions,
            totalClasses=self.total_classes,
            totalVariables=self.total_variables,
            totalTypes=self.total_types,
        )
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectIndex":
        return cls(
            files=[FileSymbolRecord.from_dict(f) for f in data.get("files", [])],
            file_tree=[
                FileTreeEntry(path=e["path"], size=int(e.get("size", 0)), type=e.get("type", "file"))
                for e in data.get("fileTree", [])
            ],
            tech_stack=list(data.get("techStack", [])),
            root_path=data.get("rootPath", ""),
            indexed_at=data.get("indexedAt", ""),
            version=data.get("version", ""),
        )


# ---------------------------------------------------------------------------
# Code maps (derived from one ProjectIndex)
# ---------------------------------------------------------------------------

@dataclass
class ClassMember(JsonModel):
    name: str
    visibility: str
    params: Optional[str] = None
    return_type: Optional[str] = None
    type: Optional[str] = None


@dataclass
class ClassNode(JsonModel):
    id: str
    name: str
    file: str
    line: int
    exported: bool
    extends: Optional[str] = None
    implements: List[str] = field(default_factory=list)
    methods: List[ClassMember] = field(default_factory=list)
    properties: List[ClassMember] = field(default_factory=list)
    description: Optional[str] = None


@dataclass
class InterfaceNode(JsonModel):
    id: str
    name: str
    file: str
    line: int = 0
    exported: bool = True
    fields: List[TypeField] = field(default_factory=list)
    description: Optional[str] = None


@dataclass(frozen=True)
class ClassRelationship(JsonModel):
    from_id: str = field(metadata={"key": "from"})
    to_id: str = field(metadata={"key": "to"})
    type: str  # "extends" | "implements" | "uses"


@dataclass
class ClassMap(JsonModel):
    classes: List[ClassNode] = field(default_factory=list)
    interfaces: List[InterfaceNode] = field(default_factory=list)
    relationships: List[ClassRelationship] = field(default_factory=list)


@dataclass
class ModuleNode(JsonModel):
    id: str
    path: str
    file_count: int
    exports: List[str] = field(default_factory=list)
    public_api: List[str] = field(default_factory=list, metadata={"key": "publicAPI"})


@dataclass
class ModuleConnection(JsonModel):
    from_id: str = field(metadata={"key": "from"})
    to_id: str = field(metadata={"key": "to"})
    imports: int = 0
    exports_used: List[str] = field(default_factory=list)


@dataclass
class ModuleLayer(JsonModel):
    name: str
    modules: List[str] = field(default_factory=list)


@dataclass
class ModuleMap(JsonModel):
    modules: List[ModuleNode] = field(default_factory=list)
    connections: List[ModuleConnection] = field(default_factory=list)
    layers: List[ModuleLayer] = field(default_factory=list)


@dataclass
class CallNode(JsonModel):
    id: str
    name: str
    file: str
    line: int
    exported: bool
    calls: List[str] = field(default_factory=list)
    called_by: List[str] = field(default_factory=list)
    description: Optional[str] = None


@dataclass
class CallGraph(JsonModel):
    functions: List[CallNode] = field(default_factory=list)


@dataclass
class APIEndpoint(JsonModel):
    method: str
    path: str
    file: str
    handler: str
    params: Optional[List[str]] = None
    description: Optional[str] = None


@dataclass
class APIMap(JsonModel):
    endpoints: List[APIEndpoint] = field(default_factory=list)


@dataclass
class CodeMapBundle(JsonModel):
    class_map: ClassMap
    module_map: ModuleMap
    call_graph: CallGraph
    api_map: APIMap
    generated_at: str = ""
    version: str = ""
