"""Directory-level module map with architectural layering."""

from __future__ import annotations

from typing import Dict, List, Set, Tuple

from . import config
from .models import ModuleConnection, ModuleLayer, ModuleMap, ModuleNode, ProjectIndex
from .resolver import directory_of, import_base_path, import_target_dir, is_relative_import

ENTRY_POINTS = "Entry Points"
CORE = "Core"
SHARED = "Shared / Utilities"
STANDALONE = "Standalone"

LAYER_ORDER = (ENTRY_POINTS, CORE, SHARED, STANDALONE)


def module_id(directory: str) -> str:
    return f"mod:{directory}"


def classify_layer(in_degree: int, out_degree: int) -> str:
    """Bucket a module purely from its connection degrees."""
    if in_degree == 0 and out_degree > 0:
        return ENTRY_POINTS
    if in_degree > 2 and out_degree <= 1:
        return SHARED
    if in_degree == 0 and out_degree == 0:
        return STANDALONE
    return CORE


def build_module_map(index: ProjectIndex) -> ModuleMap:
    known_files: Set[str] = {f.path for f in index.files}

    modules: Dict[str, ModuleNode] = {}
    for record in index.files:
        directory = directory_of(record.path)
        node = modules.get(directory)
        if node is None:
            node = modules[directory] = ModuleNode(id=module_id(directory), path=directory, file_count=0)
        node.file_count += 1
        for name in record.exports:
            if name not in node.exports:
                node.exports.append(name)
        public = [f.name for f in record.functions if f.exported]
        public += [c.name for c in record.classes if c.exported]
        for name in public:
            if name not in node.public_api and len(node.public_api) < config.PUBLIC_API_CAP:
                node.public_api.append(name)

    pairs: Dict[Tuple[str, str], ModuleConnection] = {}
    for record in index.files:
        own_dir = directory_of(record.path)
        for imp in record.imports:
            if not is_relative_import(imp.source):
                continue
            base = import_base_path(record.path, imp.source, record.language)
            target_dir = import_target_dir(base, imp.names, known_files)
            if target_dir == own_dir:
                continue
            key = (module_id(own_dir), module_id(target_dir))
            conn = pairs.get(key)
            if conn is None:
                conn = pairs[key] = ModuleConnection(from_id=key[0], to_id=key[1])
            conn.imports += 1
            for name in imp.names:
                if name not in conn.exports_used:
                    conn.exports_used.append(name)

    connections = list(pairs.values())
    return ModuleMap(
        modules=list(modules.values()),
        connections=connections,
        layers=build_layers([m.id for m in modules.values()], connections),
    )


def build_layers(module_ids: List[str], connections: List[ModuleConnection]) -> List[ModuleLayer]:
    """Non-empty layer buckets in fixed order."""
    in_degree: Dict[str, int] = {mid: 0 for mid in module_ids}
    out_degree: Dict[str, int] = {mid: 0 for mid in module_ids}
    for conn in connections:
        out_degree[conn.from_id] = out_degree.get(conn.from_id, 0) + 1
        in_degree[conn.to_id] = in_degree.get(conn.to_id, 0) + 1

    buckets: Dict[str, List[str]] = {name: [] for name in LAYER_ORDER}
    for mid in module_ids:
        buckets[classify_layer(in_degree[mid], out_degree[mid])].append(mid)
    return [ModuleLayer(name=name, modules=buckets[name]) for name in LAYER_ORDER if buckets[name]]
