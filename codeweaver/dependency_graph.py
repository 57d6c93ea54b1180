"""File-level dependency graph: edges, entry points, clusters and cycles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Set, Tuple

from .models import JsonModel, ProjectIndex
from .resolver import directory_of, import_base_path, is_relative_import, resolve_import

SHARED_MODULE_CAP = 15


@dataclass
class DependencyEdge(JsonModel):
    from_id: str = field(metadata={"key": "from"})
    to_id: str = field(metadata={"key": "to"})
    imports: List[str] = field(default_factory=list)


@dataclass
class SharedModule(JsonModel):
    file: str
    imported_by: int


@dataclass
class DirectoryCluster(JsonModel):
    directory: str
    files: List[str] = field(default_factory=list)
    internal_edges: int = 0
    external_edges: int = 0


@dataclass
class DependencyGraph(JsonModel):
    edges: List[DependencyEdge] = field(default_factory=list)
    entry_points: List[str] = field(default_factory=list)
    shared_modules: List[SharedModule] = field(default_factory=list)
    clusters: List[DirectoryCluster] = field(default_factory=list)
    circular_deps: List[List[str]] = field(default_factory=list)

    def summary(self) -> Dict[str, object]:
        return {
            "totalEdges": len(self.edges),
            "entryPoints": self.entry_points[:10],
            "entryPointCount": len(self.entry_points),
            "sharedModules": [m.to_dict() for m in self.shared_modules[:10]],
            "clusters": [
                {
                    "directory": c.directory,
                    "fileCount": len(c.files),
                    "internalEdges": c.internal_edges,
                    "externalEdges": c.external_edges,
                }
                for c in self.clusters
            ],
            "circularDeps": self.circular_deps,
            "hasCircularDeps": bool(self.circular_deps),
        }


def build_dependency_graph(index: ProjectIndex) -> DependencyGraph:
    """Resolve relative imports into file -> file edges and analyse them.

    Imports that cannot be matched to an indexed file are left out.
    """
    files = sorted(f.path for f in index.files)
    known: Set[str] = set(files)

    edges: List[DependencyEdge] = []
    in_degree: Dict[str, int] = {path: 0 for path in files}
    for record in index.files:
        for imp in record.imports:
            if not is_relative_import(imp.source):
                continue
            base = import_base_path(record.path, imp.source, record.language)
            target = resolve_import(base, imp.names, known)
            if target is None:
                continue
            edges.append(DependencyEdge(from_id=record.path, to_id=target, imports=list(imp.names)))
            in_degree[target] += 1

    shared = sorted(
        ((path, count) for path, count in in_degree.items() if count > 0),
        key=lambda item: (-item[1], item[0]),
    )

    return DependencyGraph(
        edges=edges,
        entry_points=[path for path in files if in_degree[path] == 0],
        shared_modules=[SharedModule(file=p, imported_by=c) for p, c in shared[:SHARED_MODULE_CAP]],
        clusters=_clusters(files, edges),
        circular_deps=find_cycles(files, [(e.from_id, e.to_id) for e in edges]),
    )


def _clusters(files: List[str], edges: List[DependencyEdge]) -> List[DirectoryCluster]:
    by_dir: Dict[str, DirectoryCluster] = {}
    for path in files:
        directory = directory_of(path)
        by_dir.setdefault(directory, DirectoryCluster(directory=directory)).files.append(path)

    for cluster in by_dir.values():
        members = set(cluster.files)
        for edge in edges:
            inside_from, inside_to = edge.from_id in members, edge.to_id in members
            if inside_from and inside_to:
                cluster.internal_edges += 1
            elif inside_from or inside_to:
                cluster.external_edges += 1

    return sorted(by_dir.values(), key=lambda c: (-len(c.files), c.directory))


def _rotate_to_smallest(cycle: List[str]) -> Tuple[str, ...]:
    start = cycle.index(min(cycle))
    return tuple(cycle[start:] + cycle[:start])


def find_cycles(nodes: List[str], edges: List[Tuple[str, str]]) -> List[List[str]]:
    """Cycles met by a depth-first walk over *nodes* in the given order.

    Each cycle starts at its lexicographically smallest path; duplicates are
    removed and the result is sorted.
    """
    adjacency: Dict[str, List[str]] = {node: [] for node in nodes}
    for src, dst in edges:
        targets = adjacency.setdefault(src, [])
        if dst not in targets:
            targets.append(dst)
    for targets in adjacency.values():
        targets.sort()

    visited: Set[str] = set()
    found: Set[Tuple[str, ...]] = set()

    for start in nodes:
        if start in visited:
            continue
        path: List[str] = [start]
        on_path: Set[str] = {start}
        visited.add(start)
        stack: List[Iterator[str]] = [iter(adjacency.get(start, []))]
        while stack:
            neighbour = next(stack[-1], None)
            if neighbour is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if neighbour in on_path:
                found.add(_rotate_to_smallest(path[path.index(neighbour):]))
                continue
            if neighbour in visited:
                continue
            visited.add(neighbour)
            on_path.add(neighbour)
            path.append(neighbour)
            stack.append(iter(adjacency.get(neighbour, [])))

    return sorted(list(cycle) for cycle in found)
