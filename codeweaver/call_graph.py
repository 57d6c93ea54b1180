"""Function call graph built from extracted call sites."""

from __future__ import annotations

from typing import Dict, List, Optional

from .models import CallGraph, CallNode, ProjectIndex
from .resolver import CallResolver, call_node_id


def build_call_graph(index: ProjectIndex, resolver: Optional[CallResolver] = None) -> CallGraph:
    """Resolve every call site into ``calls`` / ``calledBy`` edges.

    Functions that are neither exported nor on any edge are dropped.
    """
    resolver = resolver or CallResolver(index)
    nodes: Dict[str, CallNode] = {}
    for record in index.files:
        for fn in record.functions:
            fid = call_node_id(record.path, fn.name)
            if fid in nodes:
                continue
            nodes[fid] = CallNode(
                id=fid,
                name=fn.name,
                file=record.path,
                line=fn.line,
                exported=fn.exported,
                description=fn.description,
            )

    for record in index.files:
        for fn in record.functions:
            caller = nodes[call_node_id(record.path, fn.name)]
            for callee in fn.call_sites:
                target_id = resolver.resolve(record, fn.name, callee)
                if target_id is None or target_id == caller.id:
                    continue
                target = nodes[target_id]
                if target_id not in caller.calls:
                    caller.calls.append(target_id)
                if caller.id not in target.called_by:
                    target.called_by.append(caller.id)

    kept: List[CallNode] = [n for n in nodes.values() if n.exported or n.calls or n.called_by]
    return CallGraph(functions=kept)
