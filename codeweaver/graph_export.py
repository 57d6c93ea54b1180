"""DOT export of the class, module and call maps."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple

EXPORT_VIEWS = ("classes", "modules", "calls")


def graph_payload(bundle: Dict[str, Any], view: str) -> Tuple[Dict[str, dict], List[dict]]:
    """Flatten one map of a stored bundle into ``(nodes, edges)``."""
    nodes: Dict[str, dict] = {}
    edges: List[dict] = []

    if view == "classes":
        class_map = bundle["classMap"]
        for cls in class_map["classes"]:
            nodes[cls["id"]] = {"name": cls["name"], "label": f"class\\n{cls['name']}"}
        for iface in class_map["interfaces"]:
            nodes[iface["id"]] = {"name": iface["name"], "label": f"interface\\n{iface['name']}"}
        edges = [{"src": r["from"], "dst": r["to"], "label": r["type"]} for r in class_map["relationships"]]
    elif view == "modules":
        module_map = bundle["moduleMap"]
        for module in module_map["modules"]:
            nodes[module["id"]] = {"name": module["path"], "label": f"{module['path']}\\n{module['fileCount']} files"}
        edges = [
            {"src": c["from"], "dst": c["to"], "label": str(c["imports"])}
            for c in module_map["connections"]
        ]
    elif view == "calls":
        for fn in bundle["callGraph"]["functions"]:
            nodes[fn["id"]] = {"name": fn["name"], "label": f"{fn['name']}\\n{fn['file']}"}
            edges.extend({"src": fn["id"], "dst": target, "label": "calls"} for target in fn["calls"])
    else:
        raise ValueError(f"Cannot export view '{view}'; expected one of: {', '.join(EXPORT_VIEWS)}")
    return nodes, edges


def export_dot(bundle: Dict[str, Any], output_file: Path, view: str = "classes", focus: str = "") -> int:
    """Write *view* as Graphviz DOT; returns the number of nodes written."""
    nodes, edges = graph_payload(bundle, view)
    selected = _focused_subgraph(nodes, edges, focus)

    lines = ["digraph CodeWeaver {", "  rankdir=LR;"]
    written = 0
    for node_id in selected["nodes"]:
        if node_id not in nodes:
            continue
        lines.append(f'  "{_esc(node_id)}" [label="{_esc(nodes[node_id]["label"])}"];')
        written += 1
    for edge in selected["edges"]:
        if edge["src"] not in nodes or edge["dst"] not in nodes:
            continue
        lines.append(f'  "{_esc(edge["src"])}" -> "{_esc(edge["dst"])}" [label="{_esc(edge["label"])}"];')
    lines.append("}")

    Path(output_file).write_text("\n".join(lines) + "\n", encoding="utf-8")
    return written


def _focused_subgraph(nodes: Dict[str, dict], edges: List[dict], focus: str) -> Dict[str, List]:
    """Nodes whose id or name contains *focus*, plus their direct neighbours."""
    if not focus:
        return {"nodes": list(nodes), "edges": edges}

    focus_ids = {node_id for node_id, node in nodes.items() if focus in node_id or focus in node["name"]}
    if not focus_ids:
        return {"nodes": list(nodes), "edges": edges}

    edge_subset = [e for e in edges if e["src"] in focus_ids or e["dst"] in focus_ids]
    node_subset = set(focus_ids)
    for edge in edge_subset:
        node_subset.update(n for n in (edge["src"], edge["dst"]) if n in nodes)
    return {"nodes": sorted(node_subset), "edges": edge_subset}


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
