"""Graph export helpers for DOT output of a recorded diagram."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

from .sink import Event
from .naming import simple_name_of

_EDGE_STYLES: Dict[str, str] = {
    "connect_owns": 'arrowhead=odiamond, label="owns"',
    "connect_inheritance": 'arrowhead=onormal, label="extends"',
    "connect_realization": 'arrowhead=onormal, style=dashed, label="implements"',
    "connect_association": "arrowhead=vee",
    "connect_dependency": 'arrowhead=vee, style=dashed, label="uses"',
}


def export_dot(events: Sequence[Event], output_file: Path, focus: str = "") -> None:
    output_file.write_text(render_dot(events, focus), encoding="utf-8")


def render_dot(events: Sequence[Event], focus: str = "") -> str:
    nodes = {e[1]: e for e in events if e[0] == "declare_node"}
    edges = [_edge_row(e) for e in events if e[0] in _EDGE_STYLES]

    selected = _focused_subgraph(nodes, edges, focus)

    lines = ["digraph ClassDiagram {"]
    lines.append("  rankdir=LR;")
    lines.append("  node [shape=box];")

    for node_id in selected["nodes"]:
        if node_id not in nodes:
            continue
        kind = nodes[node_id][2]
        label = f"{kind.value}\\n{node_id}"
        lines.append(f'  "{_esc(node_id)}" [label="{_esc(label)}"];')

    for edge in selected["edges"]:
        style = _EDGE_STYLES[edge["edge_type"]]
        if edge["role"]:
            style += f', label="{_esc(edge["role"])}"'
        if edge["review"] is not None:
            style += ', color=grey, fontcolor=grey, style="dashed"'
            if edge["dst"] not in nodes:
                lines.append(f'  "{_esc(edge["dst"])}" [color=grey, fontcolor=grey];')
        lines.append(f'  "{_esc(edge["src"])}" -> "{_esc(edge["dst"])}" [{style}];')

    lines.append("}")
    return "\n".join(lines) + "\n"


def _edge_row(event: Event) -> dict:
    name = event[0]
    role = event[3] if name == "connect_association" else ""
    review = event[3] if name in ("connect_inheritance", "connect_realization", "connect_dependency") else None
    return {"src": event[1], "dst": event[2], "edge_type": name, "role": role, "review": review}


def _focused_subgraph(nodes: Dict[str, Event], edges: List[dict], focus: str) -> Dict[str, List]:
    if not focus:
        return {"nodes": list(nodes.keys()), "edges": edges}

    focus_ids = {
        node_id
        for node_id in nodes
        if focus == node_id or focus == simple_name_of(node_id)
    }

    if not focus_ids:
        return {"nodes": list(nodes.keys()), "edges": edges}

    edge_subset = [e for e in edges if e["src"] in focus_ids or e["dst"] in focus_ids]
    node_subset = set(focus_ids)
    for e in edge_subset:
        if e["src"] in nodes:
            node_subset.add(e["src"])
        if e["dst"] in nodes:
            node_subset.add(e["dst"])
    return {"nodes": sorted(node_subset), "edges": edge_subset}


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
