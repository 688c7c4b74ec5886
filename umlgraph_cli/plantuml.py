"""PlantUML class-diagram writer.

Output is line based.  Every block carries begin/end marker comments so
downstream tooling can cut a diagram apart, and every edge whose target is
not a declared type is written commented out with a ``cherry-pick`` tag:
``external`` when the type is known to live outside the sources,
``ghost`` when it could not be identified at all.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Sequence, TextIO

from .models import (
    AnnotationMemberDecl,
    ArrayType,
    ConstructorDecl,
    FieldDecl,
    MethodDecl,
    ParameterDecl,
    PrimitiveType,
    ReviewFlag,
    TypeKind,
    render_type,
)
from .sink import DiagramSink

INDENT_UNIT = "  "
DEFAULT_TAG = "umlgraph"

_CHERRY_PICK_LABELS: Dict[ReviewFlag, str] = {
    ReviewFlag.EXTERNAL: "external",
    ReviewFlag.UNRESOLVED: "ghost",
}

_FIELD_FLAGS = ("final", "transient", "volatile")


def diagram_header(
    title: Optional[str] = None,
    theme: Optional[str] = None,
    direction: Optional[str] = None,
    hide_empty_members: bool = True,
) -> List[str]:
    """Directives written right after ``@startuml``."""
    lines: List[str] = []
    if title:
        _check_text(title, "title")
        lines.append(f"mainframe {title}")
    if hide_empty_members:
        lines.append("hide empty members")
    if theme:
        _check_text(theme, "theme")
        lines.append(f"!theme {theme}")
    lines.append("!pragma useIntermediatePackages false")
    if direction:
        _check_text(direction, "direction")
        lines.append(f"{direction} direction")
    return lines


def visibility_symbol(modifiers: FrozenSet[str]) -> str:
    if "public" in modifiers:
        return "+"
    if "protected" in modifiers:
        return "#"
    if "private" in modifiers:
        return "-"
    return "~"


def node_keyword(kind: TypeKind, modifiers: FrozenSet[str]) -> str:
    if kind is TypeKind.CLASS:
        return "abstract class" if "abstract" in modifiers else "class"
    if kind is TypeKind.INTERFACE:
        return "interface"
    if kind is TypeKind.ENUM:
        return "enum"
    if kind is TypeKind.RECORD:
        return "class"
    if kind is TypeKind.ANNOTATION:
        return "annotation"
    raise TypeError(f"Unknown type kind: {kind!r}")


def node_stereotypes(kind: TypeKind, modifiers: FrozenSet[str], annotations: Sequence[str]) -> List[str]:
    stereotypes: List[str] = []
    if kind is TypeKind.RECORD:
        stereotypes.append("record")
    if kind is TypeKind.CLASS and "final" in modifiers:
        stereotypes.append("final")
    stereotypes.extend(annotations)
    return stereotypes


def _check_text(text: str, label: str) -> None:
    if "\n" in text or "\r" in text:
        raise ValueError(f"{label} must be a single line")
    if '"' in text:
        raise ValueError(f'Quote (") not allowed in {label}: {text}')


def _quote(name: str) -> str:
    _check_text(name, "name")
    return f'"{name.strip()}"'


def _stereotype_suffix(stereotypes: Sequence[str]) -> str:
    for stereotype in stereotypes:
        _check_text(stereotype, "stereotype")
    return "".join(f" <<{s}>>" for s in stereotypes)


def _parameter(parameter: ParameterDecl) -> str:
    usage = parameter.type
    if parameter.varargs and isinstance(usage, ArrayType):
        type_text = f"{render_type(usage.component)}..."
    else:
        type_text = render_type(usage)
    return f"{parameter.name} : {type_text}"


def _parameters(parameters: Sequence[ParameterDecl]) -> str:
    return ", ".join(_parameter(p) for p in parameters)


class PlantUMLWriter(DiagramSink):
    """Writes sink calls as PlantUML to *out*."""

    def __init__(self, out: TextIO, header: Sequence[str] = (), tag: str = DEFAULT_TAG) -> None:
        _check_text(tag, "tag")
        self.out = out
        self.header = tuple(header)
        self.tag = tag
        self._indent = 0
        self._open_nodes: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Output primitives
    # ------------------------------------------------------------------

    def println(self, line: str = "") -> None:
        self.out.write(f"{INDENT_UNIT * self._indent}{line}".rstrip() + "\n")

    def _begin_block(self, keyword: str, name: str, suffix: str = "") -> None:
        quoted = _quote(name)
        self.println(f"{keyword} {quoted}{suffix} {{ /' @{self.tag}:begin {keyword} {quoted} '/")
        self._indent += 1

    def _end_block(self, keyword: str, name: str) -> None:
        self._indent = max(0, self._indent - 1)
        self.println(f"}} /' @{self.tag}:end {keyword} {_quote(name)} '/")

    def _edge(self, src: str, arrow: str, dst: str, review: Optional[ReviewFlag] = None) -> None:
        line = f"{_quote(src)} {arrow} {_quote(dst)}"
        if review is None:
            self.println(line)
        else:
            self.println(f"' @{self.tag}:cherry-pick {_CHERRY_PICK_LABELS[review]} {line}")

    # ------------------------------------------------------------------
    # Diagram and packages
    # ------------------------------------------------------------------

    def begin_diagram(self, name: str) -> None:
        _check_text(name, "name")
        self.println(f"@startuml {name.strip()}")
        for line in self.header:
            self.println(line)
        if self.header:
            self.println()

    def end_diagram(self, name: str) -> None:
        _check_text(name, "name")
        self.println("@enduml")

    def begin_package(self, name: str) -> None:
        self._begin_block("package", name)

    def end_package(self, name: str) -> None:
        self._end_block("package", name)

    # ------------------------------------------------------------------
    # Nodes and members
    # ------------------------------------------------------------------

    def declare_node(self, key, kind, stereotypes=(), modifiers=()) -> None:
        modifiers = frozenset(modifiers)
        keyword = node_keyword(kind, modifiers)
        suffix = _stereotype_suffix(node_stereotypes(kind, modifiers, stereotypes))
        self._open_nodes[key] = keyword
        self._begin_block(keyword, key, suffix)

    def end_node(self, key: str) -> None:
        self._end_block(self._open_nodes.pop(key, "class"), key)

    def add_attribute(self, owner: str, member: FieldDecl, component: bool = False) -> None:
        annotations = _stereotype_suffix(sorted(set(member.annotations)))
        if component:
            self.println(f"{member.name} : {render_type(member.type)}{annotations}")
            return
        parts = [visibility_symbol(member.modifiers)]
        if "static" in member.modifiers:
            parts.append("{static}")
        parts.append(f"{member.name} : {render_type(member.type)}")
        flags = [flag for flag in _FIELD_FLAGS if flag in member.modifiers]
        if flags:
            parts.append("{" + ", ".join(flags) + "}")
        self.println(" ".join(parts) + annotations)

    def add_enum_constant(self, owner: str, name: str) -> None:
        self.println(name)

    def add_constructor(self, owner: str, constructor: ConstructorDecl) -> None:
        vis = visibility_symbol(constructor.modifiers)
        annotations = _stereotype_suffix(sorted(set(constructor.annotations)))
        self.println(f"{vis} <<create>> {constructor.name}({_parameters(constructor.parameters)}){annotations}")

    def add_method(self, owner: str, method: MethodDecl) -> None:
        parts = [visibility_symbol(method.modifiers)]
        if "static" in method.modifiers:
            parts.append("{static}")
        if "abstract" in method.modifiers:
            parts.append("{abstract}")
        signature = f"{method.name}({_parameters(method.parameters)})"
        ret = method.return_type
        if not (isinstance(ret, PrimitiveType) and ret.name == "void"):
            signature += f" : {render_type(ret)}"
        parts.append(signature)
        self.println(" ".join(parts) + _stereotype_suffix(sorted(set(method.annotations))))

    def add_annotation_member(self, owner: str, member: AnnotationMemberDecl) -> None:
        line = f"{member.name}() : {render_type(member.type)}"
        if member.default is not None:
            line += f" = {' '.join(member.default.split())}"
        self.println(line)

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def connect_owns(self, owner: str, owned: str) -> None:
        self._edge(owner, "+--", owned)

    def connect_inheritance(self, sub, super_name, review=None) -> None:
        self._edge(sub, "--|>", super_name, review)

    def connect_realization(self, sub, interface_name, review=None) -> None:
        self._edge(sub, "..|>", interface_name, review)

    def connect_association(self, owner, target, role, stereotypes=()) -> None:
        _check_text(role, "role")
        line = f"{_quote(owner)} ---> {_quote(role)} {_quote(target)}"
        if stereotypes:
            line += " :" + _stereotype_suffix(stereotypes)
        self.println(line)

    def connect_dependency(self, src, dst, review=None) -> None:
        self._edge(src, "..>", dst, review)
