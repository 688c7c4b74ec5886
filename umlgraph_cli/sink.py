"""Diagram sink interface and an in-memory recording implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple

from .models import (
    AnnotationMemberDecl,
    ConstructorDecl,
    FieldDecl,
    MethodDecl,
    ReviewFlag,
    TypeKind,
)

Event = Tuple[Any, ...]


class DiagramSink(ABC):
    """Receives the diagram as an ordered stream of calls.

    Nodes come first, grouped by package, each bracketed by
    ``declare_node`` / ``end_node``; all relationship edges follow.
    """

    @abstractmethod
    def begin_diagram(self, name: str) -> None: ...

    @abstractmethod
    def end_diagram(self, name: str) -> None: ...

    @abstractmethod
    def begin_package(self, name: str) -> None: ...

    @abstractmethod
    def end_package(self, name: str) -> None: ...

    @abstractmethod
    def declare_node(
        self,
        key: str,
        kind: TypeKind,
        stereotypes: Sequence[str] = (),
        modifiers: Sequence[str] = (),
    ) -> None: ...

    @abstractmethod
    def end_node(self, key: str) -> None: ...

    @abstractmethod
    def add_attribute(self, owner: str, member: FieldDecl, component: bool = False) -> None: ...

    @abstractmethod
    def add_enum_constant(self, owner: str, name: str) -> None: ...

    @abstractmethod
    def add_constructor(self, owner: str, constructor: ConstructorDecl) -> None: ...

    @abstractmethod
    def add_method(self, owner: str, method: MethodDecl) -> None: ...

    @abstractmethod
    def add_annotation_member(self, owner: str, member: AnnotationMemberDecl) -> None: ...

    @abstractmethod
    def connect_owns(self, owner: str, owned: str) -> None: ...

    @abstractmethod
    def connect_inheritance(self, sub: str, super_name: str, review: Optional[ReviewFlag] = None) -> None: ...

    @abstractmethod
    def connect_realization(self, sub: str, interface_name: str, review: Optional[ReviewFlag] = None) -> None: ...

    @abstractmethod
    def connect_association(
        self,
        owner: str,
        target: str,
        role: str,
        stereotypes: Sequence[str] = (),
    ) -> None: ...

    @abstractmethod
    def connect_dependency(self, src: str, dst: str, review: Optional[ReviewFlag] = None) -> None: ...


class RecordingSink(DiagramSink):
    """Keeps every call as a tuple, for comparison and re-rendering."""

    def __init__(self) -> None:
        self.events: List[Event] = []

    def _record(self, *event: Any) -> None:
        self.events.append(tuple(event))

    def begin_diagram(self, name: str) -> None:
        self._record("begin_diagram", name)

    def end_diagram(self, name: str) -> None:
        self._record("end_diagram", name)

    def begin_package(self, name: str) -> None:
        self._record("begin_package", name)

    def end_package(self, name: str) -> None:
        self._record("end_package", name)

    def declare_node(self, key, kind, stereotypes=(), modifiers=()) -> None:
        self._record("declare_node", key, kind, tuple(stereotypes), tuple(sorted(modifiers)))

    def end_node(self, key: str) -> None:
        self._record("end_node", key)

    def add_attribute(self, owner, member, component=False) -> None:
        self._record("add_attribute", owner, member, component)

    def add_enum_constant(self, owner, name) -> None:
        self._record("add_enum_constant", owner, name)

    def add_constructor(self, owner, constructor) -> None:
        self._record("add_constructor", owner, constructor)

    def add_method(self, owner, method) -> None:
        self._record("add_method", owner, method)

    def add_annotation_member(self, owner, member) -> None:
        self._record("add_annotation_member", owner, member)

    def connect_owns(self, owner, owned) -> None:
        self._record("connect_owns", owner, owned)

    def connect_inheritance(self, sub, super_name, review=None) -> None:
        self._record("connect_inheritance", sub, super_name, review)

    def connect_realization(self, sub, interface_name, review=None) -> None:
        self._record("connect_realization", sub, interface_name, review)

    def connect_association(self, owner, target, role, stereotypes=()) -> None:
        self._record("connect_association", owner, target, role, tuple(stereotypes))

    def connect_dependency(self, src, dst, review=None) -> None:
        self._record("connect_dependency", src, dst, review)

    # ------------------------------------------------------------------
    # Queries used by exporters and tests
    # ------------------------------------------------------------------

    def of_type(self, name: str) -> List[Event]:
        return [e for e in self.events if e[0] == name]

    def node_keys(self) -> List[str]:
        return [e[1] for e in self.of_type("declare_node")]

    def attribute_names(self, owner: str) -> List[str]:
        return [e[2].name for e in self.of_type("add_attribute") if e[1] == owner]

    def edges(self) -> List[Event]:
        return [e for e in self.events if e[0].startswith("connect_")]
