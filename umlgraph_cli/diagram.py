"""Drives a classified diagram into a sink in canonical order."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import groupby
from typing import Iterable, Optional, Tuple

from .classifier import ClassifiedDiagram, ClassifiedType, RelationshipClassifier
from .index import DeclaredIndex, IndexBuilder
from .models import CompilationUnit, Diagnostic, Edge, RelationshipKind
from .oracle import ImportOracle, TypeOracle
from .resolver import NameResolver
from .sink import DiagramSink

logger = logging.getLogger(__name__)

DEFAULT_DIAGRAM_NAME = "class-diagram"


@dataclass(frozen=True)
class GenerationResult:
    index: DeclaredIndex
    classified: ClassifiedDiagram

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return self.classified.diagnostics


def generate_class_diagram(
    units: Iterable[CompilationUnit],
    sink: DiagramSink,
    oracle: Optional[TypeOracle] = None,
    *,
    import_oracle: bool = False,
    name: str = DEFAULT_DIAGRAM_NAME,
    diagnostics: Iterable[Diagnostic] = (),
) -> GenerationResult:
    """Index *units*, classify every relationship and stream the diagram into *sink*.

    ``import_oracle`` builds an :class:`ImportOracle` over the index when no
    explicit *oracle* is given.  *diagnostics* from earlier stages (scanning,
    parsing) are carried along with the index's own.
    """
    builder = IndexBuilder()
    for diagnostic in diagnostics:
        builder.add_diagnostic(diagnostic)
    builder.ingest_units(units)
    index = builder.build()

    if oracle is None and import_oracle:
        oracle = ImportOracle.from_index(index)

    classified = RelationshipClassifier(index, NameResolver(index, oracle)).classify()
    logger.info(
        "Diagram '%s': %d types, %d edges, %d diagnostics",
        name, len(classified.types), len(classified.edges), len(classified.diagnostics),
    )
    emit_diagram(classified, sink, name)
    return GenerationResult(index, classified)


def emit_diagram(classified: ClassifiedDiagram, sink: DiagramSink, name: str = DEFAULT_DIAGRAM_NAME) -> None:
    sink.begin_diagram(name)

    for package, group in groupby(classified.types, key=lambda t: t.declared.package):
        if package:
            sink.begin_package(package)
        for classified_type in group:
            _emit_node(classified_type, sink)
        if package:
            sink.end_package(package)

    for edge in classified.edges:
        _emit_edge(edge, sink)

    sink.end_diagram(name)


def _emit_node(classified: ClassifiedType, sink: DiagramSink) -> None:
    declared = classified.declared
    decl = declared.declaration
    key = declared.key

    sink.declare_node(key, decl.kind, classified.stereotypes, tuple(sorted(decl.modifiers)))
    for constant in decl.enum_constants:
        sink.add_enum_constant(key, constant)
    for attribute in classified.attributes:
        sink.add_attribute(key, attribute.member, attribute.component)
    for constructor in decl.constructors:
        sink.add_constructor(key, constructor)
    for method in decl.methods:
        sink.add_method(key, method)
    for member in decl.annotation_members:
        sink.add_annotation_member(key, member)
    sink.end_node(key)


def _emit_edge(edge: Edge, sink: DiagramSink) -> None:
    kind = edge.edge_type
    if kind is RelationshipKind.OWNS:
        sink.connect_owns(edge.src, edge.dst)
    elif kind is RelationshipKind.INHERITANCE:
        sink.connect_inheritance(edge.src, edge.dst, edge.review)
    elif kind is RelationshipKind.REALIZATION:
        sink.connect_realization(edge.src, edge.dst, edge.review)
    elif kind is RelationshipKind.ASSOCIATION:
        sink.connect_association(edge.src, edge.dst, edge.role, edge.stereotypes)
    elif kind is RelationshipKind.DEPENDENCY:
        sink.connect_dependency(edge.src, edge.dst, edge.review)
    else:
        raise TypeError(f"Unknown relationship kind: {kind!r}")
