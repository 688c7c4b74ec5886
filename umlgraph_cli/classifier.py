"""Relationship classification.

Every member and usage site of every declared type ends up as exactly one of:
an attribute line, an association, an inheritance or realization edge, an
owns edge, a dependency edge, or a dependency swallowed by deduplication.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

from .index import DeclaredIndex, DeclaredType
from .models import (
    ClassType,
    DeclaredRef,
    Diagnostic,
    Edge,
    ExternalRef,
    FieldDecl,
    PrimitiveType,
    RelationshipKind,
    TypeDeclaration,
    TypeKind,
    TypeRef,
    TypeUsage,
    UnresolvedRef,
    render_type,
    review_flag_of,
)
from .registry import EdgeRegistry
from .resolver import NameResolver, ResolutionContext, normalize, usage_sites

logger = logging.getLogger(__name__)


# ===================================================================
# Classification results
# ===================================================================

@dataclass(frozen=True)
class AttributeMember:
    member: FieldDecl
    component: bool = False


@dataclass(frozen=True)
class AssociationMember:
    member: FieldDecl
    target: str
    component: bool = False


MemberOutcome = Union[AttributeMember, AssociationMember]


@dataclass(frozen=True)
class ClassifiedType:
    declared: DeclaredType
    members: Tuple[MemberOutcome, ...] = ()

    @property
    def key(self) -> str:
        return self.declared.key

    @property
    def stereotypes(self) -> Tuple[str, ...]:
        return tuple(sorted(set(self.declared.declaration.annotations)))

    @property
    def attributes(self) -> Tuple[AttributeMember, ...]:
        return tuple(m for m in self.members if isinstance(m, AttributeMember))


@dataclass(frozen=True)
class ClassifiedDiagram:
    types: Tuple[ClassifiedType, ...] = ()
    owns: Tuple[Edge, ...] = ()
    supertypes: Tuple[Edge, ...] = ()
    associations: Tuple[Edge, ...] = ()
    dependencies: Tuple[Edge, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self.owns + self.supertypes + self.associations + self.dependencies


# ===================================================================
# Per-kind rules
# ===================================================================

def supertype_clauses(declaration: TypeDeclaration) -> Iterator[Tuple[RelationshipKind, TypeUsage]]:
    """Supertype usages of a declaration with the relationship each one denotes."""
    kind = declaration.kind
    if kind in (TypeKind.CLASS, TypeKind.INTERFACE):
        for usage in declaration.extends:
            yield RelationshipKind.INHERITANCE, usage
    if kind in (TypeKind.CLASS, TypeKind.ENUM, TypeKind.RECORD):
        for usage in declaration.implements:
            yield RelationshipKind.REALIZATION, usage


def member_fields(declaration: TypeDeclaration) -> Iterator[Tuple[FieldDecl, bool]]:
    """Members that may become associations, flagged True for record components."""
    if declaration.kind is TypeKind.RECORD:
        for component in declaration.components:
            yield component, True
    if declaration.kind is not TypeKind.ANNOTATION:
        for field_decl in declaration.fields:
            yield field_decl, False


def dependency_sites(declaration: TypeDeclaration) -> Iterator[TypeUsage]:
    """Non-member usages, in declaration order.

    Raw member types are decided by member classification; only their
    generic arguments count as usages here.
    """
    for member, _ in member_fields(declaration):
        raw = normalize(member.type)
        if raw is not None:
            yield from raw.arguments
    for constructor in declaration.constructors:
        for parameter in constructor.parameters:
            yield parameter.type
        yield from constructor.throws
    for method in declaration.methods:
        if not isinstance(method.return_type, PrimitiveType):
            yield method.return_type
        for parameter in method.parameters:
            yield parameter.type
        yield from method.throws
    for site in declaration.usages:
        yield site.type


# ===================================================================
# Classifier
# ===================================================================

class RelationshipClassifier:
    def __init__(self, index: DeclaredIndex, resolver: NameResolver) -> None:
        self.index = index
        self.resolver = resolver

    def classify(self) -> ClassifiedDiagram:
        registry = EdgeRegistry()
        declared_types = list(self.index.types_in_index_order())

        types = tuple(self.classify_type(declared) for declared in declared_types)
        owns = tuple(e for d in declared_types for e in self._nesting_edges(d, registry))
        supertypes = tuple(e for d in declared_types for e in self._supertype_edges(d, registry))
        associations = tuple(e for t in types for e in self._association_edges(t, registry))
        dependencies = tuple(e for d in declared_types for e in self._dependency_edges(d, registry))

        logger.debug(
            "Classified %d types: %d owns, %d supertype, %d association, %d dependency edges",
            len(types), len(owns), len(supertypes), len(associations), len(dependencies),
        )
        return ClassifiedDiagram(
            types=types,
            owns=owns,
            supertypes=supertypes,
            associations=associations,
            dependencies=dependencies,
            diagnostics=self.index.diagnostics,
        )

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def classify_type(self, declared: DeclaredType) -> ClassifiedType:
        members = tuple(
            self.classify_member(declared, member, component)
            for member, component in member_fields(declared.declaration)
        )
        return ClassifiedType(declared, members)

    def classify_member(self, declared: DeclaredType, member: FieldDecl, component: bool = False) -> MemberOutcome:
        ref = self.resolver.resolve_usage(member.type, ResolutionContext.of(declared))
        if ref is None:
            return AttributeMember(member, component)
        if isinstance(ref, DeclaredRef):
            if ref.key == declared.key:
                return AttributeMember(member, component)
            return AssociationMember(member, ref.key, component)
        if isinstance(ref, (ExternalRef, UnresolvedRef)):
            return AttributeMember(member, component)
        raise TypeError(f"Unknown type reference: {ref!r}")

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def _nesting_edges(self, declared: DeclaredType, registry: EdgeRegistry) -> Iterator[Edge]:
        owner = declared.owner_key
        if owner is None or owner not in self.index:
            return
        edge = Edge(owner, declared.key, RelationshipKind.OWNS)
        if registry.register(edge.key):
            yield edge

    def _supertype_edges(self, declared: DeclaredType, registry: EdgeRegistry) -> Iterator[Edge]:
        context = ResolutionContext.of(declared)
        for kind, usage in supertype_clauses(declared.declaration):
            ref: Optional[TypeRef] = self.resolver.resolve_usage(usage, context)
            if ref is None:
                ref = UnresolvedRef(render_type(usage))
            edge = Edge(declared.key, ref.display_name, kind, review=review_flag_of(ref))
            if registry.register(edge.key):
                yield edge

    def _association_edges(self, classified: ClassifiedType, registry: EdgeRegistry) -> Iterator[Edge]:
        for outcome in classified.members:
            if not isinstance(outcome, AssociationMember):
                continue
            member = outcome.member
            edge = Edge(
                classified.key,
                outcome.target,
                RelationshipKind.ASSOCIATION,
                role=member.name,
                stereotypes=tuple(sorted(set(member.annotations))),
            )
            if registry.register(edge.key):
                yield edge

    def _dependency_edges(self, declared: DeclaredType, registry: EdgeRegistry) -> Iterator[Edge]:
        context = ResolutionContext.of(declared)
        for usage in dependency_sites(declared.declaration):
            for raw in usage_sites(usage):
                edge = self._dependency_edge(declared, raw, context, registry)
                if edge is not None:
                    yield edge

    def _dependency_edge(
        self,
        declared: DeclaredType,
        raw: ClassType,
        context: ResolutionContext,
        registry: EdgeRegistry,
    ) -> Optional[Edge]:
        ref = self.resolver.resolve(raw, context)
        target = ref.display_name
        if registry.has_structural(declared.key, target):
            return None
        edge = Edge(declared.key, target, RelationshipKind.DEPENDENCY, review=review_flag_of(ref))
        if not registry.register(edge.key):
            return None
        return edge

