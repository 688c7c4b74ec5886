"""Core data models shared by the front end, the resolution engine and the sinks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union


# ===================================================================
# Declaration kinds
# ===================================================================

class TypeKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    RECORD = "record"
    ANNOTATION = "annotation"


class UsageKind(str, Enum):
    """Non-member contexts in which a type is mentioned inside a type body."""

    CREATION = "creation"
    CAST = "cast"
    INSTANCEOF = "instanceof"
    CLASS_LITERAL = "class_literal"
    STATIC_CALL = "static_call"


# ===================================================================
# Raw type usages (as written in source, unresolved)
# ===================================================================

@dataclass(frozen=True)
class ClassType:
    name: str
    arguments: Tuple["TypeUsage", ...] = ()


@dataclass(frozen=True)
class ArrayType:
    component: "TypeUsage"


@dataclass(frozen=True)
class WildcardType:
    upper_bound: Optional["TypeUsage"] = None
    lower_bound: Optional["TypeUsage"] = None


@dataclass(frozen=True)
class TypeVariable:
    name: str
    bounds: Tuple["TypeUsage", ...] = ()


@dataclass(frozen=True)
class PrimitiveType:
    name: str


TypeUsage = Union[ClassType, ArrayType, WildcardType, TypeVariable, PrimitiveType]

VOID = PrimitiveType("void")


def render_type(usage: TypeUsage) -> str:
    """Render a raw usage back to its Java source spelling."""
    if isinstance(usage, ClassType):
        if not usage.arguments:
            return usage.name
        return f"{usage.name}<{', '.join(render_type(a) for a in usage.arguments)}>"
    if isinstance(usage, ArrayType):
        return f"{render_type(usage.component)}[]"
    if isinstance(usage, WildcardType):
        if usage.upper_bound is not None:
            return f"? extends {render_type(usage.upper_bound)}"
        if usage.lower_bound is not None:
            return f"? super {render_type(usage.lower_bound)}"
        return "?"
    if isinstance(usage, (TypeVariable, PrimitiveType)):
        return usage.name
    raise TypeError(f"Unknown type usage: {usage!r}")


# ===================================================================
# Declaration Corpus
# ===================================================================

@dataclass(frozen=True)
class FieldDecl:
    name: str
    type: TypeUsage
    modifiers: FrozenSet[str] = frozenset()
    annotations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParameterDecl:
    name: str
    type: TypeUsage
    annotations: Tuple[str, ...] = ()
    varargs: bool = False


@dataclass(frozen=True)
class MethodDecl:
    name: str
    return_type: TypeUsage = VOID
    parameters: Tuple[ParameterDecl, ...] = ()
    throws: Tuple[TypeUsage, ...] = ()
    modifiers: FrozenSet[str] = frozenset()
    annotations: Tuple[str, ...] = ()
    type_parameters: Tuple[TypeVariable, ...] = ()


@dataclass(frozen=True)
class ConstructorDecl:
    name: str
    parameters: Tuple[ParameterDecl, ...] = ()
    throws: Tuple[TypeUsage, ...] = ()
    modifiers: FrozenSet[str] = frozenset()
    annotations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnnotationMemberDecl:
    name: str
    type: TypeUsage
    default: Optional[str] = None


@dataclass(frozen=True)
class UsageSite:
    kind: UsageKind
    type: TypeUsage
    line: int = 0


@dataclass(frozen=True)
class TypeDeclaration:
    name: str
    kind: TypeKind = TypeKind.CLASS
    modifiers: FrozenSet[str] = frozenset()
    annotations: Tuple[str, ...] = ()
    type_parameters: Tuple[TypeVariable, ...] = ()
    extends: Tuple[TypeUsage, ...] = ()
    implements: Tuple[TypeUsage, ...] = ()
    fields: Tuple[FieldDecl, ...] = ()
    components: Tuple[FieldDecl, ...] = ()
    constructors: Tuple[ConstructorDecl, ...] = ()
    methods: Tuple[MethodDecl, ...] = ()
    enum_constants: Tuple[str, ...] = ()
    annotation_members: Tuple[AnnotationMemberDecl, ...] = ()
    nested_types: Tuple["TypeDeclaration", ...] = ()
    usages: Tuple[UsageSite, ...] = ()
    line: int = 0


@dataclass(frozen=True)
class CompilationUnit:
    package: str = ""
    types: Tuple[TypeDeclaration, ...] = ()
    imports: Tuple[str, ...] = ()
    source_path: str = ""


# ===================================================================
# Resolution outcomes (closed variant)
# ===================================================================

@dataclass(frozen=True)
class DeclaredRef:
    key: str

    @property
    def display_name(self) -> str:
        return self.key


@dataclass(frozen=True)
class ExternalRef:
    qualified_name: str

    @property
    def display_name(self) -> str:
        return self.qualified_name


@dataclass(frozen=True)
class UnresolvedRef:
    raw_name: str

    @property
    def display_name(self) -> str:
        return self.raw_name


TypeRef = Union[DeclaredRef, ExternalRef, UnresolvedRef]


class ReviewFlag(str, Enum):
    EXTERNAL = "external"
    UNRESOLVED = "unresolved"


def review_flag_of(ref: TypeRef) -> Optional[ReviewFlag]:
    """Edges towards anything but a declared type need a human look."""
    if isinstance(ref, DeclaredRef):
        return None
    if isinstance(ref, ExternalRef):
        return ReviewFlag.EXTERNAL
    if isinstance(ref, UnresolvedRef):
        return ReviewFlag.UNRESOLVED
    raise TypeError(f"Unknown type reference: {ref!r}")


# ===================================================================
# Relationships and diagnostics
# ===================================================================

class RelationshipKind(str, Enum):
    OWNS = "owns"
    INHERITANCE = "inheritance"
    REALIZATION = "realization"
    ASSOCIATION = "association"
    DEPENDENCY = "dependency"


STRUCTURAL_KINDS = frozenset(
    {RelationshipKind.INHERITANCE, RelationshipKind.REALIZATION, RelationshipKind.ASSOCIATION}
)


@dataclass(frozen=True)
class EdgeKey:
    src: str
    dst: str
    kind: RelationshipKind
    role: str = ""


@dataclass(frozen=True)
class Edge:
    src: str
    dst: str
    edge_type: RelationshipKind
    role: str = ""
    stereotypes: Tuple[str, ...] = ()
    review: Optional[ReviewFlag] = None

    @property
    def key(self) -> EdgeKey:
        return EdgeKey(self.src, self.dst, self.edge_type, self.role)


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    subject: str = ""
