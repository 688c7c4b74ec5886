"""Java front end: source files to ``CompilationUnit`` declarations, using Tree-sitter.

Tree-sitter produces a concrete syntax tree even for files with syntax
errors, so a broken file still contributes whatever declarations it has;
the error is reported as a diagnostic.

Only what the class diagram needs is extracted: declarations, their
signatures, and the handful of body expressions that name a type
(``new``, casts, ``instanceof``, class literals, static-call targets).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import tree_sitter
import tree_sitter_java

from .models import (
    AnnotationMemberDecl,
    ArrayType,
    ClassType,
    CompilationUnit,
    ConstructorDecl,
    Diagnostic,
    FieldDecl,
    MethodDecl,
    ParameterDecl,
    PrimitiveType,
    TypeDeclaration,
    TypeKind,
    TypeUsage,
    TypeVariable,
    UsageKind,
    UsageSite,
    WildcardType,
)

logger = logging.getLogger(__name__)

_JAVA_LANGUAGE = tree_sitter.Language(tree_sitter_java.language())

TYPE_DECLARATION_NODES: Dict[str, TypeKind] = {
    "class_declaration": TypeKind.CLASS,
    "interface_declaration": TypeKind.INTERFACE,
    "enum_declaration": TypeKind.ENUM,
    "record_declaration": TypeKind.RECORD,
    "annotation_type_declaration": TypeKind.ANNOTATION,
}

PRIMITIVE_TYPE_NODES = {"integral_type", "floating_point_type", "boolean_type", "void_type"}

TYPE_NODES = PRIMITIVE_TYPE_NODES | {
    "type_identifier",
    "scoped_type_identifier",
    "generic_type",
    "array_type",
    "annotated_type",
}

ANNOTATION_NODES = {"marker_annotation", "annotation"}

Scope = Dict[str, TypeVariable]


@dataclass
class ScanResult:
    units: List[CompilationUnit] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------

def _text(node) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _compact(node) -> str:
    return "".join(_text(node).split())


def _line(node) -> int:
    return node.start_point[0] + 1


def _child_of_type(node, *types: str):
    for child in node.children:
        if child.type in types:
            return child
    return None


def _wrap_dimensions(usage: TypeUsage, dimensions) -> TypeUsage:
    for _ in range(_text(dimensions).count("[")):
        usage = ArrayType(usage)
    return usage


def looks_like_type_name(name: str) -> bool:
    """``Foo``, ``Outer.Inner`` or ``java.util.Collections``; not ``LOGGER`` or ``this.repo``."""
    last = name.rpartition(".")[2]
    if not last or not last[0].isupper():
        return False
    return len(last) == 1 or not last.isupper()


# ===================================================================
# Abstract Parser Interface
# ===================================================================

class DeclarationParser(ABC):
    """Turns source files into compilation units."""

    @abstractmethod
    def parse_source(self, source: bytes, path: str = "") -> Tuple[CompilationUnit, List[Diagnostic]]:
        """Parse one file's contents."""
        ...

    def parse_file(self, path: Path) -> Tuple[Optional[CompilationUnit], List[Diagnostic]]:
        try:
            source = path.read_bytes()
        except OSError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            return None, [Diagnostic("unreadable-file", f"Cannot read {path}: {exc}", str(path))]
        return self.parse_source(source, str(path))

    def parse_files(self, paths: Iterable[Path]) -> ScanResult:
        result = ScanResult()
        for path in paths:
            unit, diagnostics = self.parse_file(path)
            result.diagnostics.extend(diagnostics)
            if unit is not None:
                result.units.append(unit)
        logger.debug("Parsed %d compilation units", len(result.units))
        return result


# ===================================================================
# Tree-sitter Java Parser
# ===================================================================

class JavaDeclarationParser(DeclarationParser):
    def __init__(self) -> None:
        self._parser = tree_sitter.Parser(_JAVA_LANGUAGE)

    def parse_source(self, source: bytes, path: str = "") -> Tuple[CompilationUnit, List[Diagnostic]]:
        tree = self._parser.parse(source)
        root = tree.root_node
        diagnostics: List[Diagnostic] = []
        if root.has_error:
            logger.warning("Syntax errors in %s; using the recoverable parts", path or "<source>")
            diagnostics.append(Diagnostic("parse-error", f"Syntax errors in {path or '<source>'}", path))
        return self._unit(root, path), diagnostics

    # ------------------------------------------------------------------
    # Compilation unit
    # ------------------------------------------------------------------

    def _unit(self, root, path: str) -> CompilationUnit:
        package = ""
        imports: List[str] = []
        types: List[TypeDeclaration] = []
        for child in root.named_children:
            if child.type == "package_declaration":
                name = _child_of_type(child, "scoped_identifier", "identifier")
                package = _compact(name)
            elif child.type == "import_declaration":
                imported = self._import(child)
                if imported:
                    imports.append(imported)
            elif child.type in TYPE_DECLARATION_NODES:
                types.append(self._type_declaration(child, {}))
        return CompilationUnit(package, tuple(types), tuple(imports), path)

    @staticmethod
    def _import(node) -> Optional[str]:
        if _child_of_type(node, "static") is not None:
            return None
        name = _compact(_child_of_type(node, "scoped_identifier", "identifier"))
        if not name:
            return None
        if _child_of_type(node, "asterisk") is not None:
            return f"{name}.*"
        return name

    # ------------------------------------------------------------------
    # Type declarations
    # ------------------------------------------------------------------

    def _type_declaration(self, node, outer_scope: Scope) -> TypeDeclaration:
        kind = TYPE_DECLARATION_NODES[node.type]
        modifiers, annotations = self._modifiers(node)
        type_parameters = self._type_parameters(node.child_by_field_name("type_parameters"), outer_scope)
        scope = {**outer_scope, **{tv.name: tv for tv in type_parameters}}

        extends: Tuple[TypeUsage, ...] = ()
        implements: Tuple[TypeUsage, ...] = ()
        if kind is TypeKind.CLASS:
            extends = self._type_list(node.child_by_field_name("superclass"), scope)
        elif kind is TypeKind.INTERFACE:
            extends = self._type_list(_child_of_type(node, "extends_interfaces"), scope)
        if kind in (TypeKind.CLASS, TypeKind.ENUM, TypeKind.RECORD):
            implements = self._type_list(node.child_by_field_name("interfaces"), scope)

        components: Tuple[FieldDecl, ...] = ()
        if kind is TypeKind.RECORD:
            components = tuple(
                FieldDecl(p.name, p.type, frozenset(), p.annotations)
                for p in self._parameters(node.child_by_field_name("parameters"), scope)
            )

        members = _Members()
        body = node.child_by_field_name("body")
        if body is not None:
            self._body(body, scope, members)

        return TypeDeclaration(
            name=_text(node.child_by_field_name("name")),
            kind=kind,
            modifiers=modifiers,
            annotations=annotations,
            type_parameters=type_parameters,
            extends=extends,
            implements=implements,
            fields=tuple(members.fields),
            components=components,
            constructors=tuple(members.constructors),
            methods=tuple(members.methods),
            enum_constants=tuple(members.enum_constants),
            annotation_members=tuple(members.annotation_members),
            nested_types=tuple(members.nested_types),
            usages=tuple(members.usages),
            line=_line(node),
        )

    def _body(self, body, scope: Scope, members: "_Members") -> None:
        for child in body.named_children:
            kind = child.type
            if kind == "enum_constant":
                members.enum_constants.append(_text(child.child_by_field_name("name")))
                members.usages.extend(self._usages(child, scope))
            elif kind == "enum_body_declarations":
                self._body(child, scope, members)
            elif kind in ("field_declaration", "constant_declaration"):
                self._field_declaration(child, scope, members)
            elif kind == "method_declaration":
                self._method(child, scope, members)
            elif kind == "constructor_declaration":
                self._constructor(child, scope, members)
            elif kind in ("compact_constructor_declaration", "block", "static_initializer"):
                members.usages.extend(self._usages(child, scope))
            elif kind == "annotation_type_element_declaration":
                members.annotation_members.append(self._annotation_member(child, scope))
            elif kind in TYPE_DECLARATION_NODES:
                members.nested_types.append(self._type_declaration(child, scope))

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def _field_declaration(self, node, scope: Scope, members: "_Members") -> None:
        modifiers, annotations = self._modifiers(node)
        base = self._type_usage(node.child_by_field_name("type"), scope)
        for declarator in node.children_by_field_name("declarator"):
            usage = _wrap_dimensions(base, declarator.child_by_field_name("dimensions"))
            members.fields.append(
                FieldDecl(_text(declarator.child_by_field_name("name")), usage, modifiers, annotations)
            )
            value = declarator.child_by_field_name("value")
            if value is not None:
                members.usages.extend(self._usages(value, scope))

    def _method(self, node, scope: Scope, members: "_Members") -> None:
        modifiers, annotations = self._modifiers(node)
        type_parameters = self._type_parameters(node.child_by_field_name("type_parameters"), scope)
        method_scope = {**scope, **{tv.name: tv for tv in type_parameters}}
        return_type = _wrap_dimensions(
            self._type_usage(node.child_by_field_name("type"), method_scope),
            node.child_by_field_name("dimensions"),
        )
        members.methods.append(
            MethodDecl(
                name=_text(node.child_by_field_name("name")),
                return_type=return_type,
                parameters=self._parameters(node.child_by_field_name("parameters"), method_scope),
                throws=self._type_list(_child_of_type(node, "throws"), method_scope),
                modifiers=modifiers,
                annotations=annotations,
                type_parameters=type_parameters,
            )
        )
        body = node.child_by_field_name("body")
        if body is not None:
            members.usages.extend(self._usages(body, method_scope))

    def _constructor(self, node, scope: Scope, members: "_Members") -> None:
        modifiers, annotations = self._modifiers(node)
        type_parameters = self._type_parameters(node.child_by_field_name("type_parameters"), scope)
        ctor_scope = {**scope, **{tv.name: tv for tv in type_parameters}}
        members.constructors.append(
            ConstructorDecl(
                name=_text(node.child_by_field_name("name")),
                parameters=self._parameters(node.child_by_field_name("parameters"), ctor_scope),
                throws=self._type_list(_child_of_type(node, "throws"), ctor_scope),
                modifiers=modifiers,
                annotations=annotations,
            )
        )
        body = node.child_by_field_name("body")
        if body is not None:
            members.usages.extend(self._usages(body, ctor_scope))

    def _annotation_member(self, node, scope: Scope) -> AnnotationMemberDecl:
        usage = _wrap_dimensions(
            self._type_usage(node.child_by_field_name("type"), scope),
            node.child_by_field_name("dimensions"),
        )
        value = node.child_by_field_name("value")
        default_node = _child_of_type(node, "default_value")
        if value is None and default_node is not None:
            value = default_node.child_by_field_name("value")
            if value is None and default_node.named_children:
                value = default_node.named_children[-1]
        default = _text(value) if value is not None else None
        return AnnotationMemberDecl(_text(node.child_by_field_name("name")), usage, default)

    def _parameters(self, node, scope: Scope) -> Tuple[ParameterDecl, ...]:
        if node is None:
            return ()
        parameters: List[ParameterDecl] = []
        for child in node.named_children:
            if child.type == "formal_parameter":
                usage = _wrap_dimensions(
                    self._type_usage(child.child_by_field_name("type"), scope),
                    child.child_by_field_name("dimensions"),
                )
                _, annotations = self._modifiers(child)
                parameters.append(ParameterDecl(_text(child.child_by_field_name("name")), usage, annotations))
            elif child.type == "spread_parameter":
                type_node = next((c for c in child.named_children if c.type in TYPE_NODES), None)
                declarator = _child_of_type(child, "variable_declarator")
                name = _text(declarator.child_by_field_name("name")) if declarator is not None else ""
                _, annotations = self._modifiers(child)
                usage = ArrayType(self._type_usage(type_node, scope))
                parameters.append(ParameterDecl(name, usage, annotations, varargs=True))
        return tuple(parameters)

    @staticmethod
    def _modifiers(node) -> Tuple[frozenset, Tuple[str, ...]]:
        modifiers_node = _child_of_type(node, "modifiers")
        if modifiers_node is None:
            return frozenset(), ()
        keywords: List[str] = []
        annotations: List[str] = []
        for child in modifiers_node.children:
            if child.type in ANNOTATION_NODES:
                annotations.append(_compact(child.child_by_field_name("name")).rpartition(".")[2])
            elif child.type not in ("line_comment", "block_comment"):
                keywords.append(_text(child))
        return frozenset(keywords), tuple(annotations)

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def _type_parameters(self, node, scope: Scope) -> Tuple[TypeVariable, ...]:
        if node is None:
            return ()
        declared = [c for c in node.named_children if c.type == "type_parameter"]
        names = []
        for parameter in declared:
            name_node = _child_of_type(parameter, "type_identifier", "identifier")
            names.append(_text(name_node))
        # bounds see the variables themselves (T extends Comparable<T>) without their bounds
        bound_scope = {**scope, **{name: TypeVariable(name) for name in names}}
        variables = []
        for parameter, name in zip(declared, names):
            bound = _child_of_type(parameter, "type_bound")
            bounds = self._type_list(bound, bound_scope) if bound is not None else ()
            variables.append(TypeVariable(name, bounds))
        return tuple(variables)

    def _type_list(self, node, scope: Scope) -> Tuple[TypeUsage, ...]:
        """Types listed under an ``extends``/``implements``/``throws``/bound node."""
        if node is None:
            return ()
        usages: List[TypeUsage] = []
        for child in node.named_children:
            if child.type == "type_list":
                usages.extend(self._type_list(child, scope))
            elif child.type in TYPE_NODES:
                usages.append(self._type_usage(child, scope))
        return tuple(usages)

    def _type_usage(self, node, scope: Scope) -> TypeUsage:
        if node is None:
            return PrimitiveType("void")
        kind = node.type
        if kind in PRIMITIVE_TYPE_NODES:
            return PrimitiveType(_text(node))
        if kind == "type_identifier":
            name = _text(node)
            return scope.get(name) or ClassType(name)
        if kind == "scoped_type_identifier":
            return ClassType(self._scoped_name(node))
        if kind == "generic_type":
            base = _child_of_type(node, "type_identifier", "scoped_type_identifier")
            arguments_node = _child_of_type(node, "type_arguments")
            arguments: Tuple[TypeUsage, ...] = ()
            if arguments_node is not None:
                arguments = tuple(
                    self._type_usage(a, scope)
                    for a in arguments_node.named_children
                    if a.type in TYPE_NODES or a.type == "wildcard"
                )
            return ClassType(self._base_name(base), arguments)
        if kind == "array_type":
            return _wrap_dimensions(
                self._type_usage(node.child_by_field_name("element"), scope),
                node.child_by_field_name("dimensions"),
            )
        if kind == "annotated_type":
            inner = [c for c in node.named_children if c.type in TYPE_NODES]
            return self._type_usage(inner[-1] if inner else None, scope)
        if kind == "wildcard":
            return self._wildcard(node, scope)
        return ClassType(_compact(node))

    def _wildcard(self, node, scope: Scope) -> WildcardType:
        upper = True
        bound = None
        for child in node.children:
            if child.type == "super":
                upper = False
            elif child.type in TYPE_NODES:
                bound = child
        if bound is None:
            return WildcardType()
        usage = self._type_usage(bound, scope)
        return WildcardType(upper_bound=usage) if upper else WildcardType(lower_bound=usage)

    def _base_name(self, node) -> str:
        if node is None:
            return ""
        if node.type == "scoped_type_identifier":
            return self._scoped_name(node)
        return _text(node)

    def _scoped_name(self, node) -> str:
        parts: List[str] = []
        for child in node.named_children:
            if child.type in ("type_identifier", "scoped_type_identifier"):
                parts.append(self._base_name(child))
            elif child.type == "generic_type":
                parts.append(self._base_name(_child_of_type(child, "type_identifier", "scoped_type_identifier")))
        return ".".join(parts)

    # ------------------------------------------------------------------
    # Body usages
    # ------------------------------------------------------------------

    def _usages(self, node, scope: Scope) -> List[UsageSite]:
        sites: List[UsageSite] = []
        stack = [node]
        while stack:
            current = stack.pop()
            kind = current.type
            if kind in TYPE_DECLARATION_NODES:
                # local type declarations are not part of the index
                continue
            if kind == "object_creation_expression":
                self._site(sites, UsageKind.CREATION, current.child_by_field_name("type"), scope)
            elif kind == "cast_expression":
                for type_node in current.children_by_field_name("type"):
                    self._site(sites, UsageKind.CAST, type_node, scope)
            elif kind == "instanceof_expression":
                self._site(sites, UsageKind.INSTANCEOF, self._instanceof_type(current), scope)
            elif kind == "class_literal":
                type_node = next((c for c in current.named_children if c.type in TYPE_NODES), None)
                self._site(sites, UsageKind.CLASS_LITERAL, type_node, scope)
            elif kind == "method_invocation":
                target = current.child_by_field_name("object")
                if target is not None and target.type in ("identifier", "field_access"):
                    name = _compact(target)
                    if looks_like_type_name(name):
                        sites.append(UsageSite(UsageKind.STATIC_CALL, ClassType(name), _line(target)))
            stack.extend(reversed(current.named_children))
        return sites

    def _site(self, sites: List[UsageSite], kind: UsageKind, type_node, scope: Scope) -> None:
        if type_node is None:
            return
        sites.append(UsageSite(kind, self._type_usage(type_node, scope), _line(type_node)))

    @staticmethod
    def _instanceof_type(node):
        right = node.child_by_field_name("right")
        if right is not None:
            return right
        for child in node.named_children[1:]:
            if child.type in TYPE_NODES:
                return child
            if child.type in ("type_pattern", "record_pattern"):
                return next((c for c in child.named_children if c.type in TYPE_NODES), None)
        return None


@dataclass
class _Members:
    fields: List[FieldDecl] = field(default_factory=list)
    constructors: List[ConstructorDecl] = field(default_factory=list)
    methods: List[MethodDecl] = field(default_factory=list)
    enum_constants: List[str] = field(default_factory=list)
    annotation_members: List[AnnotationMemberDecl] = field(default_factory=list)
    nested_types: List[TypeDeclaration] = field(default_factory=list)
    usages: List[UsageSite] = field(default_factory=list)
