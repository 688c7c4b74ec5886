"""Tests for the Tree-sitter Java declaration parser."""

from pathlib import Path

import pytest

from umlgraph_cli.models import (
    ArrayType,
    ClassType,
    FieldDecl,
    ParameterDecl,
    PrimitiveType,
    TypeKind,
    TypeVariable,
    UsageKind,
    WildcardType,
)
from umlgraph_cli.parser import JavaDeclarationParser, looks_like_type_name
from umlgraph_cli.sources import discover_java_files


@pytest.fixture
def parser() -> JavaDeclarationParser:
    return JavaDeclarationParser()


@pytest.fixture
def invoice_unit(parser, sample_java_code):
    unit, diagnostics = parser.parse_source(sample_java_code.encode("utf-8"), "Invoice.java")
    assert diagnostics == []
    return unit


@pytest.fixture
def invoice(invoice_unit):
    return invoice_unit.types[0]


def _nested(declaration, name):
    return next(t for t in declaration.nested_types if t.name == name)


def test_unit_header(invoice_unit):
    """Package, non-static imports and top-level types are captured."""
    assert invoice_unit.package == "com.acme.billing"
    assert invoice_unit.imports == ("java.util.List", "java.util.Map", "java.io.*")
    assert [t.name for t in invoice_unit.types] == ["Invoice", "Exportable"]
    assert invoice_unit.source_path == "Invoice.java"


def test_class_header(invoice):
    """Test parsing a class header."""
    comparable_t = ClassType("Comparable", (TypeVariable("T"),))

    assert invoice.kind is TypeKind.CLASS
    assert invoice.modifiers == frozenset({"public", "final"})
    assert invoice.annotations == ("Entity", "Deprecated")
    assert invoice.type_parameters == (TypeVariable("T", (comparable_t,)),)
    assert invoice.extends == (ClassType("Document"),)
    assert invoice.implements == (ClassType("Serializable"), ClassType("Cloneable"))


def test_fields(invoice):
    """Test parsing fields."""
    fields = {f.name: f for f in invoice.fields}

    assert list(fields) == ["serialVersionUID", "lines", "totals", "codes", "matrix", "key"]
    assert fields["serialVersionUID"] == FieldDecl(
        "serialVersionUID", PrimitiveType("long"), frozenset({"private", "static", "final"})
    )
    assert fields["lines"].type == ClassType("List", (ClassType("Line"),))
    assert fields["lines"].modifiers == frozenset({"protected", "transient"})
    assert fields["totals"].type == ClassType(
        "Map", (ClassType("String"), WildcardType(upper_bound=ClassType("Number")))
    )
    assert fields["codes"].type == ArrayType(PrimitiveType("int"))
    assert fields["matrix"].type == ArrayType(ArrayType(PrimitiveType("int")))


def test_type_variable_field_keeps_its_bound(invoice):
    """Test type variable field keeps its bound."""
    key = next(f for f in invoice.fields if f.name == "key")
    assert isinstance(key.type, TypeVariable)
    assert key.type.bounds == (ClassType("Comparable", (TypeVariable("T"),)),)


def test_constructor(invoice):
    """Test parsing a constructor."""
    (constructor,) = invoice.constructors

    assert constructor.name == "Invoice"
    assert constructor.parameters == (
        ParameterDecl("customer", ClassType("Customer")),
        ParameterDecl("tags", ArrayType(ClassType("String")), varargs=True),
    )
    assert constructor.throws == (ClassType("IOException"),)
    assert constructor.modifiers == frozenset({"public"})


def test_generic_method(invoice):
    """Test parsing a generic method."""
    (render,) = invoice.methods
    report_r = TypeVariable("R", (ClassType("Report"),))

    assert render.name == "render"
    assert render.annotations == ("Override",)
    assert render.type_parameters == (report_r,)
    assert render.return_type == report_r
    assert [p.type for p in render.parameters] == [ClassType("Class", (report_r,)), PrimitiveType("int")]
    assert render.throws == (ClassType("RenderException"), ClassType("IOException"))


def test_body_usages(invoice):
    """Test collecting usages from method bodies."""
    sites = [(site.kind, site.type) for site in invoice.usages]

    assert sites == [
        (UsageKind.CREATION, ClassType("Pdf")),
        (UsageKind.INSTANCEOF, ClassType("Printable")),
        (UsageKind.STATIC_CALL, ClassType("Printer")),
        (UsageKind.CAST, ClassType("Printable")),
        (UsageKind.CLASS_LITERAL, ClassType("Formats")),
    ]


def test_nested_types(invoice):
    """Test parsing nested types."""
    assert [t.name for t in invoice.nested_types] == ["Line", "State", "Summary", "Audited"]

    line = _nested(invoice, "Line")
    assert line.modifiers == frozenset({"static", "abstract"})
    assert line.fields[0].type == ClassType("Amount")


def test_enum(invoice):
    """Test parsing an enum."""
    state = _nested(invoice, "State")

    assert state.kind is TypeKind.ENUM
    assert state.enum_constants == ("OPEN", "PAID")
    assert [m.name for m in state.methods] == ["label"]
    assert [(s.kind, s.type) for s in state.usages] == [(UsageKind.CREATION, ClassType("Label"))]


def test_record(invoice):
    """Test parsing a record."""
    summary = _nested(invoice, "Summary")

    assert summary.kind is TypeKind.RECORD
    assert summary.components == (
        FieldDecl("total", ClassType("Amount"), frozenset(), ("NotNull",)),
        FieldDecl("count", PrimitiveType("int")),
    )
    assert summary.implements == (ClassType("Comparable", (ClassType("Summary"),)),)


def test_annotation_type(invoice):
    """Test parsing an annotation type."""
    audited = _nested(invoice, "Audited")

    assert audited.kind is TypeKind.ANNOTATION
    members = {m.name: m for m in audited.annotation_members}
    assert members["value"].type == ClassType("String")
    assert members["value"].default == '"none"'
    assert members["level"].type == PrimitiveType("int")
    assert members["level"].default is None


def test_interface(invoice_unit):
    """Test parsing an interface."""
    exportable = invoice_unit.types[1]

    assert exportable.kind is TypeKind.INTERFACE
    assert exportable.extends == (ClassType("Runnable"), ClassType("Supplier", (ClassType("String"),)))
    assert exportable.methods[0].return_type == PrimitiveType("void")


def test_local_classes_are_not_declarations(parser):
    """Test local classes are not declarations."""
    source = b"""
    class Outer {
        void run() {
            class Local { Helper helper; }
            new Local();
        }
    }
    """
    unit, _ = parser.parse_source(source, "Outer.java")
    outer = unit.types[0]

    assert outer.nested_types == ()
    assert [s.type.name for s in outer.usages] == ["Local"]


def test_syntax_error_is_a_diagnostic(parser):
    """Test syntax error is a diagnostic."""
    unit, diagnostics = parser.parse_source(b"class Broken { void m( }", "Broken.java")

    assert [d.code for d in diagnostics] == ["parse-error"]
    assert diagnostics[0].subject == "Broken.java"
    assert unit is not None


def test_unreadable_file(parser, temp_dir: Path):
    """Test unreadable file."""
    unit, diagnostics = parser.parse_file(temp_dir / "Missing.java")

    assert unit is None
    assert diagnostics[0].code == "unreadable-file"


def test_parse_sample_project(parser, sample_sources: Path):
    """Test parse sample project."""
    files, _ = discover_java_files([sample_sources])
    result = parser.parse_files(files)

    assert len(result.units) == 7
    assert result.diagnostics == []
    packages = {unit.package for unit in result.units}
    assert packages == {"shop.model", "shop.catalog", "shop.service"}


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Collections", True),
        ("java.util.Collections", True),
        ("Outer.Inner", True),
        ("T", True),
        ("LOGGER", False),
        ("this.repo", False),
        ("repo", False),
    ],
)
def test_looks_like_type_name(name, expected):
    """Test telling type names from other identifiers."""
    assert looks_like_type_name(name) is expected
