"""Tests for the PlantUML writer."""

import io

import pytest

from umlgraph_cli.diagram import generate_class_diagram
from umlgraph_cli.models import (
    AnnotationMemberDecl,
    ArrayType,
    ClassType,
    CompilationUnit,
    ConstructorDecl,
    FieldDecl,
    MethodDecl,
    ParameterDecl,
    PrimitiveType,
    ReviewFlag,
    TypeDeclaration,
    TypeKind,
)
from umlgraph_cli.plantuml import PlantUMLWriter, diagram_header, node_keyword, visibility_symbol


def _writer(**kwargs):
    out = io.StringIO()
    return PlantUMLWriter(out, **kwargs), out


def _render(units, **kwargs) -> str:
    writer, out = _writer(**kwargs)
    generate_class_diagram(units, writer)
    return out.getvalue()


def test_empty_diagram():
    """Test empty diagram."""
    writer, out = _writer()
    writer.begin_diagram("empty")
    writer.end_diagram("empty")
    assert out.getvalue() == "@startuml empty\n@enduml\n"


def test_header_lines_follow_startuml():
    """Test header lines follow startuml."""
    header = diagram_header(title="Shop", theme="blueprint", direction="left to right")
    writer, out = _writer(header=header)
    writer.begin_diagram("shop")
    writer.end_diagram("shop")

    assert out.getvalue().splitlines() == [
        "@startuml shop",
        "mainframe Shop",
        "hide empty members",
        "!theme blueprint",
        "!pragma useIntermediatePackages false",
        "left to right direction",
        "",
        "@enduml",
    ]


def test_header_without_options():
    """Test header without options."""
    assert diagram_header(hide_empty_members=False) == ["!pragma useIntermediatePackages false"]


def test_p1_diagram(p1_corpus):
    """Test rendering the p1 diagram."""
    text = _render(p1_corpus)

    assert text.splitlines() == [
        "@startuml class-diagram",
        "package \"p1\" { /' @umlgraph:begin package \"p1\" '/",
        "  class \"p1.A\" { /' @umlgraph:begin class \"p1.A\" '/",
        "  } /' @umlgraph:end class \"p1.A\" '/",
        "  class \"p1.B\" { /' @umlgraph:begin class \"p1.B\" '/",
        "  } /' @umlgraph:end class \"p1.B\" '/",
        "} /' @umlgraph:end package \"p1\" '/",
        "\"p1.A\" ---> \"b\" \"p1.B\"",
        "@enduml",
    ]


def test_custom_tag_is_used_in_markers(p1_corpus):
    """Test custom tag is used in markers."""
    text = _render(p1_corpus, tag="docs")
    assert "@docs:begin package" in text
    assert "@umlgraph" not in text


class TestNodes:
    def test_keywords(self):
        """Test class keywords per kind."""
        assert node_keyword(TypeKind.CLASS, frozenset()) == "class"
        assert node_keyword(TypeKind.CLASS, frozenset({"abstract"})) == "abstract class"
        assert node_keyword(TypeKind.INTERFACE, frozenset({"abstract"})) == "interface"
        assert node_keyword(TypeKind.ENUM, frozenset()) == "enum"
        assert node_keyword(TypeKind.RECORD, frozenset()) == "class"
        assert node_keyword(TypeKind.ANNOTATION, frozenset()) == "annotation"

    def test_stereotypes_on_the_node_line(self):
        """Test stereotypes on the node line."""
        writer, out = _writer()
        writer.declare_node("p.Money", TypeKind.RECORD, ("Embeddable",))
        writer.end_node("p.Money")
        writer.declare_node("p.Id", TypeKind.CLASS, (), ("final", "public"))
        writer.end_node("p.Id")

        lines = out.getvalue().splitlines()
        assert lines[0].startswith('class "p.Money" <<record>> <<Embeddable>> {')
        assert lines[1] == "} /' @umlgraph:end class \"p.Money\" '/"
        assert lines[2].startswith('class "p.Id" <<final>> {')

    def test_end_marker_repeats_the_keyword(self):
        """Test end marker repeats the keyword."""
        writer, out = _writer()
        writer.declare_node("p.Shape", TypeKind.CLASS, (), ("abstract",))
        writer.end_node("p.Shape")
        assert out.getvalue().splitlines()[-1] == "} /' @umlgraph:end abstract class \"p.Shape\" '/"


class TestMembers:
    def test_visibility(self):
        """Test visibility markers."""
        assert visibility_symbol(frozenset({"public"})) == "+"
        assert visibility_symbol(frozenset({"protected"})) == "#"
        assert visibility_symbol(frozenset({"private", "static"})) == "-"
        assert visibility_symbol(frozenset()) == "~"

    def test_attribute_lines(self):
        """Test attribute lines."""
        writer, out = _writer()
        writer.add_attribute(
            "p.A",
            FieldDecl("COUNT", PrimitiveType("int"), frozenset({"private", "static", "final"})),
        )
        writer.add_attribute(
            "p.A",
            FieldDecl("tags", ClassType("List", (ClassType("String"),)), frozenset({"protected", "transient"}), ("Lob",)),
        )
        writer.add_attribute("p.A", FieldDecl("total", ClassType("BigDecimal")), component=True)

        assert out.getvalue().splitlines() == [
            "- {static} COUNT : int {final}",
            "# tags : List<String> {transient} <<Lob>>",
            "total : BigDecimal",
        ]

    def test_constructor_and_methods(self):
        """Test constructor and methods."""
        writer, out = _writer()
        writer.add_constructor(
            "p.A",
            ConstructorDecl(
                "A",
                (
                    ParameterDecl("name", ClassType("String")),
                    ParameterDecl("rest", ArrayType(ClassType("Object")), varargs=True),
                ),
                modifiers=frozenset({"public"}),
            ),
        )
        writer.add_method("p.A", MethodDecl("run", modifiers=frozenset({"public"})))
        writer.add_method(
            "p.A",
            MethodDecl(
                "of",
                ClassType("A"),
                (ParameterDecl("values", ArrayType(PrimitiveType("int"))),),
                modifiers=frozenset({"public", "static"}),
            ),
        )
        writer.add_method(
            "p.A", MethodDecl("area", PrimitiveType("double"), modifiers=frozenset({"protected", "abstract"}))
        )

        assert out.getvalue().splitlines() == [
            "+ <<create>> A(name : String, rest : Object...)",
            "+ run()",
            "+ {static} of(values : int[]) : A",
            "# {abstract} area() : double",
        ]

    def test_annotation_members(self):
        """Test annotation members."""
        writer, out = _writer()
        writer.add_annotation_member("p.Ann", AnnotationMemberDecl("value", ClassType("String"), '"none"'))
        writer.add_annotation_member("p.Ann", AnnotationMemberDecl("level", PrimitiveType("int")))
        assert out.getvalue().splitlines() == ['value() : String = "none"', "level() : int"]

    def test_enum_constants(self):
        """Test enum constants."""
        units = [CompilationUnit("", (TypeDeclaration("Color", kind=TypeKind.ENUM, enum_constants=("RED", "GREEN")),))]
        text = _render(units)
        assert "  RED\n  GREEN\n" in text
        assert "package" not in text


class TestEdges:
    def test_edge_arrows(self):
        """Test edge arrows."""
        writer, out = _writer()
        writer.connect_owns("p.A", "p.A$B")
        writer.connect_inheritance("p.A", "p.Base")
        writer.connect_realization("p.A", "p.Api")
        writer.connect_association("p.A", "p.C", "c", ("NotNull",))
        writer.connect_dependency("p.A", "p.D")

        assert out.getvalue().splitlines() == [
            '"p.A" +-- "p.A$B"',
            '"p.A" --|> "p.Base"',
            '"p.A" ..|> "p.Api"',
            '"p.A" ---> "c" "p.C" : <<NotNull>>',
            '"p.A" ..> "p.D"',
        ]

    def test_flagged_edges_are_commented_out(self):
        """Test flagged edges are commented out."""
        writer, out = _writer()
        writer.connect_inheritance("p.A", "java.lang.Exception", ReviewFlag.EXTERNAL)
        writer.connect_dependency("p.A", "Mystery", ReviewFlag.UNRESOLVED)

        assert out.getvalue().splitlines() == [
            "' @umlgraph:cherry-pick external \"p.A\" --|> \"java.lang.Exception\"",
            "' @umlgraph:cherry-pick ghost \"p.A\" ..> \"Mystery\"",
        ]

    def test_unresolved_supertype_is_written_as_a_ghost(self):
        """Test unresolved supertype is written as a ghost."""
        units = [CompilationUnit("p", (TypeDeclaration("A", extends=(ClassType("Base"),)),))]
        assert "' @umlgraph:cherry-pick ghost \"p.A\" --|> \"Base\"" in _render(units)


class TestRejectedText:
    @pytest.mark.parametrize("name", ['bad"name', "two\nlines"])
    def test_diagram_name(self, name):
        """Test rejecting diagram names with quotes or newlines."""
        writer, _ = _writer()
        with pytest.raises(ValueError):
            writer.begin_diagram(name)

    def test_node_name_with_quote(self):
        """Test node name with quote."""
        writer, _ = _writer()
        with pytest.raises(ValueError):
            writer.declare_node('p."A"', TypeKind.CLASS)

    def test_tag_with_quote(self):
        """Test tag with quote."""
        with pytest.raises(ValueError):
            PlantUMLWriter(io.StringIO(), tag='x"y')

    def test_title_with_newline(self):
        """Test title with newline."""
        with pytest.raises(ValueError):
            diagram_header(title="one\ntwo")
