"""Pytest configuration and fixtures for umlgraph tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from umlgraph_cli.models import ClassType, CompilationUnit, FieldDecl, MethodDecl, TypeDeclaration
from umlgraph_cli.sink import RecordingSink


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch) -> Path:
    """Keep every test away from the developer's real ~/.umlgraph."""
    home = tmp_path_factory.mktemp("umlgraph_home")
    config_file = home / "config.toml"

    # Patch both config AND config_manager (config_manager imports at module load)
    monkeypatch.setattr("umlgraph_cli.config.BASE_DIR", home)
    monkeypatch.setattr("umlgraph_cli.config.CONFIG_FILE", config_file)
    monkeypatch.setattr("umlgraph_cli.config_manager.CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to the sample Java project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def sample_sources(sample_project_path: Path) -> Path:
    return sample_project_path / "src" / "main" / "java"


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def p1_corpus() -> list:
    """Package p1: class A with a field ``B b``, class B with no members."""
    a = TypeDeclaration(
        "A",
        fields=(FieldDecl("b", ClassType("B"), frozenset({"private"})),),
    )
    b = TypeDeclaration("B")
    return [
        CompilationUnit("p1", (a,), source_path="p1/A.java"),
        CompilationUnit("p1", (b,), source_path="p1/B.java"),
    ]


@pytest.fixture
def p1_corpus_with_getter(p1_corpus) -> list:
    """Same as ``p1_corpus`` but A also declares ``B m()``."""
    a = TypeDeclaration(
        "A",
        fields=(FieldDecl("b", ClassType("B"), frozenset({"private"})),),
        methods=(MethodDecl("m", ClassType("B")),),
    )
    return [CompilationUnit("p1", (a,), source_path="p1/A.java"), p1_corpus[1]]


@pytest.fixture
def sample_java_code() -> str:
    """Java source exercising most declaration shapes."""
    return '''package com.acme.billing;

import java.util.List;
import java.util.Map;
import java.io.*;
import static java.util.Objects.requireNonNull;

@Entity
@Deprecated
public final class Invoice<T extends Comparable<T>> extends Document implements Serializable, Cloneable {

    private static final long serialVersionUID = 1L;
    protected transient List<Line> lines;
    Map<String, ? extends Number> totals;
    int[] codes, matrix[];
    private T key;

    public Invoice(Customer customer, String... tags) throws IOException {
        requireNonNull(customer);
    }

    @Override
    public <R extends Report> R render(Class<R> type, int copies) throws RenderException, IOException {
        Object o = new Pdf();
        if (o instanceof Printable) {
            Printer.print((Printable) o);
        }
        LOGGER.info("rendered");
        this.helper.run();
        return type.cast(Formats.class);
    }

    static abstract class Line {
        Amount amount;
    }

    public enum State {
        OPEN, PAID;

        Label label() {
            return new Label();
        }
    }

    record Summary(@NotNull Amount total, int count) implements Comparable<Summary> {
    }

    @interface Audited {
        String value() default "none";
        int level();
    }
}

interface Exportable extends Runnable, Supplier<String> {
    void export();
}
'''
