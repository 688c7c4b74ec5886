"""Tests for source-root location and Java file discovery."""

from pathlib import Path

import pytest

from umlgraph_cli.sources import SourceRootError, discover_java_files, locate_source_roots


def _touch(path: Path, text: str = "class X {}") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestLocateSourceRoots:
    def test_prefers_maven_layout(self, temp_dir: Path):
        """Test prefers maven layout."""
        (temp_dir / "src" / "main" / "java").mkdir(parents=True)

        roots, diagnostics = locate_source_roots(base_dir=temp_dir)

        assert roots == [(temp_dir / "src" / "main" / "java").resolve()]
        assert diagnostics == []

    def test_falls_back_to_src_then_base(self, temp_dir: Path):
        """Test falls back to src then base."""
        roots, _ = locate_source_roots(base_dir=temp_dir)
        assert roots == [temp_dir.resolve()]

        (temp_dir / "src").mkdir()
        roots, _ = locate_source_roots(base_dir=temp_dir)
        assert roots == [(temp_dir / "src").resolve()]

    def test_no_candidate_raises(self, temp_dir: Path):
        """Test no candidate raises."""
        with pytest.raises(SourceRootError):
            locate_source_roots(base_dir=temp_dir, candidates=("src/main/java",))

    def test_explicit_roots_relative_to_base(self, temp_dir: Path):
        """Test explicit roots relative to base."""
        (temp_dir / "a").mkdir()
        (temp_dir / "b").mkdir()

        roots, diagnostics = locate_source_roots([Path("a"), Path("b"), Path("a")], base_dir=temp_dir)

        assert roots == [(temp_dir / "a").resolve(), (temp_dir / "b").resolve()]
        assert diagnostics == []

    def test_missing_explicit_root_is_reported(self, temp_dir: Path):
        """Test missing explicit root is reported."""
        (temp_dir / "a").mkdir()

        roots, diagnostics = locate_source_roots([Path("a"), Path("gone")], base_dir=temp_dir)

        assert roots == [(temp_dir / "a").resolve()]
        assert [d.code for d in diagnostics] == ["missing-source-root"]
        assert diagnostics[0].subject == "gone"

    def test_all_explicit_roots_missing_raises(self, temp_dir: Path):
        """Test all explicit roots missing raises."""
        with pytest.raises(SourceRootError):
            locate_source_roots([Path("nope")], base_dir=temp_dir)


class TestDiscoverJavaFiles:
    def test_sorted_and_filtered(self, temp_dir: Path):
        """Test sorted and filtered."""
        _touch(temp_dir / "z" / "Z.java")
        _touch(temp_dir / "a" / "A.java")
        _touch(temp_dir / "a" / "notes.txt")
        _touch(temp_dir / "target" / "Generated.java")
        _touch(temp_dir / ".git" / "Hook.java")

        files, diagnostics = discover_java_files([temp_dir])

        assert [f.name for f in files] == ["A.java", "Z.java"]
        assert diagnostics == []

    def test_overlapping_roots_list_files_once(self, temp_dir: Path):
        """Test overlapping roots list files once."""
        _touch(temp_dir / "pkg" / "A.java")

        files, _ = discover_java_files([temp_dir, temp_dir / "pkg"])

        assert len(files) == 1

    def test_custom_skip_dirs(self, temp_dir: Path):
        """Test custom skip dirs."""
        _touch(temp_dir / "target" / "Generated.java")

        files, _ = discover_java_files([temp_dir], skip_dirs=set())

        assert [f.name for f in files] == ["Generated.java"]

    def test_empty_root_is_reported(self, temp_dir: Path):
        """Test empty root is reported."""
        files, diagnostics = discover_java_files([temp_dir])

        assert files == []
        assert [d.code for d in diagnostics] == ["empty-source-root"]

    def test_sample_project(self, sample_sources: Path):
        """Test discovering the sample project."""
        files, _ = discover_java_files([sample_sources])
        assert [f.name for f in files] == [
            "Product.java",
            "Address.java",
            "Customer.java",
            "Entity.java",
            "Order.java",
            "Table.java",
            "OrderService.java",
        ]
