"""Pipeline coordinating source discovery, parsing, resolution and rendering."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import DIAGRAM_FILE_STEM, OUTPUT_SUFFIXES
from .config_manager import load_config
from .diagram import GenerationResult, generate_class_diagram
from .graph_export import export_dot
from .index import DeclaredIndex, IndexBuilder
from .models import Diagnostic
from .oracle import ImportOracle
from .parser import JavaDeclarationParser, ScanResult
from .plantuml import PlantUMLWriter, diagram_header
from .resolver import NameResolver
from .sink import RecordingSink
from .sources import discover_java_files, locate_source_roots

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    output_file: Path
    result: GenerationResult
    files_parsed: int = 0
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def index(self) -> DeclaredIndex:
        return self.result.index


class DiagramOrchestrator:
    """Runs the whole generation for one set of source roots."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self.config = config or load_config()
        self.parser = JavaDeclarationParser()

    def scan(self, source_roots: Optional[Sequence[Path]] = None, base_dir: Optional[Path] = None) -> ScanResult:
        """Locate roots, discover files and parse them. Raises ``SourceRootError``."""
        scan_config = self.config["scan"]
        roots, root_diagnostics = locate_source_roots(
            source_roots, base_dir, candidates=scan_config["source_roots"]
        )
        files, file_diagnostics = discover_java_files(roots, set(scan_config["skip_dirs"]))
        logger.info("Parsing %d Java files from %s", len(files), ", ".join(str(r) for r in roots))

        result = self.parser.parse_files(files)
        result.diagnostics[:0] = root_diagnostics + file_diagnostics
        return result

    def use_oracle(self, override: Optional[bool] = None) -> bool:
        if override is not None:
            return override
        return bool(self.config["resolver"].get("use_import_oracle", True))

    def build_index(self, scan: ScanResult) -> DeclaredIndex:
        builder = IndexBuilder()
        for diagnostic in scan.diagnostics:
            builder.add_diagnostic(diagnostic)
        builder.ingest_units(scan.units)
        return builder.build()

    def resolver(self, index: DeclaredIndex, use_oracle: Optional[bool] = None) -> NameResolver:
        oracle = ImportOracle.from_index(index) if self.use_oracle(use_oracle) else None
        return NameResolver(index, oracle)

    def run(
        self,
        source_roots: Optional[Sequence[Path]] = None,
        output_dir: Optional[Path] = None,
        fmt: str = "puml",
        use_oracle: Optional[bool] = None,
        name: Optional[str] = None,
        base_dir: Optional[Path] = None,
    ) -> RunReport:
        if fmt not in OUTPUT_SUFFIXES:
            raise ValueError(f"Unknown output format '{fmt}' (expected one of {', '.join(OUTPUT_SUFFIXES)})")

        diagram_config = self.config["diagram"]
        diagram_name = name or diagram_config.get("name") or DIAGRAM_FILE_STEM
        scan = self.scan(source_roots, base_dir)

        target_dir = output_dir or Path(self.config["scan"]["output_dir"])
        if base_dir is not None and not target_dir.is_absolute():
            target_dir = base_dir / target_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        output_file = target_dir / f"{diagram_name}{OUTPUT_SUFFIXES[fmt]}"

        if fmt == "puml":
            header = diagram_header(
                title=diagram_config.get("title"),
                theme=diagram_config.get("theme"),
                direction=diagram_config.get("direction"),
                hide_empty_members=diagram_config.get("hide_empty_members", True),
            )
            with open(output_file, "w", encoding="utf-8", newline="\n") as f:
                writer = PlantUMLWriter(f, header=header, tag=diagram_config.get("tag", "umlgraph"))
                result = self._generate(scan, writer, use_oracle, diagram_name)
        else:
            recorder = RecordingSink()
            result = self._generate(scan, recorder, use_oracle, diagram_name)
            export_dot(recorder.events, output_file)

        logger.info("Wrote %s", output_file)
        return RunReport(
            output_file=output_file,
            result=result,
            files_parsed=len(scan.units),
            diagnostics=list(result.diagnostics),
        )

    def _generate(self, scan: ScanResult, sink, use_oracle: Optional[bool], name: str) -> GenerationResult:
        return generate_class_diagram(
            scan.units,
            sink,
            import_oracle=self.use_oracle(use_oracle),
            name=name,
            diagnostics=scan.diagnostics,
        )
