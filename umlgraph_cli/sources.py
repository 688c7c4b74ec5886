"""Source-root location and deterministic discovery of Java files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .models import Diagnostic

logger = logging.getLogger(__name__)

JAVA_SUFFIX = ".java"

DEFAULT_SOURCE_ROOTS: Tuple[str, ...] = ("src/main/java", "src", ".")

SKIP_DIRS: Set[str] = {
    ".git", ".gradle", ".idea", ".mvn", ".settings", ".umlgraph",
    "build", "node_modules", "out", "target", "bin",
}


class SourceRootError(ValueError):
    """No usable source root could be located."""


def locate_source_roots(
    requested: Optional[Sequence[Path]] = None,
    base_dir: Optional[Path] = None,
    candidates: Sequence[str] = DEFAULT_SOURCE_ROOTS,
) -> Tuple[List[Path], List[Diagnostic]]:
    """Resolve the roots to scan.

    Explicit roots are kept when they exist; missing ones are reported.  If
    none were given, the first existing candidate under *base_dir* is used.
    """
    base = (base_dir or Path.cwd()).resolve()
    diagnostics: List[Diagnostic] = []

    if requested:
        roots: List[Path] = []
        for path in requested:
            root = path if path.is_absolute() else base / path
            if root.is_dir():
                roots.append(root.resolve())
            else:
                logger.warning("Source root does not exist or is not a directory: %s", root)
                diagnostics.append(
                    Diagnostic("missing-source-root", f"Source root not found: {root}", str(path))
                )
        if not roots:
            raise SourceRootError(
                "None of the given source roots exist: " + ", ".join(str(p) for p in requested)
            )
        return _dedupe(roots), diagnostics

    for candidate in candidates:
        root = base / candidate
        if root.is_dir():
            logger.debug("Using source root %s", root)
            return [root.resolve()], diagnostics
    raise SourceRootError(f"No source root found under {base} (tried {', '.join(candidates)})")


def discover_java_files(
    roots: Iterable[Path],
    skip_dirs: Optional[Set[str]] = None,
) -> Tuple[List[Path], List[Diagnostic]]:
    """All ``*.java`` files under *roots*, sorted, each listed once."""
    skip = SKIP_DIRS if skip_dirs is None else skip_dirs
    seen: Set[Path] = set()
    files: List[Path] = []
    diagnostics: List[Diagnostic] = []

    for root in roots:
        found = 0
        for path in sorted(root.rglob(f"*{JAVA_SUFFIX}")):
            relative = path.relative_to(root)
            if any(part in skip for part in relative.parts[:-1]):
                continue
            if not path.is_file():
                continue
            resolved = path.resolve()
            found += 1
            if resolved in seen:
                continue
            seen.add(resolved)
            files.append(resolved)
        if found == 0:
            logger.warning("Source root yields no Java files: %s", root)
            diagnostics.append(
                Diagnostic("empty-source-root", f"No Java sources under {root}", str(root))
            )

    files.sort()
    return files, diagnostics


def _dedupe(paths: Iterable[Path]) -> List[Path]:
    seen: Set[Path] = set()
    result: List[Path] = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            result.append(path)
    return result
