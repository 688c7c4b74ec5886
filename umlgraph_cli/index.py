"""Declared-type index: built once from the whole corpus, read-only afterwards.

``IndexBuilder`` collects declarations; ``IndexBuilder.build()`` seals it and
returns a ``DeclaredIndex`` which exposes lookups only.  The unique-by-simple-name
table needs every declaration, so it is computed in ``build()``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .models import CompilationUnit, Diagnostic, TypeDeclaration, TypeKind
from .naming import dotted_name_of, key_of, simple_name_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeclaredType:
    key: str
    package: str
    declaration: TypeDeclaration
    owner_key: Optional[str] = None
    imports: Tuple[str, ...] = ()
    source_path: str = ""

    @property
    def simple_name(self) -> str:
        return self.declaration.name

    @property
    def kind(self) -> TypeKind:
        return self.declaration.kind


def unit_sort_key(unit: CompilationUnit) -> Tuple[str, str, Tuple[str, ...], str, str]:
    """Total ordering for compilation units, independent of discovery order.

    Units that agree on package, type names and path are told apart by their
    content, so the first definition of a duplicate key never depends on the
    order units arrive in.
    """
    names = tuple(t.name for t in unit.types)
    primary = names[0] if names else ""
    return (unit.package, primary, names, unit.source_path, _fingerprint((unit.types, unit.imports)))


def _fingerprint(value: Any) -> str:
    """Canonical text of a declaration tree, with set members sorted."""
    if is_dataclass(value) and not isinstance(value, type):
        inner = ",".join(_fingerprint(getattr(value, f.name)) for f in fields(value))
        return f"{type(value).__name__}({inner})"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(_fingerprint(v) for v in value)) + "}"
    if isinstance(value, (tuple, list)):
        return "(" + ",".join(_fingerprint(v) for v in value) + ")"
    if isinstance(value, Enum):
        return repr(value.value)
    return repr(value)


# ===================================================================
# Builder (mutable, single use)
# ===================================================================

class IndexBuilder:
    def __init__(self) -> None:
        self._types: Dict[str, DeclaredType] = {}
        self._diagnostics: List[Diagnostic] = []
        self._sealed = False

    def ingest(
        self,
        declaration: TypeDeclaration,
        owner_key: Optional[str] = None,
        *,
        package: str = "",
        imports: Tuple[str, ...] = (),
        source_path: str = "",
    ) -> Optional[str]:
        """Add one declaration (not its nested types). Returns its key, or None if rejected."""
        if self._sealed:
            raise RuntimeError("IndexBuilder has already been built")

        key = key_of(declaration.name, package, owner_key)
        existing = self._types.get(key)
        if existing is not None:
            message = (
                f"Duplicate declaration of {key} in {source_path or '<unknown>'}; "
                f"keeping the one from {existing.source_path or '<unknown>'}"
            )
            logger.warning("%s", message)
            self._diagnostics.append(Diagnostic("duplicate-type", message, key))
            return None

        self._types[key] = DeclaredType(
            key=key,
            package=package,
            declaration=declaration,
            owner_key=owner_key,
            imports=imports,
            source_path=source_path,
        )
        return key

    def ingest_unit(self, unit: CompilationUnit) -> List[str]:
        """Ingest every type of *unit*, nested types included. Returns the accepted keys."""
        accepted: List[str] = []
        stack: List[Tuple[TypeDeclaration, Optional[str]]] = [
            (decl, None) for decl in reversed(unit.types)
        ]
        while stack:
            decl, owner_key = stack.pop()
            key = self.ingest(
                decl,
                owner_key,
                package=unit.package,
                imports=unit.imports,
                source_path=unit.source_path,
            )
            if key is None:
                continue
            accepted.append(key)
            stack.extend((nested, key) for nested in reversed(decl.nested_types))
        return accepted

    def ingest_units(self, units: Iterable[CompilationUnit]) -> None:
        ordered = sorted(units, key=unit_sort_key)
        for unit in ordered:
            if not unit.types:
                logger.info("No type declarations in %s", unit.source_path or "<unknown>")
            self.ingest_unit(unit)

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        self._diagnostics.append(diagnostic)

    def build(self) -> "DeclaredIndex":
        if self._sealed:
            raise RuntimeError("IndexBuilder has already been built")
        self._sealed = True

        by_package: Dict[str, List[str]] = defaultdict(list)
        by_simple: Dict[str, List[str]] = defaultdict(list)
        for key, declared in self._types.items():
            by_package[declared.package].append(key)
            by_simple[simple_name_of(key)].append(key)

        keys_by_package = {pkg: tuple(sorted(by_package[pkg])) for pkg in sorted(by_package)}
        unique = {name: keys[0] for name, keys in by_simple.items() if len(keys) == 1}
        ambiguous = frozenset(name for name, keys in by_simple.items() if len(keys) > 1)

        logger.debug(
            "Index built: %d types in %d packages, %d ambiguous simple names",
            len(self._types), len(keys_by_package), len(ambiguous),
        )
        return DeclaredIndex(dict(self._types), keys_by_package, unique, ambiguous, tuple(self._diagnostics))


# ===================================================================
# Index (immutable)
# ===================================================================

class DeclaredIndex:
    """Read-only view of the declared types of one run."""

    def __init__(
        self,
        types: Dict[str, DeclaredType],
        keys_by_package: Dict[str, Tuple[str, ...]],
        unique_by_simple: Dict[str, str],
        ambiguous: frozenset,
        diagnostics: Tuple[Diagnostic, ...],
    ) -> None:
        self._types: Mapping[str, DeclaredType] = MappingProxyType(types)
        self._keys_by_package: Mapping[str, Tuple[str, ...]] = MappingProxyType(keys_by_package)
        self._unique_by_simple: Mapping[str, str] = MappingProxyType(unique_by_simple)
        self._ambiguous = ambiguous
        self._diagnostics = diagnostics
        key_by_dotted: Dict[str, str] = {}
        for key in sorted(types):
            key_by_dotted.setdefault(dotted_name_of(key), key)
        self._key_by_dotted: Mapping[str, str] = MappingProxyType(key_by_dotted)

    @classmethod
    def from_units(cls, units: Iterable[CompilationUnit]) -> "DeclaredIndex":
        builder = IndexBuilder()
        builder.ingest_units(units)
        return builder.build()

    def __contains__(self, key: object) -> bool:
        return key in self._types

    def __len__(self) -> int:
        return len(self._types)

    def get(self, key: str) -> Optional[DeclaredType]:
        return self._types.get(key)

    def packages(self) -> Tuple[str, ...]:
        return tuple(self._keys_by_package)

    def keys_in_package(self, package: str) -> Tuple[str, ...]:
        return self._keys_by_package.get(package, ())

    def keys_in_index_order(self) -> Iterator[str]:
        for keys in self._keys_by_package.values():
            yield from keys

    def types_in_index_order(self) -> Iterator[DeclaredType]:
        for key in self.keys_in_index_order():
            yield self._types[key]

    def unique_key_for(self, simple_name: str) -> Optional[str]:
        return self._unique_by_simple.get(simple_name)

    def key_for_qualified_name(self, name: str) -> Optional[str]:
        """Key of the type spelled *name* either as a key or as a source-level name."""
        if name in self._types:
            return name
        return self._key_by_dotted.get(name)

    def is_ambiguous(self, simple_name: str) -> bool:
        return simple_name in self._ambiguous

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return self._diagnostics
