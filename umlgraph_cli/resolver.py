"""Name resolution: raw type usages to ``DeclaredRef`` / ``ExternalRef`` / ``UnresolvedRef``.

Cascade, first success wins:

1. the oracle, if one is configured (a raising oracle counts as declining)
2. a dotted name that is already a key
3. the same-package key
4. the globally unique simple name
5. unresolved, keeping the name as written
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .index import DeclaredIndex, DeclaredType
from .models import (
    ArrayType,
    ClassType,
    DeclaredRef,
    ExternalRef,
    PrimitiveType,
    TypeRef,
    TypeUsage,
    TypeVariable,
    UnresolvedRef,
    WildcardType,
)
from .naming import PACKAGE_SEPARATOR, key_of, simple_name_of
from .oracle import OracleAnswer, TypeOracle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionContext:
    """Where a usage occurs: its package, the enclosing type and the unit's imports."""

    package: str = ""
    owner_key: Optional[str] = None
    imports: Tuple[str, ...] = ()

    @classmethod
    def of(cls, declared: DeclaredType) -> "ResolutionContext":
        return cls(declared.package, declared.key, declared.imports)


def normalize(usage: TypeUsage) -> Optional[ClassType]:
    """Reduce a usage to the class type it refers to, or None if it refers to none."""
    while True:
        if isinstance(usage, ClassType):
            return usage
        if isinstance(usage, ArrayType):
            usage = usage.component
        elif isinstance(usage, WildcardType):
            if usage.upper_bound is None:
                return None
            usage = usage.upper_bound
        elif isinstance(usage, TypeVariable):
            if not usage.bounds:
                return None
            usage = usage.bounds[0]
        elif isinstance(usage, PrimitiveType):
            return None
        else:
            raise TypeError(f"Unknown type usage: {usage!r}")


def usage_sites(usage: TypeUsage) -> Iterator[ClassType]:
    """Yield the raw class type of *usage*, then each generic argument, depth first."""
    raw = normalize(usage)
    if raw is None:
        return
    yield raw
    for argument in raw.arguments:
        yield from usage_sites(argument)


class NameResolver:
    def __init__(self, index: DeclaredIndex, oracle: Optional[TypeOracle] = None) -> None:
        self.index = index
        self.oracle = oracle

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, usage: ClassType, context: ResolutionContext) -> TypeRef:
        answer = self._ask_oracle(usage, context)
        if answer is not None:
            if answer.declaring_key is not None and answer.declaring_key in self.index:
                return DeclaredRef(answer.declaring_key)
            # the index decides what is declared, whatever the oracle reports
            declared = self.index.key_for_qualified_name(answer.qualified_name)
            if declared is not None:
                return DeclaredRef(declared)
            return ExternalRef(answer.qualified_name)
        return self._resolve_textually(usage.name, context.package)

    def resolve_usage(self, usage: TypeUsage, context: ResolutionContext) -> Optional[TypeRef]:
        raw = normalize(usage)
        if raw is None:
            return None
        return self.resolve(raw, context)

    def resolve_name(self, raw_name: str, context: ResolutionContext) -> TypeRef:
        return self.resolve(ClassType(raw_name), context)

    # ------------------------------------------------------------------
    # Cascade steps
    # ------------------------------------------------------------------

    def _ask_oracle(self, usage: ClassType, context: ResolutionContext) -> Optional[OracleAnswer]:
        if self.oracle is None:
            return None
        try:
            return self.oracle.try_resolve(usage, context)
        except Exception as exc:
            logger.warning("Type oracle failed on %s in %s: %s", usage.name, context.owner_key, exc)
            return None

    def _resolve_textually(self, raw: str, package: str) -> TypeRef:
        if PACKAGE_SEPARATOR in raw and raw in self.index:
            return DeclaredRef(raw)

        simple = simple_name_of(raw)
        same_package = key_of(simple, package)
        if same_package in self.index:
            return DeclaredRef(same_package)

        unique = self.index.unique_key_for(simple)
        if unique is not None:
            return DeclaredRef(unique)

        if self.index.is_ambiguous(simple):
            logger.debug("Ambiguous simple name %s used from package '%s'", simple, package)
        return UnresolvedRef(raw)
