"""Optional type oracle consulted before the textual resolution cascade.

An oracle knows more than the declared-type index: imports, the Java
scoping rules, the platform's ``java.lang`` types.  It may decline any
question; the resolver never depends on it to terminate.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from .models import ClassType
from .naming import NESTING_SEPARATOR, PACKAGE_SEPARATOR, dotted_name_of, key_of

if TYPE_CHECKING:
    from .index import DeclaredIndex
    from .resolver import ResolutionContext

logger = logging.getLogger(__name__)

JAVA_LANG_TYPES = frozenset({
    "AutoCloseable", "Boolean", "Byte", "CharSequence", "Character", "Class",
    "ClassCastException", "ClassNotFoundException", "Cloneable", "Comparable",
    "Deprecated", "Double", "Enum", "Error", "Exception", "Float",
    "FunctionalInterface", "IllegalArgumentException", "IllegalStateException",
    "IndexOutOfBoundsException", "Integer", "InterruptedException", "Iterable",
    "Long", "Math", "NullPointerException", "Number", "Object", "Override",
    "Process", "Record", "Runnable", "Runtime", "RuntimeException", "SafeVarargs",
    "Short", "String", "StringBuilder", "SuppressWarnings", "System", "Thread",
    "Throwable", "UnsupportedOperationException", "Void",
})


@dataclass(frozen=True)
class OracleAnswer:
    qualified_name: str
    declaring_key: Optional[str] = None


class TypeOracle(ABC):
    """Best-effort resolver of a raw usage to a fully qualified identity."""

    @abstractmethod
    def try_resolve(self, usage: ClassType, context: "ResolutionContext") -> Optional[OracleAnswer]:
        """Return the identity of *usage*, or None to decline."""
        ...


class ImportOracle(TypeOracle):
    """Resolves names the way javac would, limited to what the corpus and imports reveal.

    Simple names are looked up as member types of the enclosing types, then
    single-type imports, the current package, on-demand imports and finally
    ``java.lang``.  Dotted names are looked up verbatim, then by resolving
    their first segment.
    """

    def __init__(self, keys: Iterable[str]) -> None:
        self._keys = frozenset(keys)
        self._key_by_dotted: Dict[str, str] = {}
        for key in sorted(self._keys):
            self._key_by_dotted.setdefault(dotted_name_of(key), key)

    @classmethod
    def from_index(cls, index: "DeclaredIndex") -> "ImportOracle":
        return cls(index.keys_in_index_order())

    def try_resolve(self, usage: ClassType, context: "ResolutionContext") -> Optional[OracleAnswer]:
        name = usage.name
        if PACKAGE_SEPARATOR in name:
            return self._resolve_qualified(name, context)
        return self._resolve_simple(name, context)

    def _answer(self, qualified_name: str) -> OracleAnswer:
        return OracleAnswer(qualified_name, self._key_by_dotted.get(qualified_name))

    def _resolve_simple(self, name: str, context: "ResolutionContext") -> Optional[OracleAnswer]:
        owner = context.owner_key
        while owner:
            member = key_of(name, owner_key=owner)
            if member in self._keys:
                return OracleAnswer(dotted_name_of(member), member)
            owner = owner.rpartition(NESTING_SEPARATOR)[0] if NESTING_SEPARATOR in owner else None

        for imported in context.imports:
            if not imported.endswith(".*") and imported.rpartition(".")[2] == name:
                return self._answer(imported)

        same_package = key_of(name, context.package)
        if same_package in self._key_by_dotted:
            return self._answer(same_package)

        for imported in context.imports:
            if imported.endswith(".*"):
                candidate = f"{imported[:-2]}.{name}"
                if candidate in self._key_by_dotted:
                    return self._answer(candidate)

        if name in JAVA_LANG_TYPES:
            return OracleAnswer(f"java.lang.{name}")
        return None

    def _resolve_qualified(self, name: str, context: "ResolutionContext") -> Optional[OracleAnswer]:
        if name in self._key_by_dotted:
            return self._answer(name)

        head, _, rest = name.partition(PACKAGE_SEPARATOR)
        outer = self._resolve_simple(head, context)
        if outer is None:
            # lower-case first segment: package-qualified name of a type outside the corpus
            if head[:1].islower():
                return OracleAnswer(name)
            return None
        if outer.declaring_key is None:
            return OracleAnswer(f"{outer.qualified_name}.{rest}")

        nested = outer.declaring_key + NESTING_SEPARATOR + rest.replace(PACKAGE_SEPARATOR, NESTING_SEPARATOR)
        if nested in self._keys:
            return OracleAnswer(dotted_name_of(nested), nested)
        logger.debug("No member type %s inside %s", rest, outer.declaring_key)
        return None
