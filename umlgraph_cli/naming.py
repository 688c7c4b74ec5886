"""Canonical keys for declared types.

A top-level type ``Order`` in package ``shop.model`` is ``shop.model.Order``;
a type ``Line`` nested inside it is ``shop.model.Order$Line``.  Packages are
joined with ``.`` and lexical nesting with ``$`` so the owner of any key can
be recovered from the key alone.
"""

from __future__ import annotations

from typing import Optional

PACKAGE_SEPARATOR = "."
NESTING_SEPARATOR = "$"


def key_of(name: str, package: str = "", owner_key: Optional[str] = None) -> str:
    if owner_key:
        return f"{owner_key}{NESTING_SEPARATOR}{name}"
    if package:
        return f"{package}{PACKAGE_SEPARATOR}{name}"
    return name


def _last_separator(key: str) -> int:
    return max(key.rfind(PACKAGE_SEPARATOR), key.rfind(NESTING_SEPARATOR))


def owner_of(key: str) -> Optional[str]:
    """Return the enclosing key (type or package), or None for default-package top-level types."""
    cut = _last_separator(key)
    if cut < 0:
        return None
    return key[:cut]


def simple_name_of(key: str) -> str:
    return key[_last_separator(key) + 1:]


def dotted_name_of(key: str) -> str:
    """Source-level spelling of a key: ``p.Outer$Inner`` -> ``p.Outer.Inner``."""
    return key.replace(NESTING_SEPARATOR, PACKAGE_SEPARATOR)
