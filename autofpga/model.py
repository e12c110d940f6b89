"""Design data model: nested configuration tables and the records built from them.

A design is held as nested dictionaries.  Keys at any level may be reached
with dotted paths, so ``lookup(table, "REGS.N")`` reads ``table["REGS"]["N"]``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, MutableMapping, Optional

Table = MutableMapping[str, Any]


def _path(key: str) -> list[str]:
    parts = key.split(".")
    if not all(parts):
        raise ValueError(f"malformed key: {key!r}")
    return parts


def lookup(table: Mapping[str, Any], key: str) -> Any:
    """Return the value stored under a dotted key, or None if absent."""
    node: Any = table
    for part in _path(key):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def get_string(table: Mapping[str, Any], key: str) -> Optional[str]:
    """Return the string stored under ``key``, or None if absent or not a string."""
    value = lookup(table, key)
    return value if isinstance(value, str) else None


def get_int(table: Mapping[str, Any], key: str) -> Optional[int]:
    """Return the integer stored under ``key``.

    Strings holding an integer literal (decimal, ``0x``, ``0o`` or ``0b``)
    are converted.  Anything else gives None.
    """
    value = lookup(table, key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 0)
        except ValueError:
            return None
    return None


def get_map(table: Mapping[str, Any], key: str) -> Optional[Table]:
    """Return the sub-table stored under ``key``, or None if it is not a table."""
    value = lookup(table, key)
    return value if isinstance(value, MutableMapping) else None


def set_value(table: Table, key: str, value: Any) -> None:
    """Store ``value`` under a dotted key, creating intermediate tables."""
    *parents, last = _path(key)
    node = table
    for part in parents:
        child = node.get(part)
        if child is None:
            child = node[part] = {}
        elif not isinstance(child, MutableMapping):
            raise TypeError(f"{part!r} in {key!r} is not a table")
        node = child
    node[last] = value


def submaps(table: Mapping[str, Any]) -> Iterator[tuple[str, Table]]:
    """Yield ``(name, sub_table)`` for every sub-table, in sorted key order."""
    for name in sorted(table):
        value = table[name]
        if isinstance(value, MutableMapping):
            yield name, value


@dataclass(frozen=True)
class BusMaster:
    """A bus master: the signal prefix and the macro that guards its use."""

    prefix: str
    access: Optional[str] = None


@dataclass(frozen=True)
class RegInfo:
    """One register: word offset, C definition name and user-visible names."""

    offset: int
    defname: str
    namelist: tuple[str, ...] = ()


@dataclass(frozen=True)
class PeripheralData:
    """Static description of a peripheral and the text it contributes."""

    prefix: str
    naddr: int = 0
    access: Optional[str] = None
    ext_ports: Optional[str] = None
    ext_decls: Optional[str] = None
    main_defns: Optional[str] = None
    dbg_defns: Optional[str] = None
    main_insert: Optional[str] = None
    alt_insert: Optional[str] = None
    dbg_insert: Optional[str] = None
    pregs: tuple[RegInfo, ...] = ()
    cstruct: Optional[str] = None
    ioname: Optional[str] = None


@dataclass
class Peripheral:
    """A peripheral placed on a bus: its name, its table and its base address."""

    name: Optional[str]
    phash: Table = field(default_factory=dict)
    regbase: int = 0


@dataclass(frozen=True)
class Clock:
    """A design clock: its name, top-level wire, period and simulation class."""

    name: str
    wire: str
    interval_ps: int
    simclass: Optional[str] = None