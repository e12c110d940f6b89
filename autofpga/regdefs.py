"""Generation of the host register definition files regdefs.h and regdefs.cpp."""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, TextIO

from .model import Peripheral, RegInfo, get_int, get_string, lookup, submaps

log = logging.getLogger(__name__)

KY_REGS_N = "REGS.N"
KY_REGS_NOTE = "REGS.NOTE"
KY_REGDEFS_H_INCLUDE = "REGDEFS.H.INCLUDE"
KY_REGDEFS_H_DEFNS = "REGDEFS.H.DEFNS"
KY_REGDEFS_H_INSERT = "REGDEFS.H.INSERT"
KY_REGDEFS_CPP_INCLUDE = "REGDEFS.CPP.INCLUDE"
KY_REGDEFS_CPP_INSERT = "REGDEFS.CPP.INSERT"

IsPeripheral = Callable[[Mapping[str, Any]], bool]

_DELIMITERS = re.compile(r"[, \t\n]+")
_NUMBER = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")


def parse_register(text: str) -> Optional[RegInfo]:
    """Parse ``"<offset> <DEFNAME> [user names...]"`` into a RegInfo.

    The offset follows C conventions: ``0x`` for hex, a leading ``0`` for
    octal, decimal otherwise.  Returns None if there is no offset or no name.
    """
    match = _NUMBER.match(text)
    if match is None:
        return None
    sign, digits = match.groups()
    if digits[:2].lower() == "0x":
        value = int(digits[2:], 16)
    elif digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits)
    if sign == "-":
        value = -value
    tokens = [tok for tok in _DELIMITERS.split(text[match.end():]) if tok]
    if not tokens:
        return None
    return RegInfo(value, tokens[0], tuple(tokens[1:]))


def register_entries(peripheral: Peripheral) -> Iterator[RegInfo]:
    """Yield the registers declared by ``REGS.0`` .. ``REGS.<N-1>``."""
    count = get_int(peripheral.phash, KY_REGS_N)
    if count is None:
        log.info("REGS.N not found in %s", peripheral.name or "(No-name)")
        return
    for index in range(count):
        key = f"REGS.{index}"
        value = lookup(peripheral.phash, key)
        if value is None:
            log.warning("%s not found", key)
            continue
        if not isinstance(value, str):
            log.info("%s is not a string", key)
            continue
        reg = parse_register(value)
        if reg is None:
            log.info("No register name within string: %s", value)
            continue
        yield reg


def longest_defname(peripherals: Iterable[Peripheral]) -> int:
    """Length of the longest register definition name."""
    return max(
        (len(reg.defname) for p in peripherals for reg in register_entries(p)),
        default=0,
    )


def longest_uname(peripherals: Iterable[Peripheral]) -> int:
    """Length of the longest user-visible register name."""
    return max(
        (
            len(name)
            for p in peripherals
            for reg in register_entries(p)
            for name in reg.namelist
        ),
        default=0,
    )


def write_regdefs(out: TextIO, peripherals: Iterable[Peripheral], longest: int) -> None:
    """Write one ``#define`` per register, aligned to ``longest`` columns."""
    for peripheral in peripherals:
        note = get_string(peripheral.phash, KY_REGS_NOTE)
        if note is not None:
            out.write(note + "\n")
        for reg in register_entries(peripheral):
            address = (reg.offset << 2) + peripheral.regbase
            out.write(f"#define\t{reg.defname:<{longest}}\t0x{address:08x}")
            out.write(f"\t// {peripheral.regbase:08x}, wbregs names: ")
            out.write(", ".join(reg.namelist))
            out.write("\n")
    out.write("\n\n")


def write_regnames(
    out: TextIO,
    peripherals: Iterable[Peripheral],
    longest_defname: int,
    longest_uname: int,
) -> None:
    """Write the ``{ DEFNAME, "name" }`` table entries, one per user name."""
    entries = (
        f'\t{{ {reg.defname:<{longest_defname}},\t"{name}"'
        f'{"":{max(longest_uname - len(name), 0)}}\t}}'
        for peripheral in peripherals
        for reg in register_entries(peripheral)
        for name in reg.namelist
    )
    out.write(",\n".join(entries))


def _component_tags(
    master: Mapping[str, Any], key: str, is_peripheral: IsPeripheral, peripherals: bool
) -> Iterator[str]:
    for _, table in submaps(master):
        if bool(is_peripheral(table)) != peripherals:
            continue
        text = get_string(table, key)
        if text is not None:
            yield text


def _write_tag_block(
    out: TextIO,
    master: Mapping[str, Any],
    key: str,
    is_peripheral: IsPeripheral,
    headings: tuple[str, str, str],
) -> None:
    master_head, peripheral_head, top_head = headings
    out.write(master_head)
    out.writelines(_component_tags(master, key, is_peripheral, False))
    out.write(peripheral_head)
    out.writelines(_component_tags(master, key, is_peripheral, True))
    out.write(top_head)
    top = get_string(master, key)
    if top is not None:
        out.write(top)


def build_regdefs_h(
    master: Mapping[str, Any],
    out: TextIO,
    peripherals: Iterable[Peripheral],
    is_peripheral: IsPeripheral,
    notice: Optional[str] = None,
) -> None:
    """Write a regdefs.h header describing every register in the design."""
    peripherals = list(peripherals)
    if notice:
        out.write(notice)

    out.write("#ifndef\tREGDEFS_H\n#define\tREGDEFS_H\n\n\n")

    out.write("//\n// The @REGDEFS.H.INCLUDE tag\n//\n")
    _write_tag_block(
        out, master, KY_REGDEFS_H_INCLUDE, is_peripheral,
        (
            "// @REGDEFS.H.INCLUDE for masters\n",
            "// @REGDEFS.H.INCLUDE for peripherals\n",
            "// And finally any master REGDEFS.H.INCLUDE tags\n",
        ),
    )
    out.write("// End of definitions from REGDEFS.H.INCLUDE\n\n\n")

    out.write("//\n// Register address definitions, from @REGS.#d\n//\n")
    write_regdefs(out, peripherals, longest_defname(peripherals))

    out.write("//\n// The @REGDEFS.H.DEFNS tag\n//\n")
    _write_tag_block(
        out, master, KY_REGDEFS_H_DEFNS, is_peripheral,
        (
            "// @REGDEFS.H.DEFNS for masters\n",
            "// @REGDEFS.H.DEFNS for peripherals\n",
            "// @REGDEFS.H.DEFNS at the top level\n",
        ),
    )
    out.write("// End of definitions from REGDEFS.H.DEFNS\n")

    out.write("//\n// The @REGDEFS.H.INSERT tag\n//\n")
    _write_tag_block(
        out, master, KY_REGDEFS_H_INSERT, is_peripheral,
        (
            "// @REGDEFS.H.INSERT for masters\n",
            "// @REGDEFS.H.INSERT for peripherals\n",
            "// @REGDEFS.H.INSERT from the top level\n",
        ),
    )
    out.write("// End of definitions from REGDEFS.H.INSERT\n")
    out.write("\n\n")
    out.write("#endif\t// REGDEFS_H\n")


def build_regdefs_cpp(
    master: Mapping[str, Any],
    out: TextIO,
    peripherals: Iterable[Peripheral],
    is_peripheral: IsPeripheral,
    notice: Optional[str] = None,
) -> None:
    """Write regdefs.cpp, the table mapping user names to register addresses."""
    peripherals = list(peripherals)
    if notice:
        out.write(notice)

    include = get_string(master, KY_REGDEFS_CPP_INCLUDE)
    if include is not None:
        out.write(include)
    else:
        out.write(
            "// No default include list found\n"
            "#include <stdio.h>\n"
            "#include <stdlib.h>\n"
            "#include <strings.h>\n"
            "#include <ctype.h>\n"
        )

    out.write('#include "regdefs.h"\n\n')
    out.write("const\tREGNAME\traw_bregs[] = {\n")
    write_regnames(
        out, peripherals, longest_defname(peripherals), longest_uname(peripherals)
    )
    out.write("\n};\n\n")

    _write_tag_block(
        out, master, KY_REGDEFS_CPP_INSERT, is_peripheral,
        (
            "// REGSDEFS.CPP.INSERT for any bus masters\n",
            "// And then from the peripherals\n",
            "// And finally any master REGS.CPP.INSERT tags\n",
        ),
    )