"""Generation of rtl.make.inc, the file list include for an RTL Makefile."""
from __future__ import annotations

import logging
import secrets
import string
from typing import Any, MutableMapping, Optional, TextIO

from .model import get_string, set_value, submaps

log = logging.getLogger(__name__)

KY_PREFIX = "PREFIX"
KY_RTL_MAKE_SUBD = "RTL.MAKE.SUBD"
KY_RTL_MAKE_GROUP = "RTL.MAKE.GROUP"
KY_RTL_MAKE_FILES = "RTL.MAKE.FILES"
KY_RTL_MAKE_VDIRS = "RTL.MAKE.VDIRS"
KY_VFLIST = "VFLIST"
KY_AUTOVDIRS = "AUTOVDIRS"

_DELIMITERS = ", \t\r\n"
_GROUP_CHARS = string.ascii_letters + string.digits


def _tokens(text: str) -> list[str]:
    for delim in _DELIMITERS[1:]:
        text = text.replace(delim, " ")
    return [tok for tok in text.split(" ") if tok]


def _temporary_group() -> str:
    return "MKGRP" + "".join(secrets.choice(_GROUP_CHARS) for _ in range(6))


def build_rtl_make_inc(
    master: MutableMapping[str, Any], out: TextIO, notice: Optional[str] = None
) -> None:
    """Write rtl.make.inc, listing every component's Verilog files.

    A component that lists files but names no group is given a temporary
    group name, which is stored back into its table.
    """
    if notice:
        out.write(notice)

    subdirs: list[str] = []
    allgroups = ""

    for name, table in submaps(master):
        subd = get_string(table, KY_RTL_MAKE_SUBD)
        group = get_string(table, KY_RTL_MAKE_GROUP)
        files = get_string(table, KY_RTL_MAKE_FILES)

        if subd and subd not in subdirs:
            subdirs.append(subd)
        if files is None:
            continue

        filstr = " ".join(_tokens(files))
        if group is None:
            group = _temporary_group()
            set_value(table, KY_RTL_MAKE_GROUP, group)
            prefix = get_string(table, KY_PREFIX) or "(Unnamed)"
            log.warning("Creating a temporary group name for %s", prefix)

        if subd:
            out.write(f"{group}D := {subd}\n")
            out.write(f"{group}  := $(addprefix $({group}D)/,{filstr})\n")
        else:
            out.write(f"{group} := {filstr}\n\n")

        ref = f"$({group})"
        if ref not in allgroups:
            allgroups = f"{allgroups} {ref}"

    subd = get_string(master, KY_RTL_MAKE_SUBD)
    group = get_string(master, KY_RTL_MAKE_GROUP) or KY_VFLIST
    files = get_string(master, KY_RTL_MAKE_FILES)
    if files is not None:
        if subd:
            out.write(f"{group}D := {subd}\n")
            out.write(
                f"{group}  := $(addprefix $({group}D)/,{files}) \\\t{allgroups}\n"
            )
        else:
            out.write(f"{group} := {files} //\t\t{allgroups}\n")
    elif allgroups:
        out.write(f"{group} := main.v {allgroups}\n")

    if subd and subd not in subdirs:
        subdirs.append(subd)

    vdirs = "".join(f" -y {directory}" for directory in subdirs)
    vdirs_name = get_string(master, KY_RTL_MAKE_VDIRS) or KY_AUTOVDIRS
    out.write(f"{vdirs_name} := {vdirs}\n")