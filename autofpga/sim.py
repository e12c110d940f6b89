"""Generation of main_tb.cpp, the design-specific simulation driver."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, TextIO

from .model import Clock, get_int, get_map, get_string, lookup, submaps

log = logging.getLogger(__name__)

KY_NAME = "NAME"
KY_WIDTH = "WIDTH"
KY_ACCESS = "ACCESS"
KY_REGBASE = "REGBASE"
KY_NADDR = "NADDR"
KY_SLAVE_BUS = "SLAVE.BUS"
KY_CLOCK_NAME = "CLOCK.NAME"
KY_SIM_CLOCK = "SIM.CLOCK"
KY_SIM_TICK = "SIM.TICK"
KY_SIM_DBGCONDITION = "SIM.DBGCONDITION"
KY_SIM_DEBUG = "SIM.DEBUG"
KY_SIM_INCLUDE = "SIM.INCLUDE"
KY_SIM_DEFINES = "SIM.DEFINES"
KY_SIM_DEFNS = "SIM.DEFNS"
KY_SIM_INIT = "SIM.INIT"
KY_SIM_SETRESET = "SIM.SETRESET"
KY_SIM_CLRRESET = "SIM.CLRRESET"
KY_SIM_LOAD = "SIM.LOAD"
KY_SIM_METHODS = "SIM.METHODS"

_DELIMITERS = " \t\n,"


def write_tag(out: TextIO, master: Mapping[str, Any], key: str) -> None:
    """Write the top-level value of ``key`` and then every component's value."""
    top = get_string(master, key)
    if top is not None:
        out.write(top)
    for _, table in submaps(master):
        text = get_string(table, key)
        if text is not None:
            out.write(text)


def same_clock(info: Mapping[str, Any], clock_name: Optional[str]) -> bool:
    """Whether the component ``info`` is simulated on the clock ``clock_name``."""
    if clock_name is None:
        return False
    simclk = lookup(info, KY_SIM_CLOCK)
    if simclk is not None:
        if isinstance(simclk, Mapping):
            simclk = lookup(simclk, KY_NAME)
        return isinstance(simclk, str) and simclk == clock_name

    names = lookup(info, KY_CLOCK_NAME)
    if not isinstance(names, str):
        return False
    tokens = [tok for tok in _split(names) if tok]
    return len(tokens) == 1 and tokens[0] == clock_name


def _split(text: str) -> list[str]:
    for delim in _DELIMITERS[1:]:
        text = text.replace(delim, " ")
    return text.split(" ")


def tb_tick(
    info: Mapping[str, Any], clock_name: Optional[str], out: Optional[TextIO]
) -> bool:
    """Write the SIM.TICK code for ``clock_name``; report whether there was any."""
    key = KY_SIM_TICK
    result = False
    if out is not None:
        if clock_name:
            out.write(
                f"\t\t//\n\t\t// SIM.TICK tags go here for SIM.CLOCK={clock_name}\n\t\t//\n"
            )
        else:
            out.write("\t\t//\n\t\t// SIM.TICK tags go here for the default clock\n\t\t//\n")

    if same_clock(info, clock_name):
        tick = get_string(info, key)
        if tick is not None:
            if out is not None:
                out.write(f"\t\t// {key} from master\n")
                out.write(tick)
            result = True

    for name, table in submaps(info):
        tick = get_string(table, key)
        if tick is None:
            continue
        if lookup(table, KY_SIM_CLOCK) is None:
            log.warning("%s defines SIM.TICK, but not SIM.CLOCK", name)
        if not same_clock(table, clock_name):
            continue
        if out is not None:
            out.write(f"\t\t// {key} from {name}\n")
            out.write(tick)
        result = True

    if out is not None and not result:
        out.write(f"\t\t// No {key} tags defined\n")
    return result


def tb_dbg_condition(
    info: Mapping[str, Any], clock_name: Optional[str], out: Optional[TextIO]
) -> bool:
    """Write the SIM.DBGCONDITION code for ``clock_name``.

    A debug condition is always considered present, so this returns True.
    """
    key = KY_SIM_DBGCONDITION
    if out is not None:
        out.write(
            "\t\t//\n\t\t// SIM.DBGCONDITION\n"
            "\t\t// Set writeout to true here for debug by printf access\n"
            "\t\t// to this routine\n"
            "\t\t//\n"
        )

    if same_clock(info, clock_name):
        tick = get_string(info, key)
        if tick is not None and out is not None:
            out.write(f"\t\t// {key} from master\n")
            out.write(tick)

    for name, table in submaps(info):
        tick = get_string(table, key)
        if tick is None:
            continue
        if get_string(table, KY_SIM_CLOCK) is None:
            log.warning("%s defines SIM.DBGCONDITION, but not SIM.CLOCK", name)
        if not same_clock(table, clock_name):
            continue
        if out is not None:
            out.write(tick)
    return True


def tb_debug(
    info: Mapping[str, Any], clock_name: Optional[str], out: Optional[TextIO]
) -> bool:
    """Write the SIM.DEBUG code for ``clock_name``; report whether there was any."""
    key = KY_SIM_DEBUG
    result = False
    if out is not None:
        out.write(
            "\t\t\t//\n\t\t\t// SIM.DEBUG tags can print here, supporting\n"
            "\t\t\t// any attempts to debug by printf.  Following any\n"
            "\t\t\t// code you place here, a newline will close the\n"
            "\t\t\t// debug section.\n"
            "\t\t\t//\n"
        )
    if same_clock(info, clock_name):
        tick = get_string(info, key)
        if tick is not None:
            if out is not None:
                out.write(f"\t\t\t// {key} from master\n")
                out.write(tick)
            result = True

    for name, table in submaps(info):
        tick = get_string(table, key)
        if tick is None:
            continue
        if get_string(table, KY_SIM_CLOCK) is None:
            log.warning("%s defines SIM.DEBUG, but not SIM.CLOCK", name)
        if not same_clock(table, clock_name):
            continue
        if out is not None:
            out.write(f"\t\t\t//    {key} from {name}\n")
            out.write(tick)
        result = True

    if out is not None and not result:
        out.write(f"\t\t\t// No {key} tags defined\n")
    return result


def _write_clock_ticks(out: TextIO, master: Mapping[str, Any], clocks: list[Clock]) -> None:
    for index, clock in enumerate(clocks):
        name = clock.name
        out.write(f"\n\t// Evaluating clock {name}\n")
        have_debug = tb_debug(master, name, None)
        have_condition = tb_dbg_condition(master, name, None)
        have_sim_tick = tb_tick(master, name, None)
        if not (have_sim_tick or have_condition or have_debug):
            continue

        out.write(
            f"\n\t// sim_{name}_tick() will be called from TESTB<Vmain>::tick()\n"
            f"\t//   following any falling edge of clock {name}\n"
        )
        out.write(f"\tvirtual\tvoid\tsim_{name}_tick(void) {{\n")
        if index == 0:
            out.write("\t\t// Default clock tick\n")
        both = have_debug and have_condition
        if both:
            out.write("\t\tbool\twriteout;\n\n")
        tb_tick(master, name, out)
        if not have_sim_tick:
            out.write("\t\tm_changed = false;\n")
        if both:
            out.write("\t\twriteout = false;\n")
            tb_dbg_condition(master, name, out)
            out.write("\t\tif (writeout) {\n")
            tb_debug(master, name, out)
            out.write("\t\t}\n")
        out.write("\t}\n")

    if len(clocks) > 1:
        for index, clock in enumerate(clocks):
            name = clock.name
            out.write(f"\t//\n\t// Step until clock {name} ticks\n\t//\n")
            out.write(f"\tvirtual\tvoid\ttick_{name}(void) {{\n")
            if index == 0:
                out.write("\t\t// Advance until the default clock ticks\n")
            out.write(
                "\t\tdo {\n"
                "\t\t\ttick();\n"
                f"\t\t}} while(!m_{name}.rising_edge());\n"
            )
            out.write("\t}\n\n")
    else:
        out.write(f"\tinline\tvoid\ttick_{clocks[0].name}(void) {{\ttick();\t}}\n\n")


def _write_load(out: TextIO, master: Mapping[str, Any]) -> None:
    out.write(
        "\t//\n\t// The load function\n"
        "\t//\n"
        "\t// This function is required by designs that need the flash or memory\n"
        "\t// set prior to run time.  The test harness should be able to call\n"
        "\t// this function to load values into any (memory-type) location\n"
        "\t// on the bus.\n"
        "\t//\n"
        "\tbool\tload(uint32_t addr, const char *buf, uint32_t len) {\n"
    )
    preamble_written = False
    for name, dev in submaps(master):
        code = get_string(dev, KY_SIM_LOAD)
        if code is None:
            continue
        base = get_int(dev, KY_REGBASE)
        if base is None:
            continue
        naddr = get_int(dev, KY_NADDR)
        if naddr is None:
            continue
        bus = get_map(dev, KY_SLAVE_BUS)
        if bus is None:
            log.error("No map found for %s", name)
            continue
        width = get_int(bus, KY_WIDTH)
        if width is None:
            log.error("No bus width found for %s", name)
            continue
        access = get_string(dev, KY_ACCESS)

        if not preamble_written:
            out.write("\t\tuint32_t\tstart, offset, wlen, base, adrln;\n\n")
            preamble_written = True

        adrln = naddr * (width // 8)
        out.write(f"\t\t//\n\t\t// Loading the {name} component\n\t\t//\n")
        out.write(
            f"\t\tbase  = 0x{base & 0xFFFFFFFF:08x}; // in octets\n"
            f"\t\tadrln = 0x{adrln & 0xFFFFFFFF:08x};\n\n"
        )
        out.write("\t\tif ((addr >= base)&&(addr < base + adrln)) {\n")
        out.write(f"\t\t\t// If the start access is in {name}\n")
        out.write("\t\t\tstart = (addr > base) ? (addr-base) : 0;\n")
        out.write("\t\t\toffset = (start + base) - addr;\n")
        out.write(
            "\t\t\twlen = (len-offset > adrln - start)\n"
            "\t\t\t\t? (adrln - start) : len - offset;\n"
        )
        guard = None
        if access is not None:
            guard = access[1:] if access.startswith("!") else access
            out.write(f"#ifdef\t{guard}\n")
        out.write(f"\t\t\t// FROM {name}.{KY_SIM_LOAD}\n")
        out.write(code)
        out.write("\t\t\t// AUTOFPGA::Now clean up anything else\n")
        out.write("\t\t\t// Was there more to write than we wrote?\n")
        out.write("\t\t\tif (addr + len > base + adrln)\n")
        out.write("\t\t\t\treturn load(base + adrln, &buf[offset+wlen], len-wlen);\n")
        out.write("\t\t\treturn true;\n")
        if guard is not None:
            out.write(f"#else\t// {guard}\n")
            out.write("\t\t\treturn false;\n")
            out.write(f"#endif\t// {guard}\n")
        out.write(
            "\t\t//\n"
            "\t\t// End of components with a SIM.LOAD tag, and a\n"
            "\t\t// non-zero number of addresses (NADDR)\n"
            "\t\t//\n"
        )
        out.write("\t\t}\n\n")
    out.write("\t\treturn false;\n")
    out.write("\t}\n\n")


def build_main_tb_cpp(
    master: Mapping[str, Any],
    out: TextIO,
    clocks: Iterable[Clock],
    notice: Optional[str] = None,
) -> None:
    """Write main_tb.cpp, the MAINTB simulation class for the design."""
    clocks = list(clocks)
    if not clocks:
        raise ValueError("no clocks defined")
    if notice:
        out.write(notice)

    out.write("//\n// SIM.INCLUDE\n//\n")
    out.write("// Any SIM.INCLUDE tags you define will be pasted here.\n")
    out.write("// This is useful for guaranteeing any include functions\n")
    out.write("// your simulation needs are called.\n//\n")
    write_tag(out, master, KY_SIM_INCLUDE)
    out.write("//\n// SIM.DEFINES\n//\n")
    out.write("// This tag is useful fr pasting in any #define values that\n")
    out.write("// might then control the simulation following.\n//\n")
    write_tag(out, master, KY_SIM_DEFINES)

    out.write("class\tMAINTB : public TESTB<Vmain> {\npublic:\n")
    out.write("\t\t// SIM.DEFNS\n\t\t//\n")
    out.write("\t\t// If you have any simulation components, create a\n")
    out.write("\t\t// SIM.DEFNS tag to have those components defined here\n")
    out.write("\t\t// as part of the main_tb.cpp function.\n")
    write_tag(out, master, KY_SIM_DEFNS)

    out.write("\tMAINTB(void) {\n")
    out.write("\t\t// SIM.INIT\n\t\t//\n")
    out.write("\t\t// If your simulation components need to be initialized,\n")
    out.write("\t\t// create a SIM.INIT tag.  That tag's value will be pasted\n")
    out.write("\t\t// here.\n\t\t//\n")
    init = get_string(master, KY_SIM_INIT)
    if init is not None:
        out.write(f"\t{init}")
    for name, table in submaps(master):
        init = get_string(table, KY_SIM_INIT)
        if init is not None:
            out.write(f"\t\t// From {name}\n{init}")
    out.write("\t}\n\n")

    out.write(
        "\tvoid\treset(void) {\n"
        "\t\t// SIM.SETRESET\n"
        "\t\t// If your simulation component needs logic before the\n"
        "\t\t// tick with reset set, that logic can be placed into\n"
        "\t\t// the SIM.SETRESET tag and thus pasted here.\n"
        "\t\t//\n"
    )
    write_tag(out, master, KY_SIM_SETRESET)
    out.write("\t\tTESTB<Vmain>::reset();\n")
    out.write(
        "\t\t// SIM.CLRRESET\n"
        "\t\t// If your simulation component needs logic following the\n"
        "\t\t// reset tick, that logic can be placed into the\n"
        "\t\t// SIM.CLRRESET tag and thus pasted here.\n"
        "\t\t//\n"
    )
    write_tag(out, master, KY_SIM_CLRRESET)
    out.write("\t}\n")

    out.write(
        "\n"
        "\tvoid\ttrace(const char *vcd_trace_file_name) {\n"
        '\t\tfprintf(stderr, "Opening TRACE(%s)\\n",\n'
        "\t\t\t\tvcd_trace_file_name);\n"
        "\t\topentrace(vcd_trace_file_name);\n"
        "\t\tm_time_ps = 0;\n"
        "\t}\n\n"
    )
    out.write("\tvoid\tclose(void) {\n\t\tm_done = true;\n\t}\n\n")
    out.write("\tvoid\ttick(void) {\n")
    out.write(f"\t\tTESTB<Vmain>::tick(); // Clock.size = {len(clocks)}\n\t}}\n\n")

    _write_clock_ticks(out, master, clocks)
    _write_load(out, master)

    out.write(
        "\t//\n\t// KYSIM.METHODS\n\t//\n"
        "\t// If your simulation code will need to call any of its own function\n"
        "\t// define this tag by those functions (or other sim code), and\n"
        "\t// it will be pasated here.\n"
        "\t//\n"
    )
    write_tag(out, master, KY_SIM_METHODS)
    out.write("\n};\n")