import io
import logging

import pytest

from autofpga.model import Clock
from autofpga.sim import (
    build_main_tb_cpp,
    same_clock,
    tb_dbg_condition,
    tb_debug,
    tb_tick,
    write_tag,
)


def _design():
    return {
        "SIM": {"INCLUDE": "#include <top.h>\n"},
        "uart": {
            "SIM": {"CLOCK": "clk", "TICK": "\t\tuart_tick();\n", "INIT": "\t\tuart_init();\n"},
        },
        "flash": {
            "SIM": {"CLOCK": {"NAME": "clk"}, "LOAD": "\t\t\tflash_load();\n"},
            "REGBASE": 0x1000,
            "NADDR": 4,
            "ACCESS": "!FLASH_ACCESS",
            "SLAVE": {"BUS": {"WIDTH": 32}},
        },
    }


def _clk(name="clk"):
    return Clock(name=name, wire="i_" + name, interval_ps=10000)


def test_same_clock_string():
    assert same_clock({"SIM": {"CLOCK": "clk"}}, "clk") is True
    assert same_clock({"SIM": {"CLOCK": "clk"}}, "other") is False


def test_same_clock_map_name():
    assert same_clock({"SIM": {"CLOCK": {"NAME": "clk"}}}, "clk") is True
    assert same_clock({"SIM": {"CLOCK": {"FREQUENCY": 1}}}, "clk") is False


def test_same_clock_clock_name_single_token_only():
    assert same_clock({"CLOCK": {"NAME": " clk\n"}}, "clk") is True
    assert same_clock({"CLOCK": {"NAME": "clk, clk2"}}, "clk") is False
    assert same_clock({}, "clk") is False
    assert same_clock({"SIM": {"CLOCK": "clk"}}, None) is False


def test_tb_tick_without_tags():
    out = io.StringIO()
    assert tb_tick({}, "clk", out) is False
    assert "// No SIM.TICK tags defined" in out.getvalue()
    assert "SIM.CLOCK=clk" in out.getvalue()


def test_tb_tick_from_component():
    out = io.StringIO()
    assert tb_tick(_design(), "clk", out) is True
    text = out.getvalue()
    assert "\t\t// SIM.TICK from uart\n\t\tuart_tick();\n" in text
    assert tb_tick(_design(), "other", None) is False


def test_tb_tick_warns_without_sim_clock(caplog):
    design = {"dev": {"SIM": {"TICK": "x();\n"}}}
    with caplog.at_level(logging.WARNING):
        assert tb_tick(design, "clk", None) is False
    assert "dev defines SIM.TICK, but not SIM.CLOCK" in caplog.text


def test_tb_dbg_condition_always_true():
    out = io.StringIO()
    assert tb_dbg_condition({}, "clk", out) is True
    assert "SIM.DBGCONDITION" in out.getvalue()


def test_tb_debug():
    design = {"dev": {"SIM": {"CLOCK": "clk", "DEBUG": "dbg();\n"}}}
    out = io.StringIO()
    assert tb_debug(design, "clk", out) is True
    assert "//    SIM.DEBUG from dev\ndbg();\n" in out.getvalue()
    empty = io.StringIO()
    assert tb_debug({}, "clk", empty) is False
    assert "// No SIM.DEBUG tags defined" in empty.getvalue()


def test_write_tag_top_then_components():
    out = io.StringIO()
    master = {"SIM": {"DEFNS": "A\n"}, "b": {"SIM": {"DEFNS": "B\n"}}}
    write_tag(out, master, "SIM.DEFNS")
    assert out.getvalue() == "A\nB\n"


def test_build_single_clock():
    out = io.StringIO()
    build_main_tb_cpp(_design(), out, [_clk()], notice="// notice\n")
    text = out.getvalue()
    assert text.startswith("// notice\n")
    assert "class\tMAINTB : public TESTB<Vmain> {" in text
    assert "#include <top.h>\n" in text
    assert "\t\t// From uart\n\t\tuart_init();\n" in text
    assert "\tvirtual\tvoid\tsim_clk_tick(void) {\n" in text
    assert "inline\tvoid\ttick_clk(void) {\ttick();\t}" in text
    assert text.endswith("\n};\n")


def test_build_load_section():
    out = io.StringIO()
    build_main_tb_cpp(_design(), out, [_clk()])
    text = out.getvalue()
    assert "// Loading the flash component" in text
    assert "base  = 0x00001000; // in octets" in text
    assert "#ifdef\tFLASH_ACCESS\n" in text
    assert "#endif\t// FLASH_ACCESS\n" in text
    assert text.count("uint32_t\tstart, offset, wlen, base, adrln;") == 1


def test_build_load_skips_missing_bus(caplog):
    design = _design()
    del design["flash"]["SLAVE"]
    out = io.StringIO()
    with caplog.at_level(logging.ERROR):
        build_main_tb_cpp(design, out, [_clk()])
    assert "Loading the flash component" not in out.getvalue()
    assert "No map found for flash" in caplog.text


def test_build_multiclock():
    out = io.StringIO()
    build_main_tb_cpp(_design(), out, [_clk("clk"), _clk("clk2")])
    text = out.getvalue()
    assert "Clock.size = 2" in text
    assert "\tvirtual\tvoid\ttick_clk2(void) {\n" in text
    assert "} while(!m_clk2.rising_edge());" in text
    assert "inline\tvoid\ttick_" not in text


def test_build_requires_clocks():
    with pytest.raises(ValueError):
        build_main_tb_cpp(_design(), io.StringIO(), [])