import io

from autofpga.model import get_string
from autofpga.rtlmake import build_rtl_make_inc


def _rtl(files=None, group=None, subd=None):
    make = {}
    if files is not None:
        make["FILES"] = files
    if group is not None:
        make["GROUP"] = group
    if subd is not None:
        make["SUBD"] = subd
    return {"RTL": {"MAKE": make}}


def _build(master, notice=None):
    out = io.StringIO()
    build_rtl_make_inc(master, out, notice)
    return out.getvalue()


def test_empty_design_only_vdirs():
    assert _build({}) == "AUTOVDIRS := \n"


def test_notice_written_first():
    text = _build({}, notice="## NOTICE\n")
    assert text.startswith("## NOTICE\n")


def test_group_with_subdirectory():
    master = {"sd": _rtl(files="x.v y.v", group="SD", subd="sdspi")}
    text = _build(master)
    assert "SDD := sdspi\n" in text
    assert "SD  := $(addprefix $(SDD)/,x.v y.v)\n" in text
    assert text.endswith("AUTOVDIRS :=  -y sdspi\n")


def test_subdirectories_are_not_repeated():
    master = {
        "a": _rtl(files="a.v", group="GA", subd="common"),
        "b": _rtl(files="b.v", group="GB", subd="common"),
        "c": _rtl(subd="other"),
    }
    text = _build(master)
    last = text.splitlines()[-1]
    assert last.count("-y common") == 1
    assert last.count("-y other") == 1


def test_repeated_group_referenced_once():
    master = {
        "a": _rtl(files="a.v", group="SHARED"),
        "b": _rtl(files="b.v", group="SHARED"),
    }
    text = _build(master)
    assert text.count("$(SHARED)") == 1


def test_missing_group_gets_temporary_name():
    component = _rtl(files="z.v")
    component["PREFIX"] = "zz"
    master = {"zz": component}
    text = _build(master)
    group = get_string(component, "RTL.MAKE.GROUP")
    assert group.startswith("MKGRP")
    assert f"{group} := z.v\n\n" in text
    assert f"$({group})" in text


def test_master_files_and_custom_names():
    master = {
        "uart": _rtl(files="u.v", group="UART"),
        "RTL": {"MAKE": {"FILES": "main.v top.v", "GROUP": "ALL", "VDIRS": "DIRS"}},
    }
    text = _build(master)
    assert "ALL := main.v top.v //\t\t $(UART)\n" in text
    assert text.endswith("DIRS := \n")


def test_master_files_with_subdirectory():
    master = {
        "uart": _rtl(files="u.v", group="UART"),
        "RTL": {"MAKE": {"FILES": "main.v", "SUBD": "rtl"}},
    }
    text = _build(master)
    assert "VFLISTD := rtl\n" in text
    assert "VFLIST  := $(addprefix $(VFLISTD)/,main.v) \\\t $(UART)\n" in text
    assert text.endswith("AUTOVDIRS :=  -y rtl\n")