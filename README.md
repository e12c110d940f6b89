# autofpga

Generators that turn a merged design description of an FPGA project into
the support files a project needs around its Verilog. The description is a
nested table of keys such as `REGS.N`, `SIM.TICK` or `RTL.MAKE.FILES`.

- `regdefs.h` and `regdefs.cpp`: register address definitions and the
  table of user names for each register (`autofpga.regdefs`).
- `main_tb.cpp`: the `MAINTB` simulation class that ticks each clock and
  pastes in the simulation code of the components attached to it
  (`autofpga.sim`).
- `rtl.make.inc`: a make fragment listing the RTL file groups and their
  directories (`autofpga.rtlmake`).

## Installation

    pip install .

## The design table

A design is an ordinary `dict`. Top-level keys that hold a `dict` are the
components; plain strings and integers are tags. The helpers in
`autofpga.model` read and write dotted keys:

- `lookup(table, key)` returns the value under a key such as `SIM.CLOCK`,
  or `None`.
- `get_string`, `get_int` and `get_map` return the value only if it has that
  kind (`get_int` also accepts integer literals held in strings, such as
  `"0x400"`).
- `set_value(table, key, value)` stores a value, creating the intermediate
  tables.
- `submaps(table)` yields `(name, sub_table)` for every component, in sorted
  key order. Every generator visits components in that order.

Peripherals with resolved base addresses are given as `Peripheral(name,
phash, regbase)`, and clocks as `Clock(name, wire, interval_ps, simclass)`.
`RegInfo`, `BusMaster` and `PeripheralData` are plain records for register,
bus-master and peripheral descriptions.

## Register definitions

Each peripheral declares `REGS.N` registers as `REGS.0`, `REGS.1`, ...;
each is a string `"<offset> <DEFNAME> [user names...]"`, with the word
offset written in C notation (`0x` hex, leading `0` octal).
`parse_register` turns one string into a `RegInfo`, and the address written
for a register is `(offset << 2) + regbase`.

```python
import io

from autofpga.model import Peripheral
from autofpga.regdefs import build_regdefs_cpp, build_regdefs_h

master = {
    "gpio": {"PREFIX": "gpio", "REGS": {"N": 1, "0": "0 R_GPIO GPIO GPI"}},
}
peripherals = [Peripheral(name="gpio", phash=master["gpio"], regbase=0x400)]

def is_peripheral(table):
    return "REGS" in table

header = io.StringIO()
build_regdefs_h(master, header, peripherals, is_peripheral,
                notice="// Generated file\n")

table = io.StringIO()
build_regdefs_cpp(master, table, peripherals, is_peripheral)
```

Components for which `is_peripheral` is false are treated as bus masters:
their `REGDEFS.H.INCLUDE`, `REGDEFS.H.DEFNS`, `REGDEFS.H.INSERT` and
`REGDEFS.CPP.INSERT` text is written before that of the peripherals, and
the top-level value of each tag comes last.

## Simulation driver

`autofpga.sim.build_main_tb_cpp(master, out, clocks, notice)` writes the
`MAINTB` class. For every clock it writes a `sim_<name>_tick()` method from
the `SIM.TICK`, `SIM.DBGCONDITION` and `SIM.DEBUG` tags of the components
whose `SIM.CLOCK` (or single `CLOCK.NAME`) is that clock, a
`tick_<name>()` method, and a `load()` method from the `SIM.LOAD` tags of
components with `REGBASE`, `NADDR` and a `SLAVE.BUS` with a `WIDTH`. It
raises `ValueError` if `clocks` is empty. `same_clock`, `tb_tick`,
`tb_dbg_condition`, `tb_debug` and `write_tag` are available on their own;
the `tb_*` functions write nothing when given `None` as the stream and only
report whether any code applies.

## RTL make fragment

`autofpga.rtlmake.build_rtl_make_inc(master, out, notice)` writes one make
variable per component `RTL.MAKE.GROUP`, prefixed by its `RTL.MAKE.SUBD`
when given, then the top-level group (`VFLIST` unless the design names
another) and the `-y` directory list (`AUTOVDIRS` unless `RTL.MAKE.VDIRS`
names another). A component that lists `RTL.MAKE.FILES` without a group is
given a random `MKGRP...` group name, which is stored back into its table.

## What this package does not do

- It does not read design files: the table must already be built and
  merged, with peripheral base addresses and clocks resolved by the caller.
- It does not generate the `testb.h` test-bench wrapper, nor Verilog.
- It has no command-line program; the generators are called from Python and
  write to any text stream the caller supplies.
- Diagnostics go through the standard `logging` module.

## Tests

    pip install .[test]
    pytest