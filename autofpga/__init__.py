"""Generators of register definitions, simulation drivers and RTL make fragments for FPGA designs."""

__version__ = "0.1.0"
__all__ = ["model", "regdefs", "sim", "rtlmake"]