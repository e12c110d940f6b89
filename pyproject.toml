[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "autofpga"
version = "0.1.0"
description = "Generators for register definitions, simulation drivers and RTL make fragments of composed FPGA designs"
requires-python = ">=3.10"
dependencies = []
keywords = ["fpga", "verilog", "verilator", "code-generation", "register-map"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
    "Topic :: Scientific/Engineering :: Electronic Design Automation (EDA)",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["autofpga"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
