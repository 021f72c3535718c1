[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vswitchctl"
version = "0.1.0"
description = "Build and parse Open vSwitch actions and flows, and run the Open vSwitch tools from Python"
requires-python = ">=3.10"
dependencies = []
keywords = ["openvswitch", "ovs", "openflow", "sdn", "networking", "ovs-ofctl", "ovs-dpctl"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vswitchctl"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
