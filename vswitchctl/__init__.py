"""Build and parse Open vSwitch actions and flows, and run the Open vSwitch tools."""

__version__ = "0.1.0"