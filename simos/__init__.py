"""Simulator of a small operating system: scheduling, paged memory and system calls."""

__version__ = "0.1.0"