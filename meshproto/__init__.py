"""Packages, message types and command reassembly for a small tree-shaped mesh protocol."""

__version__ = "0.1.0"
__all__ = ["packet", "messages", "builder"]