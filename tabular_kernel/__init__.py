"""
Tabular Kernel - shared infrastructure for the tabular decoder.

Provides:
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging with per-call context
"""

__version__ = "0.1.0"
