"""CLI argument parsing and handling."""

from __future__ import annotations

from sugar.cli.parsing import normalize_argv, parse_port_parameter, parse_text_parameter

__all__ = [
    "normalize_argv",
    "parse_port_parameter",
    "parse_text_parameter",
]
