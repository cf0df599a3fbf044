"""CLI argument parsing and parameter conversion utilities."""

from __future__ import annotations

from typing import Any

from sugar.constants import MAX_VALID_PORT, MIN_VALID_PORT

COMMANDS = ("ssh", "forward", "dns", "list")
"""Command names understood by the CLI; anything else is a filter for ``ssh``."""

SHORT_FLAGS = {
    "-k": "--key",
    "-i": "--identity",
    "-u": "--user",
    "-v": "--verbose",
    "-o": "--opts",
    "-n": "--interactive",
}
"""Single-letter aliases expanded before the arguments reach Fire."""

SWITCHES = ("--verbose", "--opts", "--interactive")
"""Boolean options. Fire would take the next bare argument as their value."""


def parse_port_parameter(port: str | int) -> int:
    """Parse a port parameter into an integer with validation.

    Parameters
    ----------
    port : str | int
        Port number, as given on the command line

    Returns
    -------
    int
        Port number

    Raises
    ------
    ValueError
        If the value is not numeric or outside valid range (1-65535)
    """
    if isinstance(port, bool):
        raise ValueError(f"Invalid port value: '{port}' is not numeric")

    port_str = str(port).strip()
    try:
        value = int(port_str)
    except ValueError:
        raise ValueError(f"Invalid port value: '{port_str}' is not numeric") from None

    if value < MIN_VALID_PORT or value > MAX_VALID_PORT:
        raise ValueError(
            f"Invalid port value: {value}. Port must be between "
            f"{MIN_VALID_PORT} and {MAX_VALID_PORT}"
        )

    return value


def parse_text_parameter(value: Any) -> str | None:
    """Turn a value Fire parsed as a Python literal back into its text.

    Fire reads ``2024`` as an int and ``web,db`` as a tuple. Names, filters and
    paths are always text.

    Parameters
    ----------
    value : Any
        Value as received from Fire, or None when the option was not given

    Returns
    -------
    str | None
        Text of the value, or None
    """
    if value is None:
        return None

    if isinstance(value, (tuple, list)):
        return ",".join(str(part) for part in value)

    return str(value)


def normalize_argv(argv: list[str]) -> list[str]:
    """Expand short flags, pin switches and insert the implicit ``ssh`` command.

    ``sugar web`` means ``sugar ssh web``. The command is only inserted when
    the first argument is not a known command and at least one argument is
    not a flag, so ``sugar --help`` still reaches Fire untouched.

    Parameters
    ----------
    argv : list[str]
        Arguments without the program name

    Returns
    -------
    list[str]
        Arguments ready for Fire
    """
    args = [SHORT_FLAGS.get(arg, arg) for arg in argv]
    args = [f"{arg}=True" if arg in SWITCHES else arg for arg in args]

    if not args or args[0] in COMMANDS:
        return args

    if all(arg.startswith("-") for arg in args):
        return args

    return ["ssh", *args]


__all__ = [
    "COMMANDS",
    "SHORT_FLAGS",
    "SWITCHES",
    "normalize_argv",
    "parse_port_parameter",
    "parse_text_parameter",
]
