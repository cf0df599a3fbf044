"""Blocking numeric prompt for interactive instance selection."""

from __future__ import annotations

from collections.abc import Callable


class ConsolePrompt:
    """Ask on the terminal until a valid index is typed.

    There is no timeout: the prompt serves a local operator and repeats for
    as long as the answer is not an integer within range.

    Parameters
    ----------
    input_func : Callable[[str], str]
        Line reader (default: builtin input)
    """

    def __init__(self, input_func: Callable[[str], str] = input) -> None:
        self.input_func = input_func

    def prompt_integer(self, prompt: str, valid: range) -> int:
        while True:
            answer = self.input_func(prompt)
            try:
                value = int(answer.strip())
            except ValueError:
                continue
            if value in valid:
                return value
