"""Fake prompt, key probe and ssh launcher for testing."""

from __future__ import annotations

from collections.abc import Iterable

from sugar.core.errors import ProbeError
from sugar.core.models import ConnectionPlan, ScannedKey


class ScriptedPrompt:
    """Numeric prompt answering from a script of raw operator inputs.

    Out-of-range and non-numeric answers are skipped, the way the console
    prompt asks again.
    """

    def __init__(self, answers: Iterable[str]) -> None:
        self.answers = list(answers)
        self.asked = 0

    def prompt_integer(self, prompt: str, valid: range) -> int:
        while self.answers:
            self.asked += 1
            answer = self.answers.pop(0)
            try:
                value = int(answer)
            except ValueError:
                continue
            if value in valid:
                return value
        raise AssertionError("prompt ran out of scripted answers")


class FakeKeyProbe:
    """Key probe returning canned keys and counting scans."""

    def __init__(self, keys: list[ScannedKey] | None = None, unreachable: bool = False) -> None:
        self.keys = list(keys or [])
        self.unreachable = unreachable
        self.scans: list[tuple[str, tuple[str, ...], float]] = []

    def scan(self, host: str, key_types: tuple[str, ...], timeout: float) -> list[ScannedKey]:
        self.scans.append((host, key_types, timeout))
        if self.unreachable:
            raise ProbeError(f"{host}:22 unreachable")
        return list(self.keys)


class FakeLauncher:
    """ssh launcher that records plans instead of spawning a process."""

    def __init__(self, returncode: int = 0) -> None:
        self.returncode = returncode
        self.launched: list[ConnectionPlan] = []

    def launch(self, plan: ConnectionPlan) -> int:
        self.launched.append(plan)
        return self.returncode
