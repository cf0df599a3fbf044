"""Local services: ssh client launch, host key probing and terminal prompt."""

from __future__ import annotations

from sugar.services.prompt import ConsolePrompt
from sugar.services.ssh import ParamikoKeyProbe, SSHLauncher

__all__ = ["ConsolePrompt", "ParamikoKeyProbe", "SSHLauncher"]
