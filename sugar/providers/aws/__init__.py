"""AWS provider: EC2 inventory, tag cache and session resolution."""

from __future__ import annotations

from sugar.providers.aws.compute import EC2Inventory, InstanceTagCache
from sugar.providers.aws.session import resolve_session

__all__ = ["EC2Inventory", "InstanceTagCache", "resolve_session"]
