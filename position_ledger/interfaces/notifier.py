"""Outbound channel for health alerts and per-account check logs."""
from typing import Protocol


class Notifier(Protocol):
    """A channel the health monitor reports through.

    ``send_alert`` carries threshold breaches and reports and should reach a
    person; ``send_log`` carries the routine per-account line written on every
    check and is muted unless ``silent`` is False. Both return whether the
    message was delivered.
    """

    async def send_alert(self, message: str, subject: str = "") -> bool: ...

    async def send_log(self, message: str, silent: bool = True) -> bool: ...
