"""Adapter capability flags."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AdapterCapabilities:
    """What a backend CLI supports. Checked before an operation is attempted."""

    streaming: bool = True
    """Emits JSONL events while running"""

    session_management: bool = True
    """Can resume a previous conversation by id"""

    tool_calling: bool = True
    """Reports tool invocations in its event stream"""

    multi_modal: bool = False
    """Accepts image attachments"""

    def supports(self, capability: str) -> bool:
        return bool(getattr(self, capability, False))
