from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class StatusUpdate(enum.Enum):
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    RESOLVED_IN_NEXT_RELEASE = "resolvedInNextRelease"
    ARCHIVED_UNTIL_ESCALATING = "archivedUntilEscalating"
    ARCHIVED_FOREVER = "archivedForever"

    @classmethod
    def parse(cls, value: str) -> "StatusUpdate":
        """Accept the wire form ("resolvedInNextRelease") or the member name."""
        for member in cls:
            if value == member.value or value.upper() == member.name:
                return member
        raise ValueError(f"unknown status update: {value!r}")


@dataclass(frozen=True)
class UpdatePayload:
    status: str
    substatus: Optional[str] = None
    status_details: Dict[str, bool] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": self.status}
        if self.substatus is not None:
            out["substatus"] = self.substatus
        out["statusDetails"] = dict(self.status_details)
        return out


# (status, substatus, statusDetails) – feste Tabelle, nicht erweiterbar
_PAYLOADS = {
    StatusUpdate.UNRESOLVED: ("unresolved", None, {}),
    StatusUpdate.RESOLVED: ("resolved", None, {}),
    StatusUpdate.RESOLVED_IN_NEXT_RELEASE: ("resolved", None, {"inNextRelease": True}),
    StatusUpdate.ARCHIVED_UNTIL_ESCALATING: ("ignored", "archived_until_escalating", {}),
    StatusUpdate.ARCHIVED_FOREVER: ("ignored", "archived_forever", {}),
}


def encode(update: StatusUpdate) -> UpdatePayload:
    status, substatus, details = _PAYLOADS[update]
    return UpdatePayload(status=status, substatus=substatus, status_details=dict(details))


def status_label(status: str, substatus: Optional[str] = None) -> str:
    """Human label, e.g. "resolved" or "ignored (archived forever)"."""
    if substatus:
        return f"{status} ({substatus.replace('_', ' ')})"
    return status
