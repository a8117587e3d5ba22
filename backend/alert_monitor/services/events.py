"""Domain events for event_bus (NewAlert)."""
from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class NewAlert:
    """Emitted once per alert accepted into the store (after persistence)."""
    alert: Dict[str, Any]
    name: str = "newAlert"

    def to_message(self) -> Dict[str, Any]:
        return {"event": self.name, "data": self.alert}


__all__ = [
    "NewAlert",
]
