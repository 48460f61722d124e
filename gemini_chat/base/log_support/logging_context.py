"""Per-call logging context.

``LogContext`` holds the fields every event of one call shares (provider,
model, request id, number of history turns sent). ``to_dict`` flattens
``extra`` into the result and leaves out unset values.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    provider: Optional[str] = "gemini"
    model: Optional[str] = None
    request_id: Optional[str] = None
    history_items: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        merged = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "extra"}
        merged.update(self.extra)
        return {key: value for key, value in merged.items() if value is not None}


__all__ = ["LogContext"]
