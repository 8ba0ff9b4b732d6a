from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ExcuseStatus


@dataclass(frozen=True)
class ExcuseRequest:
    request_id: int
    user_id: int
    event_id: int
    reason: str
    status: ExcuseStatus
    attempt_count: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
