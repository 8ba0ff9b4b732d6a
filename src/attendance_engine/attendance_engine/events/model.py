from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import combine_local
from ..core.enums import RecurrenceFrequency


@dataclass(frozen=True)
class Event:
    """One dated occurrence. Times are wall-clock strings in the organization's zone."""

    event_id: int
    organization_id: int
    title: str
    date: date
    start_time: str
    end_time: str
    recurring_event_id: Optional[int] = None
    team_id: Optional[int] = None
    is_ad_hoc: bool = False
    participating_team_ids: tuple[int, ...] = ()

    @property
    def roster_team_ids(self) -> tuple[int, ...]:
        """The owning team plus any participating teams, without duplicates."""
        ids = [self.team_id] if self.team_id is not None else []
        ids.extend(t for t in self.participating_team_ids if t not in ids)
        return tuple(ids)

    @property
    def starts_at(self) -> datetime:
        return combine_local(self.date, self.start_time)

    @property
    def ends_at(self) -> datetime:
        return combine_local(self.date, self.end_time)


@dataclass(frozen=True)
class RecurringEvent:
    recurring_event_id: int
    organization_id: int
    title: str
    frequency: RecurrenceFrequency
    days_of_week: tuple[int, ...]
    start_date: date
    end_date: date
    start_time: str
    end_time: str
    team_id: Optional[int] = None
    participating_team_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class NewRecurringEvent:
    """Validated input for creating a series; occurrences are generated from it."""

    organization_id: int
    title: str
    frequency: RecurrenceFrequency
    days_of_week: tuple[int, ...]
    start_date: date
    end_date: date
    start_time: str
    end_time: str
    team_id: Optional[int] = None
    participating_team_ids: tuple[int, ...] = ()
