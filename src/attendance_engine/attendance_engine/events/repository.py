from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Event, NewRecurringEvent, RecurringEvent


class EventRepository(Protocol):
    def get_by_id(self, event_id: int) -> Optional[Event]:
        raise NotImplementedError

    def get_recurring(self, recurring_event_id: int) -> Optional[RecurringEvent]:
        raise NotImplementedError

    def create_recurring(self, *, series: NewRecurringEvent, dates: Sequence[date]) -> RecurringEvent:
        """Insert the series and one event per date in a single transaction."""

        raise NotImplementedError

    def delete_recurring(self, *, recurring_event_id: int, future_only: bool, today: date) -> int:
        """Delete a series with its events, attendance records and excuse requests.

        With ``future_only`` the events dated before ``today`` are detached from the
        series and kept. Returns the number of events deleted.
        """

        raise NotImplementedError

    def list_between(
        self,
        *,
        start: date,
        end: date,
        organization_id: Optional[int] = None,
        include_ad_hoc: bool = False,
    ) -> Sequence[Event]:
        raise NotImplementedError

    def list_roster_user_ids(self, *, event: Event) -> Sequence[int]:
        """Athletes expected at the event: MEMBER/CAPTAIN members of its own team and of every
        participating team who joined on or before the event date. Empty when the event has no team."""

        raise NotImplementedError
