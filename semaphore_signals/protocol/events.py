"""
Events emitted by the signal protocol.

The log is append-only. Events raised during a call are held back until the
call commits, so an aborted call never shows up here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple, Type, TypeVar, Union


@dataclass(frozen=True)
class GroupCreated:
    group_id: int
    depth: int
    admin: str


@dataclass(frozen=True)
class MemberAdded:
    group_id: int
    index: int
    identity_commitment: int
    root: int


@dataclass(frozen=True)
class Signal:
    group_id: int
    root: int
    nullifier: int
    message: int
    scope: int


Event = Union[GroupCreated, MemberAdded, Signal]
Subscriber = Callable[[Event], None]
E = TypeVar("E", GroupCreated, MemberAdded, Signal)


class EventLog:
    """Append-only event log with synchronous subscribers."""

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._subscribers: List[Subscriber] = []

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    def of_type(self, event_type: Type[E]) -> List[E]:
        return [event for event in self._events if isinstance(event, event_type)]

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def publish(self, events: Sequence[Event]) -> None:
        for event in events:
            self._events.append(event)
            for callback in self._subscribers:
                callback(event)

    def __len__(self) -> int:
        return len(self._events)
