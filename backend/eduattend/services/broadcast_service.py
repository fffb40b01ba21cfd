# backend/eduattend/services/broadcast_service.py
"""Realtime broadcast channel for session and attendance events.

Events fan out over Socket.IO rooms. Every subscription filter maps to one
room; subscribing a connected client joins it to the filter's room, and a
publish emits the event to the room of every routing key it carries. There is
no backlog: a client that subscribes after an event fired never sees it and
must read current state directly.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from flask_socketio import join_room, leave_room

logger = logging.getLogger(__name__)

NAMESPACE = '/live'

class EventType(Enum):
    """Broadcast event types."""
    SESSION_OPENED = 'session_opened'
    SESSION_CLOSED = 'session_closed'
    ATTENDANCE_LOGGED = 'attendance_logged'

@dataclass(frozen=True)
class AudienceFilter:
    """Students of one department and level."""
    department: str
    level: str

    @property
    def room(self) -> str:
        return f'audience:{self.department}:{self.level}'

@dataclass(frozen=True)
class IssuerFilter:
    """Every open tab of one HOC."""
    issuer_id: int

    @property
    def room(self) -> str:
        return f'issuer:{self.issuer_id}'

@dataclass(frozen=True)
class SessionFilter:
    """Report viewers of one session."""
    session_id: int

    @property
    def room(self) -> str:
        return f'session:{self.session_id}'

@dataclass(frozen=True)
class BroadcastEvent:
    """A session or attendance state change, addressed by its routing keys."""
    type: EventType
    payload: Dict[str, Any]
    department: Optional[str] = None
    level: Optional[str] = None
    session_id: Optional[int] = None
    issuer_id: Optional[int] = None
    created_at: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def rooms(self) -> List[str]:
        """Rooms of every filter this event matches."""
        rooms = []
        if self.department and self.level:
            rooms.append(AudienceFilter(self.department, self.level).room)
        if self.issuer_id is not None:
            rooms.append(IssuerFilter(self.issuer_id).room)
        if self.session_id is not None:
            rooms.append(SessionFilter(self.session_id).room)
        return rooms

    @classmethod
    def session_opened(cls, session) -> 'BroadcastEvent':
        return cls(
            type=EventType.SESSION_OPENED,
            payload=session.to_public_dict(),
            department=session.department,
            level=session.level,
            session_id=session.id,
            issuer_id=session.issuer_id
        )

    @classmethod
    def session_closed(cls, session) -> 'BroadcastEvent':
        return cls(
            type=EventType.SESSION_CLOSED,
            payload=session.to_public_dict(),
            department=session.department,
            level=session.level,
            session_id=session.id,
            issuer_id=session.issuer_id
        )

    @classmethod
    def attendance_logged(cls, log) -> 'BroadcastEvent':
        # Report viewers only; audience subscribers never see student rows.
        return cls(
            type=EventType.ATTENDANCE_LOGGED,
            payload=log.to_dict(),
            session_id=log.session_id
        )

class Subscription:
    """Membership of one connected client in one filter's room."""

    def __init__(self, channel: 'BroadcastChannel', sid: str, event_filter):
        self.sid = sid
        self.filter = event_filter
        self._channel = channel
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Leave the room. Safe to call twice or after the client disconnected."""
        if self._closed:
            return
        self._closed = True
        self._channel.leave(self.sid, self.filter)

    def __enter__(self) -> 'Subscription':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'<Subscription {self.sid} {self.filter.room}>'

class BroadcastChannel:
    """Publish/subscribe over Flask-SocketIO rooms, registered as a Flask extension."""

    def __init__(self, app=None, socketio=None):
        self.socketio = socketio
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app, socketio)

    def init_app(self, app, socketio) -> None:
        self.socketio = socketio
        app.extensions['broadcast'] = self

    def subscribe(self, sid: str, event_filter) -> Subscription:
        """Route events matching ``event_filter`` to the connected client ``sid``."""
        join_room(event_filter.room, sid=sid, namespace=NAMESPACE)
        logger.debug("Subscribed %s to %s", sid, event_filter.room)
        return Subscription(self, sid, event_filter)

    def leave(self, sid: str, event_filter) -> None:
        leave_room(event_filter.room, sid=sid, namespace=NAMESPACE)
        logger.debug("Unsubscribed %s from %s", sid, event_filter.room)

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.close()

    def publish(self, event: BroadcastEvent) -> None:
        """Emit once to the union of matching rooms. Never raises to the publisher."""
        rooms = event.rooms()
        if not rooms:
            return

        # Holding the lock keeps ordering identical for all subscribers.
        with self._lock:
            try:
                self.socketio.emit(event.type.value, event.payload, to=rooms, namespace=NAMESPACE)
            except Exception:
                logger.exception("Broadcast of %s to %s failed", event.type.value, rooms)

        logger.debug("Published %s for session %s", event.type.value, event.session_id)

    def subscriber_count(self, event_filter=None) -> int:
        """Connected clients in a filter's room, or in the namespace when no filter is given."""
        if self.socketio is None or self.socketio.server is None:
            return 0
        room = event_filter.room if event_filter is not None else None
        return len(list(self.socketio.server.manager.get_participants(NAMESPACE, room)))
