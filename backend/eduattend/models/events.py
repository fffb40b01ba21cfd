# backend/eduattend/models/events.py
"""Broadcast events released only when the database transaction commits."""
from sqlalchemy import event
from sqlalchemy.orm import Session
from eduattend import broadcast

PENDING_EVENTS_KEY = 'pending_broadcast_events'

def queue_broadcast(session, broadcast_event) -> None:
    """Hold an event on the session until its transaction commits."""
    if session is not None:
        session.info.setdefault(PENDING_EVENTS_KEY, []).append(broadcast_event)

@event.listens_for(Session, 'after_commit')
def _publish_committed_changes(session):
    pending = session.info.pop(PENDING_EVENTS_KEY, None)
    if not pending:
        return

    # Commit order is publish order.
    for broadcast_event in pending:
        broadcast.publish(broadcast_event)

@event.listens_for(Session, 'after_rollback')
def _discard_rolled_back_changes(session):
    session.info.pop(PENDING_EVENTS_KEY, None)
