"""Test the session controller."""
import pytest
from sqlalchemy.exc import OperationalError
from eduattend import db
from eduattend.models.attendance_session import AttendanceSession
from eduattend.services.broadcast_service import AudienceFilter, IssuerFilter, SessionFilter
from eduattend.services.code_service import CodeGenerator
from eduattend.services.session_service import SessionService
from eduattend.utils.errors import (
    AlreadyActive, AlreadyClosed, CodeExhausted, NotFound, NotOwner, PermissionDenied,
    StorageUnavailable, ValidationError
)

def fixed_codes(monkeypatch, *codes):
    """Make the generator return the given codes in order (last one repeats)."""
    remaining = list(codes)

    def generate(self):
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    monkeypatch.setattr(CodeGenerator, 'generate', generate)

def active_count(issuer_id):
    return AttendanceSession.query.filter_by(issuer_id=issuer_id, is_active=True).count()

def test_open_then_get_active_round_trip(hoc):
    """Opened session is returned with the same fields on reload."""
    session = SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')

    active = SessionService.get_active_session_for(hoc)

    assert active.id == session.id
    assert active.course_code == 'CSC402'
    assert active.level == '300 Level'
    assert active.department == 'Computer Engineering'
    assert active.issuer_name == 'Ada Rep'
    assert active.is_active is True
    assert len(active.session_code) == 6

def test_open_normalizes_course_code(hoc):
    session = SessionService.open_session(hoc, ' csc402 ', 'Dr. Okafor')
    assert session.course_code == 'CSC402'

def test_open_requires_hoc(student):
    with pytest.raises(PermissionDenied):
        SessionService.open_session(student, 'CSC402', 'Dr. Okafor')

def test_open_validates_input(hoc):
    for course_code in ['', '#$%', 'X' * 25, '/CSC402']:
        with pytest.raises(ValidationError):
            SessionService.open_session(hoc, course_code, 'Dr. Okafor')
    with pytest.raises(ValidationError):
        SessionService.open_session(hoc, 'CSC402', '')

def test_open_accepts_combined_and_suffixed_course_codes(hoc):
    session = SessionService.open_session(hoc, 'chm 101/102', 'Dr. Okafor')
    assert session.course_code == 'CHM 101/102'
    SessionService.close_session(session.id, hoc)

    assert SessionService.open_session(hoc, 'GST-111.B', 'Dr. Okafor').course_code == 'GST-111.B'

def test_second_open_fails_while_active(hoc):
    SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')

    with pytest.raises(AlreadyActive):
        SessionService.open_session(hoc, 'CSC404', 'Dr. Okafor')

    assert active_count(hoc.id) == 1

def test_concurrent_open_loses_on_storage_constraint(hoc, monkeypatch):
    """A second tab that passed the pre-check is still stopped by the index."""
    SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')
    monkeypatch.setattr(SessionService, 'get_active_session_for', staticmethod(lambda issuer: None))

    with pytest.raises(AlreadyActive):
        SessionService.open_session(hoc, 'CSC404', 'Dr. Okafor')

    assert active_count(hoc.id) == 1

def test_code_collision_is_retried(hoc, make_profile, monkeypatch):
    """A code held by another active session is regenerated."""
    other = make_profile('2021/ENG/20001', name='Other Rep', level='200 Level', is_hoc=True)
    fixed_codes(monkeypatch, 'AAAAAA')
    SessionService.open_session(other, 'CSC202', 'Dr. Bello')

    fixed_codes(monkeypatch, 'AAAAAA', 'AAAAAA', 'BBBBBB')
    session = SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')

    assert session.session_code == 'BBBBBB'

def test_code_exhausted_after_bounded_attempts(hoc, make_profile, monkeypatch, app):
    other = make_profile('2021/ENG/20001', name='Other Rep', level='200 Level', is_hoc=True)
    fixed_codes(monkeypatch, 'AAAAAA')
    SessionService.open_session(other, 'CSC202', 'Dr. Bello')
    app.config['SESSION_CODE_MAX_ATTEMPTS'] = 3

    with pytest.raises(CodeExhausted):
        SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')

    assert active_count(hoc.id) == 0

def test_closed_code_can_be_reused(hoc, make_profile, monkeypatch):
    """Codes only need to be unique among active sessions."""
    other = make_profile('2021/ENG/20001', name='Other Rep', level='200 Level', is_hoc=True)
    fixed_codes(monkeypatch, 'AAAAAA')
    first = SessionService.open_session(other, 'CSC202', 'Dr. Bello')
    SessionService.close_session(first.id, other)

    session = SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')

    assert session.session_code == 'AAAAAA'

def test_close_session_flow(hoc):
    """First close succeeds; every later close reports AlreadyClosed."""
    session = SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')

    closed = SessionService.close_session(session.id, hoc)
    assert closed.is_active is False
    assert closed.closed_at is not None
    assert SessionService.get_active_session_for(hoc) is None

    for _ in range(2):
        with pytest.raises(AlreadyClosed):
            SessionService.close_session(session.id, hoc)

def test_close_errors(hoc, make_profile):
    session = SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')
    intruder = make_profile('2021/ENG/20001', name='Other Rep', is_hoc=True)

    with pytest.raises(NotFound):
        SessionService.close_session(9999, hoc)
    with pytest.raises(NotOwner):
        SessionService.close_session(session.id, intruder)

    assert SessionService.get_active_session_for(hoc).id == session.id

def test_reopen_after_close_creates_new_session(hoc):
    first = SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')
    SessionService.close_session(first.id, hoc)

    second = SessionService.open_session(hoc, 'CSC404', 'Dr. Okafor')

    assert second.id != first.id
    assert db.session.get(AttendanceSession, first.id).is_active is False

def test_open_and_close_are_broadcast(hoc, student, make_profile, channel, live_client, live_sid, received):
    """Audience and issuer get open then close; report viewers get close."""
    audience = live_client(student)
    other = live_client(make_profile('2021/ENG/20002', level='200 Level'))
    issuer = live_client(hoc)
    viewer = live_client(make_profile('2021/ENG/20003'))
    channel.subscribe(live_sid(audience), AudienceFilter('Computer Engineering', '300 Level'))
    channel.subscribe(live_sid(other), AudienceFilter('Computer Engineering', '200 Level'))
    channel.subscribe(live_sid(issuer), IssuerFilter(hoc.id))

    session = SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')
    channel.subscribe(live_sid(viewer), SessionFilter(session.id))
    SessionService.close_session(session.id, hoc)

    assert [name for name, payload in received(viewer)] == ['session_closed']
    audience_events = received(audience)
    assert [name for name, payload in audience_events] == ['session_opened', 'session_closed']
    assert 'session_code' not in audience_events[0][1]
    assert audience_events[0][1]['course_code'] == 'CSC402'
    assert audience_events[1][1]['is_active'] is False
    assert [name for name, payload in received(issuer)] == ['session_opened', 'session_closed']
    assert received(other) == []

def test_failed_close_publishes_nothing(hoc, channel, live_client, live_sid, received, monkeypatch):
    """Close events are released by the commit, never ahead of it."""
    issuer = live_client(hoc)
    channel.subscribe(live_sid(issuer), IssuerFilter(hoc.id))
    session = SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')
    assert [name for name, payload in received(issuer)] == ['session_opened']

    def broken_commit():
        raise OperationalError('COMMIT', {}, Exception('disk I/O error'))

    monkeypatch.setattr(db.session(), 'commit', broken_commit)
    with pytest.raises(StorageUnavailable):
        SessionService.close_session(session.id, hoc)
    monkeypatch.undo()

    assert received(issuer) == []
    assert SessionService.get_active_session_for(hoc).id == session.id

def test_rejected_open_publishes_nothing(hoc, channel, live_client, live_sid, received):
    issuer = live_client(hoc)
    SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')
    channel.subscribe(live_sid(issuer), IssuerFilter(hoc.id))

    with pytest.raises(AlreadyActive):
        SessionService.open_session(hoc, 'CSC404', 'Dr. Okafor')

    assert received(issuer) == []

def test_find_active_session_for_audience(hoc):
    assert SessionService.find_active_session_for_audience('Computer Engineering', '300 Level') is None

    session = SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')

    found = SessionService.find_active_session_for_audience('Computer Engineering', '300 Level')
    assert found.id == session.id
    assert SessionService.find_active_session_for_audience('Computer Engineering', '200 Level') is None

def test_recent_sessions_lists_closed_newest_first(hoc):
    ids = []
    for course in ['CSC401', 'CSC402', 'CSC403']:
        session = SessionService.open_session(hoc, course, 'Dr. Okafor')
        SessionService.close_session(session.id, hoc)
        ids.append(session.id)
    SessionService.open_session(hoc, 'CSC404', 'Dr. Okafor')

    recent = SessionService.recent_sessions(hoc, limit=2)

    assert [s.id for s in recent] == [ids[2], ids[1]]
