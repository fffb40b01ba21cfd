"""Test the verification engine."""
import os
import pytest
from eduattend.models.attendance_log import AttendanceLog
from eduattend.services.broadcast_service import SessionFilter
from eduattend.services.code_service import CodeGenerator
from eduattend.services.session_service import SessionService
from eduattend.services.signature_service import PNG_HEADER, SignatureService
from eduattend.services.verification_service import VerificationService
from eduattend.utils.errors import (
    AlreadySigned, InvalidCode, PermissionDenied, SessionClosed, SignatureMissing, ValidationError
)

PNG_BYTES = PNG_HEADER + b'signature-strokes'

@pytest.fixture
def live_session(hoc, monkeypatch):
    monkeypatch.setattr(CodeGenerator, 'generate', lambda self: 'K7M2XQ')
    return SessionService.open_session(hoc, 'CSC402', 'Dr. Okafor')

def log_count(session_id, student_id=None):
    query = AttendanceLog.query.filter_by(session_id=session_id)
    if student_id is not None:
        query = query.filter_by(student_id=student_id)
    return query.count()

def test_lowercase_code_then_duplicate_submission(live_session, student):
    """Case-insensitive match signs once; a repeat is AlreadySigned."""
    log = VerificationService.sign_attendance(student, 'k7m2xq', session_id=live_session.id)

    assert log.session_id == live_session.id
    assert log.student_id == student.id
    assert log.signature_ref == 'stored_sig.png'
    assert log_count(live_session.id) == 1

    with pytest.raises(AlreadySigned):
        VerificationService.sign_attendance(student, 'K7M2XQ', session_id=live_session.id)

    assert log_count(live_session.id, student.id) == 1

def test_repeated_submissions_yield_one_row(live_session, student):
    outcomes = []
    for _ in range(5):
        try:
            VerificationService.sign_attendance(student, 'K7M2XQ', session_id=live_session.id)
            outcomes.append('signed')
        except AlreadySigned:
            outcomes.append('duplicate')

    assert outcomes == ['signed'] + ['duplicate'] * 4
    assert log_count(live_session.id, student.id) == 1

def test_log_copies_student_details(live_session, student):
    log = VerificationService.sign_attendance(student, 'K7M2XQ', session_id=live_session.id)

    assert log.student_name == 'Bola Student'
    assert log.matric_number == '2021/ENG/10042'
    assert log.department == 'Computer Engineering'
    assert log.level == '300 Level'

def test_wrong_code_is_invalid(live_session, student):
    with pytest.raises(InvalidCode):
        VerificationService.sign_attendance(student, 'ZZZZZZ', session_id=live_session.id)
    with pytest.raises(InvalidCode):
        VerificationService.sign_attendance(student, '', session_id=live_session.id)
    with pytest.raises(InvalidCode):
        VerificationService.sign_attendance(student, 'K7M2XQ', session_id=9999)

    assert log_count(live_session.id) == 0

def test_other_audience_cannot_sign(live_session, make_profile):
    outsider = make_profile('2021/ENG/20077', level='200 Level')

    with pytest.raises(InvalidCode):
        VerificationService.sign_attendance(outsider, 'K7M2XQ', session_id=live_session.id)
    with pytest.raises(InvalidCode):
        VerificationService.sign_attendance(outsider, 'K7M2XQ')

def test_notified_student_after_close_gets_session_closed(live_session, hoc, student):
    """The advertised session closed between notification and submission."""
    SessionService.close_session(live_session.id, hoc)

    with pytest.raises(SessionClosed):
        VerificationService.sign_attendance(student, 'k7m2xq', session_id=live_session.id)

    assert log_count(live_session.id) == 0

def test_code_lookup_without_session_id(live_session, hoc, student):
    log = VerificationService.sign_attendance(student, 'k7m2xq')
    assert log.session_id == live_session.id

def test_code_lookup_of_closed_session_is_invalid(live_session, hoc, student):
    SessionService.close_session(live_session.id, hoc)

    with pytest.raises(InvalidCode):
        VerificationService.sign_attendance(student, 'K7M2XQ')

def test_missing_signature_writes_nothing(live_session, make_profile):
    unsigned = make_profile('2021/ENG/10050', signature_ref=None)

    with pytest.raises(SignatureMissing) as excinfo:
        VerificationService.sign_attendance(unsigned, 'K7M2XQ', session_id=live_session.id)

    assert excinfo.value.session_id == live_session.id
    assert log_count(live_session.id) == 0

def test_hoc_cannot_sign(live_session, hoc):
    with pytest.raises(PermissionDenied):
        VerificationService.sign_attendance(hoc, 'K7M2XQ', session_id=live_session.id)

def test_captured_signature_flow(live_session, make_profile):
    unsigned = make_profile('2021/ENG/10050', signature_ref=None)

    log = VerificationService.sign_with_captured_signature(
        unsigned, 'k7m2xq', PNG_BYTES, session_id=live_session.id, remember=True
    )

    assert log.signature_ref
    assert os.path.isfile(SignatureService.path_for(log.signature_ref))
    assert unsigned.signature_ref == log.signature_ref

    with pytest.raises(AlreadySigned):
        VerificationService.sign_attendance(unsigned, 'K7M2XQ', session_id=live_session.id)

def test_captured_signature_rejected_code_stores_nothing(live_session, make_profile, app):
    unsigned = make_profile('2021/ENG/10050', signature_ref=None)
    folder = app.config['SIGNATURE_FOLDER']
    before = set(os.listdir(folder)) if os.path.isdir(folder) else set()

    with pytest.raises(InvalidCode):
        VerificationService.sign_with_captured_signature(
            unsigned, 'WRONG1', PNG_BYTES, session_id=live_session.id
        )

    after = set(os.listdir(folder)) if os.path.isdir(folder) else set()
    assert after == before

def test_captured_signature_must_be_png(live_session, make_profile):
    unsigned = make_profile('2021/ENG/10050', signature_ref=None)

    with pytest.raises(ValidationError):
        VerificationService.sign_with_captured_signature(
            unsigned, 'K7M2XQ', b'GIF89a', session_id=live_session.id
        )
    assert log_count(live_session.id) == 0

def test_committed_log_is_relayed_to_report_viewers(live_session, student, hoc, channel,
                                                    live_client, live_sid, received):
    """The log insert itself reaches subscribers of that session."""
    viewer = live_client(hoc)
    channel.subscribe(live_sid(viewer), SessionFilter(live_session.id))

    VerificationService.sign_attendance(student, 'K7M2XQ', session_id=live_session.id)
    with pytest.raises(AlreadySigned):
        VerificationService.sign_attendance(student, 'K7M2XQ', session_id=live_session.id)

    events = received(viewer)
    assert [name for name, payload in events] == ['attendance_logged']
    assert events[0][1]['matric_number'] == '2021/ENG/10042'

def test_repeated_capture_keeps_one_file_and_the_first_signature(live_session, make_profile, app):
    """Retries after signing store nothing new and never repoint the profile."""
    unsigned = make_profile('2021/ENG/10050', signature_ref=None)
    folder = app.config['SIGNATURE_FOLDER']

    log = VerificationService.sign_with_captured_signature(
        unsigned, 'K7M2XQ', PNG_BYTES, session_id=live_session.id, remember=True
    )
    files = set(os.listdir(folder))
    assert unsigned.signature_ref == log.signature_ref

    for _ in range(3):
        with pytest.raises(AlreadySigned):
            VerificationService.sign_with_captured_signature(
                unsigned, 'K7M2XQ', PNG_BYTES, session_id=live_session.id, remember=True
            )

    assert set(os.listdir(folder)) == files
    assert unsigned.signature_ref == log.signature_ref
    assert log_count(live_session.id, unsigned.id) == 1

def test_failed_capture_removes_stored_image_and_forgets_nothing(live_session, make_profile, app, monkeypatch):
    """A signing failure after the image was stored leaves no file and no profile change."""
    unsigned = make_profile('2021/ENG/10050', signature_ref=None)
    folder = app.config['SIGNATURE_FOLDER']
    os.makedirs(folder, exist_ok=True)
    before = set(os.listdir(folder))

    def closed_meanwhile(*args, **kwargs):
        raise SessionClosed()

    monkeypatch.setattr(VerificationService, 'sign_attendance', staticmethod(closed_meanwhile))

    with pytest.raises(SessionClosed):
        VerificationService.sign_with_captured_signature(
            unsigned, 'K7M2XQ', PNG_BYTES, session_id=live_session.id, remember=True
        )

    assert set(os.listdir(folder)) == before
    assert unsigned.signature_ref is None
    assert log_count(live_session.id) == 0

def test_logs_are_immutable(live_session, student):
    from eduattend import db

    log = VerificationService.sign_attendance(student, 'K7M2XQ', session_id=live_session.id)
    log.student_name = 'Someone Else'

    with pytest.raises(ValueError):
        db.session.commit()
    db.session.rollback()
