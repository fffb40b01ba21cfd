"""Shared pytest fixtures."""
import base64
import pytest
from flask_jwt_extended import create_access_token
from eduattend import create_app, db, broadcast, socketio
from eduattend.models.profile import Profile
from eduattend.services.broadcast_service import NAMESPACE
from eduattend.services.signature_service import PNG_HEADER

DEPARTMENT = 'Computer Engineering'
LEVEL = '300 Level'
PASSWORD = 'password123'
PNG_BYTES = PNG_HEADER + b'signature-strokes'

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def channel(app):
    """The application broadcast channel."""
    return broadcast

@pytest.fixture
def live_client(app):
    """Factory for Socket.IO clients connected to /live as a profile; disconnected afterwards."""
    clients = []

    def _connect(profile=None, token=None):
        if token is None and profile is not None:
            token = create_access_token(identity=str(profile.id))
        auth = {'token': token} if token is not None else None
        live = socketio.test_client(app, namespace=NAMESPACE, auth=auth)
        clients.append(live)
        return live

    yield _connect

    for live in clients:
        if live.is_connected(NAMESPACE):
            live.disconnect(namespace=NAMESPACE)

@pytest.fixture
def live_sid(app):
    """Socket id of a test client in the /live namespace."""
    def _sid(live):
        return socketio.server.manager.sid_from_eio_sid(live.eio_sid, NAMESPACE)
    return _sid

@pytest.fixture
def received():
    """Payloads a test client received on /live, optionally only events called ``name``."""
    def _received(live, name=None):
        return [
            (packet['name'], packet['args'][0] if packet['args'] else None)
            for packet in live.get_received(NAMESPACE)
            if name is None or packet['name'] == name
        ]
    return _received

@pytest.fixture
def make_profile(app):
    """Factory for saved profiles."""
    def _make(matric_number, name='Test Student', department=DEPARTMENT, level=LEVEL,
              is_hoc=False, signature_ref='stored_sig.png'):
        profile = Profile(
            matric_number=matric_number,
            name=name,
            department=department,
            level=level,
            is_hoc=is_hoc,
            signature_ref=signature_ref
        )
        profile.set_password(PASSWORD)
        return profile.save()
    return _make

@pytest.fixture
def hoc(make_profile):
    return make_profile('2021/ENG/10001', name='Ada Rep', is_hoc=True, signature_ref=None)

@pytest.fixture
def student(make_profile):
    return make_profile('2021/ENG/10042', name='Bola Student')

@pytest.fixture
def auth_headers(app):
    """Build Authorization headers for a profile."""
    def _headers(profile):
        token = create_access_token(identity=str(profile.id))
        return {'Authorization': f'Bearer {token}'}
    return _headers

@pytest.fixture
def signature_data_url():
    return 'data:image/png;base64,' + base64.b64encode(PNG_BYTES).decode()

@pytest.fixture
def register_payload():
    """Build a registration body, overriding any field."""
    def _payload(**overrides):
        payload = {
            'name': 'New Student',
            'matric_number': '2021/ENG/10099',
            'password': PASSWORD,
            'department': DEPARTMENT,
            'level': LEVEL
        }
        payload.update(overrides)
        return payload
    return _payload
