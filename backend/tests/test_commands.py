"""Test CLI commands and the app health check."""
from eduattend.models.profile import Profile

def test_seed_db_is_idempotent(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['seed-db'])
    assert 'Database seeded: 11 profiles created.' in result.output
    assert Profile.query.filter_by(is_hoc=True).count() == 1

    result = runner.invoke(args=['seed-db'])
    assert 'Database seeded: 0 profiles created.' in result.output
    assert Profile.query.count() == 11

def test_seeded_hoc_can_log_in(app, client):
    app.test_cli_runner().invoke(args=['seed-db'])

    response = client.post('/api/auth/login', json={
        'matric_number': '2021/ENG/10001',
        'password': 'password123'
    })

    assert response.status_code == 200
    assert response.get_json()['data']['user']['is_hoc'] == True

def test_health(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'
    assert 'subscribers' in response.get_json()
