from sqlalchemy.exc import OperationalError

from mathduels import db
from mathduels.api import scores as scores_api
from mathduels.models import Score, User


def auth_header(token):
    return {'Authorization': f'Bearer {token}'}


def test_api_is_running(client):
    res = client.get('/api/test')
    assert res.status_code == 200
    assert 'running' in res.get_json()['message']


def test_register_returns_token_and_user(client):
    res = client.post('/api/register', json={'email': 'ada@example.com', 'name': 'Ada', 'password': 'secret123'})
    assert res.status_code == 201
    data = res.get_json()
    assert data['token']
    assert data['user']['email'] == 'ada@example.com'
    assert data['user']['name'] == 'Ada'
    assert 'password_hash' not in data['user']


def test_register_validation(client, register):
    res = client.post('/api/register', json={'email': 'ada@example.com', 'name': 'Ada'})
    assert res.status_code == 400
    res = client.post('/api/register', json={'email': 'ada@example.com', 'name': 'Ada', 'password': '123'})
    assert res.status_code == 400
    assert '6' in res.get_json()['error']
    register()
    res = client.post('/api/register', json={'email': 'ada@example.com', 'name': 'Other', 'password': 'secret123'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'User with this email already exists'


def test_login(client, register):
    register()
    res = client.post('/api/login', json={'email': 'ada@example.com', 'password': 'secret123'})
    assert res.status_code == 200
    assert res.get_json()['user']['name'] == 'Ada'

    res = client.post('/api/login', json={'email': 'ada@example.com', 'password': 'wrong-pass'})
    assert res.status_code == 401
    res = client.post('/api/login', json={'email': 'nobody@example.com', 'password': 'secret123'})
    assert res.status_code == 401
    res = client.post('/api/login', json={'email': 'ada@example.com'})
    assert res.status_code == 400


def test_google_signin_creates_user(client):
    payload = {'email': 'g@example.com', 'name': 'Gee', 'googleId': 'g-123', 'picture': 'http://img/g.png'}
    res = client.post('/api/google-signin', json=payload)
    assert res.status_code == 200
    data = res.get_json()
    assert data['user']['picture'] == 'http://img/g.png'
    assert data['token']
    # signing in again reuses the account
    again = client.post('/api/google-signin', json=payload).get_json()
    assert again['user']['id'] == data['user']['id']
    # google-only accounts cannot log in with a password
    res = client.post('/api/login', json={'email': 'g@example.com', 'password': 'anything'})
    assert res.status_code == 401


def test_google_signin_links_password_account(client, register, flask_app):
    _, user = register()
    res = client.post('/api/google-signin', json={
        'email': 'ada@example.com', 'name': 'Ada', 'googleId': 'g-ada', 'picture': 'http://img/ada.png',
    })
    assert res.status_code == 200
    assert res.get_json()['user']['id'] == user['id']
    stored = db.session.get(User, user['id'])
    assert stored.google_id == 'g-ada'
    assert stored.picture == 'http://img/ada.png'


def test_google_signin_requires_identity_fields(client):
    res = client.post('/api/google-signin', json={'email': 'g@example.com', 'name': 'Gee'})
    assert res.status_code == 400


def test_scores_require_token(client):
    res = client.post('/api/scores', json={'score': 10})
    assert res.status_code == 401
    assert res.get_json()['error'] == 'Access token required'
    res = client.post('/api/scores', json={'score': 10}, headers=auth_header('not-a-token'))
    assert res.status_code == 403
    assert res.get_json()['error'] == 'Invalid token'


def test_token_for_deleted_user_is_invalid(client, register):
    token, user = register()
    db.session.delete(db.session.get(User, user['id']))
    db.session.commit()
    res = client.get('/api/profile', headers=auth_header(token))
    assert res.status_code == 403


def test_submit_score(client, register):
    token, user = register()
    res = client.post('/api/scores', json={'score': 27}, headers=auth_header(token))
    assert res.status_code == 201
    row = res.get_json()
    assert row['score'] == 27
    assert row['user_id'] == user['id']
    assert row['game_type'] == 'math_duel'


def test_submit_zero_score(client, register):
    token, _ = register()
    res = client.post('/api/scores', json={'score': 0}, headers=auth_header(token))
    assert res.status_code == 201


def test_submit_score_validation(client, register):
    token, _ = register()
    for bad in ['12', 3.5, True, -1, None]:
        res = client.post('/api/scores', json={'score': bad}, headers=auth_header(token))
        assert res.status_code == 400, bad
    assert Score.query.count() == 0


def test_user_scores_are_private_and_ordered(client, register):
    token, user = register()
    other_token, other = register(email='bob@example.com', name='Bob')
    for value in [5, 40, 12] + list(range(20, 30)):
        client.post('/api/scores', json={'score': value}, headers=auth_header(token))

    res = client.get(f"/api/users/{user['id']}/scores", headers=auth_header(token))
    assert res.status_code == 200
    values = [row['score'] for row in res.get_json()]
    assert len(values) == 10
    assert values[0] == 40
    assert values == sorted(values, reverse=True)

    res = client.get(f"/api/users/{user['id']}/scores", headers=auth_header(other_token))
    assert res.status_code == 403
    res = client.get(f"/api/users/{user['id']}/scores")
    assert res.status_code == 401


def test_leaderboard_is_public_and_aggregated(client, register):
    ada, _ = register()
    bob, _ = register(email='bob@example.com', name='Bob')
    register(email='cy@example.com', name='Cy')  # no games, not listed
    for value in [10, 30]:
        client.post('/api/scores', json={'score': value}, headers=auth_header(ada))
    client.post('/api/scores', json={'score': 25}, headers=auth_header(bob))

    res = client.get('/api/leaderboard')
    assert res.status_code == 200
    board = res.get_json()
    assert [e['name'] for e in board] == ['Ada', 'Bob']
    assert board[0] == {'name': 'Ada', 'picture': None, 'high_score': 30, 'games_played': 2}
    assert board[1]['games_played'] == 1


def test_leaderboard_sort_keys(client, register):
    ada, _ = register()
    bob, _ = register(email='bob@example.com', name='Bob')
    for value in [10, 30, 20]:
        client.post('/api/scores', json={'score': value}, headers=auth_header(ada))
    client.post('/api/scores', json={'score': 25}, headers=auth_header(bob))

    by_games = client.get('/api/leaderboard?sort=games_played').get_json()
    assert [e['name'] for e in by_games] == ['Ada', 'Bob']
    by_average = client.get('/api/leaderboard?sort=average').get_json()
    assert [e['name'] for e in by_average] == ['Bob', 'Ada']
    res = client.get('/api/leaderboard?sort=name')
    assert res.status_code == 400


def test_leaderboard_top_ten(client, register):
    for i in range(12):
        token, _ = register(email=f'p{i}@example.com', name=f'P{i}')
        client.post('/api/scores', json={'score': i + 1}, headers=auth_header(token))
    board = client.get('/api/leaderboard').get_json()
    assert len(board) == 10
    assert board[0]['high_score'] == 12
    assert board[-1]['high_score'] == 3


def test_profile(client, register):
    token, user = register()
    res = client.get('/api/profile', headers=auth_header(token))
    assert res.status_code == 200
    data = res.get_json()
    assert data['id'] == user['id']
    assert data['created_at']


def test_google_signin_trims_email(client):
    first = client.post('/api/google-signin', json={'email': ' g@example.com ', 'name': 'Gee', 'googleId': 'g-1'}).get_json()
    second = client.post('/api/google-signin', json={'email': 'g@example.com', 'name': 'Gee', 'googleId': 'g-1'}).get_json()
    assert first['user']['email'] == 'g@example.com'
    assert second['user']['id'] == first['user']['id']
    assert User.query.count() == 1


def test_database_failure_returns_json_error(client, monkeypatch):
    def _broken(limit=10):
        raise OperationalError('SELECT', {}, Exception('database is down'))

    monkeypatch.setattr(scores_api, 'fetch_leaderboard', _broken)
    res = client.get('/api/leaderboard')
    assert res.status_code == 500
    assert res.get_json() == {'error': 'Internal server error'}


def test_database_failure_leaves_session_usable(client, register, monkeypatch):
    token, user = register()

    def _broken(user_id, limit=10):
        raise OperationalError('SELECT', {}, Exception('database is down'))

    monkeypatch.setattr(scores_api, 'user_scores', _broken)
    res = client.get(f"/api/users/{user['id']}/scores", headers=auth_header(token))
    assert res.status_code == 500
    assert res.get_json()['error'] == 'Internal server error'
    # later requests still work after the rollback
    res = client.get('/api/profile', headers=auth_header(token))
    assert res.status_code == 200


def test_db_reset_command_seeds(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['db-reset'])
    assert result.exit_code == 0, result.output
    assert 'reset and seeded' in result.output
    assert User.query.count() == 3
    assert Score.query.count() == 6
    ada = User.query.filter_by(email='ada@example.com').first()
    assert ada.check_password('password')
