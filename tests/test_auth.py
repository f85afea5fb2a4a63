"""
Tests for user registration, login and bearer-token checks.
"""
import pytest
import sys
import os
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from itsdangerous import BadSignature
from app import create_user, authenticate_user, issue_token, verify_token
from conftest import TEST_PASSWORD


class TestUserCreation:
    """Tests for create_user."""

    def test_create_user_success(self, store):
        ok, msg, user = create_user('Alice', 'alice@example.com', 'pass1234', store=store)
        assert ok is True
        assert 'registered' in msg.lower()
        assert user['role'] == 'spectator'
        assert store.find_one('users', email='alice@example.com')

    def test_password_is_hashed(self, store):
        _, _, user = create_user('Alice', 'alice@example.com', 'pass1234', store=store)
        assert user['password'] != 'pass1234'

    def test_email_is_lowercased(self, store):
        _, _, user = create_user('Alice', '  Alice@Example.COM ', 'pass1234', store=store)
        assert user['email'] == 'alice@example.com'

    def test_short_password(self, store):
        ok, msg, user = create_user('Alice', 'alice@example.com', 'abc', store=store)
        assert ok is False
        assert user is None
        assert '6' in msg

    @pytest.mark.parametrize('email', ['alice', 'alice@example', 'al ice@example.com', '@example.com'])
    def test_invalid_email(self, store, email):
        ok, msg, _ = create_user('Alice', email, 'pass1234', store=store)
        assert ok is False
        assert msg == 'Invalid email format'

    def test_invalid_role(self, store):
        ok, msg, _ = create_user('Alice', 'alice@example.com', 'pass1234', 'referee', store=store)
        assert ok is False
        assert msg == 'Invalid role'

    def test_duplicate_email(self, store):
        create_user('Alice', 'alice@example.com', 'pass1234', store=store)
        ok, msg, _ = create_user('Other Alice', 'ALICE@example.com', 'otherpass', store=store)
        assert ok is False
        assert 'already exists' in msg
        assert store.count('users') == 1


class TestAuthentication:
    """Tests for authenticate_user and tokens."""

    def test_correct_password(self, store, make_user):
        make_user('alice@example.com')
        user = authenticate_user('Alice@Example.com', TEST_PASSWORD, store=store)
        assert user['email'] == 'alice@example.com'

    def test_wrong_password(self, store, make_user):
        make_user('alice@example.com')
        assert authenticate_user('alice@example.com', 'wrong', store=store) is None

    def test_unknown_user(self, store):
        assert authenticate_user('nobody@example.com', TEST_PASSWORD, store=store) is None

    def test_token_round_trip(self, make_user):
        user = make_user('manager@football.com', 'management')
        claims = verify_token(issue_token(user))
        assert claims == {'userId': user['_id'], 'email': 'manager@football.com', 'role': 'management'}

    def test_tampered_token(self, make_user):
        token = issue_token(make_user('fan@football.com'))
        with pytest.raises(BadSignature):
            verify_token(token.rsplit('.', 1)[0] + '.' + 'A' * 27)


class TestAuthRoutes:
    """Tests for /api/auth endpoints."""

    def test_register(self, client, store):
        response = client.post('/api/auth/register', json={
            'name': 'Alice', 'email': 'alice@example.com', 'password': 'pass1234', 'role': 'captain',
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['success'] is True
        assert data['user']['role'] == 'captain'
        assert data['userId'] == data['user']['_id']
        assert 'password' not in data['user']

    def test_register_missing_fields(self, client):
        response = client.post('/api/auth/register', json={'email': 'alice@example.com'})
        assert response.status_code == 400
        details = response.get_json()['details']
        assert details['name'] == 'Name is required'
        assert details['email'] is None
        assert details['password'] == 'Password is required'

    def test_register_duplicate(self, client, make_user):
        make_user('alice@example.com')
        response = client.post('/api/auth/register', json={
            'name': 'Alice', 'email': 'alice@example.com', 'password': 'pass1234',
        })
        assert response.status_code == 400
        assert 'already exists' in response.get_json()['error']

    def test_login(self, client, make_user):
        user = make_user('alice@example.com', 'captain', team_id='t1')
        response = client.post('/api/auth/login', json={'email': 'alice@example.com', 'password': TEST_PASSWORD})
        assert response.status_code == 200
        data = response.get_json()
        assert data['user'] == {
            'id': user['_id'], 'name': 'alice', 'email': 'alice@example.com', 'role': 'captain', 'teamId': 't1',
        }
        assert verify_token(data['token'])['userId'] == user['_id']

    def test_login_bad_credentials(self, client, make_user):
        make_user('alice@example.com')
        response = client.post('/api/auth/login', json={'email': 'alice@example.com', 'password': 'nope'})
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Invalid credentials'

    def test_me(self, client, make_user, make_team, headers_for, store):
        team = make_team('Alpha FC')
        user = make_user('captain@team1.com', 'captain', team_id=team['_id'])
        response = client.get('/api/auth/me', headers=headers_for(user))
        assert response.status_code == 200
        data = response.get_json()
        assert data['id'] == user['_id']
        assert data['team']['name'] == 'Alpha FC'
        assert 'password' not in data

    def test_missing_token(self, client):
        response = client.get('/api/auth/me')
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Access token required'

    def test_invalid_token(self, client):
        response = client.get('/api/auth/me', headers={'Authorization': 'Bearer not-a-token'})
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Invalid token'

    def test_expired_token(self, client, make_user, headers_for):
        headers = headers_for(make_user('fan@football.com'))
        with patch('app.TOKEN_MAX_AGE_SECONDS', -1):
            response = client.get('/api/auth/me', headers=headers)
        assert response.status_code == 403
