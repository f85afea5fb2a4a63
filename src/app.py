"""
Flask web application for the Football Tournament API.
"""
import os
import re
import hmac
from datetime import datetime
from functools import wraps
from flask import Flask, request, jsonify, g
from itsdangerous import URLSafeTimedSerializer, BadSignature
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash, check_password_hash
from core.models import (ROLES, MATCH_STATUSES, TOURNAMENT_STATUSES, MAX_TEAMS,
                         MAX_STARTERS, MAX_SUBSTITUTES, User, Team, Match, Event)
from core.store import DocumentStore, new_id, validate_dump, restore_dump
from core.roster import RosterError, RosterFull, PlayerNotFound, DuplicateJersey, parse_jersey_number, add_player
from core.events import attribute_events, fix_legacy_events
from core.seed import initialize_data, DEFAULT_TOURNAMENT

app = Flask(__name__)


def _get_or_create_secret_key() -> bytes:
    """Get SECRET_KEY from env, or generate and persist to file."""
    env_key = os.environ.get('SECRET_KEY')
    if env_key:
        return env_key.encode() if isinstance(env_key, str) else env_key
    key_file = os.path.join(DATA_DIR, '.secret_key')
    if os.path.exists(key_file):
        with open(key_file, 'rb') as f:
            return f.read()
    key = os.urandom(24)
    os.makedirs(os.path.dirname(key_file), exist_ok=True)
    with open(key_file, 'wb') as f:
        f.write(key)
    return key


BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('FOOTBALL_DATA_DIR', os.path.join(BASE_DIR, 'data'))
TOKEN_MAX_AGE_SECONDS = int(os.environ.get('TOKEN_MAX_AGE_SECONDS', 24 * 60 * 60))
PORT = int(os.environ.get('PORT', 3000))

app.secret_key = _get_or_create_secret_key()
app.config['MAX_CONTENT_LENGTH'] = 50 * 1024 * 1024  # base64 photos and logos
app.logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
IMAGE_RE = re.compile(r'^data:image/(jpeg|jpg|png|gif|webp);base64,')
# 32-char store ids, or 24-char ids carried over from older dumps
ID_RE = re.compile(r'^[0-9a-fA-F]{24}([0-9a-fA-F]{8})?$')
MIN_PASSWORD_LENGTH = 6

TEAM_FIELDS = ('name', 'logo', 'captainId', 'matchesPlayed', 'wins', 'draws', 'losses',
               'goalsFor', 'goalsAgainst', 'points')
PLAYER_FIELDS = ('name', 'position', 'jerseyNumber', 'isSubstitute', 'photo')
MATCH_FIELDS = ('homeTeamId', 'awayTeamId', 'date', 'time', 'venue', 'week', 'status',
                'homeScore', 'awayScore', 'minute', 'events', 'possession', 'shots',
                'corners', 'fouls')
MATCH_STATS_FIELDS = ('homeScore', 'awayScore', 'minute', 'status', 'possession', 'shots',
                      'corners', 'fouls')
TOURNAMENT_FIELDS = ('name', 'startDate', 'endDate', 'currentWeek', 'status')


def get_store() -> DocumentStore:
    """Return the document store for the current request."""
    if 'store' not in g:
        g.store = DocumentStore(DATA_DIR)
    return g.store


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _is_valid_id(value) -> bool:
    return isinstance(value, str) and bool(ID_RE.match(value))


def _is_valid_image(data) -> bool:
    """Empty is valid; otherwise must be a base64 image data URL."""
    if not data:
        return True
    return isinstance(data, str) and bool(IMAGE_RE.match(data))


def _public(doc: dict) -> dict:
    """Add the ``id`` alias and drop the password hash."""
    out = {k: v for k, v in doc.items() if k != 'password'}
    out['id'] = doc['_id']
    return out


def _team_summary(store, team_id):
    team = store.find_team(team_id) if team_id else None
    return {'id': team['_id'], 'name': team.get('name'), 'logo': team.get('logo', '')} if team else None


def _serialize_team(store, team: dict) -> dict:
    captain = store.find_by_id('users', team.get('captainId'))
    players = store.find('players', teamId=team['_id'])
    return {
        **_public(team),
        'captain': {'id': captain['_id'], 'name': captain.get('name'), 'email': captain.get('email')} if captain else None,
        'players': [_public(p) for p in players],
    }


def _serialize_player(store, player: dict) -> dict:
    return {**_public(player), 'team': _team_summary(store, player.get('teamId'))}


def _serialize_match(store, match: dict) -> dict:
    return {
        **_public(match),
        'homeTeam': _team_summary(store, match.get('homeTeamId')),
        'awayTeam': _team_summary(store, match.get('awayTeamId')),
    }


# Users and authentication

def _token_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(app.secret_key, salt='auth-token')


def issue_token(user: dict) -> str:
    """Sign a bearer token carrying the user's id, email and role."""
    return _token_serializer().dumps({
        'userId': user['_id'],
        'email': user['email'],
        'role': user['role'],
    })


def verify_token(token: str) -> dict:
    """Decode a bearer token. Raises BadSignature (or SignatureExpired)."""
    return _token_serializer().loads(token, max_age=TOKEN_MAX_AGE_SECONDS)


def create_user(name: str, email: str, password: str, role: str = 'spectator', store=None) -> tuple:
    """Create a new user. Returns (success, message, user)."""
    name = name.strip()
    email = email.lower().strip()
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f'Password must be at least {MIN_PASSWORD_LENGTH} characters long', None
    if not EMAIL_RE.match(email):
        return False, 'Invalid email format', None
    if role not in ROLES:
        return False, 'Invalid role', None
    store = store or get_store()
    with store.lock:
        if store.find_one('users', email=email):
            return False, 'User already exists with this email', None
        user = store.insert('users', User(name, email, generate_password_hash(password), role).to_dict())
    return True, 'User registered successfully', user


def authenticate_user(email: str, password: str, store=None):
    """Check email/password. Returns the user document or None."""
    user = (store or get_store()).find_one('users', email=email.lower().strip())
    if user and check_password_hash(user['password'], password):
        return user
    return None


def token_required(f):
    """Reject requests without a valid bearer token; sets g.user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get('Authorization', '')
        token = auth_header[7:] if auth_header.startswith('Bearer ') else ''
        if not token:
            return jsonify({'error': 'Access token required'}), 401
        try:
            g.user = verify_token(token)
        except BadSignature:
            return jsonify({'error': 'Invalid token'}), 403
        return f(*args, **kwargs)
    return decorated_function


def management_required(action: str):
    """Allow only management users; ``action`` completes the 403 message."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if g.user.get('role') != 'management':
                app.logger.warning(f"{g.user.get('email')} ({g.user.get('role')}) tried to {action}")
                return jsonify({'error': f'Only management can {action}'}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def require_backup_key(f):
    """Require valid BACKUP_API_KEY in Authorization header."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected_key = os.environ.get('BACKUP_API_KEY')
        if not expected_key:
            return jsonify({'error': 'Server not configured for backup operations'}), 500

        auth_header = request.headers.get('Authorization', '')
        if not auth_header.startswith('Bearer '):
            return jsonify({'error': 'Missing or invalid Authorization header'}), 401

        provided_key = auth_header[7:]
        if not hmac.compare_digest(expected_key, provided_key):
            return jsonify({'error': 'Invalid API key'}), 401

        return f(*args, **kwargs)
    return decorated_function


@app.before_request
def log_request():
    """Log every request; the body goes to DEBUG with secrets and images masked."""
    app.logger.info(f'{request.method} {request.path}')
    body = request.get_json(silent=True)
    if isinstance(body, dict) and body:
        logged = dict(body)
        if 'password' in logged:
            logged['password'] = '********'
        for key in ('photo', 'logo'):
            if logged.get(key):
                logged[key] = '[IMAGE_DATA]'
        app.logger.debug(f'Request body: {logged}')


@app.errorhandler(RosterError)
def handle_roster_error(e):
    app.logger.warning(f'{type(e).__name__}: {e.message}')
    return jsonify({'error': e.message}), e.status_code


@app.errorhandler(404)
def handle_not_found(e):
    return jsonify({'error': 'Route not found'}), 404


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return jsonify({'error': e.description}), e.code
    app.logger.exception(f'Unhandled error on {request.method} {request.path}')
    return jsonify({'error': 'Internal server error'}), 500


@app.route('/api/health')
def health():
    return jsonify({'status': 'OK', 'message': 'Football Tournament API is running'})


@app.route('/api/auth/register', methods=['POST'])
def register():
    """Register a new user account."""
    data = _json_body()
    name = str(data.get('name') or '').strip()
    email = str(data.get('email') or '').strip()
    password = str(data.get('password') or '')

    if not name or not email or not password:
        app.logger.warning('Registration rejected: missing required fields')
        return jsonify({
            'error': 'Missing required fields',
            'details': {
                'name': None if name else 'Name is required',
                'email': None if email else 'Email is required',
                'password': None if password else 'Password is required',
            },
        }), 400

    ok, msg, user = create_user(name, email, password, data.get('role') or 'spectator')
    if not ok:
        app.logger.warning(f'Registration rejected for {email}: {msg}')
        return jsonify({'error': msg}), 400

    app.logger.info(f"User created: {user['email']} ({user['role']})")
    return jsonify({
        'success': True,
        'message': msg,
        'userId': user['_id'],
        'user': {'_id': user['_id'], 'name': user['name'], 'email': user['email'], 'role': user['role']},
    }), 201


@app.route('/api/auth/login', methods=['POST'])
def login():
    """Exchange email and password for a bearer token."""
    data = _json_body()
    user = authenticate_user(str(data.get('email') or ''), str(data.get('password') or ''))
    if not user:
        return jsonify({'error': 'Invalid credentials'}), 401

    return jsonify({
        'token': issue_token(user),
        'user': {
            'id': user['_id'],
            'name': user['name'],
            'email': user['email'],
            'role': user['role'],
            'teamId': user.get('teamId'),
        },
    })


@app.route('/api/auth/me')
@token_required
def current_user():
    store = get_store()
    user = store.find_by_id('users', g.user['userId'])
    if not user:
        return jsonify({'error': 'User not found'}), 404
    return jsonify({**_public(user), 'team': _team_summary(store, user.get('teamId'))})


# Tournament

@app.route('/api/tournament')
@token_required
def get_tournament():
    """Tournament record plus every team (with players) and match."""
    store = get_store()
    tournament = store.find_one('tournaments')
    teams = [_serialize_team(store, t) for t in store.all('teams')]
    matches = [_serialize_match(store, m) for m in store.all('matches')]
    app.logger.info(f"Tournament data requested by {g.user['role']} ({g.user['email']})")
    return jsonify({
        'tournament': _public(tournament) if tournament else {'id': 'default', **DEFAULT_TOURNAMENT.to_dict()},
        'teams': teams,
        'matches': matches,
    })


@app.route('/api/tournament', methods=['PUT'])
@token_required
@management_required('update the tournament')
def update_tournament():
    data = _json_body()
    changes = {k: data[k] for k in TOURNAMENT_FIELDS if k in data}
    if 'status' in changes and changes['status'] not in TOURNAMENT_STATUSES:
        return jsonify({'error': 'Invalid tournament status'}), 400
    if 'currentWeek' in changes:
        week = changes['currentWeek']
        if not isinstance(week, int) or isinstance(week, bool) or week < 1:
            return jsonify({'error': 'Current week must be a positive integer'}), 400
    if 'name' in changes and not str(changes['name']).strip():
        return jsonify({'error': 'Tournament name is required'}), 400

    store = get_store()
    tournament = store.find_one('tournaments')
    if tournament:
        tournament = store.update('tournaments', tournament['_id'], changes)
    else:
        tournament = store.insert('tournaments', {**DEFAULT_TOURNAMENT.to_dict(), **changes})
    app.logger.info(f"Tournament updated: {tournament['name']}")
    return jsonify(_public(tournament))


# Teams

@app.route('/api/teams', methods=['POST'])
@token_required
@management_required('create teams')
def create_team():
    data = _json_body()
    store = get_store()

    name = str(data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Team name is required'}), 400
    if not _is_valid_image(data.get('logo')):
        return jsonify({'error': 'Invalid image format'}), 400

    captain_id = data.get('captainId')
    if captain_id == 'temp' or not captain_id:
        captain_id = None

    with store.lock:
        team_count = store.count('teams')
        if team_count >= MAX_TEAMS:
            return jsonify({'error': f'Maximum number of teams ({MAX_TEAMS}) has been reached'}), 400
        team = store.insert('teams', Team(name, data.get('logo') or '', captain_id).to_dict())
    app.logger.info(f"Team created: {team['name']} ({team_count + 1}/{MAX_TEAMS} teams)")
    return jsonify(_serialize_team(store, team)), 201


@app.route('/api/teams')
@token_required
def list_teams():
    store = get_store()
    teams = [_serialize_team(store, t) for t in store.all('teams')]
    app.logger.info(f'Teams requested: {len(teams)} teams found')
    return jsonify(teams)


@app.route('/api/teams/<team_id>')
@token_required
def get_team(team_id):
    store = get_store()
    team = store.find_team(team_id)
    if not team:
        return jsonify({'error': 'Team not found'}), 404
    return jsonify(_serialize_team(store, team))


@app.route('/api/teams/<team_id>', methods=['PUT'])
@token_required
@management_required('update teams')
def update_team(team_id):
    data = _json_body()
    changes = {k: data[k] for k in TEAM_FIELDS if k in data}
    if 'name' in changes:
        changes['name'] = str(changes['name'] or '').strip()
        if not changes['name']:
            return jsonify({'error': 'Team name is required'}), 400
    if 'logo' in changes and not _is_valid_image(changes['logo']):
        return jsonify({'error': 'Invalid image format'}), 400
    if changes.get('captainId') == 'temp':
        changes['captainId'] = None

    store = get_store()
    team = store.update('teams', team_id, changes)
    if not team:
        return jsonify({'error': 'Team not found'}), 404
    app.logger.info(f"Team updated: {team['name']}")
    return jsonify(_serialize_team(store, team))


@app.route('/api/teams/<team_id>', methods=['DELETE'])
@token_required
@management_required('delete teams')
def delete_team(team_id):
    """Delete a team, its players, and any user links to it."""
    store = get_store()
    if not store.find_team(team_id):
        return jsonify({'error': 'Team not found'}), 404
    with store.team_lock(team_id):
        team = store.delete('teams', team_id)
        if not team:
            return jsonify({'error': 'Team not found'}), 404
        deleted_players = store.delete_many('players', teamId=team_id)
    store.remove_team_lock(team_id)
    store.update_many('users', {'teamId': team_id}, {'teamId': None})
    app.logger.info(f"Team deleted: {team['name']} ({deleted_players} players removed)")
    return jsonify({'message': 'Team and all associated players deleted successfully'})


@app.route('/api/teams/<team_id>/assign-captain', methods=['POST'])
@token_required
@management_required('assign captains')
def assign_captain(team_id):
    data = _json_body()
    store = get_store()
    captain_email = str(data.get('captainEmail') or '').lower().strip()
    captain = store.find_one('users', email=captain_email, role='captain')
    if not captain:
        return jsonify({'error': 'Captain not found'}), 404

    team = store.update('teams', team_id, {'captainId': captain['_id']})
    if not team:
        return jsonify({'error': 'Team not found'}), 404
    store.update('users', captain['_id'], {'teamId': team['_id']})

    app.logger.info(f"Captain {captain['name']} assigned to team {team['name']}")
    return jsonify({
        'message': 'Captain assigned successfully',
        'team': _serialize_team(store, team),
        'captain': {'id': captain['_id'], 'name': captain['name'], 'email': captain['email']},
    })


# Players

@app.route('/api/players', methods=['POST'])
@token_required
def create_player():
    """Add a player; squad placement (starter/substitute) is computed, not requested."""
    data = _json_body()
    store = get_store()
    team_id = data.get('teamId')
    name = str(data.get('name') or '').strip()
    position = data.get('position')
    jersey_number = data.get('jerseyNumber')
    photo = data.get('photo')

    if not name or not position or jersey_number in (None, '') or not team_id:
        return jsonify({
            'error': 'Missing required fields',
            'details': {
                'name': 'OK' if name else 'Name is required',
                'position': 'OK' if position else 'Position is required',
                'jerseyNumber': 'OK' if jersey_number not in (None, '') else 'Jersey number is required',
                'teamId': 'OK' if team_id else 'Team ID is required',
            },
        }), 400

    if not _is_valid_id(team_id):
        return jsonify({'error': 'Invalid team ID format'}), 400

    jersey = parse_jersey_number(jersey_number)

    if not _is_valid_image(photo):
        return jsonify({'error': 'Invalid photo format. Must be a valid base64 image.'}), 400

    if g.user.get('role') != 'management':
        user = store.find_by_id('users', g.user['userId'])
        if not user or user.get('teamId') != team_id:
            app.logger.warning(f"{g.user['email']} tried to add a player to team {team_id}")
            return jsonify({'error': 'You can only add players to your own team'}), 403

    if 'isSubstitute' in data:
        app.logger.debug('Ignoring client isSubstitute hint; placement is computed from squad counts')

    player = add_player(store, team_id, name, position, jersey, photo)
    return jsonify(_serialize_player(store, player)), 201


@app.route('/api/players')
@token_required
def list_players():
    store = get_store()
    team_id = request.args.get('teamId')
    players = store.find('players', teamId=team_id) if team_id else store.all('players')
    app.logger.info(f'Players requested: {len(players)} players found')
    return jsonify([_serialize_player(store, p) for p in players])


@app.route('/api/players/<player_id>', methods=['PUT'])
@token_required
@management_required('edit players')
def update_player(player_id):
    data = _json_body()
    changes = {k: data[k] for k in PLAYER_FIELDS if k in data}
    store = get_store()

    player = store.find_player(player_id)
    if not player:
        raise PlayerNotFound(player_id)
    team_id = player['teamId']

    if 'name' in changes:
        changes['name'] = str(changes['name'] or '').strip()
        if not changes['name']:
            return jsonify({'error': 'Player name is required'}), 400
    if 'photo' in changes and not _is_valid_image(changes['photo']):
        return jsonify({'error': 'Invalid photo format. Must be a valid base64 image.'}), 400
    if 'isSubstitute' in changes and not isinstance(changes['isSubstitute'], bool):
        return jsonify({'error': 'isSubstitute must be true or false'}), 400

    with store.team_lock(team_id):
        if 'jerseyNumber' in changes:
            changes['jerseyNumber'] = parse_jersey_number(changes['jerseyNumber'])
            holder = store.find_one('players', teamId=team_id, jerseyNumber=changes['jerseyNumber'])
            if holder and holder['_id'] != player['_id']:
                raise DuplicateJersey(changes['jerseyNumber'], holder.get('name'))

        if 'isSubstitute' in changes:
            if changes['isSubstitute'] != player.get('isSubstitute', False):
                if changes['isSubstitute']:
                    if store.count_players(team_id, is_substitute=True) >= MAX_SUBSTITUTES:
                        raise RosterFull(f'Team already has maximum substitutes ({MAX_SUBSTITUTES})')
                elif store.count_players(team_id, is_substitute=False) >= MAX_STARTERS:
                    raise RosterFull(f'Team already has maximum starters ({MAX_STARTERS})')

        player = store.update('players', player_id, changes)

    app.logger.info(f"Player updated: {player['name']} by {g.user['email']}")
    return jsonify(_serialize_player(store, player))


@app.route('/api/players/<player_id>', methods=['DELETE'])
@token_required
@management_required('delete players')
def delete_player(player_id):
    player = get_store().delete('players', player_id)
    if not player:
        raise PlayerNotFound(player_id)
    app.logger.info(f"Player deleted: {player['name']} by {g.user['email']}")
    return jsonify({'message': 'Player deleted successfully'})


# Matches

def _validate_events(events) -> str:
    """Return an error message for a malformed event list, or None."""
    if not isinstance(events, list):
        return 'Events must be a list'
    for event in events:
        if not isinstance(event, dict):
            return 'Each event must be an object'
        try:
            Event.from_dict(event)
        except ValueError as e:
            return str(e)
    return None


def _prepare_events(events: list, match: dict, store) -> list:
    """Give every event an id and recompute its team attribution."""
    with_ids = [{**event, 'id': event.get('id') or new_id()} for event in events]
    return attribute_events(with_ids, match, store)


@app.route('/api/matches', methods=['POST'])
@token_required
@management_required('schedule matches')
def create_match():
    data = _json_body()
    store = get_store()

    required = ('homeTeamId', 'awayTeamId', 'date', 'time', 'venue', 'week')
    missing = [field for field in required if data.get(field) in (None, '')]
    if missing:
        return jsonify({'error': 'Missing required fields', 'details': missing}), 400
    if data['homeTeamId'] == data['awayTeamId']:
        return jsonify({'error': 'A team cannot play against itself'}), 400
    for field in ('homeTeamId', 'awayTeamId'):
        if not store.find_team(data[field]):
            return jsonify({'error': f'Team not found: {data[field]}'}), 404
    status = data.get('status', 'upcoming')
    if status not in MATCH_STATUSES:
        return jsonify({'error': 'Invalid match status'}), 400

    match = Match(data['homeTeamId'], data['awayTeamId'], data['date'], data['time'],
                  data['venue'], data['week'], status).to_dict()
    if 'events' in data:
        error = _validate_events(data['events'])
        if error:
            return jsonify({'error': error}), 400
        match['events'] = _prepare_events(data['events'], match, store)

    match = store.insert('matches', match)
    app.logger.info(f"Match scheduled: {match['homeTeamId']} vs {match['awayTeamId']} (week {match['week']})")
    return jsonify(_serialize_match(store, match)), 201


@app.route('/api/matches')
@token_required
def list_matches():
    store = get_store()
    return jsonify([_serialize_match(store, m) for m in store.all('matches')])


@app.route('/api/matches/<match_id>')
@token_required
def get_match(match_id):
    store = get_store()
    match = store.find_match(match_id)
    if not match:
        return jsonify({'error': 'Match not found'}), 404
    return jsonify(_serialize_match(store, match))


@app.route('/api/matches/<match_id>', methods=['PUT'])
@token_required
@management_required('update matches')
def update_match(match_id):
    """Update a match. A supplied event list replaces the old one and is re-attributed."""
    data = _json_body()
    store = get_store()

    current = store.find_match(match_id)
    if not current:
        return jsonify({'error': 'Match not found'}), 404

    changes = {k: data[k] for k in MATCH_FIELDS if k in data}
    if 'status' in changes and changes['status'] not in MATCH_STATUSES:
        return jsonify({'error': 'Invalid match status'}), 400
    merged = {**current, **changes}
    if merged['homeTeamId'] == merged['awayTeamId']:
        return jsonify({'error': 'A team cannot play against itself'}), 400
    for field in ('homeTeamId', 'awayTeamId'):
        if field in changes and not store.find_team(changes[field]):
            return jsonify({'error': f'Team not found: {changes[field]}'}), 404

    if 'events' in changes:
        error = _validate_events(changes['events'])
        if error:
            return jsonify({'error': error}), 400
        app.logger.info(f"Attributing {len(changes['events'])} events for match {match_id}")
        changes['events'] = _prepare_events(changes['events'], merged, store)

    match = store.update('matches', match_id, changes)
    home = _team_summary(store, match.get('homeTeamId'))
    away = _team_summary(store, match.get('awayTeamId'))
    app.logger.info(f"Match updated: {home['name'] if home else '?'} vs {away['name'] if away else '?'}")
    return jsonify(_serialize_match(store, match))


@app.route('/api/matches/<match_id>/stats', methods=['PUT'])
@token_required
@management_required('update match stats')
def update_match_stats(match_id):
    """Live score/stat updates; nested {home, away} pairs are merged."""
    data = _json_body()
    store = get_store()

    current = store.find_match(match_id)
    if not current:
        return jsonify({'error': 'Match not found'}), 404

    changes = {}
    for key in MATCH_STATS_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, dict) and isinstance(current.get(key), dict):
            value = {**current[key], **value}
        changes[key] = value
    if 'status' in changes and changes['status'] not in MATCH_STATUSES:
        return jsonify({'error': 'Invalid match status'}), 400

    match = store.update('matches', match_id, changes)
    return jsonify(_serialize_match(store, match))


@app.route('/api/matches/fix-events', methods=['POST'])
@token_required
@management_required('run this migration')
def fix_events():
    """Backfill team attribution on legacy events."""
    app.logger.info('Starting event migration to fix team IDs')
    updated_matches, updated_events = fix_legacy_events(get_store())
    message = f'Migration complete: Updated {updated_events} events across {updated_matches} matches'
    app.logger.info(message)
    return jsonify({
        'success': True,
        'message': message,
        'updatedMatches': updated_matches,
        'updatedEvents': updated_events,
    })


# Admin backup and restore

@app.route('/api/admin/export')
@require_backup_key
def api_admin_export():
    """Export every collection as one JSON document keyed by collection name."""
    dump = get_store().dump()
    app.logger.info('Admin export: ' + ', '.join(f'{k}={len(v)}' for k, v in dump.items()))
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    response = jsonify(dump)
    response.headers['Content-Disposition'] = f'attachment; filename=football-backup-{timestamp}.json'
    return response


@app.route('/api/admin/import', methods=['POST'])
@require_backup_key
def api_admin_import():
    """Replace collections with the contents of an uploaded JSON dump."""
    data = request.get_json(silent=True)
    try:
        validate_dump(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    restored = restore_dump(get_store(), data)
    app.logger.info(f'Admin import restored: {restored}')
    return jsonify({'success': True, 'restored': restored})


if __name__ == '__main__':
    initialize_data(DocumentStore(DATA_DIR))
    app.run(debug=True, port=PORT)
