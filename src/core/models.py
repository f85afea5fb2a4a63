ROLES = ('management', 'captain', 'spectator')
MATCH_STATUSES = ('upcoming', 'live', 'completed')
EVENT_TYPES = ('goal', 'yellow_card', 'red_card', 'substitution')
TOURNAMENT_STATUSES = ('upcoming', 'ongoing', 'completed')

MAX_TEAMS = 8
MAX_STARTERS = 7
MAX_SUBSTITUTES = 3
MAX_PLAYERS = 11


class User:
    def __init__(self, name, email, password_hash, role='spectator', team_id=None):
        self.name = name
        self.email = email
        self.password_hash = password_hash
        self.role = role
        self.team_id = team_id

    def to_dict(self):
        return {
            'name': self.name,
            'email': self.email,
            'password': self.password_hash,
            'role': self.role,
            'teamId': self.team_id,
        }

    def __repr__(self):
        return f"User(email={self.email}, role={self.role})"


class Team:
    def __init__(self, name, logo='', captain_id=None):
        self.name = name
        self.logo = logo
        self.captain_id = captain_id
        self.stats = {
            'matchesPlayed': 0,
            'wins': 0,
            'draws': 0,
            'losses': 0,
            'goalsFor': 0,
            'goalsAgainst': 0,
            'points': 0,
        }

    def to_dict(self):
        return {'name': self.name, 'logo': self.logo, 'captainId': self.captain_id, **self.stats}

    def __repr__(self):
        return f"Team(name={self.name}, captain_id={self.captain_id})"


class Player:
    def __init__(self, name, position, jersey_number, team_id, is_substitute=False, photo=''):
        self.name = name
        self.position = position
        self.jersey_number = jersey_number
        self.team_id = team_id
        self.is_substitute = is_substitute
        self.photo = photo

    def to_dict(self):
        return {
            'name': self.name,
            'position': self.position,
            'jerseyNumber': self.jersey_number,
            'teamId': self.team_id,
            'isSubstitute': self.is_substitute,
            'photo': self.photo,
        }

    def __repr__(self):
        squad = 'substitute' if self.is_substitute else 'starter'
        return f"Player(name={self.name}, jersey={self.jersey_number}, {squad})"


class Event:
    def __init__(self, type, minute=0, player_id=None, player_name=None, description='', id=None):
        if type not in EVENT_TYPES:
            raise ValueError(f"Invalid event type: {type}")
        self.id = id
        self.type = type
        self.minute = minute
        self.player_id = player_id
        self.player_name = player_name
        self.description = description

    @classmethod
    def from_dict(cls, data):
        return cls(
            type=data.get('type'),
            minute=data.get('minute', 0),
            player_id=data.get('playerId'),
            player_name=data.get('playerName'),
            description=data.get('description', ''),
            id=data.get('id'),
        )

    def __repr__(self):
        return f"Event(type={self.type}, minute={self.minute}, player_id={self.player_id})"


class Match:
    def __init__(self, home_team_id, away_team_id, date, time, venue, week, status='upcoming'):
        if status not in MATCH_STATUSES:
            raise ValueError(f"Invalid match status: {status}")
        self.home_team_id = home_team_id
        self.away_team_id = away_team_id
        self.date = date
        self.time = time
        self.venue = venue
        self.week = week
        self.status = status

    def to_dict(self):
        return {
            'homeTeamId': self.home_team_id,
            'awayTeamId': self.away_team_id,
            'date': self.date,
            'time': self.time,
            'venue': self.venue,
            'week': self.week,
            'status': self.status,
            'homeScore': 0,
            'awayScore': 0,
            'minute': 0,
            'events': [],
            'possession': {'home': 50, 'away': 50},
            'shots': {'home': 0, 'away': 0},
            'corners': {'home': 0, 'away': 0},
            'fouls': {'home': 0, 'away': 0},
        }

    def __repr__(self):
        return f"Match(home={self.home_team_id}, away={self.away_team_id}, week={self.week})"


class Tournament:
    def __init__(self, name, start_date, end_date, current_week=1, status='ongoing'):
        self.name = name
        self.start_date = start_date
        self.end_date = end_date
        self.current_week = current_week
        self.status = status

    def to_dict(self):
        return {
            'name': self.name,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'currentWeek': self.current_week,
            'status': self.status,
        }

    def __repr__(self):
        return f"Tournament(name={self.name}, week={self.current_week})"
