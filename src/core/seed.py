"""
Default data for a fresh data directory.
"""
import logging
from werkzeug.security import generate_password_hash
from .models import User, Team, Player, Tournament

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = 'password'

DEFAULT_TOURNAMENT = Tournament(
    name='Football League Championship',
    start_date='2024-01-06',
    end_date='2024-01-28',
    current_week=1,
    status='ongoing',
)

# (name, position, jersey, is_substitute)
ALPHA_SQUAD = [
    ('John Doe', 'Goalkeeper', 1, False),
    ('Mike Smith', 'Defender', 2, False),
    ('David Johnson', 'Midfielder', 10, False),
    ('Alex Brown', 'Forward', 9, False),
    ('Chris Wilson', 'Defender', 3, False),
    ('Tom Davis', 'Midfielder', 8, False),
    ('Sam Miller', 'Forward', 11, False),
    ('Jake Taylor', 'Midfielder', 12, True),
    ('Ryan Clark', 'Defender', 13, True),
    ('Luke Anderson', 'Forward', 14, True),
]


def initialize_data(store):
    """Create the default tournament, users, team and squad when missing."""
    if store.count('tournaments') == 0:
        store.insert('tournaments', DEFAULT_TOURNAMENT.to_dict())
        logger.info('Default tournament created')

    if store.count('users') > 0:
        return

    password_hash = generate_password_hash(DEFAULT_PASSWORD)
    manager, captain, fan = store.insert_many('users', [
        User('Tournament Manager', 'manager@football.com', password_hash, 'management').to_dict(),
        User('Team Captain Alpha', 'captain@team1.com', password_hash, 'captain').to_dict(),
        User('Football Fan', 'fan@football.com', password_hash, 'spectator').to_dict(),
    ])
    logger.info('Default users created')

    alpha = store.insert('teams', Team('Alpha FC', captain_id=captain['_id']).to_dict())
    store.update('users', captain['_id'], {'teamId': alpha['_id']})

    store.insert_many('players', [
        Player(name, position, jersey, alpha['_id'], is_substitute).to_dict()
        for name, position, jersey, is_substitute in ALPHA_SQUAD
    ])
    logger.info('Alpha FC created with 7 starters and 3 substitutes')
