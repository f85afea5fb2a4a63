"""
Squad composition rules: starter vs. substitute placement and squad caps.
"""
import logging
from .models import Player, MAX_STARTERS, MAX_SUBSTITUTES, MAX_PLAYERS

logger = logging.getLogger(__name__)


class RosterError(Exception):
    """Base class for errors raised while adding players to a team."""
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class RosterFull(RosterError):
    pass


class DuplicateJersey(RosterError):
    def __init__(self, jersey_number, holder_name):
        super().__init__(f'Jersey number {jersey_number} is already taken by {holder_name}')
        self.jersey_number = jersey_number
        self.holder_name = holder_name


class InvalidJerseyNumber(RosterError):
    pass


class TeamNotFound(RosterError):
    status_code = 404

    def __init__(self, team_id):
        super().__init__('Team not found')
        self.team_id = team_id


class PlayerNotFound(RosterError):
    status_code = 404

    def __init__(self, player_id):
        super().__init__('Player not found')
        self.player_id = player_id


def parse_jersey_number(value) -> int:
    """Coerce a jersey number to int, enforcing the 1-99 range."""
    if isinstance(value, bool):
        raise InvalidJerseyNumber('Jersey number must be between 1 and 99')
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidJerseyNumber('Jersey number must be between 1 and 99')
    if not number.is_integer() or number < 1 or number > 99:
        raise InvalidJerseyNumber('Jersey number must be between 1 and 99')
    return int(number)


def assign(starters: int, substitutes: int) -> bool:
    """Decide whether the next player joins as a substitute.

    Placement depends only on the current squad counts; any substitute
    flag supplied by the caller is not consulted.
    """
    if starters + substitutes >= MAX_PLAYERS:
        raise RosterFull(f'Team already has maximum players ({MAX_PLAYERS})')
    if starters < MAX_STARTERS:
        return False
    if substitutes < MAX_SUBSTITUTES:
        return True
    raise RosterFull(
        f'Team already has maximum substitutes ({MAX_SUBSTITUTES}). Cannot add more players.'
    )


def add_player(store, team_id, name, position, jersey_number, photo='') -> dict:
    """Validate, place and persist a new player on ``team_id``.

    The read-check-insert sequence runs under the team's lock, so two
    concurrent creations cannot both claim the last free slot.
    """
    jersey = parse_jersey_number(jersey_number)
    team_id = str(team_id)
    if not store.find_team(team_id):
        raise TeamNotFound(team_id)

    with store.team_lock(team_id):
        team = store.find_team(team_id)
        if not team:
            raise TeamNotFound(team_id)

        holder = store.find_one('players', teamId=team_id, jerseyNumber=jersey)
        if holder:
            raise DuplicateJersey(jersey, holder.get('name'))

        starters = store.count_players(team_id, is_substitute=False)
        substitutes = store.count_players(team_id, is_substitute=True)
        is_substitute = assign(starters, substitutes)

        player = Player(name.strip(), position, jersey, team_id, is_substitute, photo or '')
        saved = store.insert('players', player.to_dict())

    logger.info(
        f"Player {saved['name']} (#{jersey}) added to {team.get('name')} as "
        f"{'substitute' if is_substitute else 'starter'} "
        f"({starters}/{MAX_STARTERS} starters, {substitutes}/{MAX_SUBSTITUTES} subs before)"
    )
    return saved
