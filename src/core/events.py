"""
Match event attribution.

Works out which team an event (goal, card, substitution) belongs to when the
event itself does not say. Attribution is best-effort metadata: lookups that
fail fall back to the next rule instead of raising.
"""
import logging

logger = logging.getLogger(__name__)

UNKNOWN_TEAM = 'Unknown Team'
HOME_TEAM = 'Home Team'


def _triple(team_id, team_name) -> dict:
    return {'team': team_id, 'teamId': team_id, 'teamName': team_name}


def _team_from_player(store, player_id):
    try:
        player = store.find_player(player_id)
        if not player:
            return None
        return store.find_team(player.get('teamId'))
    except Exception as e:
        logger.warning(f'Could not determine team from player {player_id}: {e}')
        return None


def attribute(event: dict, match: dict, store) -> dict:
    """Return the ``{team, teamId, teamName}`` triple for ``event``.

    Resolution order: fields already on the event, then the acting
    player's team, then the match's home team.
    """
    if event.get('team') or event.get('teamId'):
        return {
            'team': event.get('team') or event.get('teamId'),
            'teamId': event.get('teamId') or event.get('team'),
            'teamName': event.get('teamName') or UNKNOWN_TEAM,
        }

    if event.get('playerId'):
        team = _team_from_player(store, event['playerId'])
        if team:
            return _triple(str(team['_id']), team.get('name'))

    home_id = str(match.get('homeTeamId'))
    try:
        home = store.find_team(home_id)
    except Exception as e:
        logger.warning(f'Could not load home team {home_id}: {e}')
        home = None
    return _triple(home_id, home.get('name') if home else HOME_TEAM)


def attribute_events(events: list, match: dict, store) -> list:
    """Re-attribute a full replacement event list."""
    return [{**event, **attribute(event, match, store)} for event in events]


def fix_legacy_events(store) -> tuple:
    """Backfill un-attributed events with the match's home team.

    Every event with neither ``team`` nor ``teamId`` is tagged with the home
    team id and the name "Unknown Team". No player lookup is attempted.
    Matches are saved one at a time, so an interrupted run can simply be
    repeated. Returns ``(updated_matches, updated_events)``.
    """
    updated_matches = 0
    updated_events = 0

    for match in store.all('matches'):
        events = match.get('events') or []
        if not events:
            continue
        home_id = str(match.get('homeTeamId'))
        fixed = []
        changed = 0
        for event in events:
            if event.get('team') or event.get('teamId'):
                fixed.append(event)
                continue
            fixed.append({**event, **_triple(home_id, UNKNOWN_TEAM)})
            changed += 1

        if changed:
            store.save_match({**match, 'events': fixed})
            updated_matches += 1
            updated_events += changed
            logger.info(f"Fixed {changed} events in match {match['_id']}")

    logger.info(f'Legacy event fix complete: {updated_events} events across {updated_matches} matches')
    return updated_matches, updated_events
