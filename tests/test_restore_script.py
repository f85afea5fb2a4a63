"""
Tests for scripts/restore.py - replace collections from a JSON backup.
"""
import pytest
import sys
import os
import json
from unittest.mock import patch

# Add scripts directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'scripts'))

import backup
import restore


@pytest.fixture
def backup_file(tmp_path):
    """Write a backup JSON file and return its path."""
    def _backup_file(data, name='backup.json'):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding='utf-8')
        return str(path)
    return _backup_file


SAMPLE = {
    'teams': [{'_id': 'a' * 32, 'name': 'Restored FC', 'captainId': None}],
    'players': [],
    'matches': [{
        '_id': 'b' * 32,
        'homeTeamId': 'a' * 32,
        'awayTeamId': 'c' * 32,
        'events': [
            {'id': 'e1', 'type': 'goal', 'minute': 3, 'team': 'a' * 32, 'teamId': 'a' * 32,
             'teamName': 'Restored FC'},
        ],
    }],
}


class TestLoadBackup:
    """Tests for reading and validating backup files."""

    def test_valid_file(self, backup_file):
        assert restore.load_backup(backup_file(SAMPLE)) == SAMPLE

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            restore.load_backup(str(tmp_path / 'missing.json'))
        assert exc_info.value.code == 1
        assert 'Backup file not found' in capsys.readouterr().err

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{"teams": [', encoding='utf-8')
        with pytest.raises(SystemExit) as exc_info:
            restore.load_backup(str(path))
        assert exc_info.value.code == 1

    def test_unknown_collection(self, backup_file, capsys):
        with pytest.raises(SystemExit):
            restore.load_backup(backup_file({'referees': []}))
        assert 'Unknown collections' in capsys.readouterr().err


class TestMain:
    """Tests for the command-line entry point."""

    def test_force_restores(self, store, backup_file):
        store.insert('teams', {'name': 'Old Team'})
        store.insert('players', {'name': 'Kept Player', 'teamId': 'x'})

        assert restore.main([backup_file(SAMPLE), '--data-dir', store.data_dir, '--force']) == 0

        assert [t['name'] for t in store.all('teams')] == ['Restored FC']
        # Empty collections in the backup leave stored data alone
        assert [p['name'] for p in store.all('players')] == ['Kept Player']
        assert store.all('matches') == SAMPLE['matches']

    def test_confirmation_accepted(self, store, backup_file):
        with patch('builtins.input', return_value='RESTORE'):
            assert restore.main([backup_file(SAMPLE), '--data-dir', store.data_dir]) == 0
        assert store.count('teams') == 1

    def test_confirmation_declined(self, store, backup_file, capsys):
        store.insert('teams', {'name': 'Old Team'})
        with patch('builtins.input', return_value='no'):
            assert restore.main([backup_file(SAMPLE), '--data-dir', store.data_dir]) == 0
        assert [t['name'] for t in store.all('teams')] == ['Old Team']
        assert 'Restore cancelled' in capsys.readouterr().out

    def test_missing_file_exits_1(self, store, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            restore.main([str(tmp_path / 'missing.json'), '--data-dir', store.data_dir, '--force'])
        assert exc_info.value.code == 1


class TestRoundTrip:
    """Backup then restore reproduces the stored documents."""

    def test_round_trip_keeps_event_attribution(self, store, match, two_teams, tmp_path):
        home, _ = two_teams
        store.update('matches', match['_id'], {'events': [
            {'id': 'e1', 'type': 'goal', 'minute': 9, 'team': home['_id'], 'teamId': home['_id'],
             'teamName': 'Alpha FC'},
            {'id': 'e2', 'type': 'red_card', 'minute': 80, 'team': home['_id'], 'teamId': home['_id'],
             'teamName': 'Unknown Team'},
        ]})
        before = store.dump()

        output = tmp_path / 'backup.json'
        assert backup.main(['--data-dir', store.data_dir, '--output', str(output)]) == 0
        for name in ('teams', 'matches'):
            store.replace_all(name, [])

        assert restore.main([str(output), '--data-dir', store.data_dir, '--force']) == 0
        after = store.dump()
        assert after['teams'] == before['teams']
        assert after['matches'] == before['matches']
