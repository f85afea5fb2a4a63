"""
YAML-file document store.

Each collection lives in ``<data_dir>/<collection>.yaml`` as a list of
documents. Every document has a string ``_id`` plus ``createdAt`` and
``updatedAt`` timestamps. Writes happen under a store-wide FileLock so
separate processes (the web app and the backup scripts) never interleave
partial files.
"""
import os
import uuid
import logging
from datetime import datetime
import yaml
from filelock import FileLock

logger = logging.getLogger(__name__)

COLLECTIONS = ('users', 'teams', 'players', 'matches', 'tournaments')
LOCK_TIMEOUT = 10


def new_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now().isoformat()


class CorruptCollection(Exception):
    pass


def _matches(doc: dict, filters: dict) -> bool:
    return all(doc.get(key) == value for key, value in filters.items())


class DocumentStore:
    def __init__(self, data_dir, timeout=LOCK_TIMEOUT):
        self.data_dir = data_dir
        self.timeout = timeout
        os.makedirs(data_dir, exist_ok=True)
        self.lock = FileLock(os.path.join(data_dir, '.lock'), timeout=timeout)

    def __repr__(self):
        return f"DocumentStore(data_dir={self.data_dir})"

    def _path(self, collection: str) -> str:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return os.path.join(self.data_dir, f'{collection}.yaml')

    def _load(self, collection: str, strict: bool = False) -> list:
        """Read a collection. With ``strict``, an unreadable file raises
        CorruptCollection instead of reading as empty, so writers never
        overwrite it."""
        path = self._path(collection)
        if not os.path.exists(path):
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            if strict:
                raise CorruptCollection(f'Refusing to write {collection}: {path} is not valid YAML') from e
            logger.warning(f'Failed to parse {path}: {e}')
            return []
        if data is None:
            return []
        if not isinstance(data, list):
            if strict:
                raise CorruptCollection(f'Refusing to write {collection}: {path} does not hold a list')
            logger.warning(f'{path} does not hold a list of documents')
            return []
        return data

    def _save(self, collection: str, docs: list):
        # Readers don't take the lock, so swap the file in whole
        path = self._path(collection)
        tmp_path = f'{path}.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            yaml.dump(docs, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        os.replace(tmp_path, path)

    def team_lock(self, team_id: str) -> FileLock:
        """Lock serializing roster changes for one team."""
        return FileLock(self._team_lock_path(team_id), timeout=self.timeout)

    def _team_lock_path(self, team_id) -> str:
        return os.path.join(self.data_dir, f'.team-{team_id}.lock')

    def remove_team_lock(self, team_id):
        """Delete a deleted team's lock file."""
        try:
            os.remove(self._team_lock_path(team_id))
        except FileNotFoundError:
            pass

    # Generic document operations

    def all(self, collection: str) -> list:
        return self._load(collection)

    def find(self, collection: str, **filters) -> list:
        return [d for d in self._load(collection) if _matches(d, filters)]

    def find_one(self, collection: str, **filters):
        for doc in self._load(collection):
            if _matches(doc, filters):
                return doc
        return None

    def find_by_id(self, collection: str, doc_id):
        if not doc_id:
            return None
        return self.find_one(collection, _id=str(doc_id))

    def count(self, collection: str, **filters) -> int:
        return len(self.find(collection, **filters))

    def insert(self, collection: str, doc: dict) -> dict:
        doc = dict(doc)
        doc.setdefault('_id', new_id())
        now = _now()
        doc.setdefault('createdAt', now)
        doc['updatedAt'] = now
        with self.lock:
            docs = self._load(collection, strict=True)
            docs.append(doc)
            self._save(collection, docs)
        return doc

    def insert_many(self, collection: str, new_docs: list) -> list:
        return [self.insert(collection, doc) for doc in new_docs]

    def update(self, collection: str, doc_id, changes: dict):
        """Merge ``changes`` into a document. Returns the updated document or None."""
        changes = {k: v for k, v in changes.items() if k not in ('_id', 'id', 'createdAt')}
        with self.lock:
            docs = self._load(collection, strict=True)
            for doc in docs:
                if doc.get('_id') == str(doc_id):
                    doc.update(changes)
                    doc['updatedAt'] = _now()
                    self._save(collection, docs)
                    return doc
        return None

    def update_many(self, collection: str, filters: dict, changes: dict) -> int:
        updated = 0
        with self.lock:
            docs = self._load(collection, strict=True)
            for doc in docs:
                if _matches(doc, filters):
                    doc.update(changes)
                    doc['updatedAt'] = _now()
                    updated += 1
            if updated:
                self._save(collection, docs)
        return updated

    def delete(self, collection: str, doc_id):
        """Remove a document by id. Returns the removed document or None."""
        with self.lock:
            docs = self._load(collection, strict=True)
            for i, doc in enumerate(docs):
                if doc.get('_id') == str(doc_id):
                    removed = docs.pop(i)
                    self._save(collection, docs)
                    return removed
        return None

    def delete_many(self, collection: str, **filters) -> int:
        with self.lock:
            docs = self._load(collection, strict=True)
            kept = [d for d in docs if not _matches(d, filters)]
            deleted = len(docs) - len(kept)
            if deleted:
                self._save(collection, kept)
        return deleted

    def replace_all(self, collection: str, docs: list):
        """Delete every document in a collection, then insert ``docs`` verbatim."""
        with self.lock:
            self._save(collection, list(docs))

    def dump(self) -> dict:
        return {collection: self._load(collection) for collection in COLLECTIONS}

    # Lookups used by the roster and event engines

    def find_player(self, player_id):
        return self.find_by_id('players', player_id)

    def find_team(self, team_id):
        return self.find_by_id('teams', team_id)

    def count_players(self, team_id, is_substitute=None) -> int:
        if is_substitute is None:
            return self.count('players', teamId=str(team_id))
        return self.count('players', teamId=str(team_id), isSubstitute=is_substitute)

    def find_match(self, match_id):
        return self.find_by_id('matches', match_id)

    def save_match(self, match: dict) -> dict:
        if match.get('_id') and self.find_match(match['_id']):
            return self.update('matches', match['_id'], match)
        return self.insert('matches', match)


def validate_dump(data):
    """Check that ``data`` looks like a backup: collection name -> list of documents."""
    if not isinstance(data, dict) or not data:
        raise ValueError('Backup must be a JSON object keyed by collection name')
    unknown = [name for name in data if name not in COLLECTIONS]
    if unknown:
        raise ValueError(f"Unknown collections in backup: {', '.join(unknown)}")
    for name, docs in data.items():
        if not isinstance(docs, list) or not all(isinstance(d, dict) for d in docs):
            raise ValueError(f'Collection {name} must be a list of documents')


def restore_dump(store, data: dict) -> dict:
    """Replace each non-empty collection in ``data``; empty ones are left alone.

    Returns ``{collection: restored_count}``, with ``None`` for skipped collections.
    """
    restored = {}
    for name, docs in data.items():
        if not docs:
            logger.warning(f'No data to restore for {name}')
            restored[name] = None
            continue
        store.replace_all(name, docs)
        logger.info(f'Restored {name}: {len(docs)} documents')
        restored[name] = len(docs)
    return restored
