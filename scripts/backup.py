#!/usr/bin/env python3
"""
Football Tournament Backup Tool

Dumps every collection in the data directory into one timestamped JSON file
keyed by collection name.

Usage:
    python scripts/backup.py
    python scripts/backup.py --data-dir /path/to/data
    python scripts/backup.py --output /path/to/backup.json

Exit codes:
    0: Success
    1: Data directory missing or backup write failure
"""
import argparse
import json
import os
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.store import DocumentStore, COLLECTIONS

REPO_DIR = Path(__file__).parent.parent
DEFAULT_DATA_DIR = os.environ.get('FOOTBALL_DATA_DIR', str(REPO_DIR / 'data'))


def collect_backup(store: DocumentStore) -> dict:
    """Read every collection; missing ones dump as empty lists."""
    backup_data = {}
    for name in COLLECTIONS:
        docs = store.all(name)
        backup_data[name] = docs
        if docs:
            print(f"✅ Backed up {name}: {len(docs)} documents")
        else:
            print(f"⚠️  Collection {name} is empty, writing []")
    return backup_data


def default_output_path() -> str:
    """backups/backup-<timestamp>.json next to the repository root."""
    timestamp = datetime.now().isoformat().replace(':', '-').replace('.', '-')
    backups_dir = REPO_DIR / 'backups'
    backups_dir.mkdir(exist_ok=True)
    return str(backups_dir / f'backup-{timestamp}.json')


def write_backup(backup_data: dict, output_path: str) -> bool:
    """Write the dump as indented JSON."""
    try:
        os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(backup_data, f, indent=2, ensure_ascii=False, default=str)
    except OSError as e:
        print(f"❌ Error writing backup: {e}", file=sys.stderr)
        return False
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Backup all tournament collections to a JSON file'
    )
    parser.add_argument(
        '--data-dir',
        default=DEFAULT_DATA_DIR,
        help='Data directory holding the collection files (default: $FOOTBALL_DATA_DIR or ./data)'
    )
    parser.add_argument(
        '--output',
        help='Output JSON path (default: backups/backup-<timestamp>.json)'
    )

    args = parser.parse_args(argv)

    if not os.path.isdir(args.data_dir):
        print(f"❌ Data directory not found: {args.data_dir}", file=sys.stderr)
        return 1

    print("💾 Creating database backup...")
    backup_data = collect_backup(DocumentStore(args.data_dir))

    output_path = args.output or default_output_path()
    if not write_backup(backup_data, output_path):
        return 1

    print("🎉 Backup completed successfully!")
    print(f"📁 Backup saved to: {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
