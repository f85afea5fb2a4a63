#!/usr/bin/env python3
"""
Restore Football Tournament data from a JSON backup.

Usage:
    python scripts/restore.py backups/backup-2026-01-01T10-00-00.json
    python scripts/restore.py backup.json --data-dir /path/to/data --force

Every collection in the backup that has documents replaces the stored
collection entirely. Collections with no documents are left untouched.

Exit codes:
    0: Success (or cancelled at the prompt)
    1: Backup file missing or invalid
"""

import argparse
import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.store import DocumentStore, validate_dump, restore_dump

DEFAULT_DATA_DIR = os.environ.get(
    'FOOTBALL_DATA_DIR', os.path.join(os.path.dirname(__file__), '..', 'data')
)


def error(message: str, code: int = 1):
    """Print error and exit."""
    print(f"❌ ERROR: {message}", file=sys.stderr)
    sys.exit(code)


def load_backup(backup_file: str) -> dict:
    """Read and validate a backup file."""
    if not os.path.exists(backup_file):
        error(f"Backup file not found: {backup_file}")

    print(f"📖 Reading backup from: {backup_file}")
    try:
        with open(backup_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        error(f"Backup file is not valid JSON: {e}")

    try:
        validate_dump(data)
    except ValueError as e:
        error(f"Invalid backup: {e}")
    return data


def restore_backup(store: DocumentStore, data: dict) -> dict:
    """Replace collections and report what happened to each."""
    restored = restore_dump(store, data)
    for name, count in restored.items():
        if count is None:
            print(f"⚠️  No data to restore for {name}")
        else:
            print(f"✅ Restored {name}: {count} documents")
    return restored


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Restore tournament collections from a JSON backup',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/restore.py backups/backup.json
  python scripts/restore.py backups/backup.json --data-dir ./data --force

Exit codes:
  0: Success
  1: Backup file missing or invalid
        """
    )

    parser.add_argument('backup_file', help='Path to backup JSON file')
    parser.add_argument('--data-dir', default=DEFAULT_DATA_DIR,
                        help='Data directory to restore into')
    parser.add_argument('--force', action='store_true',
                        help='Skip confirmation prompt')

    args = parser.parse_args(argv)

    print("🔄 Restoring database from backup...\n")
    data = load_backup(args.backup_file)

    if not args.force:
        print("\n⚠️  WARNING: This will replace stored collections with the backup contents.")
        print(f"   Target: {os.path.abspath(args.data_dir)}")
        response = input("\nType 'RESTORE' to continue: ")
        if response != 'RESTORE':
            print("Restore cancelled.")
            return 0

    restore_backup(DocumentStore(args.data_dir), data)
    print("🎉 Database restored successfully!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
