#!/usr/bin/env python3
"""
Import emails for a user from a JSON file.

The file holds a list of email objects (see EmailDocument). Every email is
assigned to the given user; emails with an existing ID are replaced.

Usage:
    python scripts/import_emails.py USER_ID emails.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from src.models.email import EmailDocument
from src.services.email_store import EmailStore
from src.utils.email_query import filter_options

console = Console()


def load_emails(path: Path, user_id: str) -> list[EmailDocument]:
    """Parse the file and assign every email to the user."""
    records = json.loads(path.read_text())
    if not isinstance(records, list):
        raise ValueError("Expected a JSON list of emails")
    return [EmailDocument.model_validate({**record, "user_id": user_id}) for record in records]


async def import_emails(user_id: str, path: Path) -> int:
    """Load the file into the store and print a summary."""
    try:
        emails = load_emails(path, user_id)
    except (OSError, ValueError, ValidationError) as e:
        console.print(f"[red]❌ Could not read {path}: {e}[/red]")
        return 1

    store = EmailStore()
    try:
        count = await store.save_emails(emails)
        total = await store.count_emails(user_id)
    finally:
        await store.disconnect()

    console.print(f"[green]✅ Imported {count} emails[/green] ({total} stored for user {user_id})")

    options = filter_options(emails)
    table = Table(title="Imported values")
    table.add_column("Field", style="cyan")
    table.add_column("Values")
    for field, values in options.items():
        table.add_row(field, ", ".join(values) or "-")
    console.print(table)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Import emails for a user")
    parser.add_argument("user_id", help="Owner of the imported emails")
    parser.add_argument("file", type=Path, help="JSON file with a list of emails")
    args = parser.parse_args()

    return asyncio.run(import_emails(args.user_id, args.file))


if __name__ == "__main__":
    sys.exit(main())
