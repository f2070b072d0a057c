#!/usr/bin/env python3
"""
Create a dashboard user.

Usage:
    python scripts/create_user.py EMAIL [--password PASSWORD]

Without a password the user can only sign in with a magic link.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console

from src.services.auth_service import AuthError, AuthService

console = Console()


async def create_user(email: str, password: str | None) -> int:
    """Create the user and print its ID."""
    auth = AuthService()
    try:
        user = await auth.create_user(email, password)
    except AuthError as e:
        console.print(f"[red]❌ {e}[/red]")
        return 1
    finally:
        await auth.disconnect()

    console.print(f"[green]✅ Created user[/green] {user.email}")
    console.print(f"   ID: [bold]{user.id}[/bold]")
    if not password:
        console.print("   [yellow]No password set, magic link sign-in only[/yellow]")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a dashboard user")
    parser.add_argument("email", help="Sign-in email address")
    parser.add_argument("--password", help="Password (at least 8 characters)")
    args = parser.parse_args()

    if args.password is not None and len(args.password) < 8:
        parser.error("password must be at least 8 characters")

    return asyncio.run(create_user(args.email, args.password))


if __name__ == "__main__":
    sys.exit(main())
