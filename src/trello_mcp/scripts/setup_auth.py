"""Local configuration wizard for Trello MCP credentials."""

from __future__ import annotations

import asyncio
import shutil
from getpass import getpass
from pathlib import Path
from urllib.parse import urlencode

import httpx
from dotenv import dotenv_values, set_key
from pydantic import ValidationError

from ..client import TrelloAPIError, TrelloClient
from ..config import TrelloConfig

AUTHORIZE_URL = "https://trello.com/1/authorize"
APP_NAME = "Trello MCP"
DEFAULT_SCOPES = "read"


def main() -> None:
    """Run the interactive setup wizard for local Trello MCP configuration."""
    print("=" * 60)
    print("Trello MCP - Local Setup Wizard")
    print("=" * 60)
    print()
    print("This wizard writes TRELLO_API_KEY, TRELLO_TOKEN and TRELLO_BOARD_ID to .env.")
    print()

    env_path = _ensure_env_file()
    existing = dotenv_values(str(env_path)) if env_path.exists() else {}

    print("Step 1: Trello API key")
    print("-" * 60)
    print("Visit https://trello.com/power-ups/admin and open your Power-Up's API key page.")
    print()

    api_key = _prompt_required("Trello API key", existing.get("TRELLO_API_KEY"))
    set_key(str(env_path), "TRELLO_API_KEY", api_key)

    print()
    print("Step 2: Authorize and copy the token")
    print("-" * 60)
    print("Open this URL, approve access, and paste the token shown:")
    print()
    print(build_authorize_url(api_key))
    print()

    token = _prompt_secret("Trello token", existing.get("TRELLO_TOKEN"))
    set_key(str(env_path), "TRELLO_TOKEN", token)

    print()
    print("Verifying credentials...")
    config = TrelloConfig(trello_api_key=api_key, trello_token=token)
    try:
        boards = asyncio.run(_fetch_boards(config))
    except (TrelloAPIError, httpx.HTTPError, ValidationError) as e:
        print(f"Could not verify credentials: {e}")
        print("Saved anyway; re-run this wizard once the key and token are correct.")
        return

    print(f"Credentials OK. {len(boards)} open board(s) found.")
    for board in boards:
        print(f"  {board.id}  {board.name}")
    print()

    board_id = _prompt_optional("Default board ID (optional)", existing.get("TRELLO_BOARD_ID"))
    if board_id:
        set_key(str(env_path), "TRELLO_BOARD_ID", board_id)

    print("=" * 60)
    print("Configuration complete!")
    print(f"Updated {env_path.name}")
    print("=" * 60)


def build_authorize_url(api_key: str, scopes: str = DEFAULT_SCOPES) -> str:
    """Build the Trello authorize URL that displays a never-expiring token."""
    params = {
        "expiration": "never",
        "name": APP_NAME,
        "scope": scopes,
        "response_type": "token",
        "key": api_key,
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


async def _fetch_boards(config: TrelloConfig):
    async with TrelloClient(config) as client:
        return await client.list_boards()


def _prompt_required(prompt_text: str, default: str | None = None) -> str:
    """Prompt for a required value, offering a default if provided."""
    while True:
        prompt = f"{prompt_text}"
        if default:
            prompt += f" [{default}]"
        prompt += ": "
        value = input(prompt).strip()
        if value:
            return value
        if default:
            return default
        print("This value is required.")


def _prompt_secret(prompt_text: str, default: str | None = None) -> str:
    """Prompt for sensitive input (token)."""
    while True:
        prompt = f"{prompt_text}"
        if default:
            prompt += " [press Enter to keep existing]"
        prompt += ": "
        value = getpass(prompt).strip()
        if value:
            return value
        if default:
            return default
        print("This value is required.")


def _prompt_optional(prompt_text: str, default: str | None = None) -> str | None:
    """Prompt for an optional value, returning None if left blank with no default."""
    prompt = f"{prompt_text}"
    if default:
        prompt += f" [{default}]"
    prompt += ": "
    value = input(prompt).strip()
    if value:
        return value
    return default


def _ensure_env_file() -> Path:
    """Ensure .env exists, copying from .env.example if available."""
    env_path = Path.cwd() / ".env"
    example_path = Path.cwd() / ".env.example"
    if env_path.exists():
        return env_path

    if example_path.exists():
        shutil.copy(example_path, env_path)
        print(f"Created {env_path.name} from {example_path.name}")
    else:
        env_path.touch()
        print(f"Created empty {env_path.name} (no .env.example found)")
    return env_path


if __name__ == "__main__":
    main()
