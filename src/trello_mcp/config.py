"""Trello API configuration loaded from environment variables and .env."""

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_VALUES = {
    "trello_api_key": "your_api_key_here",
    "trello_token": "your_token_here",
}


class TrelloConfig(BaseSettings):
    """Trello API configuration from environment variables.

    Credentials are read once per process and passed explicitly to every
    TrelloClient; nothing here is mutated after load.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    trello_api_key: str = ""
    trello_token: str = ""
    trello_board_id: str | None = None
    trello_workspace_id: str | None = None
    trello_base_url: str = "https://api.trello.com/1"
    trello_timeout: float = 30.0


def load_config() -> TrelloConfig:
    """Load configuration from .env file."""
    load_dotenv()
    return TrelloConfig()


def validate_credentials(config: TrelloConfig) -> bool:
    """Check if credentials are properly configured."""
    for field, placeholder in PLACEHOLDER_VALUES.items():
        value = getattr(config, field)
        if not value or value == placeholder:
            return False
    return True
