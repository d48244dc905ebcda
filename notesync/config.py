# notesync/config.py

import os
from typing import Optional, TypedDict

from dotenv import load_dotenv

# Load environment variables from the .env file into the system environment
load_dotenv()

DEFAULT_DB_PATH = "notesync.sqlite"


class Settings(TypedDict):
    api_url: str
    access_token: Optional[str]
    refresh_token: Optional[str]
    db_path: str
    page_size: int
    timeout: float


def load_db_path() -> str:
    """Path of the local note cache. Reading the cache needs nothing else."""
    return os.getenv("NOTESYNC_DB_PATH", DEFAULT_DB_PATH)


def load_settings() -> Settings:
    """
    Read sync settings from the environment (.env is loaded on import).

    Raises
    ------
    RuntimeError
        If NOTESYNC_API_URL is not set.
    """
    # Base URL of the note service, e.g. https://notes.example.com/
    api_url = os.getenv("NOTESYNC_API_URL")
    if not api_url:
        raise RuntimeError(
            "Note service URL not found. Ensure NOTESYNC_API_URL is set in your "
            "environment or .env file."
        )

    return {
        "api_url": api_url,
        # Tokens come from whatever performed the login; both may be absent.
        "access_token": os.getenv("NOTESYNC_ACCESS_TOKEN"),
        "refresh_token": os.getenv("NOTESYNC_REFRESH_TOKEN"),
        "db_path": load_db_path(),
        "page_size": int(os.getenv("NOTESYNC_PAGE_SIZE", "10")),
        "timeout": float(os.getenv("NOTESYNC_TIMEOUT", "60")),
    }
