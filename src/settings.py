"""Static configuration for the guestbook.

All user-editable settings (storage, feed, content rules, verification,
logging) live in a single JSON file for quick edits without touching Python.
The creator label may also come from the environment (.env).
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Runs before CONFIG_PATH is read; .env may set GUESTBOOK_CONFIG.
load_dotenv()

CONFIG_PATH = os.environ.get("GUESTBOOK_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite database.
DB_PATH = _resolve_path(_CONFIG.get("database", {}).get("path", "guestbook.db"))

# Feed settings. CREATOR_USERNAME in the environment wins over config.json so
# deployments can set it without editing the file.
_feed = _CONFIG.get("feed", {})
PAGE_SIZE = int(_feed.get("page_size", 50))
CREATOR_LABEL = os.getenv("CREATOR_USERNAME") or _feed.get("creator_label") or None

# Content rules. Root messages get a smaller budget than replies.
_content = _CONFIG.get("content", {})
ROOT_MAX_LENGTH = int(_content.get("root_max_length", 200))
REPLY_MAX_LENGTH = int(_content.get("reply_max_length", 1000))
MIN_LENGTH = int(_content.get("min_length", 1))
ALLOW_LINKS = bool(_content.get("allow_links", False))
ALLOW_PROFANITY = bool(_content.get("allow_profanity", False))
BLOCKED_WORDS = tuple(_content.get("blocked_words", []))

# Development code issuer settings.
_verification = _CONFIG.get("verification", {})
CODE_LENGTH = int(_verification.get("code_length", 6))
CODE_TTL_MINUTES = int(_verification.get("ttl_minutes", 10))
CODE_MAX_ATTEMPTS = int(_verification.get("max_attempts", 3))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
