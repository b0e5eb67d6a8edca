"""
Configuration for the blueprint translator service.

Values come from the environment (or a local .env file) and fall back to
defaults that keep the translator usable without any setup.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


class TranslatorConfig:
    """Settings shared by the translator services and the HTTP layer"""

    LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").upper()

    # Text used in templated notification subjects and messages
    NOTIFICATION_LABEL: str = os.getenv("BLUEPRINT_NOTIFICATION_LABEL", "RP9 Workflow")

    # Target of the generic HTTP destination when no service is recognised
    FALLBACK_URL: str = os.getenv("BLUEPRINT_FALLBACK_URL", "https://api.example.com/webhook")

    # Structural validator warns above this many nodes
    MAX_WORKFLOW_NODES: int = _int_env("BLUEPRINT_MAX_WORKFLOW_NODES", 50)

    # Request limits for the generate/parse endpoints
    PROMPT_MIN_LENGTH: int = _int_env("PROMPT_MIN_LENGTH", 10)
    PROMPT_MAX_LENGTH: int = _int_env("PROMPT_MAX_LENGTH", 2000)

    CORS_ORIGIN_REGEX: str = os.getenv(
        "CORS_ORIGIN_REGEX",
        r"^https:\/\/.*\.vercel\.app$|^http:\/\/localhost:\d+$|^http:\/\/127\.0\.0\.1:\d+$",
    )

    @classmethod
    def notification_subject(cls) -> str:
        return f"Notification from {cls.NOTIFICATION_LABEL}"
