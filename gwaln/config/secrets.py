"""
API keys for the optional verifiers, read from the environment.

A ``.env`` at the repo root (or, failing that, in the working directory) is
loaded on import. Only the Gemini bias verifier needs a key; citation
verification fetches public pages. ``gwaln keys`` reports what is configured.
"""

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

_REPO_ENV = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(_REPO_ENV if _REPO_ENV.exists() else find_dotenv(usecwd=True))

GEMINI_KEY_ENV = "GEMINI_API_KEY"

# bias verifier name -> environment variable holding its key
VERIFIER_KEYS = {"gemini": GEMINI_KEY_ENV}


class MissingAPIKeyError(Exception):
    """Raised when a required API key is not configured."""
    pass


def _read_key(env_name: str) -> str:
    return os.environ.get(env_name, "").strip()


def get_gemini_key() -> str:
    """
    Return the Gemini key used by ``--bias-verifier gemini``.

    Raises:
        MissingAPIKeyError: If GEMINI_API_KEY is unset or blank
    """
    key = _read_key(GEMINI_KEY_ENV)
    if not key:
        raise MissingAPIKeyError(
            f"{GEMINI_KEY_ENV} not found. "
            "Add it to .env or export it before using --bias-verifier gemini."
        )
    return key


def check_keys() -> dict:
    """Map each verifier key variable to "OK" or "MISSING"."""
    return {env: "OK" if _read_key(env) else "MISSING" for env in VERIFIER_KEYS.values()}
