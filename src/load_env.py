import os
import logging
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Repository root, where a local .env is expected
PROJECT_ROOT = Path(__file__).resolve().parent.parent


def load_env():
    """
    Load environment variables from a .env file for local development.
    Skips on managed platforms and stays quiet if the file is missing.
    Variables already set in the environment win.
    """
    if os.environ.get("RAILWAY_ENVIRONMENT") or os.environ.get("DYNO"):
        # Deployed: env vars are injected by the platform.
        return

    for path in (Path.cwd() / ".env", PROJECT_ROOT / ".env"):
        if path.exists():
            load_dotenv(dotenv_path=path, override=False)
            logger.info(f"Loaded .env file from {path}.")
            return
