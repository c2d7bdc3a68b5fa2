"""
Configuration management for the CodeMind server.

Loads environment variables from .env file and provides typed access to
HTTP server settings. Inference backend wiring (hosts, keys, models) lives
in infra/config.py and is read only there.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Configuration class for the CodeMind server."""

    # HTTP server
    PORT = int(os.getenv("PORT", "4000"))
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3001")

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
