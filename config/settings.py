"""
Configuration Module
------------------
Configuration settings for the exam question enrichment tool.
"""

import logging.config
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base directories
ROOT_DIR = Path(__file__).parent.parent
DATA_DIR = ROOT_DIR / "data"
LOGS_DIR = Path(os.getenv("LOGS_DIR", ROOT_DIR / "logs"))

# Input / storage defaults
DEFAULT_INPUT_FILES = [str(DATA_DIR / "1.txt"), str(DATA_DIR / "2.txt")]
DEFAULT_DB_PATH = os.getenv("QUESTIONS_DB_PATH", "az900.db")
RECOVERY_DIR = Path(os.getenv("RECOVERY_DIR", "."))
QUESTIONS_EXPORT_PATTERN = "az900-questions-{count}.json"

# Anki configuration
ANKI_CONNECT_URL = os.getenv("ANKI_CONNECT_URL", "http://127.0.0.1:8765")
ANKI_CONFIG = {
    "default_deck": os.getenv("ANKI_DECK", "az-900"),
    "default_model": os.getenv("ANKI_MODEL", "Basic"),
    "default_tag": "az900",
}
DEFAULT_DECK_NAME = ANKI_CONFIG["default_deck"]
DEFAULT_MODEL_NAME = ANKI_CONFIG["default_model"]
DEFAULT_TAG = ANKI_CONFIG["default_tag"]

# API Configuration
DEFAULT_LLM_PROVIDER = os.getenv("DEFAULT_LLM_PROVIDER", "openai")

# LLM parameters. The openai entry points at a local LM Studio server by default.
LLM_CONFIG = {
    "openai": {
        "model": os.getenv("OPENAI_MODEL", "qwen3-coder-30b-a3b-instruct-mlx"),
        "base_url": os.getenv("OPENAI_BASE_URL", "http://localhost:1234/v1"),
        "api_key": os.getenv("OPENAI_API_KEY", "lm-studio"),
        "temperature": 0.3,
        "max_tokens": 1500,
        "timeout": float(os.getenv("LLM_TIMEOUT", "120")),
    },
    "anthropic": {
        "model": os.getenv("ANTHROPIC_MODEL", "claude-3-opus-20240229"),
        "base_url": os.getenv("ANTHROPIC_BASE_URL"),
        "api_key": os.getenv("ANTHROPIC_API_KEY"),
        "temperature": 0.3,
        "max_tokens": 1500,
        "timeout": float(os.getenv("LLM_TIMEOUT", "120")),
    },
}

# Logging configuration
LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "standard",
            "stream": "ext://sys.stdout"
        },
        "file": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "standard",
            "filename": str(LOGS_DIR / "app.log"),
            "mode": "a"
        }
    },
    "loggers": {
        "": {  # root logger
            "handlers": ["console", "file"],
            "level": "DEBUG",
            "propagate": True
        },
        # SQLAlchemy and httpx are chatty at DEBUG
        "sqlalchemy": {"level": "WARNING"},
        "httpx": {"level": "WARNING"},
    }
}


def configure_logging() -> None:
    """Apply LOGGING_CONFIG, creating the log directory first."""
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(LOGGING_CONFIG)
