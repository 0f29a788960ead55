"""
Configuration for PostBook.

Values come from environment variables, optionally loaded from a ``.env``
file at the repository root.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

env_path = BASE_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)

# ============================================================================
# Paths
# ============================================================================

POSTS_DIR = Path(os.environ.get("POSTS_DIR", str(BASE_DIR / "content" / "posts")))
CATALOG_DIR = Path(os.environ.get("CATALOG_DIR", str(BASE_DIR / "output" / "catalog")))

# ============================================================================
# Parsing
# ============================================================================

# Applied to header dates that carry no UTC offset
DEFAULT_TIMEZONE = os.environ.get("POSTS_TIMEZONE", "UTC")
EXCERPT_LENGTH = int(os.environ.get("EXCERPT_LENGTH", "200"))

# ============================================================================
# HTTP API
# ============================================================================

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")
DEFAULT_PORT = int(os.environ.get("PORT", "8800"))
