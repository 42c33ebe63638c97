"""
Configuration for the Post Access Service.
Reads overrides from .env file in the project root.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent.parent / ".env"
load_dotenv(_env_path)

# Cache TTL in milliseconds (default 5 minutes)
CACHE_TTL_MS: int = int(os.getenv("POST_CACHE_TTL_MS", "300000"))

# Posts per listing page
DEFAULT_PAGE_SIZE: int = int(os.getenv("POSTS_PAGE_SIZE", "10"))
