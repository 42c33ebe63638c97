"""
Configuration for the Blog Posts app
"""
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent
DATA_DIR = BASE_DIR / "data"
BACKUP_DIR = DATA_DIR / "backups"
LOGS_DIR = BASE_DIR / "logs"

# Workbook holding posts, authors, tags and comments
WORKBOOK_PATH = str(DATA_DIR / "blog_posts.xlsx")

# Backup settings
BACKUP_RETENTION_DAYS = 7
BACKUP_MAX_COUNT = 20  # every write, view bumps included, takes one

# Logging
LOG_LEVEL = "INFO"
