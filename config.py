import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Version of the data generation this build understands
VERSION = "1.2.1"

# Development mode flag - set DEV_MODE=true for development features
DEV_MODE = os.getenv("DEV_MODE", "false").lower() in ('true', '1', 'yes')

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Port for the development server
PORT = int(os.getenv("PORT", 5000))

# SQLite Configuration
DB_PATH = os.getenv("BLOG_DB_PATH", str(Path(__file__).parent / "blog_data.db"))
# Prefix of tables created by older releases (e.g. blog_preference)
TABLE_PREFIX = os.getenv("TABLE_PREFIX", "blog")

# Locale used for operator-facing messages
LOCALE = os.getenv("BLOG_LOCALE", "en_US")

# SMTP Configuration
SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
SMTP_PORT = int(os.getenv("SMTP_PORT", 25))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "false").lower() == "true"
# Seconds before an SMTP connection attempt is abandoned
SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", 10))
