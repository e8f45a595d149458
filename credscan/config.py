import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# GitHub
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN") or None
GITHUB_USER_AGENT = os.getenv("GITHUB_USER_AGENT", "credscan-github-analyzer/1.0")
GITHUB_TIMEOUT_SECONDS = float(os.getenv("GITHUB_TIMEOUT_SECONDS", "15"))
GITHUB_RETRY_ATTEMPTS = int(os.getenv("GITHUB_RETRY_ATTEMPTS", "3"))

# Credibility oracle
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-pro")

# Service
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///credscan.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Applicant processing keeps content analysis small to save API quota
APPLICANT_MAX_REPOS = int(os.getenv("APPLICANT_MAX_REPOS", "50"))
APPLICANT_MAX_CONTENT_ANALYSIS = int(os.getenv("APPLICANT_MAX_CONTENT_ANALYSIS", "3"))

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging for entry points (service and CLI)."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    if not GITHUB_TOKEN:
        logger.warning("GITHUB_TOKEN not set. Requests are unauthenticated and heavily rate-limited.")
