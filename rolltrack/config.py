import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Timezone used for the print time on labels and reports
REPORT_TIMEZONE = os.getenv("ROLLTRACK_TIMEZONE", "Asia/Kolkata")

# "ar" or "en"; requests may override per call
DEFAULT_LOCALE = os.getenv("ROLLTRACK_LOCALE", "ar")

try:
    RENDER_WORKERS = int(os.getenv("ROLLTRACK_RENDER_WORKERS", "4"))
except ValueError:
    logger.error("ROLLTRACK_RENDER_WORKERS must be an integer, using 4")
    RENDER_WORKERS = 4

try:
    SELECTION_LIMIT = max(1, int(os.getenv("ROLLTRACK_SELECTION_LIMIT", "1000")))
except ValueError:
    logger.error("ROLLTRACK_SELECTION_LIMIT must be an integer, using 1000")
    SELECTION_LIMIT = 1000

CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

# Add additional origins from environment variable
env_origins = os.getenv("CORS_ORIGINS", "")
if env_origins:
    CORS_ORIGINS.extend([origin.strip() for origin in env_origins.split(",") if origin.strip()])

logger.info(f"Report timezone: {REPORT_TIMEZONE}, default locale: {DEFAULT_LOCALE}")
