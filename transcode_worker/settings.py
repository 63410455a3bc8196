from pathlib import Path
import os
import tempfile
from dotenv import load_dotenv
from django.core.exceptions import ImproperlyConfigured

# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def env(name: str, default=None, *, required: bool = False):
    val = os.getenv(name, default)
    if required and (val is None or (isinstance(val, str) and val.strip() == "")):
        raise ImproperlyConfigured(f"Missing required environment variable: {name}")
    return val

def env_bool(name: str, default: bool = False) -> bool:
    return str(os.getenv(name, str(default))).lower() in {"1", "true", "yes", "on"}

def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ImproperlyConfigured(f"Environment variable {name} must be an integer, got {raw!r}")

def env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ImproperlyConfigured(f"Environment variable {name} must be a number, got {raw!r}")

# -----------------------------------------------------
# Paths & basics
# -----------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

DEBUG = env_bool("DEBUG", False)

# No HTTP surface; Django only needs a key to boot.
SECRET_KEY = env("DJANGO_SECRET_KEY", "worker-has-no-sessions")

# -----------------------------------------------------
# Applications
# -----------------------------------------------------
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",

    # Third-party
    "rest_framework",

    # Local
    "renditions",
]

# The worker keeps no database state.
DATABASES = {}

TIME_ZONE = "UTC"
USE_TZ = True

# -----------------------------------------------------
# Logging
# -----------------------------------------------------
LOG_LEVEL = env("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "worker": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "worker",
        },
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        # boto3 is chatty at INFO
        "botocore": {"level": "WARNING"},
        "urllib3": {"level": "WARNING"},
    },
}

# -----------------------------------------------------
# Celery / Redis
# -----------------------------------------------------
CELERY_BROKER_URL = env("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = env("CELERY_RESULT_BACKEND", "redis://127.0.0.1:6379/0")
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = env_int("CELERY_TASK_TIME_LIMIT", 60 * 60)  # seconds
# One job per worker process at a time; the job owns local disk.
CELERY_WORKER_CONCURRENCY = 1
CELERY_WORKER_PREFETCH_MULTIPLIER = 1

# -----------------------------------------------------
# S3 / MinIO (env-driven; no hardcoded secrets)
# -----------------------------------------------------
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL") or None  # None -> AWS
S3_REGION = os.getenv("S3_REGION") or os.getenv("AWS_REGION", "us-east-1")
S3_BUCKET = os.getenv("S3_BUCKET") or os.getenv("BUCKET_NAME", "")
S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY") or os.getenv("AWS_ACCESS_KEY_ID")
S3_SECRET_KEY = os.getenv("S3_SECRET_KEY") or os.getenv("AWS_SECRET_ACCESS_KEY")

# -----------------------------------------------------
# Job input
# -----------------------------------------------------
# Source object key: <root>/<ownerId>/video/<jobId>/<originalName>
KEY = os.getenv("KEY", "")
# Prefix for published renditions; empty reuses the source key's root.
RENDITION_KEY_ROOT = os.getenv("RENDITION_KEY_ROOT", "")
FETCH_CHUNK_SIZE = env_int("FETCH_CHUNK_SIZE", 1024 * 1024)
UPLOAD_CONCURRENCY = env_int("UPLOAD_CONCURRENCY", 4)
WORK_DIR = os.getenv("WORK_DIR") or tempfile.gettempdir()

# -----------------------------------------------------
# Status tracking
# -----------------------------------------------------
VIDEO_STATUS_API = os.getenv("VIDEO_STATUS_API", "")
STATUS_ID_FIELD = os.getenv("STATUS_ID_FIELD", "videoId")
STATUS_TIMEOUT_SECONDS = env_float("STATUS_TIMEOUT_SECONDS", 10.0)

# -----------------------------------------------------
# Renditions
# -----------------------------------------------------
FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")
# "single_file" or "segmented_stream"; applies to the default catalog.
RENDITION_OUTPUT_MODE = os.getenv("RENDITION_OUTPUT_MODE", "single_file")
# Optional JSON list overriding the default catalog, e.g.
# [{"name": "720p", "width": 1280, "height": 720, "output_mode": "single_file"}]
RENDITION_CATALOG = os.getenv("RENDITION_CATALOG", "")
