import os
from dotenv import load_dotenv

load_dotenv()

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://user:pass@db:5432/content_jobs")

# Worker endpoint auth: the scheduler sends one of these as a bearer token
CRON_SECRET = os.getenv("CRON_SECRET", "dev-cron-secret")
WORKER_SECRET = os.getenv("WORKER_SECRET") or os.getenv("CRON_SECRET") or "dev-secret"

# Redis keys of the transport
QUEUE_PENDING_KEY = os.getenv("QUEUE_PENDING_KEY", "jobs:pending")
QUEUE_PROCESSING_KEY = os.getenv("QUEUE_PROCESSING_KEY", "jobs:processing")
QUEUE_SEQUENCE_KEY = os.getenv("QUEUE_SEQUENCE_KEY", "jobs:sequence")

JOB_DEFAULT_MAX_ATTEMPTS = int(os.getenv("JOB_DEFAULT_MAX_ATTEMPTS", "3"))
JOB_HANDLER_TIMEOUT_S = float(os.getenv("JOB_HANDLER_TIMEOUT_S", "300"))
JOB_STUCK_SECONDS = int(os.getenv("JOB_STUCK_SECONDS", "900"))

DISPATCH_INTERVAL_SECONDS = float(os.getenv("DISPATCH_INTERVAL_SECONDS", "10"))
SCHEDULED_CHECK_INTERVAL_SECONDS = float(os.getenv("SCHEDULED_CHECK_INTERVAL_SECONDS", "30"))
SANITY_CHECK_INTERVAL_SECONDS = int(os.getenv("SANITY_CHECK_INTERVAL_SECONDS", "60"))
METRICS_FETCH_INTERVAL_SECONDS = float(os.getenv("METRICS_FETCH_INTERVAL_SECONDS", "3600"))

HTTP_CONNECT_TIMEOUT_S = float(os.getenv("HTTP_CONNECT_TIMEOUT_S", "3.0"))
HTTP_READ_TIMEOUT_S = float(os.getenv("HTTP_READ_TIMEOUT_S", "30.0"))

# Base URL the trigger client uses to reach the worker endpoint
APP_URL = os.getenv("APP_URL", "http://localhost:8000")

LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")

# User that owns jobs created by the scheduler itself
SYSTEM_USER_ID = os.getenv("SYSTEM_USER_ID", "system")

EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "voyage-4-large")
EMBEDDING_BATCH_SIZE = 128

GRAPH_API_VERSION = "v22.0"

# External services called from job handlers
SERVICES = {
    "voyage": {
        "timeout": 60,
        "base_url": os.getenv("VOYAGE_API_URL", "https://api.voyageai.com/v1"),
        "api_key": os.getenv("VOYAGE_API_KEY", ""),
        "auth": {"type": "bearer"},
    },
    "graph_api": {
        "timeout": 60,
        "base_url": os.getenv("GRAPH_API_URL", "https://graph.facebook.com"),
        "api_key": "",
        # Graph API calls carry the connection's own access token
        "auth": {"type": "none"},
    },
    "image_gen": {
        "timeout": 180,
        "base_url": os.getenv("IMAGE_GEN_URL", "http://image-gen:9000"),
        "api_key": os.getenv("IMAGE_GEN_API_KEY", ""),
        "auth": {"type": "api_key_header", "header": "X-Internal-Key"},
    },
}
