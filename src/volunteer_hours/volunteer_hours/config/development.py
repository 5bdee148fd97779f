import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "volunteer_hours"),
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

COMPLETION_THRESHOLD_HOURS = int(os.getenv("COMPLETION_THRESHOLD_HOURS", "40"))
REPORT_QUERY_TIMEOUT_SECONDS = float(os.getenv("REPORT_QUERY_TIMEOUT_SECONDS", "5"))

# If enabled, the bundled schema.sql is applied on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
