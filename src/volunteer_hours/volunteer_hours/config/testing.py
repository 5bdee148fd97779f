import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "volunteer_hours_test"),
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

COMPLETION_THRESHOLD_HOURS = 40
REPORT_QUERY_TIMEOUT_SECONDS = 1.0

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
