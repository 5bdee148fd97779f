from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv

from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema
from .notifications.sink import NotificationSink

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, str(level).upper(), logging.INFO),
    )


def create_container(*, notifications: Optional[NotificationSink] = None) -> Container:
    """Build the engine from environment settings (APP_ENV, DB_*, ...)."""

    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    db_config = getattr(settings, "DB_CONFIG")
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)

    return build_container(
        db_config=db_config,
        notifications=notifications,
        threshold=int(getattr(settings, "COMPLETION_THRESHOLD_HOURS", 40)),
        query_timeout=float(getattr(settings, "REPORT_QUERY_TIMEOUT_SECONDS", 5.0)),
    )
