from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .accrual.service import AccrualService
from .core.constants import COMPLETION_THRESHOLD_HOURS, REPORT_QUERY_TIMEOUT_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .events.mysql_event_repository import MySQLEventRepository
from .events.service import EventService
from .lifecycle.service import LifecycleService
from .messages.mysql_message_repository import MySQLMessageRepository
from .notifications.sink import LoggingNotificationSink, NotificationSink
from .reports.service import AggregationService
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    events_repo: MySQLEventRepository
    users_repo: MySQLUserRepository
    messages_repo: MySQLMessageRepository

    lifecycle_service: LifecycleService
    event_service: EventService
    accrual_service: AccrualService
    aggregation_service: AggregationService


def build_container(
    *,
    db_config: dict,
    notifications: Optional[NotificationSink] = None,
    threshold: int = COMPLETION_THRESHOLD_HOURS,
    query_timeout: float = REPORT_QUERY_TIMEOUT_SECONDS,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_settings(db_config))

    events_repo = MySQLEventRepository(conn)
    users_repo = MySQLUserRepository(conn)
    messages_repo = MySQLMessageRepository(conn)

    lifecycle_service = LifecycleService(events_repo, users_repo, notifications or LoggingNotificationSink())
    event_service = EventService(events_repo, users_repo)
    accrual_service = AccrualService(events_repo, users_repo, threshold=threshold)
    aggregation_service = AggregationService(
        events_repo,
        users_repo,
        messages_repo,
        accrual_service,
        query_timeout=query_timeout,
    )

    return Container(
        conn=conn,
        events_repo=events_repo,
        users_repo=users_repo,
        messages_repo=messages_repo,
        lifecycle_service=lifecycle_service,
        event_service=event_service,
        accrual_service=accrual_service,
        aggregation_service=aggregation_service,
    )
