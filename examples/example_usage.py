"""Example: drive the lifecycle and reports through the service layer.

Controllers stay thin; business rules live in the services.
"""

from datetime import datetime

from volunteer_hours.main import create_container


def main():
    container = create_container()
    lifecycle = container.lifecycle_service

    lifecycle.register(event_id=1, user_id=2)
    lifecycle.approve_registration(1, 2, actor_id=1)
    lifecycle.time_in(1, 2, datetime.now())
    lifecycle.time_out(1, 2, datetime.now())
    lifecycle.approve_attendance(1, 2, actor_id=1)

    print(container.accrual_service.total_hours(2))
    print(container.aggregation_service.build_report())


if __name__ == "__main__":
    main()
