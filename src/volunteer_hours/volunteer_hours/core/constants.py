"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

COMPLETION_THRESHOLD_HOURS = 40
RECENT_ACTIVITY_DAYS = 30
TREND_DAYS = 7
REPORT_QUERY_TIMEOUT_SECONDS = 5.0
NOT_AVAILABLE = "N/A"

# events.hours_value is DECIMAL(6, 2)
HOURS_DECIMAL_PLACES = 2
MAX_HOURS_VALUE = Decimal("9999.99")
