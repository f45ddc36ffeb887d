"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time
from decimal import Decimal

EARTH_RADIUS_METERS = 6_371_000

# Attendance windows (local site time)
LOGIN_OPENS_AT = time(6, 0)
LOGIN_CUTOFF = time(8, 0)
LOGIN_GRACE_UNTIL = time(8, 30)
LUNCH_WINDOW_START = time(12, 0)
LUNCH_WINDOW_END = time(13, 0)
STANDARD_SHIFT_END = time(17, 0)
LOGOUT_GRACE_UNTIL = time(19, 0)

# Forgotten checkout thresholds (hours since clock-in)
REGULARIZATION_AFTER_HOURS = 10
FORGOTTEN_AFTER_HOURS = 12

HOURS_PRECISION = "0.01"
DEFAULT_LIST_LIMIT = 200

# Task output is stored as DECIMAL(12, 2)
OUTPUT_PRECISION = Decimal("0.01")
MAX_OUTPUT = Decimal("9999999999.99")
