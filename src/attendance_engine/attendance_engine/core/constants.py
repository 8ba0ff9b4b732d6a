"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Check-in at or before event start + grace is ON_TIME. 0 means no grace window.
DEFAULT_LATE_GRACE_MINUTES = 0

MAX_OCCURRENCES = 365
MAX_EXCUSE_ATTEMPTS = 3
DEFAULT_EXCUSE_REASON = "Unable to attend"

MILESTONE_CHECKIN_COUNTS = (10, 25, 50, 100, 250, 500, 1000)
PERFECT_ATTENDANCE_MIN_EVENTS = 10
PERFECT_ATTENDANCE_STEP = 10

# Organization roles that appear in payroll.
STAFF_ROLES = ("OWNER", "ADMIN", "MANAGER", "COACH")
# Team roles expected to attend (coaches are not marked absent).
ROSTER_TEAM_ROLES = ("MEMBER", "CAPTAIN")

# Sweepers: 7-day catch-up at startup, then short passes.
CATCH_UP_LOOKBACK_MINUTES = 7 * 24 * 60
PERIODIC_LOOKBACK_MINUTES = 30
DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60

DEFAULT_HISTORY_LIMIT = 30

# Marks an argument the caller did not pass, as opposed to an explicit None.
UNSET = object()
