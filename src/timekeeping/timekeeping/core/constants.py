"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Punches before this hour belong to the previous calendar day's work day.
WORK_DAY_BOUNDARY_HOUR = 5

REGULAR_DAY_MINUTES = 8 * 60
MINUTES_PER_DAY = 24 * 60

DEFAULT_GEOFENCE_RADIUS_M = 100
EARTH_RADIUS_M = 6371e3

DEFAULT_SHIFT_COLOR = "#3B82F6"
DEFAULT_REST_DAY_NOTE = "Rest day"

DAILY_SUMMARY_TTL_SECONDS = 300
WEEKLY_VIEW_TTL_SECONDS = 300
SHIFT_LIST_TTL_SECONDS = 1800

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100

DEFAULT_LOCK_TIMEOUT_SECONDS = 10
