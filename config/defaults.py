"""Default configuration constants for the Staffing Planner."""

# Capacity cap applied when a resource has none configured
DEFAULT_CAP_PCT = 100

# Allocation percentage bounds for a single (assignment, date) cell
MIN_ALLOCATION_PCT = 0
MAX_ALLOCATION_PCT = 100

# datetime.weekday() values treated as weekend
WEEKEND_WEEKDAYS = (5, 6)

# Working-day fraction consumed by a half-day leave request
HALF_DAY_LEAVE_FRACTION = 0.5

# Daily expenses default to this share of daily cost when a role has none
DEFAULT_EXPENSE_RATIO = 0.035

# View granularities
GRANULARITIES = ["day", "week", "month"]
DEFAULT_GRANULARITY = "week"

# Number of periods shown by default in the staffing grid, per granularity
DEFAULT_VIEW_PERIODS = {"day": 14, "week": 8, "month": 6}

# Status colours (background, foreground) for overallocation classes
STATUS_COLORS = {
    "EMPTY": ("#f1f3f5", "#868e96"),
    "UNDER": ("#fff3cd", "#856404"),
    "AT_CAP": ("#d4edda", "#155724"),
    "OVER": ("#ffcccc", "#cc0000"),
}
NON_WORKING_COLORS = ("#e9ecef", "#adb5bd")

# Simulation
BLANK_SCENARIO_NAME = "New Simulation"

# Persistence
DEFAULT_DB_PATH = "staffing.db"
DB_PATH_ENV = "STAFFING_DB_PATH"

# Logging
LOG_LEVEL_ENV = "STAFFING_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
