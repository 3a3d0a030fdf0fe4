"""
Constants Module - Centralized configuration values
===================================================

PURPOSE: Single source of truth for constants used across the engine
PATTERN: Modular constants organized by category
SCOPE: Application-wide configuration values
"""

# Capacity rules
BUFFER_SLOTS = 2                 # Over-booking cushion on top of max_players
MAX_WAITING_LIST = 3             # Queued players per reservation
PENALTY_WINDOW_HOURS = 2         # Leaving inside this window is penalty-eligible

# Reservation sizes offered when creating games (5v5 through 11v11)
MAX_PLAYERS_OPTIONS = (10, 12, 14, 16, 18, 20, 22)
DEFAULT_MAX_PLAYERS = 10

# Highlights
HIGHLIGHT_MIN_MINUTE = 0
HIGHLIGHT_MAX_MINUTE = 120

# Timezone and formats
DEFAULT_TIMEZONE = "America/Guatemala"
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT_24H = "%H:%M"
TIME_FORMAT_12H = "%I:%M %p"

# Snapshot keys in the durable key-value layer
PITCHES_KEY = "pitches"
RESERVATIONS_KEY = "reservations"
SUSPENSIONS_KEY = "suspendedPlayers"
SNAPSHOT_KEYS = (PITCHES_KEY, RESERVATIONS_KEY, SUSPENSIONS_KEY)

# Remote booking service
DEFAULT_API_BASE_URL = "http://127.0.0.1:3000"
DEFAULT_API_TIMEOUT_SECONDS = 10.0
REMOTE_SUCCESS_STATUS = "success"
BACKEND_UNREACHABLE_MESSAGE = (
    "Backend server is not accessible. Please ensure the booking service is running."
)

# Logger names for engine components
ENGINE_LOGGERS = (
    "ReservationStore",
    "RosterManager",
    "WaitlistManager",
    "SuspensionManager",
    "GameManager",
    "PitchCatalog",
    "ActionOrchestrator",
    "HttpBookingGateway",
    "Notifier",
)
