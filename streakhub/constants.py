"""
Application-wide constants and environment-driven configuration.
"""
import enum
import os


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    MISSED = "missed"


class GoalType(str, enum.Enum):
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


class GoalStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class GroupRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"


# Field limits (mirrored by the request schemas)
TASK_TITLE_MAX_LENGTH = 200
TASK_DESCRIPTION_MAX_LENGTH = 1000
GOAL_TITLE_MAX_LENGTH = 200
GOAL_DESCRIPTION_MAX_LENGTH = 1000

# Streak engine
STREAK_WRITE_ATTEMPTS = 2  # initial attempt + one retry on concurrent modification
STALE_STREAK_DAYS = 1      # more than this many calendar days without a completion resets the streak

DEFAULT_TIMEZONE = "UTC"
DEFAULT_DATE_FORMAT = "%B %d, %Y"

# Database
DATABASE_URL = os.getenv("STREAKHUB_DATABASE_URL", "sqlite:///./streakhub.db")

# Auth
API_KEY = os.getenv("STREAKHUB_API_KEY", "dev-key-change-me")
API_KEY_HEADER = "X-API-Key"
USER_ID_HEADER = "X-User-Id"

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/streakhub"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"
LOG_LEVEL = os.getenv("STREAKHUB_LOG_LEVEL", "INFO")

# CORS
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "STREAKHUB_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]
