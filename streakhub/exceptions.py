"""
Custom exceptions for the StreakHub application.
Each exception carries the HTTP status the API layer should answer with.
"""


class StreakHubException(Exception):
    """Base exception for StreakHub"""
    status_code = 500


class InvalidTimezoneException(StreakHubException):
    """Raised when a timezone identifier is not in the IANA database"""
    status_code = 400

    def __init__(self, timezone):
        self.timezone = timezone
        super().__init__(f"Invalid timezone: {timezone!r}")


class ValidationException(StreakHubException):
    """Raised when data validation fails"""
    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")


class TaskLockedException(StreakHubException):
    """Raised when a task is edited or deleted after its day has passed"""
    status_code = 400

    def __init__(self, task_id: int, action: str):
        self.task_id = task_id
        self.action = action
        super().__init__(f"Cannot {action} task {task_id} after the day has passed")


class NotGroupMemberException(StreakHubException):
    """Raised when a user acts on a group they do not belong to"""
    status_code = 403

    def __init__(self, user_id: int, group_id: int):
        self.user_id = user_id
        self.group_id = group_id
        super().__init__(f"User {user_id} is not a member of group {group_id}")


class PermissionDeniedException(StreakHubException):
    """Raised when a user modifies a resource they do not own"""
    status_code = 403

    def __init__(self, message: str):
        super().__init__(message)


class TaskNotFoundException(StreakHubException):
    """Raised when a task is not found"""
    status_code = 404

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task with ID {task_id} not found")


class StreakNotFoundException(StreakHubException):
    """Raised when a streak record is expected but absent"""
    status_code = 404

    def __init__(self, user_id: int, group_id: int):
        self.user_id = user_id
        self.group_id = group_id
        super().__init__(f"No streak for user {user_id} in group {group_id}")


class GoalNotFoundException(StreakHubException):
    """Raised when a goal is not found"""
    status_code = 404

    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Goal with ID {goal_id} not found")


class DuplicateTaskException(StreakHubException):
    """Raised when a user posts a second task for the same day in a group"""
    status_code = 409

    def __init__(self, group_id: int, user_id: int, day):
        self.group_id = group_id
        self.user_id = user_id
        self.day = day
        super().__init__(
            f"User {user_id} already posted a task for {day} in group {group_id}"
        )


class ConcurrentModificationException(StreakHubException):
    """Raised when a streak row changed between read and write"""
    status_code = 409

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} was modified concurrently")
