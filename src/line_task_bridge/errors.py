"""Exception hierarchy for the task bridge.

Every error carries a short machine ``code`` next to its human-readable
message so the reply formatter can render it in the user's locale.
"""


class TaskBridgeError(Exception):
    """Base exception for all task bridge errors."""

    default_code = "error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ParseError(TaskBridgeError):
    """Input text could not be understood."""

    default_code = "parse_error"


class ValidationError(TaskBridgeError):
    """Input was understood but a field violates its constraints."""

    default_code = "validation_error"


class StorageError(TaskBridgeError):
    """The task storage backend failed or rejected a request."""

    default_code = "storage_error"


class TaskNotFoundError(StorageError):
    """The requested task does not exist."""

    default_code = "task_not_found"

    def __init__(self, task_id: str):
        super().__init__(f"找不到任務: {task_id}")
        self.task_id = task_id


class SignatureError(TaskBridgeError):
    """Webhook signature is missing or does not match."""

    default_code = "invalid_signature"
