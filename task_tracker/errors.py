class TaskTrackerError(Exception):
    """Base class for errors raised by the task store."""


class ValidationError(TaskTrackerError):
    """Request input is missing or malformed."""


class NotFound(TaskTrackerError):
    """No task exists with the requested id."""

    def __init__(self, task_id):
        super().__init__(f"task {task_id} not found")
        self.task_id = task_id


class StorageError(TaskTrackerError):
    """The database engine failed to run a query."""
