"""Error taxonomy shared by the repository, adapters and CLI."""


class TodoError(Exception):
    """Base class for every failure surfaced to the user."""

    pass


class InvalidInput(TodoError):
    """Raised when a task title is empty after trimming."""

    pass


class StorageUnavailable(TodoError):
    """Raised when the key-value store cannot be read or written."""

    pass


class RemoteFetchFailed(TodoError):
    """Raised when the remote task API fails or returns a non-success status."""

    pass


class AddFailed(RemoteFetchFailed):
    """Raised when the remote create endpoint rejects a task."""

    pass


class NotFound(TodoError):
    """Raised when there is nothing stored to operate on."""

    pass
