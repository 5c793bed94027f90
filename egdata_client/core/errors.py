"""
Core - Error Taxonomy

Exceptions raised by the sync engine. Each one is scoped to a single
operation: a scan cycle, one manifest, or one upload.
"""


class AgentError(Exception):
    """Base class for all engine errors."""
    pass


class NotFoundError(AgentError):
    """Manifest directory (or a requested record) does not exist."""
    pass


class ManifestIOError(AgentError):
    """A descriptor or manifest blob could not be read."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read {path}: {reason}")


class ManifestParseError(AgentError):
    """Descriptor content is not valid JSON or lacks required fields."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse {path}: {reason}")


class LockError(AgentError):
    """Shared state could not be locked for this operation."""
    pass


class NetworkError(AgentError):
    """Request could not be sent or its response not received."""
    pass



class RemoteRejectedError(AgentError):
    """
    Collection service answered non-2xx for a reason other than duplicate
    content. The body is kept verbatim for the failed status.
    """

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Upload rejected with HTTP {status}: {body}")
