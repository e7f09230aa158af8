from __future__ import annotations

"""Failure taxonomy shared by the store, the gateway and the orchestrator."""


class ChatError(Exception):
    """Base class for every failure the chat flow knows how to handle."""


class StoreError(ChatError):
    """A turn could not be written to or read from the persistence store."""


class GatewayError(ChatError):
    """The completion call did not produce a reply.

    ``status`` mirrors the HTTP status of the failure and ``detail`` carries
    the raw error body (or reason phrase) reported for it.
    """

    def __init__(self, status: int, detail: str = "") -> None:
        self.status = int(status)
        self.detail = detail or ""
        super().__init__(f"Nvidia API error: {self.status} {self.detail}".rstrip())


class ConfigurationError(GatewayError):
    def __init__(self, detail: str) -> None:
        super().__init__(500, detail)

    def __str__(self) -> str:
        return self.detail


class UpstreamError(GatewayError):
    """The completion provider answered with a non-2xx status."""


class NetworkError(GatewayError):
    """The request never got an HTTP answer (DNS, refused, reset, connect timeout)."""

    def __init__(self, detail: str) -> None:
        super().__init__(0, detail)

    def __str__(self) -> str:
        return self.detail


class GatewayTimeout(GatewayError):
    """The connection was made but no answer arrived within the read timeout."""

    def __init__(self, detail: str) -> None:
        super().__init__(504, detail)


class SubmissionRejected(ChatError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Submission rejected: {reason}")
        self.reason = reason
