from __future__ import annotations


class UpstreamError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotConfiguredError(UpstreamError):
    pass


class MalformedRecordError(ValueError):
    pass
