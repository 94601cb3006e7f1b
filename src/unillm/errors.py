from __future__ import annotations


class LLMError(RuntimeError):
    pass


class ModelNotSpecifiedError(LLMError):
    def __init__(self, message: str = "model not specified") -> None:
        super().__init__(message)


class ProviderNotSupportedError(LLMError):
    """Raised when no provider is registered under the requested id."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"provider not supported: {provider}")
        self.provider = provider


class NoToolsSpecifiedError(LLMError):
    def __init__(self, message: str = "no tools specified") -> None:
        super().__init__(message)


class EmptyCredentialError(LLMError):
    """Raised by a provider adapter when its API key is missing."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"{provider} API key is empty")
        self.provider = provider


class UpstreamError(LLMError):
    """Non-success status or an error payload reported by the provider.

    `message` is the upstream text, unmodified.
    """

    def __init__(self, provider: str, status_code: int, message: str) -> None:
        super().__init__(f"{provider} API error ({status_code}): {message}")
        self.provider = provider
        self.status_code = status_code
        self.message = message


class InvalidUpstreamReplyError(LLMError):
    def __init__(self, provider: str, detail: str = "") -> None:
        msg = f"invalid response from {provider} API"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.provider = provider


class DecodeFailureError(LLMError):
    """The reconciled JSON candidate could not be decoded.

    Carries the exact candidate string so malformed model output can be inspected.
    """

    def __init__(self, candidate: str, cause: Exception) -> None:
        super().__init__(f"failed to decode JSON response: {cause}: {candidate}")
        self.candidate = candidate
        self.cause = cause


class LLMValidationError(DecodeFailureError):
    """Raised when decoded output does not match the requested target shape."""


class TransportError(LLMError):
    pass


class RequestCancelledError(LLMError):
    def __init__(self, message: str = "request cancelled") -> None:
        super().__init__(message)


class DeadlineExceededError(RequestCancelledError):
    def __init__(self, message: str = "request deadline exceeded") -> None:
        super().__init__(message)
