"""Error taxonomy for the tickerlens pipeline."""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    """Error classification codes."""

    DATA_UNAVAILABLE = "data_unavailable"
    RESAMPLING_DEGRADED = "resampling_degraded"
    AUXILIARY_DATA_MISSING = "auxiliary_data_missing"


class TickerLensError(Exception):
    """Base exception with error code and retryable flag.

    Attributes:
        message: Human-readable error description.
        code: Structured error code for programmatic handling.
        retryable: Whether the user may retry the request.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.DATA_UNAVAILABLE,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable


class DataUnavailable(TickerLensError):
    """Primary price data is empty, malformed or reported an error.

    Aborts the request. No partial result is returned.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code=ErrorCode.DATA_UNAVAILABLE, retryable=True)


class ResamplingDegraded(TickerLensError):
    """Resampling hit unexpected structure; callers fall back to the input bars."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=ErrorCode.RESAMPLING_DEGRADED)


class AuxiliaryDataMissing(TickerLensError):
    """Flow or corrected volume/close data could not be fetched."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=ErrorCode.AUXILIARY_DATA_MISSING, retryable=True)
