"""Classify botocore failures into QueueErrorKind."""
from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError, HTTPClientError
from botocore.exceptions import ConnectionError as BotoConnectionError

from sqs_consumer.app.ports.queue_client import QueueClientError, QueueErrorKind

THROTTLING_ERROR_CODES = {
    "Throttling",
    "ThrottlingException",
    "ThrottledException",
    "RequestThrottled",
    "RequestThrottledException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "ProvisionedThroughputExceededException",
    "KmsThrottled",
    "SlowDown",
}

RETRYABLE_ERROR_CODES = {
    "InternalError",
    "InternalFailure",
    "ServiceUnavailable",
    "RequestTimeout",
    "RequestTimeoutException",
    "PriorRequestNotComplete",
    "500",
    "502",
    "503",
    "504",
}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _status_code(exc: ClientError) -> int:
    return int(exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0) or 0)


def classify_error(exc: BaseException) -> QueueErrorKind:
    if isinstance(exc, ClientError):
        code = _error_code(exc)
        if code in THROTTLING_ERROR_CODES or _status_code(exc) == 429:
            return QueueErrorKind.THROTTLED
        if code in RETRYABLE_ERROR_CODES or _status_code(exc) >= 500:
            return QueueErrorKind.RETRYABLE
        return QueueErrorKind.PERMANENT
    if isinstance(exc, (BotoConnectionError, HTTPClientError)):
        return QueueErrorKind.RETRYABLE
    return QueueErrorKind.PERMANENT


def to_queue_error(operation: str, exc: BotoCoreError | ClientError) -> QueueClientError:
    code = _error_code(exc) if isinstance(exc, ClientError) else type(exc).__name__
    return QueueClientError(f"{operation} failed: {exc}", kind=classify_error(exc), code=code or None)
