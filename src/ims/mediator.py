"""Command and query dispatch with uniform results.

``send`` builds a command, runs it through the domain synchronously and wraps
the outcome in a ``Result``. Handlers run inside their own unit of work, which
has already rolled back by the time an exception reaches this module. Only the
domain's own failures become failure results:

    ValidationError (incl. coded IMS errors)  → Result.failure(code, message)
    InvalidOperationError                     → BUSINESS_RULE_VIOLATION
    ObjectNotFoundError                       → BUSINESS_RULE_VIOLATION
    ExpectedVersionError                      → retried, then re-raised

Anything else is a system fault and propagates to the caller.
"""

import structlog
from protean.exceptions import (
    ExpectedVersionError,
    InvalidOperationError,
    ObjectNotFoundError,
    ValidationError,
)
from protean.utils.globals import current_domain

from ims import settings
from ims.errors import error_code, error_message
from ims.shared.result import Result

logger = structlog.get_logger(__name__)

_DOMAIN_FAILURES = (ValidationError, InvalidOperationError, ObjectNotFoundError)


def _failure(exc: Exception, request: str) -> Result:
    code, message = error_code(exc), error_message(exc)
    logger.info("Request rejected", request=request, error_code=code, error_message=message)
    return Result.failure(code, message)


def send(command_cls, **fields) -> Result:
    """Validate and dispatch a command; returns the handler's value on success."""
    name = command_cls.__name__
    try:
        command = command_cls(**fields)
    except ValidationError as exc:
        return _failure(exc, name)

    attempts = settings.command_retries()
    for attempt in range(1, attempts + 1):
        try:
            value = current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            if attempt == attempts:
                logger.error("Command failed on version conflict", request=name, attempts=attempts)
                raise
            logger.warning("Version conflict, retrying command", request=name, attempt=attempt)
        except _DOMAIN_FAILURES as exc:
            return _failure(exc, name)
        else:
            return Result.success(value)


def ask(query, *args, **kwargs) -> Result:
    """Run a read-only query function. No unit of work is opened."""
    try:
        value = query(*args, **kwargs)
    except _DOMAIN_FAILURES as exc:
        return _failure(exc, query.__name__)
    return Result.success(value)
