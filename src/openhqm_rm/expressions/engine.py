"""JQ expression engine.

The routing engine treats expression evaluation as an opaque capability:
``evaluate(expression, data)`` either yields a JSON value or a structured
error, and never raises. :class:`JQEngine` is the production implementation
backed by the ``jq`` binding.
"""

import functools
import multiprocessing
import re
import threading
from multiprocessing.connection import Connection
from typing import Any, Protocol, runtime_checkable

import jq
import structlog
from pydantic import BaseModel, Field

from openhqm_rm.config import settings
from openhqm_rm.exceptions import TransformError, TransformTimeoutError

logger = structlog.get_logger(__name__)

_ERROR_PREFIX = re.compile(r"jq: error:?", re.IGNORECASE)
_COMPILE_TRAILER = re.compile(r"\n?jq: \d+ compile errors?\s*$", re.IGNORECASE)
_NO_OUTPUT = object()


class TransformResult(BaseModel):
    """Outcome of evaluating an expression against a JSON value."""

    success: bool = Field(..., description="Whether the expression ran without error")
    output: Any = Field(default=None, description="First value emitted by the expression")
    error: str | None = Field(default=None, description="Error message on failure")
    suggestions: list[str] = Field(default_factory=list, description="Remediation hints")


class ValidationResult(BaseModel):
    """Outcome of checking an expression's syntax."""

    valid: bool = Field(..., description="Whether the expression compiles")
    error: str | None = Field(default=None, description="Compile error message")
    suggestions: list[str] = Field(default_factory=list, description="Remediation hints")


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """Capability used by the routing engine for `jq` conditions and transforms.

    Implementations must be deterministic for identical (expression, input)
    pairs, must not mutate the input and must report failures in the returned
    result rather than raising.
    """

    def evaluate(self, expression: str, data: Any) -> TransformResult: ...

    def validate(self, expression: str) -> ValidationResult: ...


def parse_error(error: BaseException | str) -> str:
    """Strip jq's diagnostic prefixes from an error message."""
    message = str(error) or error.__class__.__name__
    message = _COMPILE_TRAILER.sub("", message)
    return _ERROR_PREFIX.sub("", message).strip()


def suggest_fixes(message: str) -> list[str]:
    """Derive remediation hints from a jq error message.

    Args:
        message: Error message as reported by jq

    Returns:
        Zero or more human-readable suggestions
    """
    suggestions: list[str] = []
    text = message.lower()

    if "undefined" in text or "null" in text:
        suggestions.append("Check if all field paths exist in your input data")
        suggestions.append('Use the // operator for default values: .field // "default"')

    if "syntax" in text or "parse" in text or "compile" in text:
        suggestions.append(
            "Verify JQ syntax - common issues: missing pipes |, parentheses, or brackets"
        )
        suggestions.append("Check for unmatched quotes or brackets")

    if "cannot iterate" in text:
        suggestions.append("Make sure you are iterating over an array or object")
        suggestions.append("Use [] to iterate: .items[]")

    if "cannot index" in text:
        suggestions.append("Check the type of the value at this path before indexing it")

    if "exceeded" in text:
        suggestions.append("Simplify the expression or avoid unbounded generators")

    return suggestions


def _serve(connection: Connection, cache_size: int) -> None:
    """Evaluate ``(expression, data)`` requests received over a pipe.

    Replies are ``("ok", value)``, ``("empty", None)`` or ``("error", message)``.
    Returns when the parent closes its end of the pipe.
    """
    compile_program = functools.lru_cache(maxsize=cache_size)(jq.compile)
    connection.send(("ready", None))

    while True:
        try:
            expression, data = connection.recv()
        except EOFError:
            return

        try:
            outputs = iter(compile_program(expression).input_value(data))
            value = next(outputs, _NO_OUTPUT)
        except Exception as e:
            connection.send(("error", parse_error(e)))
            continue

        if value is _NO_OUTPUT:
            connection.send(("empty", None))
        else:
            connection.send(("ok", value))


class _JQWorker:
    """Child process running jq programs, terminated when it overruns its budget.

    The jq binding does not release the GIL, so an overrunning program can
    only be stopped by killing the process that runs it. A fresh process is
    started on the next request.
    """

    def __init__(self, cache_size: int):
        self._cache_size = cache_size
        self._context = multiprocessing.get_context("spawn")
        self._process: Any = None
        self._connection: Connection | None = None
        self._lock = threading.Lock()

    def _start(self) -> None:
        parent, child = self._context.Pipe()
        process = self._context.Process(
            target=_serve, args=(child, self._cache_size), name="jq-eval", daemon=True
        )
        process.start()
        child.close()
        # wait for imports in the child so start-up is not charged to the first request
        try:
            parent.recv()
        except EOFError:
            process.join()
            parent.close()
            raise TransformError("JQ worker failed to start") from None
        self._process, self._connection = process, parent
        logger.debug("JQ worker started", pid=process.pid)

    def _stop(self) -> None:
        if self._process is None:
            return
        self._process.terminate()
        self._process.join()
        self._connection.close()
        logger.debug("JQ worker stopped", pid=self._process.pid)
        self._process, self._connection = None, None

    def close(self) -> None:
        with self._lock:
            self._stop()

    def run(self, expression: str, data: Any, timeout_ms: int) -> Any:
        """Evaluate an expression in the worker process.

        Raises:
            TransformTimeoutError: If no reply arrives within ``timeout_ms``
            TransformError: If jq reports an error or the worker dies
        """
        with self._lock:
            if self._process is None or not self._process.is_alive():
                self._stop()
                self._start()

            self._connection.send((expression, data))
            if not self._connection.poll(timeout_ms / 1000):
                self._stop()
                raise TransformTimeoutError(f"JQ execution exceeded {timeout_ms}ms")

            try:
                status, value = self._connection.recv()
            except EOFError:
                self._stop()
                raise TransformError("JQ worker exited unexpectedly") from None

        if status == "error":
            raise TransformError(value)
        if status == "empty":
            return _NO_OUTPUT
        return value


class JQEngine:
    """Evaluate JQ expressions with compile caching and an execution budget.

    With a budget, programs run in a separate worker process which is
    terminated when the budget is exceeded. Without one they run in-process.
    """

    def __init__(self, max_execution_time_ms: int = 5000, cache_size: int = 256):
        """Initialize the engine.

        Args:
            max_execution_time_ms: Wall-clock budget per evaluation, 0 disables it
            cache_size: Number of compiled programs kept in the LRU cache
        """
        self.max_execution_time_ms = max_execution_time_ms
        self._compile = functools.lru_cache(maxsize=cache_size)(self._compile_program)
        self._worker = _JQWorker(cache_size) if max_execution_time_ms else None

    @classmethod
    def from_settings(cls) -> "JQEngine":
        """Create an engine from application settings."""
        return cls(
            max_execution_time_ms=settings.jq.max_execution_time_ms,
            cache_size=settings.jq.cache_size,
        )

    def close(self) -> None:
        """Stop the worker process, if one is running."""
        if self._worker is not None:
            self._worker.close()

    @staticmethod
    def _compile_program(expression: str) -> Any:
        try:
            return jq.compile(expression)
        except ValueError as e:
            raise TransformError(parse_error(e)) from e

    def _execute(self, expression: str, data: Any) -> Any:
        if self._worker is not None:
            return self._worker.run(expression, data, self.max_execution_time_ms)

        program = self._compile(expression)
        try:
            return next(iter(program.input_value(data)), _NO_OUTPUT)
        except ValueError as e:
            raise TransformError(parse_error(e)) from e

    def evaluate(self, expression: str, data: Any) -> TransformResult:
        """Run an expression against a JSON value.

        Args:
            expression: JQ expression
            data: Input JSON value (not modified)

        Returns:
            TransformResult with the first emitted value, or the error
            and suggestions when compilation, execution or the budget fails
        """
        try:
            output = self._execute(expression, data)
        except TransformError as e:
            logger.warning("JQ evaluation failed", expression=expression, error=str(e))
            return TransformResult(success=False, error=str(e), suggestions=suggest_fixes(str(e)))
        except Exception as e:
            message = parse_error(e)
            logger.error("JQ evaluation crashed", expression=expression, error=message)
            return TransformResult(success=False, error=message, suggestions=suggest_fixes(message))

        if output is _NO_OUTPUT:
            logger.debug("JQ expression produced no output", expression=expression)
            return TransformResult(success=True, output=None)
        return TransformResult(success=True, output=output)

    def validate(self, expression: str) -> ValidationResult:
        """Check that an expression compiles.

        Args:
            expression: JQ expression

        Returns:
            ValidationResult describing any compile error
        """
        try:
            self._compile(expression)
        except TransformError as e:
            return ValidationResult(valid=False, error=str(e), suggestions=suggest_fixes(str(e)))
        return ValidationResult(valid=True)
