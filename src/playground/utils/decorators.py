import asyncio
import functools
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar

from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from playground.common.exceptions import PlaygroundError
from playground.logging import get_logger
from playground.logging.filters import dialect_var, pipeline_var, run_token_var
from playground.telemetry import get_tracer


F = TypeVar('F', bound=Callable[..., Any])

AttributeGetter = Callable[..., Optional[Dict[str, Any]]]

logger = get_logger(__name__)


def _run_attributes() -> Dict[str, Any]:
    """Span attributes for the run the current task belongs to."""
    return {
        "playground.pipeline": pipeline_var.get(),
        "playground.run_token": run_token_var.get(),
        "playground.dialect": dialect_var.get(),
    }


def _record_failure(span: Span, exc: Exception) -> None:
    span.record_exception(exc)
    if isinstance(exc, PlaygroundError):
        span.set_attribute("playground.error_code", exc.error_code.value)
    span.set_status(Status(StatusCode.ERROR, str(exc)))


def traced(
    span_name: Optional[str] = None,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Optional[Dict[str, Any]] = None,
    attribute_getter: Optional[AttributeGetter] = None,
) -> Callable[[F], F]:
    """Instrument a function with an OpenTelemetry span.

    Spans opened while a pipeline run is active carry the run's pipeline
    kind, token and dialect. Failures are recorded on the span; for
    playground errors the error code is attached as well.

    Args:
        span_name: Optional explicit span name. Defaults to module-qualified function name.
        kind: Span kind, defaults to INTERNAL.
        attributes: Static span attributes to attach.
        attribute_getter: Callable returning additional attributes at call time.
            It receives the same arguments as the decorated function and
            overrides run attributes of the same name.
    """

    def decorator(func: F) -> F:
        name = span_name or f"{func.__module__}.{func.__qualname__}"

        def _collect_attributes(args: tuple, kwargs: dict) -> Dict[str, Any]:
            collected = _run_attributes()
            if attributes:
                collected.update(attributes)

            if attribute_getter:
                try:
                    collected.update(attribute_getter(*args, **kwargs) or {})
                except Exception as exc:  # pragma: no cover - attribute errors never fail the call
                    logger.warning("trace attribute getter for %s failed: %s", name, exc)

            return {k: v for k, v in collected.items() if v is not None}

        @contextmanager
        def _span(args: tuple, kwargs: dict) -> Iterator[Span]:
            tracer = get_tracer(func.__module__)
            with tracer.start_as_current_span(
                name,
                kind=kind,
                attributes=_collect_attributes(args, kwargs),
                record_exception=False,
                set_status_on_exception=False,
            ) as span:
                try:
                    yield span
                except Exception as exc:
                    _record_failure(span, exc)
                    raise

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _span(args, kwargs):
                    return await func(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _span(args, kwargs):
                return func(*args, **kwargs)

        return sync_wrapper  # type: ignore[return-value]

    return decorator
