"""Listener registration shared by the observable pipeline objects."""

import logging
from typing import Any, Callable, List

Unsubscribe = Callable[[], None]


def add_listener(listeners: List[Callable[..., Any]], listener: Callable[..., Any]) -> Unsubscribe:
    """Append ``listener`` and return a callable that removes it again.

    Calling the returned callable more than once is harmless.
    """
    if not callable(listener):
        raise TypeError(f"Listener must be callable, got {type(listener).__name__}")
    listeners.append(listener)

    def unsubscribe() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return unsubscribe


def notify_listeners(
    listeners: List[Callable[..., Any]],
    logger: logging.Logger,
    *args: Any,
) -> None:
    """Call every listener with ``args``; a failing listener is logged and skipped."""
    for listener in list(listeners):
        try:
            listener(*args)
        except Exception:
            logger.exception("Listener %r failed", listener)
