"""Request sequencer: "last intent wins" for overlapping runs.

Every trigger mints a new, strictly increasing ``RunToken``. Runs are never
aborted when they are superseded; a run that completes while its token is
no longer the latest one is ignored. Staleness is decided only at commit
time, by comparing the completing run's token with the latest one.
"""

import itertools
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from playground.common.exceptions import PlaygroundError
from playground.constants import COMPILE_PIPELINE, RunStatus
from playground.logging import get_logger
from playground.pipeline.sink import ResultSink
from playground.utils.listeners import Unsubscribe, add_listener, notify_listeners

logger = get_logger(__name__)

Outcome = Union[str, PlaygroundError]
ErrorListener = Callable[[PlaygroundError], None]
StatusListener = Callable[[RunStatus, RunStatus], None]


@dataclass(frozen=True, order=True)
class RunToken:
    """Identity of one run. Tokens of one sequencer are totally ordered by ``value``."""

    kind: str
    value: int

    def __str__(self) -> str:
        return f"{self.kind}#{self.value}"


class RequestSequencer:
    """State machine deciding which run outcome becomes visible.

    States are ``IDLE``, ``RUNNING(token)`` and ``SETTLED(token, outcome)``.
    ``issue()`` moves to ``RUNNING`` from any state. ``complete()`` settles
    only the run holding the latest token: a formatted SQL outcome is
    written to the result sink, an error outcome is handed to the error
    listeners. Any other completion is discarded without side effects.

    Attributes:
        kind: Pipeline kind the tokens are minted for
        sink: Result sink written by committed successes

    Example:
        >>> sequencer = RequestSequencer(sink=ResultSink())
        >>> first, second = sequencer.issue(), sequencer.issue()
        >>> sequencer.complete(second, 'select 2')
        True
        >>> sequencer.complete(first, 'select 1')
        False
        >>> sequencer.sink.value
        'select 2'
    """

    def __init__(self, kind: str = COMPILE_PIPELINE, sink: Optional[ResultSink] = None):
        self.kind = kind
        self.sink = sink if sink is not None else ResultSink()
        self._counter = itertools.count(1)
        self._status = RunStatus.IDLE
        self._token: Optional[RunToken] = None
        self._outcome: Optional[Outcome] = None
        self._error_listeners: List[ErrorListener] = []
        self._status_listeners: List[StatusListener] = []

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def token(self) -> Optional[RunToken]:
        """Latest minted token, or None before the first ``issue()``."""
        return self._token

    @property
    def outcome(self) -> Optional[Outcome]:
        """Outcome of the settled run; None unless the state is ``SETTLED``."""
        return self._outcome if self._status is RunStatus.SETTLED else None

    @property
    def is_loading(self) -> bool:
        return self._status is RunStatus.RUNNING

    def is_current(self, token: RunToken) -> bool:
        return self._status is RunStatus.RUNNING and token == self._token

    def issue(self) -> RunToken:
        """Mint a new token and supersede whatever was running."""
        token = RunToken(self.kind, next(self._counter))
        previous = self._token
        self._token = token
        self._outcome = None
        self._set_status(RunStatus.RUNNING)

        if previous is not None:
            logger.debug("Issued run %s, superseding %s", token, previous)
        return token

    def complete(self, token: RunToken, outcome: Outcome) -> bool:
        """Settle the run identified by ``token`` if it is still current.

        Args:
            token: Token the run was issued with
            outcome: Formatted SQL on success, the error on failure

        Returns:
            True if the outcome was committed, False if it was stale
        """
        if not self.is_current(token):
            logger.debug("Discarding stale completion of run %s (latest is %s)", token, self._token)
            return False

        self._outcome = outcome
        self._set_status(RunStatus.SETTLED)

        if isinstance(outcome, PlaygroundError):
            notify_listeners(self._error_listeners, logger, outcome)
        else:
            self.sink.set_result(outcome)
        return True

    def on_error(self, listener: ErrorListener) -> Unsubscribe:
        """Register a consumer for committed errors. Returns an unsubscribe callable."""
        return add_listener(self._error_listeners, listener)

    def on_status_change(self, listener: StatusListener) -> Unsubscribe:
        """Register ``listener(old, new)`` for status transitions."""
        return add_listener(self._status_listeners, listener)

    def _set_status(self, status: RunStatus) -> None:
        old, self._status = self._status, status
        if old is not status:
            notify_listeners(self._status_listeners, logger, old, status)
