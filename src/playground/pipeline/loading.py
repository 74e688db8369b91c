from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Union

from playground.constants import LoadingScope
from playground.logging import get_logger
from playground.utils.listeners import Unsubscribe, add_listener, notify_listeners

logger = get_logger(__name__)

ScopeName = Union[LoadingScope, str]
LoadingListener = Callable[[str, bool], None]


def _scope_name(scope: ScopeName) -> str:
    return scope.value if isinstance(scope, LoadingScope) else str(scope)


class LoadingState:
    """Named loading scopes behind the UI busy indicator.

    Scopes nest: a scope stays loading until every ``begin`` has been
    matched by an ``end``. Listeners are called with ``(scope, loading)``
    when a scope starts or stops loading.

    Example:
        >>> loading = LoadingState()
        >>> with loading.scope(LoadingScope.INIT_SHARE):
        ...     loading.is_loading()
        True
    """

    def __init__(self):
        self._counts: Dict[str, int] = {}
        self._listeners: List[LoadingListener] = []

    def begin(self, scope: ScopeName) -> None:
        name = _scope_name(scope)
        count = self._counts.get(name, 0) + 1
        self._counts[name] = count
        if count == 1:
            notify_listeners(self._listeners, logger, name, True)

    def end(self, scope: ScopeName) -> None:
        name = _scope_name(scope)
        count = self._counts.get(name, 0)
        if count == 0:
            logger.warning("Loading scope %s ended more often than it began", name)
            return
        if count == 1:
            del self._counts[name]
            notify_listeners(self._listeners, logger, name, False)
        else:
            self._counts[name] = count - 1

    @contextmanager
    def scope(self, scope: ScopeName) -> Iterator[None]:
        self.begin(scope)
        try:
            yield
        finally:
            self.end(scope)

    def is_loading(self, scope: Optional[ScopeName] = None) -> bool:
        """Whether ``scope`` (or, without an argument, any scope) is loading."""
        if scope is None:
            return bool(self._counts)
        return _scope_name(scope) in self._counts

    @property
    def active_scopes(self) -> frozenset:
        return frozenset(self._counts)

    def subscribe(self, listener: LoadingListener) -> Unsubscribe:
        return add_listener(self._listeners, listener)
