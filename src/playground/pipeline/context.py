"""Explicit shared state for one playground session.

The context holds the three user-controlled inputs of a run (source,
dialect, format options) and tells subscribers which of them changed.
Runs never read the context directly; they work on an immutable
``RunInputs`` snapshot taken when the run is issued.
"""

from typing import Any, Callable, Dict, FrozenSet, List, Optional

from playground.__version__ import __version__
from playground.constants import Dialect
from playground.logging import get_logger
from playground.types import DEFAULT_SOURCE, FormatOptions, RunInputs, SharedState
from playground.utils.listeners import Unsubscribe, add_listener, notify_listeners

logger = get_logger(__name__)

ChangeListener = Callable[[FrozenSet[str]], None]


class PlaygroundContext:
    """Observable container for source, dialect and format options.

    Listeners receive the names of the fields that changed. Assigning a
    value equal to the current one changes nothing and notifies nobody.

    Example:
        >>> context = PlaygroundContext()
        >>> unsubscribe = context.subscribe(print)
        >>> context.set_dialect(Dialect.MYSQL)
        frozenset({'dialect'})
    """

    def __init__(
        self,
        source: str = DEFAULT_SOURCE,
        dialect: Dialect = Dialect.POSTGRES,
        options: Optional[FormatOptions] = None,
    ):
        self._source = _check_source(source)
        self._dialect = Dialect(dialect)
        self._options = options or FormatOptions()
        self._listeners: List[ChangeListener] = []

    @property
    def source(self) -> str:
        return self._source

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def options(self) -> FormatOptions:
        return self._options

    def set_source(self, source: str) -> bool:
        return self.update(source=source)

    def set_dialect(self, dialect: Dialect) -> bool:
        return self.update(dialect=dialect)

    def set_options(self, options: FormatOptions) -> bool:
        return self.update(options=options)

    def update(
        self,
        source: Optional[str] = None,
        dialect: Optional[Dialect] = None,
        options: Optional[FormatOptions] = None,
    ) -> bool:
        """Change several fields at once with a single notification.

        Args:
            source: New source text, or None to keep the current one
            dialect: New dialect, or None to keep the current one
            options: New format options, or None to keep the current ones

        Returns:
            True if at least one field changed
        """
        new_values: Dict[str, Any] = {}
        if source is not None:
            new_values["source"] = _check_source(source)
        if dialect is not None:
            new_values["dialect"] = Dialect(dialect)
        if options is not None:
            if not isinstance(options, FormatOptions):
                options = FormatOptions.model_validate(options)
            new_values["options"] = options

        changed = frozenset(
            name for name, value in new_values.items() if getattr(self, f"_{name}") != value
        )
        if not changed:
            return False

        for name in changed:
            setattr(self, f"_{name}", new_values[name])

        logger.debug("Playground context changed: %s", ", ".join(sorted(changed)))
        notify_listeners(self._listeners, logger, changed)
        return True

    def subscribe(self, listener: ChangeListener) -> Unsubscribe:
        """Register ``listener(changed_field_names)``. Returns an unsubscribe callable."""
        return add_listener(self._listeners, listener)

    def snapshot(self) -> RunInputs:
        return RunInputs(source=self._source, dialect=self._dialect, options=self._options)

    def apply_shared_state(self, state: SharedState) -> bool:
        """Restore dialect and source from a validated shared state."""
        return self.update(source=state.source, dialect=state.dialect)

    def to_shared_state(self) -> SharedState:
        return SharedState(dialect=self._dialect, builder_version=__version__, source=self._source)


def _check_source(source: Any) -> str:
    if not isinstance(source, str):
        raise TypeError(f"Source must be a string, got {type(source).__name__}")
    return source
