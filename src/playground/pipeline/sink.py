from typing import Callable, List

from playground.logging import get_logger
from playground.protocols import EditorSink
from playground.utils.listeners import Unsubscribe, add_listener, notify_listeners

logger = get_logger(__name__)

Consumer = Callable[[str], None]


class ResultSink:
    """Holder of the latest committed formatted SQL.

    Every ``set_result`` overwrites the value and republishes it to all
    consumers, including attached editors. No history is kept.

    Example:
        >>> sink = ResultSink()
        >>> sink.attach_editor(editor)
        >>> sink.set_result('select "col" from "table"')
        >>> sink.value
        'select "col" from "table"'
    """

    def __init__(self, initial: str = ""):
        self._value = initial
        self._consumers: List[Consumer] = []

    @property
    def value(self) -> str:
        return self._value

    def set_result(self, sql: str) -> None:
        self._value = sql
        notify_listeners(self._consumers, logger, sql)

    def subscribe(self, consumer: Consumer) -> Unsubscribe:
        return add_listener(self._consumers, consumer)

    def attach_editor(self, editor: EditorSink) -> Unsubscribe:
        """Mirror every published result into ``editor`` via ``set_value``."""
        if not isinstance(editor, EditorSink):
            raise TypeError(f"{type(editor).__name__} does not provide set_value(text)")
        return self.subscribe(editor.set_value)
