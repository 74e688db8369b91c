"""Pipeline and sandbox constants."""

from enum import Enum


class RunStatus(str, Enum):
    """States of the request sequencer state machine.

    Values:
        IDLE: No run has been issued yet.
        RUNNING: A run is in flight and its token is the latest one.
        SETTLED: The latest run completed; its outcome is held.
    """

    IDLE = "idle"
    RUNNING = "running"
    SETTLED = "settled"


class IsolationMode(str, Enum):
    """How the execution sandbox runs user source.

    Values:
        PROCESS: Spawned child process, forcibly terminated on timeout.
        INLINE: Worker thread in the current process. A timeout is
            reported but the thread cannot be stopped.
    """

    PROCESS = "process"
    INLINE = "inline"


class LoadingScope(str, Enum):
    """Named loading scopes tracked for the UI."""

    COMPILE = "compile"
    INIT_SHARE = "init_share"


COMPILE_PIPELINE = "compile"
