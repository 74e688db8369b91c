"""Process isolation for playground source.

The parent starts a child process, waits for it to report ready, then
gives it ``timeout`` seconds to send back a result. A child that does not
answer in time is terminated, and killed if it ignores the termination.

The child never receives the builder module itself: it re-imports it from
``QueryBuilderModule.import_path`` so nothing but plain data crosses the
pipe.
"""

import multiprocessing
from multiprocessing.connection import Connection
from typing import Any, Tuple

from playground.common.exceptions import (
    ErrorCode,
    ExecutionError,
    PlaygroundError,
    error_from_dict,
    internal_error,
)
from playground.constants import Dialect
from playground.logging import get_logger
from playground.query_builder.factory import QueryBuilderFactory
from playground.query_builder.module import QueryBuilderModule
from playground.sandbox.runtime import execute_source
from playground.types import CompiledQuery

logger = get_logger(__name__)

_TERMINATE_GRACE_SECONDS = 1.0

_READY = "ready"
_OK = "ok"
_ERROR = "error"


def _child_main(conn: Connection, import_path: str, dialect_value: str, source: str) -> None:
    """Entry point of the sandbox child process."""
    try:
        try:
            module = QueryBuilderFactory.create_from_path(import_path)
        except Exception as exc:
            conn.send((_ERROR, internal_error(exc).to_dict()))
            return

        conn.send((_READY,))

        try:
            compiled = execute_source(module, Dialect(dialect_value), source)
        except PlaygroundError as exc:
            conn.send((_ERROR, exc.to_dict()))
        except Exception as exc:
            conn.send((_ERROR, internal_error(exc).to_dict()))
        else:
            conn.send((_OK, compiled.sql, list(compiled.parameters)))
    finally:
        conn.close()


def run_in_process(
    module: QueryBuilderModule,
    dialect: Dialect,
    source: str,
    *,
    timeout: float,
    startup_timeout: float,
    start_method: str = "spawn",
) -> CompiledQuery:
    """Compile ``source`` in a child process. Blocks the calling thread.

    Args:
        module: Builder module; only its import path is sent to the child
        dialect: Dialect the source is compiled for
        source: Playground source text
        timeout: Seconds the child may spend executing the source
        startup_timeout: Seconds the child may spend starting up
        start_method: multiprocessing start method

    Returns:
        CompiledQuery produced by the source

    Raises:
        ExecutionError: On timeout (EXECUTION_TIMEOUT) or if the child dies
        PlaygroundError: Any error reported by the child, re-raised as its
            original type
    """
    ctx = multiprocessing.get_context(start_method)
    receiver, sender = ctx.Pipe(duplex=False)
    process = ctx.Process(
        target=_child_main,
        args=(sender, module.import_path, dialect.value, source),
        name=f"playground-sandbox-{dialect.value}",
        daemon=True,
    )

    process.start()
    # The child owns the sending end now; closing ours makes recv() see EOF if it dies.
    sender.close()
    logger.debug("Started sandbox process pid=%s", process.pid)

    try:
        message = _receive(receiver, process, startup_timeout, "startup")
        if message[0] == _READY:
            message = _receive(receiver, process, timeout, "execution")
        return _decode(message, dialect)
    finally:
        receiver.close()
        _stop(process)


def _receive(conn: Connection, process: Any, timeout: float, phase: str) -> Tuple[Any, ...]:
    if not conn.poll(timeout):
        logger.warning(
            "Sandbox process pid=%s exceeded the %s timeout of %.2fs",
            process.pid,
            phase,
            timeout,
        )
        raise ExecutionError(
            f"Source did not finish within {timeout:g} seconds"
            if phase == "execution"
            else f"Sandbox process did not start within {timeout:g} seconds",
            error_code=ErrorCode.EXECUTION_TIMEOUT,
            details={"phase": phase, "timeout_seconds": timeout},
        )

    try:
        return conn.recv()
    except EOFError as exc:
        process.join(_TERMINATE_GRACE_SECONDS)
        raise ExecutionError(
            "Sandbox process exited without a result",
            details={"phase": phase, "exit_code": process.exitcode},
            cause=exc,
        ) from exc


def _decode(message: Tuple[Any, ...], dialect: Dialect) -> CompiledQuery:
    status = message[0]
    if status == _OK:
        _, sql, parameters = message
        return CompiledQuery(sql=sql, parameters=parameters, dialect=dialect)
    if status == _ERROR:
        raise error_from_dict(message[1])
    raise ExecutionError(f"Unexpected message from sandbox process: {status!r}")


def _stop(process: Any) -> None:
    """Join a finished child, or terminate and then kill a running one."""
    if process.is_alive():
        process.terminate()
        process.join(_TERMINATE_GRACE_SECONDS)
        if process.is_alive():
            logger.warning("Sandbox process pid=%s ignored terminate; killing", process.pid)
            process.kill()
    process.join()
    process.close()
