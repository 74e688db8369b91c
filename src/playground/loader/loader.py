"""Builder module loader with per-dialect caching.

The loader is the only owner of the module cache. It guarantees that at
most one module is cached per dialect and that concurrent requests for an
uncached dialect share a single in-flight fetch. Failures are never
cached: the slot stays empty so the next trigger retries.
"""

import asyncio
from typing import Dict, Optional

from playground.common.exceptions import ModuleUnavailable
from playground.constants import Dialect
from playground.loader.supplier import import_supplier
from playground.logging import get_logger
from playground.protocols import ModuleSupplier
from playground.query_builder.module import QueryBuilderModule
from playground.utils.decorators import traced

logger = get_logger(__name__)


class ModuleLoader:
    """Asynchronous, single-flight cache of builder modules.

    Attributes:
        load_timeout: Seconds to wait for the supplier, or None for no limit

    Example:
        >>> loader = ModuleLoader()
        >>> module = await loader.load(Dialect.POSTGRES)
        >>> module is await loader.load(Dialect.POSTGRES)
        True
    """

    def __init__(
        self,
        supplier: Optional[ModuleSupplier] = None,
        load_timeout: Optional[float] = None,
    ):
        self._supplier = supplier or import_supplier
        self.load_timeout = load_timeout
        self._modules: Dict[Dialect, QueryBuilderModule] = {}
        self._inflight: Dict[Dialect, "asyncio.Future[QueryBuilderModule]"] = {}
        self._fetch_counts: Dict[Dialect, int] = {}

    async def load(self, dialect: Dialect) -> QueryBuilderModule:
        """Return the cached module for ``dialect``, fetching it once if needed.

        Args:
            dialect: Dialect to load

        Returns:
            The cached QueryBuilderModule

        Raises:
            ModuleUnavailable: If the supplier fails, times out or returns
                something other than a module for ``dialect``
        """
        dialect = Dialect(dialect)

        module = self._modules.get(dialect)
        if module is not None:
            return module

        inflight = self._inflight.get(dialect)
        if inflight is None:
            inflight = asyncio.ensure_future(self._fetch(dialect))
            self._inflight[dialect] = inflight
        else:
            logger.debug("Joining in-flight load for dialect %s", dialect.value)

        # A cancelled waiter must not cancel the fetch other waiters share.
        return await asyncio.shield(inflight)

    def is_cached(self, dialect: Dialect) -> bool:
        return Dialect(dialect) in self._modules

    def invalidate(self, dialect: Dialect) -> bool:
        """Drop the cached module for ``dialect``.

        A fetch already in flight is not affected and will populate the
        cache when it completes.

        Returns:
            True if a cached module was removed
        """
        removed = self._modules.pop(Dialect(dialect), None) is not None
        if removed:
            logger.info("Invalidated cached module for dialect %s", Dialect(dialect).value)
        return removed

    def fetch_count(self, dialect: Dialect) -> int:
        """Number of times the supplier has been invoked for ``dialect``."""
        return self._fetch_counts.get(Dialect(dialect), 0)

    @traced(
        "playground.loader.fetch",
        attribute_getter=lambda self, dialect: {"playground.dialect": dialect.value},
    )
    async def _fetch(self, dialect: Dialect) -> QueryBuilderModule:
        self._fetch_counts[dialect] = self._fetch_counts.get(dialect, 0) + 1
        logger.info("Loading builder module for dialect %s", dialect.value)

        try:
            module = await self._supply(dialect)
            # First successful writer wins; a module cached meanwhile is kept.
            return self._modules.setdefault(dialect, module)
        finally:
            self._inflight.pop(dialect, None)

    async def _supply(self, dialect: Dialect) -> QueryBuilderModule:
        try:
            if self.load_timeout is None:
                module = await self._supplier(dialect)
            else:
                module = await asyncio.wait_for(self._supplier(dialect), self.load_timeout)
        except ModuleUnavailable:
            raise
        except asyncio.TimeoutError as exc:
            raise ModuleUnavailable(
                f"Timed out loading builder module for {dialect.value}",
                details={"dialect": dialect.value, "timeout_seconds": self.load_timeout},
                cause=exc,
            ) from exc
        except Exception as exc:
            logger.warning("Failed to load builder module for %s: %s", dialect.value, exc)
            raise ModuleUnavailable(
                f"Builder module for {dialect.value} is unavailable",
                details={"dialect": dialect.value},
                cause=exc,
            ) from exc

        if not isinstance(module, QueryBuilderModule) or module.dialect is not dialect:
            raise ModuleUnavailable(
                f"Supplier returned an invalid module for {dialect.value}",
                details={"dialect": dialect.value},
            )
        return module
