"""Default module supply mechanism.

The loader treats module supply as an opaque asynchronous contract. The
default supplier imports the dialect's builder package on a worker thread
so the event loop keeps serving edits while a cold import runs.
"""

import asyncio

from playground.constants import Dialect
from playground.query_builder.factory import QueryBuilderFactory
from playground.query_builder.module import QueryBuilderModule


async def import_supplier(dialect: Dialect) -> QueryBuilderModule:
    """Supply a builder module by importing its package."""
    return await asyncio.to_thread(QueryBuilderFactory.create, dialect)
