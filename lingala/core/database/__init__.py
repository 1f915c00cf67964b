"""Cassandra connection and query helpers."""

from lingala.core.database.async_cassandra import (
    AsyncCassandraConnection,
    init_async_cassandra,
    shutdown_async_cassandra,
)
from lingala.core.database.query import CassandraService, execute_query


__all__ = [
    "AsyncCassandraConnection",
    "CassandraService",
    "execute_query",
    "init_async_cassandra",
    "shutdown_async_cassandra",
]
