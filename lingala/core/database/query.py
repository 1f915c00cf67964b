"""Bounded query execution.

Every statement goes through ``execute_query`` so that a slow or dead
Cassandra node turns into a retryable domain error instead of a hung
request.
"""

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from cassandra import (
    CoordinationFailure,
    OperationTimedOut,
    ReadTimeout,
    Unavailable,
    WriteTimeout,
)
from cassandra.cluster import NoHostAvailable
from cassandra.connection import ConnectionException

from lingala.core.errors import UpstreamTimeoutError, UpstreamUnavailableError


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)

DEFAULT_QUERY_TIMEOUT = 10.0


async def execute_query(
    session: "Session",
    statement: Any,
    params: list[Any] | None = None,
    *,
    timeout: float = DEFAULT_QUERY_TIMEOUT,
) -> Any:
    """Run ``session.aexecute`` with an upper time bound.

    Raises:
        UpstreamTimeoutError: the query did not finish within ``timeout``
            or the coordinator reported a read/write timeout.
        UpstreamUnavailableError: not enough replicas, no reachable host,
            replicas failing the request or a dropped connection.
    """
    try:
        return await asyncio.wait_for(
            session.aexecute(statement, params), timeout=timeout
        )
    except (TimeoutError, OperationTimedOut, ReadTimeout, WriteTimeout) as e:
        logger.error(
            "cassandra_query_timeout",
            timeout=timeout,
            error_type=type(e).__name__,
        )
        raise UpstreamTimeoutError from e
    except (
        Unavailable, NoHostAvailable, CoordinationFailure, ConnectionException
    ) as e:
        logger.error(
            "cassandra_unavailable",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise UpstreamUnavailableError from e


class CassandraService:
    """Base for services that own a set of prepared statements.

    Subclasses implement ``_prepare_statements`` and call ``_execute``.
    """

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        request_timeout: float = DEFAULT_QUERY_TIMEOUT,
    ):
        self.session = session
        self.keyspace = keyspace
        self.request_timeout = request_timeout
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        raise NotImplementedError

    async def _execute(self, statement: Any, params: list[Any] | None = None) -> Any:
        return await execute_query(
            self.session, statement, params, timeout=self.request_timeout
        )
