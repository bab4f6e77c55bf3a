# htverse/store/connection.py
"""
MongoDB connection bootstrap.

- pymongo client with a bounded server-selection timeout
- tenacity retry around the initial ping
"""

import logging
from typing import Tuple

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import AutoReconnect, ConnectionFailure, ServerSelectionTimeoutError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from htverse.config import MONGODB_DB, MONGODB_TIMEOUT_MS, MONGODB_URI

logger = logging.getLogger("htverse.store")


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, (ServerSelectionTimeoutError, AutoReconnect, ConnectionFailure))


def _log_retry(retry_state) -> None:
    logger.warning(
        "MongoDB not reachable (attempt %s): %s",
        retry_state.attempt_number,
        retry_state.outcome.exception(),
    )


@retry(
    reraise=True,
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    retry=retry_if_exception(_is_retryable),
    before_sleep=_log_retry,
)
def _ping(client: MongoClient) -> None:
    client.admin.command("ping")


def connect(
    uri: str = MONGODB_URI,
    db_name: str = MONGODB_DB,
    timeout_ms: int = MONGODB_TIMEOUT_MS,
) -> Tuple[MongoClient, Database]:
    """Open a client, wait until the server answers, return (client, database)."""
    client: MongoClient = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
    try:
        _ping(client)
    except Exception:
        client.close()
        raise
    logger.info("MongoDB connected (db=%s)", db_name)
    return client, client[db_name]
