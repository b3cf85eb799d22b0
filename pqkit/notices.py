"""Notice handlers on connections and connectors.

A connection is any object with a ``notice_handler`` attribute; a connector
is any object with a ``connect()`` method returning such a connection.
Notice handlers run synchronously: processing waits until they return.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from .errors import PqError

__all__ = [
    "NoticeHandler",
    "NoticeHandlerConnector",
    "connector_notice_handler",
    "connector_with_notice_handler",
    "notice_handler",
    "set_notice_handler",
]

NoticeHandler = Callable[[PqError], None]

_ATTR = "notice_handler"


def _require_connection(conn: Any) -> None:
    if not hasattr(conn, _ATTR):
        raise TypeError(f"{type(conn).__name__} is not a pq connection")


def notice_handler(conn: Any) -> Optional[NoticeHandler]:
    """Return the notice handler of a connection, if any."""
    _require_connection(conn)
    return getattr(conn, _ATTR)


def set_notice_handler(conn: Any, handler: Optional[NoticeHandler]) -> None:
    """Set the notice handler of a connection; None unsets it."""
    _require_connection(conn)
    setattr(conn, _ATTR, handler)


class NoticeHandlerConnector:
    """Wraps a connector and sets a notice handler on every new connection.

    Other attributes are taken from the wrapped connector.
    """

    def __init__(self, connector: Any, handler: Optional[NoticeHandler]) -> None:
        self.connector = connector
        self.notice_handler = handler

    def connect(self) -> Any:
        """Connect through the wrapped connector and set the notice handler."""
        conn = self.connector.connect()
        set_notice_handler(conn, self.notice_handler)
        return conn

    def __getattr__(self, name: str) -> Any:
        if name in ("connector", "notice_handler"):
            raise AttributeError(name)
        return getattr(self.connector, name)


def connector_notice_handler(connector: Any) -> Optional[NoticeHandler]:
    """Return the handler of a NoticeHandlerConnector, else None."""
    if isinstance(connector, NoticeHandlerConnector):
        return connector.notice_handler
    return None


def connector_with_notice_handler(
    connector: Any, handler: Optional[NoticeHandler]
) -> NoticeHandlerConnector:
    """Set the handler on a NoticeHandlerConnector, or wrap another connector."""
    if isinstance(connector, NoticeHandlerConnector):
        connector.notice_handler = handler
        return connector
    return NoticeHandlerConnector(connector, handler)