import pytest

from pqkit.errors import PqError
from pqkit.notices import (
    NoticeHandlerConnector,
    connector_notice_handler,
    connector_with_notice_handler,
    notice_handler,
    set_notice_handler,
)


class FakeConn:
    def __init__(self):
        self.notice_handler = None

    def raise_notice(self, message):
        if self.notice_handler is not None:
            self.notice_handler(PqError(severity="NOTICE", message=message))


class FakeConnector:
    name = "fake"

    def __init__(self, fail=False):
        self.fail = fail

    def connect(self):
        if self.fail:
            raise ConnectionError("refused")
        return FakeConn()


def raise_notice(connector, message):
    connector.connect().raise_notice(message)


def test_connector_with_notice_handler_simple():
    base = FakeConnector()
    received = []
    c = connector_with_notice_handler(base, received.append)
    raise_notice(c, "Test notice #1")
    assert [n.message for n in received] == ["Test notice #1"]

    prev = c
    c = connector_with_notice_handler(c, None)
    assert c is prev
    raise_notice(c, "Test notice #2")
    assert [n.message for n in received] == ["Test notice #1"]

    c = connector_with_notice_handler(c, received.append)
    assert c is prev
    raise_notice(c, "Test notice #3")
    assert received[-1].message == "Test notice #3"


def test_connector_notice_handler():
    base = FakeConnector()
    assert connector_notice_handler(base) is None

    def handler(notice):
        pass

    wrapped = connector_with_notice_handler(base, handler)
    assert connector_notice_handler(wrapped) is handler
    assert wrapped.connector is base


def test_set_and_get_notice_handler_on_connection():
    conn = FakeConn()
    assert notice_handler(conn) is None
    seen = []
    set_notice_handler(conn, seen.append)
    assert notice_handler(conn) == seen.append
    conn.raise_notice("hello")
    assert seen[0].message == "hello"


def test_non_connection_rejected():
    with pytest.raises(TypeError):
        notice_handler(object())
    with pytest.raises(TypeError):
        set_notice_handler(object(), None)


def test_connect_failure_propagates():
    wrapped = NoticeHandlerConnector(FakeConnector(fail=True), print)
    with pytest.raises(ConnectionError, match="refused"):
        wrapped.connect()


def test_attributes_delegate_to_wrapped_connector():
    wrapped = connector_with_notice_handler(FakeConnector(), None)
    assert wrapped.name == "fake"
    with pytest.raises(AttributeError):
        wrapped.missing_attribute