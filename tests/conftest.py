import aiohttp
import pytest
from escpos.printer import Dummy

from ticket_printer.printer import DeviceError


class StopSession(Exception):
    """Raised by the fake sleep to break out of Session.run()."""


def text(data):
    return aiohttp.WSMessage(aiohttp.WSMsgType.TEXT, data, None)


def frame(msg_type, data=None):
    return aiohttp.WSMessage(msg_type, data, None)


class FakeWebSocket:
    """Feeds queued messages (or raises queued exceptions) from receive()."""

    def __init__(self, messages, events=None, error=None):
        self.messages = list(messages)
        self.events = events if events is not None else []
        self.error = error
        self.closed = False

    async def receive(self):
        self.events.append("receive")
        if not self.messages:
            return frame(aiohttp.WSMsgType.CLOSED)
        item = self.messages.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def exception(self):
        return self.error

    async def close(self):
        self.closed = True


class FakeConnector:
    """Async connect callable returning queued websockets or raising queued errors."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.urls = []

    async def __call__(self, url):
        self.urls.append(url)
        if not self.outcomes:
            raise aiohttp.ClientConnectionError("connection refused")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeSleep:
    """Records cooldowns; raises StopSession once `limit` waits have happened."""

    def __init__(self, limit=None):
        self.limit = limit
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)
        if self.limit is not None and len(self.calls) >= self.limit:
            raise StopSession()


class RecordingSink:
    """Print sink stand-in that records every ticket and fails on request."""

    def __init__(self, events=None, fail_on=()):
        self.events = events if events is not None else []
        self.fail_on = set(fail_on)
        self.tickets = []

    def initialize(self):
        pass

    def render(self, ticket):
        self.events.append(("render-start", ticket.body))
        self.tickets.append(ticket)
        try:
            if ticket.body in self.fail_on:
                raise DeviceError("paper jam")
        finally:
            self.events.append(("render-end", ticket.body))


class FailingDummy(Dummy):
    """Dummy printer whose every write fails."""

    def _raw(self, msg):
        raise OSError("printer offline")


@pytest.fixture
def events():
    return []
