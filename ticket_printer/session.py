"""WebSocket session that feeds inbound messages to the printer."""

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Optional

import aiohttp

from ticket_printer.config import COOLDOWN, DEFAULT_HEADER
from ticket_printer.printer import DeviceError, PrintSink, Ticket

logger = logging.getLogger(__name__)

# Failures that end a connection attempt or a live connection
CONNECTION_ERRORS = (aiohttp.ClientError, OSError, asyncio.TimeoutError)

CLOSE_TYPES = (
    aiohttp.WSMsgType.CLOSE,
    aiohttp.WSMsgType.CLOSING,
    aiohttp.WSMsgType.CLOSED,
)


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


class SessionPhase(enum.Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class Session:
    """Keeps one connection to the message source alive, forever.

    Each call to :meth:`step` performs exactly one suspension (connect,
    receive, or cooldown) and moves the phase on. Text messages are rendered
    synchronously, so the next message is not received until the printer
    call for the current one has returned.

    Args:
        url: WebSocket URL of the message source
        sink: Print sink to render tickets on
        cooldown: Seconds to wait before every reconnect attempt
        header: Header label printed on every ticket
        connect: Async callable returning an open websocket for a URL.
            Defaults to aiohttp's ``ws_connect`` on a session owned here.
        sleep: Async callable used for the cooldown wait
    """

    def __init__(
        self,
        url: str,
        sink: PrintSink,
        cooldown: float = COOLDOWN,
        header: str = DEFAULT_HEADER,
        connect: Optional[Callable[[str], Awaitable]] = None,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
    ):
        self.url = url
        self.sink = sink
        self.cooldown = cooldown
        self.header = header
        self.phase = SessionPhase.CONNECTING
        self._connect = connect or self._ws_connect
        self._sleep = sleep
        self._ws = None
        self._http: Optional[aiohttp.ClientSession] = None

    async def _ws_connect(self, url: str):
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession()
        return await self._http.ws_connect(url)

    async def run(self) -> None:
        """Run the session until the process is killed."""
        try:
            while True:
                await self.step()
        finally:
            await self._close_ws()
            if self._http is not None:
                await self._http.close()

    async def step(self) -> None:
        if self.phase is SessionPhase.CONNECTING:
            await self._attempt_connect()
        elif self.phase is SessionPhase.CONNECTED:
            await self._receive_one()
        else:
            await self._cool_down()

    async def _attempt_connect(self) -> None:
        logger.info("Connecting to WebSocket...")
        try:
            self._ws = await self._connect(self.url)
        except CONNECTION_ERRORS as e:
            logger.error(
                "Connect failed: %s. Retrying in %s seconds...",
                _describe(e),
                self.cooldown,
            )
            await self._sleep(self.cooldown)
            return

        logger.info("Connected!")
        self.phase = SessionPhase.CONNECTED

    async def _receive_one(self) -> None:
        try:
            msg = await self._ws.receive()
        except CONNECTION_ERRORS as e:
            logger.error("Connection error: %s", _describe(e))
            self.phase = SessionPhase.DISCONNECTED
            return

        if msg.type == aiohttp.WSMsgType.TEXT:
            self.dispatch(msg.data)
        elif msg.type == aiohttp.WSMsgType.ERROR:
            logger.error("Connection error: %s", self._ws.exception() or msg.data)
            self.phase = SessionPhase.DISCONNECTED
        elif msg.type in CLOSE_TYPES:
            logger.info("Connection closed by peer")
            self.phase = SessionPhase.DISCONNECTED
        else:
            logger.debug("Ignoring %s frame", msg.type.name)

    def dispatch(self, text: str) -> bool:
        """Print one message. Returns False if the printer failed."""
        logger.info("Received: %s", text)
        try:
            self.sink.render(Ticket(text, self.header))
        except DeviceError as e:
            logger.error("Print failed: %s", e)
            return False
        logger.info("Printed ticket.")
        return True

    async def _close_ws(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None and not ws.closed:
            try:
                await ws.close()
            except CONNECTION_ERRORS as e:
                logger.debug("Error closing websocket: %s", e)

    async def _cool_down(self) -> None:
        await self._close_ws()
        logger.info("Disconnected. Retrying in %s seconds...", self.cooldown)
        await self._sleep(self.cooldown)
        self.phase = SessionPhase.CONNECTING
