"""WebSocket relay sources (browser relay on this machine, remote relay on the network)."""

import asyncio
import json
import logging
from typing import Optional

import aiohttp
from pydantic import ValidationError

from ..models.session import SessionState, SourceKind, TranscriptionSession
from ..models.transcription import TranscriptEvent
from ..models.wire import JoinSessionMessage, TranscriptionStreamMessage
from .base import AbstractSegmentSource, SourceHandle, SourceStartError
from .publisher import SegmentPublisher

logger = logging.getLogger(__name__)

STREAM_MESSAGE_TYPE = "transcription_stream"


class RelaySegmentSource(AbstractSegmentSource):
    """Receives transcription_stream messages from a WebSocket relay.

    After connecting, the source joins the relay session as a viewer and waits
    for the first valid stream message before reporting that it is recording.
    Malformed messages are logged and dropped.
    """

    def __init__(
        self,
        url: str,
        relay_session_id: str,
        publisher: SegmentPublisher,
        connect_timeout_seconds: float = 10.0,
    ):
        """Initialize relay source.

        Args:
            url: WebSocket URL of the relay
            relay_session_id: Session id to join on the relay
            publisher: Publisher of the local session
            connect_timeout_seconds: Connect timeout
        """
        super().__init__(publisher)
        self.url = url
        self.relay_session_id = relay_session_id
        self.connect_timeout_seconds = connect_timeout_seconds
        self.receiving = False
        self.dropped_messages = 0
        self._http: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    async def start(self, session: TranscriptionSession) -> SourceHandle:
        self._http = aiohttp.ClientSession()
        try:
            self._ws = await asyncio.wait_for(
                self._http.ws_connect(self.url, heartbeat=30.0),
                timeout=self.connect_timeout_seconds,
            )
            join = JoinSessionMessage(session_id=self.relay_session_id)
            await self._ws.send_json(join.model_dump())
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            await self._close_transport()
            raise SourceStartError(f"Could not connect to relay at {self.url}: {e}") from e

        logger.info(f"Joined relay session '{self.relay_session_id}' at {self.url}")
        self.report_status(SessionState.WAITING_FOR_REMOTE, f"Waiting for transcription from {self.url}")

        handle = SourceHandle(
            session_id=session.session_id,
            source_kind=self.source_kind,
            transport=self._ws,
        )
        handle.task = asyncio.create_task(self._run(), name=f"relay-source-{session.session_id}")
        return handle

    async def _run(self) -> None:
        error = None
        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self.handle_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    error = self._ws.exception()
                    break
        except asyncio.CancelledError:
            raise
        except aiohttp.ClientError as e:
            error = e

        if self.stopping:
            return

        message = f"Relay connection lost: {error}" if error else "Relay connection closed"
        logger.error(message)
        self.report_status(SessionState.ERROR, message)

    def handle_message(self, raw: str) -> Optional[TranscriptEvent]:
        """Validate one relay message and publish it.

        Returns:
            The published event, or None if the message was dropped
        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self._drop(f"garbled JSON ({e})")
            return None

        if not isinstance(data, dict) or data.get("type") != STREAM_MESSAGE_TYPE:
            self._drop(f"unhandled message type {data.get('type') if isinstance(data, dict) else type(data).__name__}")
            return None

        try:
            message = TranscriptionStreamMessage.model_validate(data)
        except ValidationError as e:
            self._drop(f"invalid transcription_stream ({e.error_count()} errors)")
            return None

        if not self.receiving:
            self.receiving = True
            self.report_status(SessionState.RECORDING, f"Receiving transcription ({message.engine})")

        event = message.to_event()
        self.publisher.publish_event(event)
        return event

    def _drop(self, reason: str) -> None:
        self.dropped_messages += 1
        logger.warning(f"Dropped relay message: {reason}")

    async def _close_transport(self) -> None:
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._http is not None and not self._http.closed:
            await self._http.close()
        self._ws = None
        self._http = None

    async def stop(self, handle: SourceHandle) -> None:
        self.stopping = True
        await self._close_transport()
        await self._cancel_task(handle)
        logger.info(f"Relay source stopped for {handle.session_id}")


class BrowserRelaySource(RelaySegmentSource):
    """Relay served by the local browser transcription page."""

    source_kind = SourceKind.BROWSER_RELAY

    def __init__(self, port: int, relay_session_id: str, publisher: SegmentPublisher,
                 connect_timeout_seconds: float = 10.0):
        super().__init__(f"ws://127.0.0.1:{port}/ws", relay_session_id, publisher, connect_timeout_seconds)


class RemoteRelaySource(RelaySegmentSource):
    """Relay running on another machine."""

    source_kind = SourceKind.REMOTE_RELAY

    def __init__(self, host: str, port: int, relay_session_id: str, publisher: SegmentPublisher,
                 connect_timeout_seconds: float = 10.0):
        self.host = (host or "").strip()
        url = self.host if self.host.startswith(("ws://", "wss://")) else f"ws://{self.host}:{port}/ws"
        super().__init__(url, relay_session_id, publisher, connect_timeout_seconds)

    async def start(self, session: TranscriptionSession) -> SourceHandle:
        if not self.host:
            raise SourceStartError("Remote relay host is not configured")
        return await super().start(session)
