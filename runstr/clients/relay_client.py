"""
Websocket relay client.

Implements the RelayProvider interface over NIP-01 websocket messages:
sends one REQ, gathers EVENT frames until EOSE, then sends CLOSE.
"""
import asyncio
import json
import uuid
from typing import Dict, Optional, Set

import aiohttp
import bittensor as bt

from runstr.reward_engine.models.raw_record import RawRecord
from runstr.utils.config import RELAY_FETCH_TIMEOUT, MAX_EVENTS_PER_RELAY
from runstr.utils.error_handling import ErrorMessages
from .relay_provider import RelayProvider, FetchResult

CLOSE_TIMEOUT = 5.0

# Teardown tasks for cancelled fetches; referenced here so they are not garbage collected mid-close
_background_closes: Set[asyncio.Task] = set()


async def _close_connection(ws: Optional[aiohttp.ClientWebSocketResponse], session: aiohttp.ClientSession) -> None:
    try:
        if ws is not None and not ws.closed:
            await asyncio.wait_for(ws.close(), timeout=CLOSE_TIMEOUT)
    except (asyncio.TimeoutError, aiohttp.ClientError, ConnectionError) as e:
        bt.logging.debug(f"Websocket close did not complete cleanly: {e!r}")
    finally:
        await session.close()


def _close_in_background(ws: Optional[aiohttp.ClientWebSocketResponse], session: aiohttp.ClientSession) -> None:
    task = asyncio.get_running_loop().create_task(_close_connection(ws, session))
    _background_closes.add(task)
    task.add_done_callback(_background_closes.discard)


class RelayClient(RelayProvider):
    """
    aiohttp implementation of relay access.

    Each fetch opens its own session and websocket and closes both on every
    exit path. When the fetch is cancelled, closing is handed to a background
    task so the canceller never waits on a slow relay.
    """

    def __init__(self, max_events: int = MAX_EVENTS_PER_RELAY):
        """
        Initialize relay client.

        Args:
            max_events: Stop reading a relay once this many matching events
                        have been received
        """
        self.max_events = max_events

    async def fetch(self, endpoint: str, event_filter: "EventFilter",
                    timeout: float = RELAY_FETCH_TIMEOUT) -> FetchResult:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        session = aiohttp.ClientSession()
        ws = None
        cancelled = False

        try:
            try:
                ws = await asyncio.wait_for(session.ws_connect(endpoint, autoping=True), timeout=timeout)
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                reason = f"{ErrorMessages.RELAY_CONNECTION_FAILED}: {e!r}"
                bt.logging.warning(f"{endpoint}: {reason}")
                return FetchResult.failed(endpoint, reason)
            return await self._read_subscription(ws, endpoint, event_filter, deadline)
        except asyncio.CancelledError:
            cancelled = True
            raise
        finally:
            if cancelled:
                _close_in_background(ws, session)
            else:
                await _close_connection(ws, session)

    async def _read_subscription(
        self,
        ws: aiohttp.ClientWebSocketResponse,
        endpoint: str,
        event_filter: "EventFilter",
        deadline: float
    ) -> FetchResult:
        loop = asyncio.get_running_loop()
        subscription_id = uuid.uuid4().hex[:16]
        records: Dict[str, RawRecord] = {}
        result = FetchResult(endpoint=endpoint)

        try:
            await ws.send_json(["REQ", subscription_id, event_filter.to_request()])

            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    result.timed_out = True
                    break

                try:
                    message = await ws.receive(timeout=remaining)
                except asyncio.TimeoutError:
                    result.timed_out = True
                    break

                if message.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING,
                                    aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                    reason = f"{ErrorMessages.RELAY_TRANSPORT_ERROR} before EOSE ({message.type.name})"
                    bt.logging.warning(f"{endpoint}: {reason}")
                    return FetchResult.failed(endpoint, reason)

                if message.type != aiohttp.WSMsgType.TEXT:
                    result.malformed_frames += 1
                    continue

                frame = self._parse_frame(message.data)
                if frame is None:
                    result.malformed_frames += 1
                    bt.logging.debug(f"{endpoint}: skipping malformed frame")
                    continue

                frame_type = frame[0]
                if frame_type == "EVENT":
                    if len(frame) < 3 or frame[1] != subscription_id:
                        result.malformed_frames += 1
                        continue
                    try:
                        record = RawRecord.from_event(frame[2])
                    except ValueError as e:
                        result.malformed_frames += 1
                        bt.logging.debug(f"{endpoint}: skipping malformed event: {e}")
                        continue
                    if not event_filter.matches(record):
                        result.discarded_events += 1
                        continue
                    records.setdefault(record.id, record)
                    if len(records) >= self.max_events:
                        result.truncated = True
                        bt.logging.info(f"{endpoint}: reached {self.max_events} events, stopping early")
                        break

                elif frame_type == "EOSE":
                    if frame[1] == subscription_id:
                        result.eose_received = True
                        break

                elif frame_type == "CLOSED":
                    if frame[1] == subscription_id:
                        detail = frame[2] if len(frame) > 2 else ""
                        reason = f"{ErrorMessages.RELAY_SUBSCRIPTION_CLOSED}: {detail}".rstrip(": ")
                        bt.logging.warning(f"{endpoint}: {reason}")
                        return FetchResult.failed(endpoint, reason)

                elif frame_type == "NOTICE":
                    bt.logging.debug(f"{endpoint} notice: {frame[1]}")

            if not ws.closed:
                await ws.send_json(["CLOSE", subscription_id])

        except (aiohttp.ClientError, ConnectionError) as e:
            reason = f"{ErrorMessages.RELAY_TRANSPORT_ERROR}: {e!r}"
            bt.logging.warning(f"{endpoint}: {reason}")
            return FetchResult.failed(endpoint, reason)

        result.records = records
        if result.timed_out:
            bt.logging.info(f"{endpoint}: timed out, keeping {len(records)} partial events")
        else:
            bt.logging.debug(f"{endpoint}: {len(records)} events")
        if result.malformed_frames:
            bt.logging.debug(f"{endpoint}: {result.malformed_frames} malformed frames skipped")
        return result

    @staticmethod
    def _parse_frame(data: str) -> Optional[list]:
        """Decode a relay frame; None if it is not a ["TYPE", <str>, ...] array."""
        try:
            frame = json.loads(data)
        except ValueError:
            return None
        if not isinstance(frame, list) or len(frame) < 2 or not isinstance(frame[0], str):
            return None
        return frame
