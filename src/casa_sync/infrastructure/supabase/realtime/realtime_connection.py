"""
This module provides the RealtimeConnection class for managing the WebSocket connection to the Supabase Realtime endpoint.
It handles frame listening, message dispatching, and outgoing Phoenix messages.
"""

import asyncio
import itertools
import json
import logging
from typing import Any, Callable, Dict, Iterator, Optional
from urllib.parse import urlencode

import websockets

from casa_sync.common.utility import LoggerMixin

REALTIME_PROTOCOL_VERSION = "1.0.0"


def build_realtime_url(supabase_url: str, api_key: str) -> str:
    """
    Build the Realtime WebSocket URL for a project URL.

    ``https://xyz.supabase.co`` becomes
    ``wss://xyz.supabase.co/realtime/v1/websocket?apikey=...&vsn=1.0.0``.
    """
    base = supabase_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://") :]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://") :]
    query = urlencode({"apikey": api_key, "vsn": REALTIME_PROTOCOL_VERSION})
    return f"{base}/realtime/v1/websocket?{query}"


class RealtimeConnection(LoggerMixin):
    """
    Manages a WebSocket connection to the Supabase Realtime server, handling frame listening and message callbacks.

    Args:
        url (str): The WebSocket URL that was connected.
        logger (logging.Logger): Logger instance for logging events.
        client (websockets.ClientConnection): The WebSocket client connection.
    """

    _url: str
    _client: websockets.ClientConnection
    _listening_task: Optional["asyncio.Task[None]"] = None
    _message_callbacks: list[Callable[[Dict[str, Any]], None]]
    _refs: Iterator[int]

    def __init__(
        self,
        *,
        url: str,
        logger: logging.Logger,
        client: websockets.ClientConnection,
    ) -> None:
        """
        Initialize the RealtimeConnection instance and start listening for frames.
        """
        self._url = url
        self._build_logger(logger=logger)
        self._client = client
        self._message_callbacks = []
        self._refs = itertools.count(1)

        self._logger.info("RealtimeConnection instance successfully created.")
        self._listening_task = asyncio.create_task(self._listen_events())
        self._logger.debug("Listening task started for Realtime frames.")

    def next_ref(self) -> str:
        """Return a fresh message reference."""
        return str(next(self._refs))

    async def send(
        self,
        *,
        topic: str,
        event: str,
        payload: Dict[str, Any],
        ref: Optional[str] = None,
        join_ref: Optional[str] = None,
    ) -> str:
        """
        Send a Phoenix message and return its reference.
        """
        ref = ref or self.next_ref()
        message: Dict[str, Any] = {
            "topic": topic,
            "event": event,
            "payload": payload,
            "ref": ref,
        }
        if join_ref is not None:
            message["join_ref"] = join_ref

        self._logger.debug(f"Sending {event} on {topic} (ref {ref})")
        await self._client.send(json.dumps(message))
        return ref

    async def aclose(self) -> None:
        """
        Asynchronously close the WebSocket connection and cancel the listening task if running.
        """
        self._logger.debug("Closing Realtime connection.")
        await self._client.close()

        if self._listening_task:
            task, self._listening_task = self._listening_task, None
            self._logger.debug("Cancelling the listening task.")
            cancel_status = task.cancel()

            try:
                await task
            except asyncio.CancelledError:
                pass

            if cancel_status:
                self._logger.debug("Listening task cancelled successfully.")
            else:
                self._logger.debug("Listening task was already finished.")

        self._logger.info("Realtime connection closed.")

    async def _listen_events(self) -> None:
        """
        Internal coroutine to listen for incoming frames and dispatch them to registered callbacks.
        """
        self._logger.info("Started listening for frames on Realtime connection.")
        try:
            async for message in self._client:
                message_str = (
                    message.decode() if isinstance(message, bytes) else message
                )
                try:
                    message_dict = json.loads(message_str)
                except ValueError:
                    self._logger.warning(f"Discarding non-JSON frame: {message_str!r}")
                    continue

                if not isinstance(message_dict, dict):
                    self._logger.warning(f"Discarding unexpected frame: {message_dict!r}")
                    continue

                for callback in list(self._message_callbacks):
                    try:
                        callback(message_dict)
                    except Exception as e:
                        self._logger.error(
                            f"Frame handler failed for {message_dict.get('event')!r}: {e}"
                        )

        except websockets.ConnectionClosed as e:
            self._logger.info(f"Realtime connection closed by peer: {e}")
        except Exception as e:
            self._logger.error(f"Error while listening for frames: {e}")
        finally:
            self._logger.info("Stopped listening for frames on Realtime connection.")

    def add_message_handler(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """
        Register a callback to handle incoming frames.

        Args:
            callback (Callable[[Dict[str, Any]], None]): Function to handle frames.
        """
        self._message_callbacks.append(callback)

    def remove_message_handler(
        self, callback: Callable[[Dict[str, Any]], None]
    ) -> None:
        if callback in self._message_callbacks:
            self._message_callbacks.remove(callback)

    @classmethod
    async def create(
        cls,
        *,
        supabase_url: str,
        api_key: str,
        logger: logging.Logger,
    ) -> "RealtimeConnection":
        """
        Asynchronously open and initialize a RealtimeConnection instance.

        Args:
            supabase_url (str): The project URL (http or https).
            api_key (str): The project API key.
            logger (logging.Logger): Logger instance for logging events.

        Returns:
            RealtimeConnection: The initialized connection.
        """
        ws_url = build_realtime_url(supabase_url, api_key)

        logger.debug(f"Connecting to Realtime at {supabase_url}")
        ws_client = await websockets.connect(ws_url)
        logger.info("Successfully connected to Realtime.")

        return cls(url=ws_url, logger=logger, client=ws_client)
