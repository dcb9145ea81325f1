"""
Client WebSocket: subscription guru dan reporter violation siswa
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import websockets

from shared.context import EventCallback, LostCallback
from shared.errors import InvalidEventError, SubscriptionError
from shared.notifications.models import ViolationType
from .protocol import Message, MessageType, parse_violation_event

logger = logging.getLogger(__name__)


@dataclass
class RemoteSubscription:
    """Handle subscription ke server violation channel"""
    teacher_id: str
    websocket: Any
    task: asyncio.Task


class WebSocketViolationChannel:
    """Violation channel yang subscribe ke ViolationChannelServer lewat WebSocket"""

    def __init__(self, server_url: str, ack_timeout: float = 10.0):
        """
        Initialize channel

        Args:
            server_url: URL server (ws://host:port)
            ack_timeout: Batas waktu menunggu subscribe_ack (detik)
        """
        self.server_url = server_url.rstrip('/')
        self.ack_timeout = ack_timeout

    async def subscribe(self, teacher_id: str, on_event: EventCallback,
                        on_lost: Optional[LostCallback] = None) -> RemoteSubscription:
        """
        Connect dan tunggu subscribe_ack, lalu mulai listener

        Args:
            teacher_id: ID guru
            on_event: Callback untuk setiap violation_occurred
            on_lost: Callback jika koneksi putus setelah subscribe berhasil

        Raises:
            SubscriptionError: jika connect atau handshake gagal
        """
        uri = f"{self.server_url}/ws/teachers/{teacher_id}"
        try:
            websocket = await websockets.connect(uri)
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
            raise SubscriptionError(f"Cannot connect to {uri}: {e}") from e

        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=self.ack_timeout)
            ack = Message.from_json(raw)
        except (asyncio.TimeoutError, websockets.exceptions.WebSocketException,
                ValueError, KeyError) as e:
            await websocket.close()
            raise SubscriptionError(f"Subscription handshake failed: {e}") from e

        if ack.type is not MessageType.SUBSCRIBE_ACK:
            await websocket.close()
            raise SubscriptionError(f"Unexpected handshake message: {ack.type.value}")

        task = asyncio.create_task(self._listen(teacher_id, websocket, on_event, on_lost))
        return RemoteSubscription(teacher_id=teacher_id, websocket=websocket, task=task)

    async def unsubscribe(self, handle: RemoteSubscription):
        """Hentikan listener dan tutup koneksi"""
        handle.task.cancel()
        try:
            await handle.task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Violation listener for teacher %s failed: %s", handle.teacher_id, e)
        finally:
            await handle.websocket.close()

    async def _listen(self, teacher_id: str, websocket, on_event: EventCallback,
                      on_lost: Optional[LostCallback] = None):
        """Listen for messages sampai koneksi putus"""
        try:
            async for raw in websocket:
                try:
                    message = Message.from_json(raw)
                except (ValueError, KeyError) as e:
                    logger.warning("Ignoring malformed message: %s", e)
                    continue

                if message.type is MessageType.PING:
                    await websocket.send(Message(MessageType.PONG).to_json())
                    continue
                if message.type is not MessageType.VIOLATION_OCCURRED:
                    continue

                try:
                    event = parse_violation_event(message.data)
                except InvalidEventError as e:
                    logger.warning("Rejected violation event: %s", e)
                    continue

                if event.teacher_id != teacher_id:
                    logger.warning("Discarding violation event scoped to another teacher")
                    continue
                try:
                    on_event(event)
                except Exception as e:
                    logger.error("Error handling violation for teacher %s: %s", teacher_id, e)
        except websockets.exceptions.ConnectionClosed as e:
            reason = str(e)
        else:
            reason = "closed by server"

        logger.warning("Violation channel connection lost for teacher %s: %s", teacher_id, reason)
        if on_lost is not None:
            try:
                on_lost(SubscriptionError(f"Violation channel connection lost: {reason}"))
            except Exception as e:
                logger.error("Error reporting lost subscription for teacher %s: %s", teacher_id, e)


class ViolationReporter:
    """Client siswa untuk melaporkan violation ke server"""

    def __init__(self, server_url: str, student_id: str):
        """
        Initialize reporter

        Args:
            server_url: URL server (ws://host:port)
            student_id: ID siswa
        """
        self.server_url = server_url.rstrip('/')
        self.student_id = student_id
        self.websocket = None
        self.is_connected = False

    async def connect(self) -> bool:
        """Connect to server"""
        try:
            uri = f"{self.server_url}/ws/students/{self.student_id}"
            self.websocket = await websockets.connect(uri)
            self.is_connected = True
            return True
        except (OSError, websockets.exceptions.WebSocketException) as e:
            logger.error("Error connecting to server: %s", e)
            self.is_connected = False
            return False

    async def disconnect(self):
        """Disconnect from server"""
        self.is_connected = False
        if self.websocket:
            await self.websocket.close()
            self.websocket = None

    async def send_message(self, message: Message) -> bool:
        """Send message to server"""
        if not self.is_connected or not self.websocket:
            return False

        try:
            message.sender_id = self.student_id
            await self.websocket.send(message.to_json())
            return True
        except websockets.exceptions.WebSocketException as e:
            logger.error("Error sending message: %s", e)
            self.is_connected = False
            return False

    async def report_violation(self, quiz_id: str, student_name: str,
                               violation_type: ViolationType) -> Optional[str]:
        """
        Kirim laporan violation dan tunggu report_ack

        Returns:
            ID violation dari server, atau None jika gagal
        """
        message = Message(
            MessageType.VIOLATION_REPORT,
            data={
                'quiz_id': quiz_id,
                'student_name': student_name,
                'violation_type': violation_type.value
            }
        )
        if not await self.send_message(message):
            return None

        try:
            reply = Message.from_json(await self.websocket.recv())
        except (websockets.exceptions.WebSocketException, ValueError, KeyError) as e:
            logger.error("Error reading report acknowledgment: %s", e)
            return None

        if reply.type is MessageType.REPORT_ACK:
            return reply.data.get('violation_id')
        logger.warning("Violation report rejected: %s", reply.data.get('message'))
        return None
