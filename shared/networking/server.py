"""
Server violation channel (FastAPI + WebSocket)
"""
import logging
from typing import Callable, Dict, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from shared.database.database_manager import DatabaseManager
from shared.errors import RepositoryError
from shared.notifications.models import ViolationEvent, ViolationType
from .local_channel import LocalViolationChannel
from .protocol import Message, MessageType, violation_event_to_dict

logger = logging.getLogger(__name__)


class ViolationChannelServer:
    """
    Hub untuk laporan violation siswa dan subscription dashboard guru

    Siswa mengirim violation_report lewat /ws/students/{student_id}; server
    menyimpan violation lalu broadcast violation_occurred hanya ke subscriber
    /ws/teachers/{teacher_id} pemilik quiz.
    """

    def __init__(self, db_manager: DatabaseManager, host: str = "0.0.0.0", port: int = 8765):
        """
        Initialize server

        Args:
            db_manager: Repository untuk quiz dan violation
            host: Host address
            port: Port number
        """
        self.host = host
        self.port = port
        self.db_manager = db_manager
        self.app = FastAPI()
        self.teacher_connections: Dict[str, Set[WebSocket]] = {}  # teacher_id -> websockets
        self.student_connections: Dict[str, WebSocket] = {}  # student_id -> websocket

        # Subscriber dalam proses yang sama (mis. dashboard guru embedded)
        self.local_channel = LocalViolationChannel()

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_routes()
        self._uvicorn = None

        # Message handlers
        self.message_handlers: Dict[MessageType, Callable] = {}
        self.register_handler(MessageType.VIOLATION_REPORT, self._handle_violation_report)
        self.register_handler(MessageType.PING, self._handle_ping)

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get("/")
        async def root():
            return {
                "status": "Violation Channel Server",
                "teacher_subscribers": sum(len(s) for s in self.teacher_connections.values()),
                "local_subscribers": self.local_channel.subscriber_count(),
                "connected_students": len(self.student_connections)
            }

        @self.app.websocket("/ws/teachers/{teacher_id}")
        async def teacher_endpoint(websocket: WebSocket, teacher_id: str):
            await websocket.accept()
            self.teacher_connections.setdefault(teacher_id, set()).add(websocket)
            logger.info("Teacher %s subscribed", teacher_id)

            ack = Message(MessageType.SUBSCRIBE_ACK, data={'teacher_id': teacher_id})
            try:
                await websocket.send_text(ack.to_json())
                while True:
                    data = await websocket.receive_text()
                    message = Message.from_json(data)
                    if message.type is MessageType.PING:
                        await websocket.send_text(Message(MessageType.PONG).to_json())
            except WebSocketDisconnect:
                pass
            except (ValueError, KeyError) as e:
                logger.warning("Invalid message from teacher %s: %s", teacher_id, e)
            finally:
                self._remove_teacher_connection(teacher_id, websocket)

        @self.app.websocket("/ws/students/{student_id}")
        async def student_endpoint(websocket: WebSocket, student_id: str):
            await websocket.accept()
            self.student_connections[student_id] = websocket

            try:
                while True:
                    data = await websocket.receive_text()
                    try:
                        message = Message.from_json(data)
                    except (ValueError, KeyError) as e:
                        await self._send_error(student_id, f"Invalid message: {e}")
                        continue
                    await self._handle_message(student_id, message)
            except WebSocketDisconnect:
                pass
            finally:
                self.student_connections.pop(student_id, None)

    def _remove_teacher_connection(self, teacher_id: str, websocket: WebSocket):
        connections = self.teacher_connections.get(teacher_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            del self.teacher_connections[teacher_id]
        logger.info("Teacher %s unsubscribed", teacher_id)

    async def _handle_message(self, student_id: str, message: Message):
        """Handle incoming message dari siswa"""
        handler = self.message_handlers.get(message.type)
        if handler:
            await handler(student_id, message)
        else:
            logger.warning("No handler for message type: %s", message.type)

    def register_handler(self, msg_type: MessageType, handler: Callable):
        """Register message handler"""
        self.message_handlers[msg_type] = handler

    async def _handle_ping(self, student_id: str, message: Message):
        await self.send_message(student_id, Message(MessageType.PONG))

    async def _handle_violation_report(self, student_id: str, message: Message):
        """Simpan laporan violation lalu broadcast ke guru pemilik quiz"""
        data = message.data
        quiz_id = data.get('quiz_id')
        student_name = (data.get('student_name') or '').strip()

        try:
            violation_type = ViolationType(data.get('violation_type'))
        except ValueError:
            await self._send_error(student_id, f"Unknown violation type: {data.get('violation_type')!r}")
            return

        if not quiz_id or not student_name:
            await self._send_error(student_id, "quiz_id and student_name are required")
            return

        try:
            quiz = self.db_manager.get_quiz(quiz_id)
            if quiz is None:
                await self._send_error(student_id, f"Quiz {quiz_id} not found")
                return
            violation = self.db_manager.record_violation(
                quiz_id, student_name, violation_type, student_id=student_id
            )
        except RepositoryError as e:
            logger.error("Error recording violation from %s: %s", student_id, e)
            await self._send_error(student_id, "Violation could not be recorded")
            return

        event = ViolationEvent(
            teacher_id=quiz.teacher_id,
            student_name=violation.student_name,
            quiz_title=violation.quiz_title,
            violation_type=violation.violation_type,
            timestamp=violation.occurred_at,
            violation_id=violation.id,
            quiz_id=quiz.id
        )
        delivered = await self.publish(event)
        logger.info("Violation %s (%s) from %s delivered to %d subscriber(s)",
                    violation.id, violation_type.value, student_id, delivered)

        await self.send_message(student_id, Message(
            MessageType.REPORT_ACK, data={'violation_id': violation.id}
        ))

    async def publish(self, event: ViolationEvent) -> int:
        """
        Broadcast violation_occurred ke subscriber guru pemilik event

        Returns:
            Jumlah subscriber (lokal + websocket) yang menerima event
        """
        delivered = await self.local_channel.publish(event)
        message = Message(MessageType.VIOLATION_OCCURRED, data=violation_event_to_dict(event))

        for websocket in list(self.teacher_connections.get(event.teacher_id, ())):
            try:
                await websocket.send_text(message.to_json())
                delivered += 1
            except Exception as e:
                logger.error("Error sending violation to teacher %s: %s", event.teacher_id, e)
                self._remove_teacher_connection(event.teacher_id, websocket)
        return delivered

    async def send_message(self, student_id: str, message: Message) -> bool:
        """Send message to student"""
        websocket = self.student_connections.get(student_id)
        if websocket is None:
            return False
        try:
            await websocket.send_text(message.to_json())
            return True
        except Exception as e:
            logger.error("Error sending message to %s: %s", student_id, e)
            self.student_connections.pop(student_id, None)
            return False

    async def _send_error(self, student_id: str, text: str):
        await self.send_message(student_id, Message(MessageType.ERROR, data={'message': text}))

    def run(self):
        """Run server (blocking)"""
        import uvicorn
        uvicorn.run(self.app, host=self.host, port=self.port)

    async def start(self):
        """Start server (async)"""
        import uvicorn
        config = uvicorn.Config(self.app, host=self.host, port=self.port)
        self._uvicorn = uvicorn.Server(config)
        await self._uvicorn.serve()

    def stop(self):
        """Minta server async berhenti"""
        self.local_channel.close()
        if self._uvicorn is not None:
            self._uvicorn.should_exit = True
