"""
Protocol untuk komunikasi siswa, server, dan dashboard guru
"""
from enum import Enum
from typing import Dict, Any
from datetime import datetime
import json

from shared.errors import InvalidEventError
from shared.notifications.models import ViolationEvent, ViolationType
from shared.utils.clock import utc_now


class MessageType(Enum):
    """Jenis pesan"""
    # Student -> Server
    VIOLATION_REPORT = "violation_report"

    # Server -> Student
    REPORT_ACK = "report_ack"

    # Server -> Teacher
    SUBSCRIBE_ACK = "subscribe_ack"
    VIOLATION_OCCURRED = "violation_occurred"

    # Bidirectional
    ERROR = "error"
    PING = "ping"
    PONG = "pong"


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 ke datetime; akhiran 'Z' (format JavaScript toISOString) dianggap UTC"""
    if value.endswith(('Z', 'z')):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


class Message:
    """Pesan untuk komunikasi"""

    def __init__(self, msg_type: MessageType, data: Dict[str, Any] = None,
                 sender_id: str = None, timestamp: datetime = None):
        self.type = msg_type
        self.data = data or {}
        self.sender_id = sender_id
        self.timestamp = timestamp or utc_now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to dictionary"""
        return {
            'type': self.type.value,
            'data': self.data,
            'sender_id': self.sender_id,
            'timestamp': self.timestamp.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Message':
        """Create message from dictionary"""
        timestamp = data.get('timestamp')
        return cls(
            msg_type=MessageType(data['type']),
            data=data.get('data', {}),
            sender_id=data.get('sender_id'),
            timestamp=parse_timestamp(timestamp) if timestamp else None
        )

    def to_json(self) -> str:
        """Convert message to JSON string"""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> 'Message':
        """Create message from JSON string"""
        return cls.from_dict(json.loads(json_str))

    def __repr__(self):
        return f"<Message(type={self.type.value}, sender_id={self.sender_id})>"


_REQUIRED_EVENT_FIELDS = ('teacher_id', 'student_name', 'quiz_title', 'violation_type')


def parse_violation_event(data: Dict[str, Any]) -> ViolationEvent:
    """
    Validasi payload violation_occurred menjadi ViolationEvent

    Raises:
        InvalidEventError: field wajib hilang, tipe violation tidak dikenal,
            atau timestamp tidak valid
    """
    if not isinstance(data, dict):
        raise InvalidEventError("Violation payload must be an object")

    missing = [name for name in _REQUIRED_EVENT_FIELDS if not data.get(name)]
    if missing:
        raise InvalidEventError(f"Violation payload missing fields: {', '.join(missing)}")

    try:
        violation_type = ViolationType(data['violation_type'])
    except ValueError as e:
        raise InvalidEventError(f"Unknown violation type: {data['violation_type']!r}") from e

    timestamp = data.get('timestamp')
    if timestamp:
        try:
            timestamp = parse_timestamp(timestamp)
        except (AttributeError, TypeError, ValueError) as e:
            raise InvalidEventError(f"Invalid violation timestamp: {timestamp!r}") from e
    else:
        timestamp = None

    return ViolationEvent(
        teacher_id=str(data['teacher_id']),
        student_name=str(data['student_name']),
        quiz_title=str(data['quiz_title']),
        violation_type=violation_type,
        timestamp=timestamp,
        violation_id=data.get('violation_id') or None,
        quiz_id=data.get('quiz_id') or None
    )


def violation_event_to_dict(event: ViolationEvent) -> Dict[str, Any]:
    """Payload wire untuk satu ViolationEvent"""
    return {
        'teacher_id': event.teacher_id,
        'student_name': event.student_name,
        'quiz_title': event.quiz_title,
        'violation_type': event.violation_type.value,
        'timestamp': event.timestamp.isoformat() if event.timestamp else None,
        'violation_id': event.violation_id,
        'quiz_id': event.quiz_id
    }
