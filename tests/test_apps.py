from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

import pytest

from conftest import T0
from shared.errors import SubscriptionError
from shared.networking.local_channel import LocalViolationChannel
from shared.notifications.models import ViolationEvent, ViolationType
from shared.quiz import classify
from shared.quiz.models import Quiz
from student_app import main as student_main
from student_app.app import StudentApp, format_classified
from teacher_app.app import TeacherApp


def _teacher_config(tmp_path, **server):
    return {
        "teacher": {"id": "t1"},
        "server": server,
        "database": {"path": str(tmp_path / "kuis.db")},
        "notifications": {"history_limit": 5, "dismissal_dir": str(tmp_path / "dismissed")},
    }


def _student_config(tmp_path):
    return {
        "student": {"id": "s1", "name": "Ani"},
        "database": {"path": str(tmp_path / "kuis.db")},
    }


def test_teacher_app_requires_teacher_id(tmp_path):
    config = _teacher_config(tmp_path)
    config["teacher"]["id"] = ""

    with pytest.raises(ValueError):
        TeacherApp(config=config)


def test_teacher_app_logs_history_and_live_violations(tmp_path, caplog):
    teacher_app = TeacherApp(config=_teacher_config(tmp_path))
    quiz = teacher_app.db_manager.create_quiz("Aljabar", "t1", code="AAA111")
    teacher_app.db_manager.record_violation(quiz.id, "Ani", ViolationType.TAB_SWITCH,
                                            occurred_at=T0)

    async def scenario():
        await teacher_app.start_notifications()
        await teacher_app.server.publish(ViolationEvent(
            teacher_id="t1",
            student_name="Budi",
            quiz_title="Aljabar",
            violation_type=ViolationType.WINDOW_BLUR,
            timestamp=T0 + timedelta(minutes=1),
            violation_id="live-1",
        ))
        dismissed = teacher_app.dismiss("live-1")
        await teacher_app.pipeline.teardown()
        return dismissed

    with caplog.at_level(logging.WARNING, logger="teacher_app.app"):
        dismissed = asyncio.run(scenario())

    messages = [r.getMessage() for r in caplog.records if r.name == "teacher_app.app"]
    assert messages == [
        "[VIOLATION] Aljabar: Student Ani has switched tabs during the quiz.",
        "[VIOLATION] Aljabar: Student Budi has left the quiz window during the quiz.",
    ]
    assert dismissed is True
    assert [v.student_name for v in teacher_app.pipeline.visible_violations] == ["Ani"]


def test_teacher_app_remote_mode_has_no_embedded_server(tmp_path):
    teacher_app = TeacherApp(config=_teacher_config(tmp_path, remote_url="ws://hub:8765"))

    assert teacher_app.server is None
    assert teacher_app.context.channel.server_url == "ws://hub:8765"


def test_student_app_join_and_list(tmp_path):
    student_app = StudentApp(config=_student_config(tmp_path))
    student_app.db_manager.create_quiz("Aljabar", "t1", code="AAA111")
    student_app.db_manager.create_quiz("Geometri", "t1", code="BBB222",
                                       release_at=T0 + timedelta(days=3650))

    student_app.join_quiz("aaa111")
    result = student_app.join_quiz("BBB222")

    assert [q.title for q in result.active] == ["Aljabar"]
    assert [q.title for q in result.upcoming] == ["Geometri"]
    assert student_app.list_quizzes() == result


def test_format_classified_lists_every_bucket():
    quiz = Quiz(id="q1", title="Aljabar", duration_minutes=30)

    text = format_classified(classify([quiz], [], T0))

    assert text.splitlines() == [
        "Active (1)",
        "  - Aljabar [q1] 30 min",
        "Upcoming (0)",
        "Completed (0)",
    ]


def test_student_cli_join_reports_invalid_code(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(student_main.ConfigLoader, "load_config",
                        staticmethod(lambda *args, **kwargs: _student_config(tmp_path)))

    exit_code = student_main.main(["join", "nope"])

    assert exit_code == 1
    assert "Quiz code must be 6 characters long" in capsys.readouterr().out


def test_student_cli_lists_quizzes(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(student_main.ConfigLoader, "load_config",
                        staticmethod(lambda *args, **kwargs: _student_config(tmp_path)))

    assert student_main.main(["quizzes"]) == 0
    assert "Active (0)" in capsys.readouterr().out


class _DroppingChannel(LocalViolationChannel):
    """Channel yang ditutup segera setelah subscribe berhasil"""

    async def subscribe(self, teacher_id, on_event, on_lost=None):
        handle = await super().subscribe(teacher_id, on_event, on_lost)
        asyncio.get_running_loop().call_soon(self.close)
        return handle


def test_teacher_app_run_fails_when_live_feed_is_lost(tmp_path):
    teacher_app = TeacherApp(config=_teacher_config(tmp_path, remote_url="ws://hub:8765"))
    teacher_app.context.channel = _DroppingChannel()

    with pytest.raises(SubscriptionError):
        asyncio.run(teacher_app.run())

    assert teacher_app.pipeline.subscription_error is not None
