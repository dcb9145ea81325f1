from __future__ import annotations

from datetime import datetime, timedelta, timezone

from shared.quiz import ClassifiedQuizSet, Quiz, Submission, classify

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _ids(quizzes) -> list[str]:
    return [q.id for q in quizzes]


def test_classify_submitted_future_and_released_quizzes():
    quizzes = [
        Quiz(id="q1", title="Aljabar", release_at=NOW - timedelta(days=1)),
        Quiz(id="q2", title="Geometri", release_at=NOW + timedelta(days=1)),
        Quiz(id="q3", title="Statistika", release_at=NOW + timedelta(days=1)),
    ]
    submissions = [Submission(quiz_id="q3", student_id="s1")]

    result = classify(quizzes, submissions, NOW)

    assert _ids(result.active) == ["q1"]
    assert _ids(result.upcoming) == ["q2"]
    assert _ids(result.completed) == ["q3"]


def test_release_exactly_now_is_active():
    result = classify([Quiz(id="q1", title="Aljabar", release_at=NOW)], [], NOW)

    assert _ids(result.active) == ["q1"]
    assert result.upcoming == ()


def test_one_millisecond_before_release_is_upcoming():
    quiz = Quiz(id="q1", title="Aljabar", release_at=NOW)

    result = classify([quiz], [], NOW - timedelta(milliseconds=1))

    assert _ids(result.upcoming) == ["q1"]


def test_quiz_without_release_is_always_active():
    result = classify([Quiz(id="q1", title="Latihan")], [], NOW)

    assert _ids(result.active) == ["q1"]


def test_submission_wins_over_future_release():
    quiz = Quiz(id="q1", title="Aljabar", release_at=NOW + timedelta(days=30))

    result = classify([quiz], [Submission(quiz_id="q1", student_id="s1")], NOW)

    assert _ids(result.completed) == ["q1"]
    assert result.bucket_of("q1") == "completed"


def test_submissions_for_other_quizzes_are_ignored():
    quizzes = [Quiz(id="q1", title="Aljabar")]

    result = classify(quizzes, [Submission(quiz_id="zz", student_id="s1")], NOW)

    assert _ids(result.active) == ["q1"]
    assert result.completed == ()


def test_buckets_are_disjoint_and_preserve_input_order():
    quizzes = [
        Quiz(id=f"q{i}", title=f"Quiz {i}",
             release_at=NOW + timedelta(hours=(i % 3) - 1))
        for i in range(9)
    ]
    submissions = [Submission(quiz_id="q4", student_id="s1"),
                   Submission(quiz_id="q7", student_id="s1")]

    result = classify(quizzes, submissions, NOW)

    all_ids = _ids(result.all_quizzes())
    assert sorted(all_ids) == sorted(q.id for q in quizzes)
    assert len(set(all_ids)) == len(all_ids)
    for bucket in (result.active, result.upcoming, result.completed):
        positions = [int(q.id[1:]) for q in bucket]
        assert positions == sorted(positions)


def test_naive_release_is_treated_as_utc():
    naive_future = (NOW + timedelta(minutes=5)).replace(tzinfo=None)

    result = classify([Quiz(id="q1", title="Aljabar", release_at=naive_future)], [], NOW)

    assert _ids(result.upcoming) == ["q1"]


def test_empty_input_gives_empty_set():
    assert classify([], [], NOW) == ClassifiedQuizSet()


def test_reclassify_after_clock_moves_past_release():
    quiz = Quiz(id="q1", title="Aljabar", release_at=NOW + timedelta(hours=1))

    before = classify([quiz], [], NOW)
    after = classify([quiz], [], NOW + timedelta(hours=1))

    assert before.bucket_of("q1") == "upcoming"
    assert after.bucket_of("q1") == "active"
