from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from wordflow.models.enums import PhraseState, SessionStatus
from wordflow.models.learning_record import LearningRecord
from wordflow.models.daily_metric import DailyMetric
from wordflow.repositories.learning_record_repository import LearningRecordRepository
from wordflow.repositories.daily_metric_repository import DailyMetricRepository
from wordflow.services.errors import (
    AlreadyAnsweredError, RecordNotFoundError, LearnerNotFoundError, TransientStoreError
)
from wordflow.services.session_service import SessionService
from wordflow.services.answer_service import AnswerService
from wordflow.services.user_service import UserService
from wordflow.utils.messages import GENERIC_FEEDBACK

from conftest import NOW, TODAY


@pytest.fixture
def started(db_session, make_user, make_phrases, rng):
    user = make_user(phrases_per_day=2)
    make_phrases(4)
    result = SessionService(db_session, rng).start_or_resume(user.id, now=NOW)
    return user, result.session, [record.phrase_id for record in result.records]


def test_correct_answer_on_new_phrase(db_session, started, rng):
    user, session, phrase_ids = started

    result = AnswerService(db_session, rng).answer(user.id, session.id, phrase_ids[0], True, now=NOW)

    assert result.new_state == PhraseState.CONFIRMING
    assert result.next_eligible_date == TODAY + timedelta(days=1)
    assert result.feedback.kind == "correct"
    assert result.session.answered == 1
    assert result.session.correct == 1
    assert result.session.completed is False
    assert result.completion_message is None
    assert result.translation_info["translation"].startswith("frase")

    record = db_session.query(LearningRecord).filter_by(session_id=session.id, phrase_id=phrase_ids[0]).one()
    assert record.knows is True
    assert record.state == PhraseState.CONFIRMING
    assert record.repetitions == 1
    assert record.learning_level == 2
    assert record.first_attempt_correct is True
    assert record.next_eligible_date == date(2026, 3, 11)


def test_answer_updates_profile_and_daily_metric(db_session, started, rng):
    user, session, phrase_ids = started

    AnswerService(db_session, rng).answer(user.id, session.id, phrase_ids[0], False, now=NOW)

    db_session.refresh(user)
    assert user.total_seen == 1
    assert user.total_correct == 0
    assert user.consecutive_days == 1
    assert user.last_practice_date == TODAY
    metric = db_session.query(DailyMetric).filter_by(user_id=user.id, metric_date=TODAY).one()
    assert metric.phrases_answered == 1
    assert metric.incorrect_count == 1


def test_second_answer_is_rejected_and_state_unchanged(db_session, started, rng):
    user, session, phrase_ids = started
    service = AnswerService(db_session, rng)
    service.answer(user.id, session.id, phrase_ids[0], True, now=NOW)

    with pytest.raises(AlreadyAnsweredError):
        service.answer(user.id, session.id, phrase_ids[0], False, now=NOW)

    record = db_session.query(LearningRecord).filter_by(session_id=session.id, phrase_id=phrase_ids[0]).one()
    assert record.knows is True
    assert record.state == PhraseState.CONFIRMING
    db_session.refresh(session)
    assert session.answered_count == 1
    assert session.incorrect_count == 0
    db_session.refresh(user)
    assert user.total_seen == 1


def test_unknown_phrase_is_not_found(db_session, started, rng):
    user, session, _ = started
    with pytest.raises(RecordNotFoundError):
        AnswerService(db_session, rng).answer(user.id, session.id, 9999, True, now=NOW)


def test_other_learner_cannot_answer(db_session, started, make_user, rng):
    _, session, phrase_ids = started
    intruder = make_user(email="other@example.com")
    with pytest.raises(RecordNotFoundError):
        AnswerService(db_session, rng).answer(intruder.id, session.id, phrase_ids[0], True, now=NOW)


def test_unknown_learner_is_rejected(db_session, started, rng):
    _, session, phrase_ids = started
    with pytest.raises(LearnerNotFoundError):
        AnswerService(db_session, rng).answer(4242, session.id, phrase_ids[0], True, now=NOW)


def test_abandoned_session_cannot_be_answered(db_session, started, rng):
    user, session, phrase_ids = started
    SessionService(db_session, rng).abandon_session(session.id, now=NOW)
    with pytest.raises(RecordNotFoundError):
        AnswerService(db_session, rng).answer(user.id, session.id, phrase_ids[0], True, now=NOW)


def test_session_completes_exactly_on_last_answer(db_session, started, rng):
    user, session, phrase_ids = started
    service = AnswerService(db_session, rng)

    first = service.answer(user.id, session.id, phrase_ids[0], True, now=NOW)
    db_session.refresh(session)
    assert first.session.completed is False
    assert session.status == SessionStatus.ACTIVE

    last = service.answer(user.id, session.id, phrase_ids[1], True, now=NOW)
    db_session.refresh(session)
    db_session.refresh(user)
    assert last.session.completed is True
    assert last.session.answered == last.session.total == 2
    assert last.completion_message is not None
    assert session.status == SessionStatus.COMPLETED
    assert session.completed_at is not None
    assert user.has_active_session is False

    with pytest.raises(AlreadyAnsweredError):
        service.answer(user.id, session.id, phrase_ids[1], False, now=NOW)
    db_session.refresh(session)
    assert session.answered_count == 2


def test_answers_may_arrive_out_of_order(db_session, started, rng):
    user, session, phrase_ids = started
    service = AnswerService(db_session, rng)

    service.answer(user.id, session.id, phrase_ids[1], False, now=NOW)
    result = service.answer(user.id, session.id, phrase_ids[0], True, now=NOW)

    assert result.session.completed is True
    assert (result.session.correct, result.session.incorrect) == (1, 1)


def test_feedback_failure_keeps_committed_answer(db_session, started, rng, monkeypatch):
    user, session, phrase_ids = started

    def broken_feedback(knows, previous_state):
        raise KeyError(previous_state)

    monkeypatch.setattr("wordflow.services.answer_service.build_feedback", broken_feedback)
    result = AnswerService(db_session, rng).answer(user.id, session.id, phrase_ids[0], False, now=NOW)

    assert result.feedback == GENERIC_FEEDBACK[False]
    assert result.new_state == PhraseState.LEARNING
    record = db_session.query(LearningRecord).filter_by(session_id=session.id, phrase_id=phrase_ids[0]).one()
    assert record.knows is False


def test_result_serializes_for_the_api(db_session, started, rng):
    user, session, phrase_ids = started

    payload = AnswerService(db_session, rng).answer(user.id, session.id, phrase_ids[0], True, now=NOW).to_dict()

    assert payload["success"] is True
    assert payload["new_state"] == "confirming"
    assert payload["next_eligible_date"] == "2026-03-11"
    assert payload["session"] == {"answered": 1, "total": 2, "correct": 1, "incorrect": 0, "completed": False}


def assert_answer_not_persisted(db_session, user, session, phrase_id):
    record = db_session.query(LearningRecord).filter_by(session_id=session.id, phrase_id=phrase_id).one()
    assert record.knows is None
    assert record.state == PhraseState.NEW
    assert record.repetitions == 0
    db_session.refresh(session)
    assert (session.answered_count, session.correct_count, session.incorrect_count) == (0, 0, 0)
    assert session.status == SessionStatus.ACTIVE
    db_session.refresh(user)
    assert user.total_seen == 0
    assert user.total_correct == 0
    metric = db_session.query(DailyMetric).filter_by(user_id=user.id, metric_date=TODAY).one()
    assert metric.phrases_answered == 0


def test_pending_record_taken_by_concurrent_answer(db_session, started, rng, monkeypatch):
    user, session, phrase_ids = started
    # 另一个请求在读取之后、更新之前已经把记录标记为已作答
    monkeypatch.setattr(LearningRecordRepository, "mark_answered", lambda self, record_id, **fields: 0)

    with pytest.raises(AlreadyAnsweredError) as exc_info:
        AnswerService(db_session, rng).answer(user.id, session.id, phrase_ids[0], True, now=NOW)

    assert exc_info.value.retryable is False
    db_session.refresh(session)
    assert session.answered_count == 0
    db_session.refresh(user)
    assert user.total_seen == 0


def test_stale_counters_roll_back_the_whole_answer(db_session, started, rng, monkeypatch):
    user, session, phrase_ids = started

    def stale(self, user, knows, today, now):
        raise StaleDataError("UPDATE statement on table 'users' expected to update 1 row(s); 0 were matched.")

    monkeypatch.setattr(UserService, "apply_answer", stale)

    with pytest.raises(TransientStoreError) as exc_info:
        AnswerService(db_session, rng).answer(user.id, session.id, phrase_ids[0], True, now=NOW)

    assert exc_info.value.retryable is True
    assert_answer_not_persisted(db_session, user, session, phrase_ids[0])


def test_store_failure_mid_answer_leaves_record_pending(db_session, started, rng, monkeypatch):
    user, session, phrase_ids = started

    def broken(self, user_id, metric_date, knows):
        raise OperationalError("UPDATE daily_metrics", {}, Exception("disk I/O error"))

    monkeypatch.setattr(DailyMetricRepository, "record_answer", broken)

    with pytest.raises(TransientStoreError):
        AnswerService(db_session, rng).answer(user.id, session.id, phrase_ids[1], False, now=NOW)

    assert_answer_not_persisted(db_session, user, session, phrase_ids[1])

    monkeypatch.undo()
    result = AnswerService(db_session, rng).answer(user.id, session.id, phrase_ids[1], False, now=NOW)
    assert result.session.answered == 1
