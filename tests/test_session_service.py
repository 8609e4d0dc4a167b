from datetime import timedelta

import pytest

from wordflow.models.enums import PhraseState, SessionStatus, SessionKind
from wordflow.models.learning_record import LearningRecord
from wordflow.models.session import PracticeSession
from wordflow.models.daily_metric import DailyMetric
from wordflow.services.errors import (
    ContentExhaustedError, LearnerNotFoundError, RecordNotFoundError, SessionConflictError
)
from wordflow.repositories.session_repository import SessionRepository
from wordflow.services.session_service import SessionService
from wordflow.services.answer_service import AnswerService
from wordflow.utils.messages import RESUME_MESSAGE

from conftest import NOW, TODAY


def test_start_creates_session_and_pending_records(db_session, make_user, make_phrases, rng):
    user = make_user(phrases_per_day=3)
    make_phrases(5)

    result = SessionService(db_session, rng).start_or_resume(user.id, now=NOW)

    assert result.resumed is False
    assert result.session.status == SessionStatus.ACTIVE
    assert result.session.total_phrases == 3
    assert [record.order_in_session for record in result.records] == [1, 2, 3]
    assert all(record.knows is None for record in result.records)
    assert all(record.state == PhraseState.NEW for record in result.records)
    assert result.motivational_message.startswith("3 frases novas")

    db_session.refresh(user)
    assert user.has_active_session is True
    metric = db_session.query(DailyMetric).filter_by(user_id=user.id).one()
    assert metric.metric_date == TODAY
    assert metric.phrases_sent == 3


def test_start_twice_resumes_same_session(db_session, make_user, make_phrases, rng):
    user = make_user(phrases_per_day=3)
    make_phrases(5)
    service = SessionService(db_session, rng)

    first = service.start_or_resume(user.id, now=NOW)
    second = service.start_or_resume(user.id, now=NOW)

    assert second.resumed is True
    assert second.motivational_message == RESUME_MESSAGE
    assert second.session.id == first.session.id
    assert [r.phrase_id for r in second.records] == [r.phrase_id for r in first.records]
    assert db_session.query(PracticeSession).count() == 1
    assert db_session.query(LearningRecord).count() == 3


def test_resume_returns_only_unanswered_records(db_session, make_user, make_phrases, rng):
    user = make_user(phrases_per_day=3)
    make_phrases(5)
    service = SessionService(db_session, rng)
    first = service.start_or_resume(user.id, now=NOW)
    answered_phrase = first.records[0].phrase_id

    AnswerService(db_session, rng).answer(user.id, first.session.id, answered_phrase, True, now=NOW)
    resumed = service.start_or_resume(user.id, now=NOW)

    assert resumed.resumed is True
    assert len(resumed.records) == 2
    assert answered_phrase not in [r.phrase_id for r in resumed.records]
    assert resumed.session.answered_count == 1


def test_stale_active_session_is_completed_before_new_one(db_session, make_user, make_phrases, rng):
    user = make_user(phrases_per_day=2)
    make_phrases(5)
    stale = PracticeSession(user_id=user.id, status=SessionStatus.ACTIVE, total_phrases=0,
                            answered_count=0, correct_count=0, incorrect_count=0)
    db_session.add(stale)
    db_session.commit()

    result = SessionService(db_session, rng).start_or_resume(user.id, now=NOW)

    db_session.refresh(stale)
    assert stale.status == SessionStatus.COMPLETED
    assert stale.completed_at is not None
    assert result.resumed is False
    assert result.session.id != stale.id
    active = db_session.query(PracticeSession).filter_by(status=SessionStatus.ACTIVE).all()
    assert [s.id for s in active] == [result.session.id]


def test_no_content_creates_no_session(db_session, make_user, rng):
    user = make_user()

    with pytest.raises(ContentExhaustedError):
        SessionService(db_session, rng).start_or_resume(user.id, now=NOW)

    assert db_session.query(PracticeSession).count() == 0
    db_session.refresh(user)
    assert user.has_active_session is False


def test_unknown_learner(db_session, rng):
    with pytest.raises(LearnerNotFoundError):
        SessionService(db_session, rng).start_or_resume(999, now=NOW)


def test_new_session_carries_forward_latest_state(db_session, make_user, make_phrases, rng):
    user = make_user(phrases_per_day=1)
    make_phrases(1)
    service = SessionService(db_session, rng)
    answers = AnswerService(db_session, rng)

    first = service.start_or_resume(user.id, now=NOW)
    phrase_id = first.records[0].phrase_id
    answers.answer(user.id, first.session.id, phrase_id, False, now=NOW)

    tomorrow = NOW + timedelta(days=1)
    second = service.start_or_resume(user.id, kind=SessionKind.MORNING, now=tomorrow)

    assert second.resumed is False
    assert second.session.kind == SessionKind.MORNING
    record = second.records[0]
    assert record.phrase_id == phrase_id
    assert record.state == PhraseState.LEARNING
    assert record.repetitions == 1
    assert record.learning_level == 1
    assert record.first_attempt_correct is False
    assert record.delivery_kind == "review"
    assert record.knows is None
    assert second.motivational_message.startswith("1 revisão")


def test_one_active_session_is_enforced_by_the_store(db_session, make_user):
    from sqlalchemy.exc import IntegrityError

    user = make_user()
    db_session.add(PracticeSession(user_id=user.id, status=SessionStatus.ACTIVE, total_phrases=1))
    db_session.commit()

    db_session.add(PracticeSession(user_id=user.id, status=SessionStatus.ACTIVE, total_phrases=1))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_abandon_session(db_session, make_user, make_phrases, rng):
    user = make_user()
    make_phrases(3)
    service = SessionService(db_session, rng)
    result = service.start_or_resume(user.id, now=NOW)

    abandoned = service.abandon_session(result.session.id, now=NOW)

    assert abandoned.status == SessionStatus.ABANDONED
    db_session.refresh(user)
    assert user.has_active_session is False

    with pytest.raises(SessionConflictError):
        service.abandon_session(result.session.id, now=NOW)
    with pytest.raises(RecordNotFoundError):
        service.abandon_session(12345, now=NOW)


def test_phrase_left_unanswered_in_abandoned_session_is_offered_again(db_session, make_user, make_phrases, rng):
    user = make_user(phrases_per_day=1)
    phrase = make_phrases(1)[0]
    service = SessionService(db_session, rng)
    first = service.start_or_resume(user.id, now=NOW)
    service.abandon_session(first.session.id, now=NOW)

    later = service.start_or_resume(user.id, now=NOW + timedelta(days=30))

    assert later.resumed is False
    assert later.session.id != first.session.id
    assert [r.phrase_id for r in later.records] == [phrase.id]
    assert later.records[0].state == PhraseState.NEW
    assert later.records[0].repetitions == 0


def test_concurrent_start_resumes_the_session_that_won(db_session, make_user, make_phrases, rng, monkeypatch):
    user = make_user(phrases_per_day=2)
    make_phrases(4)
    service = SessionService(db_session, rng)
    winner = service.start_or_resume(user.id, now=NOW)
    winner_id = winner.session.id
    winner_phrases = [r.phrase_id for r in winner.records]

    # 第一次查询看不到对方刚创建的会话，插入时撞上唯一索引
    real_lookup = SessionRepository.get_active_session
    calls = []

    def lookup(self, user_id):
        calls.append(user_id)
        if len(calls) == 1:
            return None
        return real_lookup(self, user_id)

    monkeypatch.setattr(SessionRepository, "get_active_session", lookup)
    result = service.start_or_resume(user.id, now=NOW)

    assert result.resumed is True
    assert result.session.id == winner_id
    assert [r.phrase_id for r in result.records] == winner_phrases
    assert db_session.query(PracticeSession).count() == 1
    assert db_session.query(LearningRecord).count() == 2
    metric = db_session.query(DailyMetric).filter_by(user_id=user.id).one()
    assert metric.phrases_sent == 2
