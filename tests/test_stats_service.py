from wordflow.models.enums import LearnerLevel
from wordflow.services.session_service import SessionService
from wordflow.services.answer_service import AnswerService
from wordflow.services.stats_service import StatsService

from conftest import NOW


def answer_one(db_session, user, rng, knows=False):
    started = SessionService(db_session, rng).start_or_resume(user.id, now=NOW)
    AnswerService(db_session, rng).answer(user.id, started.session.id, started.records[0].phrase_id, knows, now=NOW)
    return started.records[0].phrase_id


def test_not_seen_ignores_phrases_answered_at_another_level(db_session, make_user, make_phrases, rng):
    make_phrases(5)
    make_phrases(2, level=LearnerLevel.ADVANCED)
    user = make_user(phrases_per_day=1, level=LearnerLevel.ADVANCED)
    answer_one(db_session, user, rng)

    user.level = LearnerLevel.BASIC
    db_session.commit()
    stats = StatsService(db_session, rng).get_user_stats(user.id, now=NOW)

    assert stats["phrases"]["catalog_size"] == 5
    assert stats["phrases"]["not_seen"] == 5
    assert stats["phrases"]["learning"] == 1


def test_not_seen_within_active_notebook(db_session, make_user, make_phrases, notebook, rng):
    make_phrases(3)
    user = make_user(phrases_per_day=1, active_notebook_id=notebook.id)
    answer_one(db_session, user, rng, knows=True)

    stats = StatsService(db_session, rng).get_user_stats(user.id, now=NOW)

    assert stats["phrases"]["catalog_size"] == 3
    assert stats["phrases"]["not_seen"] == 2
    assert stats["phrases"]["learning"] == 1
    assert stats["reviews_tomorrow"] == 1
