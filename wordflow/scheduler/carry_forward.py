"""
进度延续

新会话总是为每个句子新建一条待作答记录；复习句子从该句子最近一次作答的记录中
复制状态、重复次数、学习等级和"首次是否答对"，从未见过的句子使用默认值。
"""

from typing import Optional, Dict, Any

from wordflow.models.enums import PhraseState
from wordflow.models.learning_record import LearningRecord


# 历史记录缺少学习等级时，按状态补默认值
DEFAULT_LEVEL_BY_STATE = {
    PhraseState.NEW: 1,
    PhraseState.LEARNING: 1,
    PhraseState.CONFIRMING: 2,
    PhraseState.MASTERED: 4,
    PhraseState.MAINTENANCE: 4,
}


def derive_from_previous(previous: Optional[LearningRecord], user_id: int, phrase_id: int,
                         session_id: int, order_in_session: int, total_in_session: int) -> Dict[str, Any]:
    """
    由上一条记录（或默认值）构造新会话记录的字段

    Args:
        previous: 该句子最近一次作答的记录；None 表示从未见过
        user_id: 学员ID
        phrase_id: 句子ID
        session_id: 新会话ID
        order_in_session: 会话内顺序(从1开始)
        total_in_session: 会话句子总数

    Returns:
        Dict: 可直接用于创建 LearningRecord 的字段
    """
    fields = {
        "user_id": user_id,
        "phrase_id": phrase_id,
        "session_id": session_id,
        "order_in_session": order_in_session,
        "total_in_session": total_in_session,
        "origin": "session",
        "knows": None,
    }

    if previous is None:
        fields.update({
            "state": PhraseState.NEW,
            "repetitions": 0,
            "learning_level": DEFAULT_LEVEL_BY_STATE[PhraseState.NEW],
            "first_attempt_correct": None,
            "delivery_kind": "new",
        })
        return fields

    state = PhraseState(previous.state)
    fields.update({
        "state": state,
        "repetitions": previous.repetitions or 0,
        "learning_level": previous.learning_level or DEFAULT_LEVEL_BY_STATE[state],
        "first_attempt_correct": previous.first_attempt_correct,
        "delivery_kind": "review",
    })
    return fields
