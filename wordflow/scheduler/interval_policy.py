"""
间隔策略（状态机）

根据句子当前的学习状态、重复次数和本次作答是否正确，计算新状态、新重复次数、
新学习等级以及间隔天数。纯函数，没有任何I/O。

状态流转:
    new        -> confirming | learning
    confirming -> mastered   | learning
    learning   -> learning   | mastered
    mastered / maintenance -> maintenance | learning
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from wordflow.models.enums import PhraseState

logger = logging.getLogger(__name__)


# 间隔（天）
CONFIRMATION_INTERVAL = 1
MASTERED_INTERVAL = 7
MAINTENANCE_INTERVALS = (14, 30, 60, 90)

# 在 learning 状态下答对，按重复次数分档：<=1 -> 2, <=2 -> 3, 其余 -> 5
LEARNING_CORRECT_INTERVALS = (2, 3, 5)
# 在 learning 状态下答错，按重复次数分档：<=1 -> 2, <=2 -> 3, 其余 -> 1
LEARNING_INCORRECT_INTERVALS = (2, 3, 1)
RELEARN_INTERVAL = 1

# learning 状态答对时，重复次数达到该值即晋升为 mastered
PROMOTION_REPETITIONS = 3
MAX_LEARNING_LEVEL = 4


@dataclass(frozen=True)
class Transition:
    """一次作答后的状态变化"""
    previous_state: PhraseState
    new_state: PhraseState
    interval_days: int
    repetitions: int
    learning_level: int
    first_attempt_correct: Optional[bool]

    def next_eligible_date(self, answered_on: date) -> date:
        """下次可复习日期 = 作答日期(日历日) + 间隔天数"""
        return answered_on + timedelta(days=self.interval_days)


def _tier(repetitions: int, intervals) -> int:
    if repetitions <= 1:
        return intervals[0]
    if repetitions <= 2:
        return intervals[1]
    return intervals[2]


def _maintenance_interval(repetitions: int) -> int:
    index = min(repetitions - 2, len(MAINTENANCE_INTERVALS) - 1)
    return MAINTENANCE_INTERVALS[max(0, index)]


def next_transition(state: PhraseState, repetitions: int, learning_level: int, knows: bool,
                    first_attempt_correct: Optional[bool] = None) -> Transition:
    """
    计算一次作答后的状态转换

    Args:
        state: 当前学习状态
        repetitions: 当前累计重复次数
        learning_level: 当前学习等级(1-4)
        knows: 本次是否答对
        first_attempt_correct: 已记录的"首次是否答对"，只在离开 new 状态时确定

    Returns:
        Transition: 新状态、间隔、重复次数、学习等级
    """
    state = PhraseState(state)
    repetitions = repetitions or 0
    learning_level = learning_level or 1

    if state == PhraseState.NEW:
        first_attempt_correct = knows

    if knows:
        if state == PhraseState.NEW:
            new_state, interval, new_repetitions, new_level = (
                PhraseState.CONFIRMING, CONFIRMATION_INTERVAL, 1, 2)
        elif state == PhraseState.CONFIRMING:
            new_state, interval, new_repetitions, new_level = (
                PhraseState.MASTERED, MASTERED_INTERVAL, repetitions + 1, 3)
        elif state == PhraseState.LEARNING:
            new_state = PhraseState.MASTERED if repetitions >= PROMOTION_REPETITIONS else PhraseState.LEARNING
            interval = _tier(repetitions, LEARNING_CORRECT_INTERVALS)
            new_repetitions = repetitions + 1
            new_level = min(learning_level + 1, MAX_LEARNING_LEVEL)
        elif state in (PhraseState.MASTERED, PhraseState.MAINTENANCE):
            new_state, interval, new_repetitions, new_level = (
                PhraseState.MAINTENANCE, _maintenance_interval(repetitions), repetitions + 1, MAX_LEARNING_LEVEL)
        else:
            raise ValueError(f"未知的学习状态: {state}")
    else:
        if state in (PhraseState.NEW, PhraseState.CONFIRMING):
            new_state, interval, new_repetitions, new_level = (
                PhraseState.LEARNING, RELEARN_INTERVAL, 1, 1)
        elif state == PhraseState.LEARNING:
            new_state = PhraseState.LEARNING
            interval = _tier(repetitions, LEARNING_INCORRECT_INTERVALS)
            new_repetitions = max(1, repetitions)
            new_level = 1
        elif state in (PhraseState.MASTERED, PhraseState.MAINTENANCE):
            new_state, interval, new_repetitions, new_level = (
                PhraseState.LEARNING, RELEARN_INTERVAL, 1, 2)
        else:
            raise ValueError(f"未知的学习状态: {state}")

    transition = Transition(
        previous_state=state,
        new_state=new_state,
        interval_days=interval,
        repetitions=new_repetitions,
        learning_level=new_level,
        first_attempt_correct=first_attempt_correct,
    )
    logger.debug(
        f"状态转换: {state.value} -> {new_state.value}, 答对={knows}, "
        f"间隔={interval}天, 重复={repetitions}->{new_repetitions}"
    )
    return transition
