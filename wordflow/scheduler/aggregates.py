"""
聚合计数

会话计数和学员统计都是 (旧聚合, 事件) -> 新聚合 的纯函数，持久化由服务层通过乐观并发完成。
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Optional


@dataclass(frozen=True)
class SessionCounters:
    total: int
    answered: int = 0
    correct: int = 0
    incorrect: int = 0

    @property
    def completed(self) -> bool:
        return self.answered == self.total

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.answered)


@dataclass(frozen=True)
class ProfileCounters:
    total_seen: int = 0
    total_correct: int = 0
    consecutive_days: int = 0
    last_practice_date: Optional[date] = None


def fold_session_answer(counters: SessionCounters, knows: bool) -> SessionCounters:
    """一次作答计入会话计数"""
    if counters.answered >= counters.total:
        raise ValueError("会话所有句子都已作答")
    return replace(
        counters,
        answered=counters.answered + 1,
        correct=counters.correct + (1 if knows else 0),
        incorrect=counters.incorrect + (0 if knows else 1),
    )


def fold_profile_answer(counters: ProfileCounters, knows: bool, today: date) -> ProfileCounters:
    """
    一次作答计入学员统计

    连续天数：同一天内不变；紧接上一次练习日则加一；中间有断档则重置为1。
    """
    last_day = counters.last_practice_date
    if last_day is not None and today <= last_day:
        # 同一天（或时钟回拨）
        streak = max(1, counters.consecutive_days)
        practice_day = last_day
    elif last_day is not None and last_day == today - timedelta(days=1):
        streak = counters.consecutive_days + 1
        practice_day = today
    else:
        streak = 1
        practice_day = today

    return ProfileCounters(
        total_seen=counters.total_seen + 1,
        total_correct=counters.total_correct + (1 if knows else 0),
        consecutive_days=streak,
        last_practice_date=practice_day,
    )
