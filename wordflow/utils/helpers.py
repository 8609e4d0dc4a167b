from datetime import datetime, date, timedelta

import pytz

from wordflow.config.settings import settings


def utc_now() -> datetime:
    """当前UTC时间（带时区）"""
    return datetime.now(pytz.utc)


def local_today(now: datetime = None) -> date:
    """
    学员时区(settings.TIMEZONE)下的日历日期
    """
    if now is None:
        now = utc_now()
    elif now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(pytz.timezone(settings.TIMEZONE)).date()


def add_days(day: date, days: int) -> date:
    """日期加整数天"""
    return day + timedelta(days=days)


def format_timestamp(dt: datetime = None) -> str:
    """格式化时间戳"""
    if not dt:
        dt = utc_now()
    return dt.isoformat()


def month_start(day: date) -> date:
    """当月第一天"""
    return day.replace(day=1)


def local_day_start(day: date) -> datetime:
    """学员时区下某天0点对应的UTC时间"""
    tz = pytz.timezone(settings.TIMEZONE)
    local_midnight = tz.localize(datetime(day.year, day.month, day.day))
    return local_midnight.astimezone(pytz.utc)


def hours_left_in_day(now: datetime = None) -> int:
    """学员时区下今天还剩几个小时（向下取整）"""
    if now is None:
        now = utc_now()
    elif now.tzinfo is None:
        now = pytz.utc.localize(now)
    tomorrow = local_day_start(local_today(now) + timedelta(days=1))
    return int((tomorrow - now).total_seconds() // 3600)
