from enum import Enum

from sqlalchemy import Enum as SAEnum


"""
枚举定义
学习状态、会话状态等都是封闭集合，数据库层只接受这里列出的取值。
"""


class PhraseState(str, Enum):
    """句子学习状态"""
    NEW = "new"                  # 从未作答
    CONFIRMING = "confirming"    # 第一次就答对，待确认
    LEARNING = "learning"        # 答错过，练习中
    MASTERED = "mastered"        # 已掌握
    MAINTENANCE = "maintenance"  # 长间隔维护复习


class SessionStatus(str, Enum):
    """会话状态"""
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    EXPIRED = "expired"  # 预留，目前没有代码路径设置该状态


class SessionKind(str, Enum):
    """会话类型"""
    PRACTICE = "practice"
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ON_DEMAND = "on_demand"
    WELCOME = "welcome"


class LearnerLevel(str, Enum):
    """学员水平"""
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class NotebookKind(str, Enum):
    """句子本类型"""
    DEFAULT = "default"
    THEMATIC = "thematic"
    PARTNER = "partner"
    PERSONAL = "personal"


class CatalogStatus(str, Enum):
    """目录条目状态"""
    ACTIVE = "active"
    INACTIVE = "inactive"


def enum_column_type(enum_class, length: int = 20) -> SAEnum:
    """
    把Python枚举映射成字符串列

    存储枚举的value而不是name；validate_strings=True 让未知字符串在写入时直接报错。
    """
    return SAEnum(
        enum_class,
        native_enum=False,
        validate_strings=True,
        length=length,
        values_callable=lambda members: [member.value for member in members],
    )
