"""
调度相关异常

每种异常带一个稳定的错误码、HTTP状态码和是否可重试标记，由 main 中的异常处理器统一渲染。
"""


class SchedulerError(Exception):
    """调度错误基类"""

    code = "SCHEDULER_ERROR"
    status_code = 500
    retryable = False
    default_message = "调度失败"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable
        }


class ContentExhaustedError(SchedulerError):
    """四个优先级都没有可用句子"""

    code = "NO_CONTENT"
    status_code = 404
    default_message = "Nenhuma frase disponível para praticar"


class SessionConflictError(SchedulerError):
    """找不到待作答记录"""

    code = "SESSION_CONFLICT"
    status_code = 409


class AlreadyAnsweredError(SessionConflictError):
    """该句子在本会话中已经作答，调用方不应再重试"""

    code = "ALREADY_ANSWERED"
    status_code = 409
    default_message = "Frase já foi respondida nesta sessão"


class RecordNotFoundError(SessionConflictError):
    """该会话中不存在这条记录，调用方需要重新开始会话"""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Registro não encontrado para esta frase/sessão. Tente iniciar uma nova sessão."


class TransientStoreError(SchedulerError):
    """存储读写失败，整个事务已回滚，可重试"""

    code = "STORE_UNAVAILABLE"
    status_code = 503
    retryable = True
    default_message = "Falha temporária. Tente novamente."


class LearnerNotFoundError(SchedulerError):
    """学员不存在"""

    code = "LEARNER_NOT_FOUND"
    status_code = 404
    default_message = "Usuário não encontrado"
