"""事务异常类"""


class TransactionError(Exception):
    """事务错误基类"""
    pass


class TransactionNotActiveError(TransactionError):
    """在非活跃事务上执行操作"""

    def __init__(self, message: str = "事务未激活"):
        super().__init__(message)


class TransactionAlreadyCommittedError(TransactionError):
    """对已提交的事务执行操作"""

    def __init__(self, message: str = "事务已提交，无法执行此操作"):
        super().__init__(message)


class SavepointError(TransactionError):
    """保存点错误"""
    pass


class PropagationError(TransactionError):
    """事务传播行为不满足条件"""

    def __init__(self, propagation: str, message: str):
        self.propagation = propagation
        super().__init__(f"[{propagation}] {message}")
