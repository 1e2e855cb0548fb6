"""事务管理器

提供事务管理的统一入口
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from typing import Callable, Generator, Optional, TypeVar

from sqlalchemy.orm import Session

from ...log import get_logger

from .propagation import TransactionPropagation
from .context import TransactionContext
from .exceptions import PropagationError

logger = get_logger("ytree.orm.transaction")

T = TypeVar('T')

# 当前事务上下文（线程/协程安全）
_current_transaction: ContextVar[Optional[TransactionContext]] = ContextVar(
    '_current_transaction', default=None
)


def get_current_transaction() -> Optional[TransactionContext]:
    """获取当前事务上下文，不在事务中返回 None"""
    return _current_transaction.get()


class TransactionManager:
    """事务管理器（单例）

    使用示例:
        from ytree.orm import transaction_manager as tm

        with tm.transaction() as tx:
            node.move_to(new_parent_id)
            other.save(commit=True)   # 被抑制，统一在退出时提交

        @tm.transactional()
        def reorganize(tree_ids):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._default_suppress_commit = True
        self._initialized = True

    def get_session(self) -> Session:
        from ..db_session import db_manager
        return db_manager.get_session()

    @property
    def current_transaction(self) -> Optional[TransactionContext]:
        return _current_transaction.get()

    def configure(self, suppress_commit_in_transaction: bool = None) -> None:
        """配置事务管理器

        Args:
            suppress_commit_in_transaction: 是否在事务中抑制 commit=True
        """
        if suppress_commit_in_transaction is not None:
            self._default_suppress_commit = suppress_commit_in_transaction

    @contextmanager
    def transaction(
        self,
        session: Session = None,
        propagation: TransactionPropagation = TransactionPropagation.REQUIRED,
        auto_commit: bool = True,
        suppress_commit: bool = None
    ) -> Generator[TransactionContext, None, None]:
        """创建或加入事务上下文

        Args:
            session: 数据库会话，不传则使用全局 scoped_session
            propagation: 事务传播行为
            auto_commit: 新建事务时是否在退出时提交
            suppress_commit: 是否抑制内部提交，None 则使用默认配置

        加入已有事务时（REQUIRED/MANDATORY），内层抛出的异常应继续向外抛出，
        由最外层统一回滚；内层吞掉异常后继续执行会提交不一致的数据。
        """
        if session is None:
            session = self.get_session()
        if suppress_commit is None:
            suppress_commit = self._default_suppress_commit

        current = self.current_transaction
        joinable = current is not None and current.is_active and current.session is session

        if propagation == TransactionPropagation.MANDATORY and not joinable:
            raise PropagationError("MANDATORY", "必须在事务中执行")
        if propagation == TransactionPropagation.NESTED and not joinable:
            raise PropagationError("NESTED", "NESTED 需要一个活跃的外层事务")

        if joinable:
            if propagation == TransactionPropagation.NESTED:
                logger.debug("NESTED: 创建嵌套事务 (savepoint)")
                with current.savepoint():
                    yield current
                return

            current._nesting_level += 1
            logger.debug(f"{propagation.value}: 加入现有事务 (level={current._nesting_level})")
            try:
                yield current
            finally:
                if current._nesting_level > 1:
                    current._nesting_level -= 1
            return

        ctx = TransactionContext(
            session=session,
            auto_commit=auto_commit,
            propagation=propagation,
            suppress_commit=suppress_commit
        )
        token = _current_transaction.set(ctx)
        try:
            with ctx:
                yield ctx
        finally:
            _current_transaction.reset(token)

    def transactional(
        self,
        propagation: TransactionPropagation = TransactionPropagation.REQUIRED,
        suppress_commit: bool = None
    ):
        """事务装饰器

            @tm.transactional()
            def rebuild():
                Category.rebuild_all_paths()
        """
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            @wraps(func)
            def wrapper(*args, **kwargs) -> T:
                with self.transaction(propagation=propagation, suppress_commit=suppress_commit):
                    return func(*args, **kwargs)
            return wrapper

        return decorator

    def is_in_transaction(self) -> bool:
        tx = self.current_transaction
        return tx is not None and tx.is_active

    def should_suppress_commit(self) -> bool:
        tx = self.current_transaction
        return tx is not None and tx.should_suppress_commit()


# 全局单例
transaction_manager = TransactionManager()
