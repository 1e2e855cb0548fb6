"""事务上下文

提供事务和保存点的上下文管理
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Optional, TYPE_CHECKING

from sqlalchemy.orm import Session

from ...log import get_logger

from .state import TransactionState
from .propagation import TransactionPropagation
from .exceptions import (
    TransactionNotActiveError,
    TransactionAlreadyCommittedError,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import SessionTransaction

logger = get_logger("ytree.orm.transaction")


class SavepointContext:
    """保存点上下文

    使用示例:
        with tx.savepoint("move") as sp:
            index.move_to(node, new_parent_id)
            # 发生异常时只回滚到此保存点
    """

    def __init__(self, name: str, nested: 'SessionTransaction'):
        self.name = name
        self._nested = nested
        self._state = TransactionState.ACTIVE

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == TransactionState.ACTIVE

    def release(self) -> None:
        """释放保存点，变更合并到外层事务"""
        if not self.is_active:
            return
        try:
            self._nested.commit()
        except Exception:
            self._state = TransactionState.FAILED
            raise
        self._state = TransactionState.COMMITTED
        logger.debug(f"保存点 {self.name} 已释放")

    def rollback(self) -> None:
        """回滚到此保存点"""
        if not self.is_active:
            return
        try:
            self._nested.rollback()
        except Exception:
            self._state = TransactionState.FAILED
            logger.error(f"保存点 {self.name} 回滚失败", exc_info=True)
            raise
        self._state = TransactionState.ROLLED_BACK
        logger.debug(f"保存点 {self.name} 已回滚")


class TransactionContext:
    """事务上下文

    管理单个事务的生命周期：状态跟踪、嵌套层级、保存点与提交抑制。
    上下文内部对 CoreModel.save(commit=True) 的提交请求会被抑制为 flush，
    由最外层统一提交。

    使用示例:
        with TransactionContext(session) as tx:
            node.save(commit=True)   # 只 flush
            with tx.savepoint():
                other.save()
        # 退出时提交；发生异常时回滚
    """

    def __init__(
        self,
        session: Session,
        auto_commit: bool = True,
        propagation: TransactionPropagation = None,
        suppress_commit: bool = True
    ):
        self._session = session
        self._auto_commit = auto_commit
        self._propagation = propagation or TransactionPropagation.REQUIRED
        self._suppress_commit = suppress_commit
        self._state = TransactionState.INACTIVE
        self._allow_commit_depth = 0
        self._savepoint_counter = 0
        self._nesting_level = 0

        # 上下文数据，供同一事务内的调用方共享
        self.data: Dict[str, Any] = {}

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == TransactionState.ACTIVE

    @property
    def nesting_level(self) -> int:
        return self._nesting_level

    @property
    def propagation(self) -> TransactionPropagation:
        return self._propagation

    @property
    def suppress_commit(self) -> bool:
        """是否抑制内部的 commit=True 调用（allow_commit() 期间不抑制）"""
        return self._suppress_commit and self._allow_commit_depth == 0

    # ==================== 生命周期 ====================

    def begin(self) -> 'TransactionContext':
        if self.is_active:
            self._nesting_level += 1
            logger.debug(f"加入现有事务 (level={self._nesting_level})")
            return self

        # SQLAlchemy session 自动开启数据库事务
        self._state = TransactionState.ACTIVE
        self._nesting_level = 1
        logger.debug("事务开始")
        return self

    def commit(self) -> None:
        if self._state == TransactionState.COMMITTED:
            raise TransactionAlreadyCommittedError()
        if not self.is_active:
            raise TransactionNotActiveError(f"无法提交：事务状态为 {self._state.value}")

        if self._nesting_level > 1:
            self._nesting_level -= 1
            return

        try:
            self._session.commit()
        except Exception:
            self._state = TransactionState.FAILED
            raise
        self._state = TransactionState.COMMITTED
        self._nesting_level = 0
        logger.debug("事务提交成功")

    def rollback(self) -> None:
        """回滚事务（幂等）"""
        if self._state == TransactionState.COMMITTED:
            raise TransactionAlreadyCommittedError("无法回滚：事务已提交")
        if self._state not in (TransactionState.ACTIVE, TransactionState.FAILED):
            return

        self._session.rollback()
        self._state = TransactionState.ROLLED_BACK
        self._nesting_level = 0
        logger.debug("事务回滚成功")

    def flush(self) -> None:
        if not self.is_active:
            raise TransactionNotActiveError("无法刷新：事务未激活")
        self._session.flush()

    # ==================== 保存点 ====================

    @contextmanager
    def savepoint(self, name: str = None):
        """创建保存点，块内异常只回滚到此保存点并继续抛出"""
        if not self.is_active:
            raise TransactionNotActiveError("无法创建保存点：事务未激活")

        if name is None:
            self._savepoint_counter += 1
            name = f"sp_{self._savepoint_counter}"

        sp = SavepointContext(name, self._session.begin_nested())
        logger.debug(f"创建保存点: {name}")
        try:
            yield sp
        except Exception:
            sp.rollback()
            raise
        sp.release()

    # ==================== 提交抑制 ====================

    @contextmanager
    def allow_commit(self):
        """临时允许 commit=True 生效"""
        self._allow_commit_depth += 1
        try:
            yield
        finally:
            self._allow_commit_depth -= 1

    def should_suppress_commit(self) -> bool:
        return self.is_active and self.suppress_commit

    # ==================== 上下文管理器 ====================

    def __enter__(self) -> 'TransactionContext':
        return self.begin()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.rollback()
            return False

        if self._nesting_level > 1:
            self._nesting_level -= 1
        elif self._auto_commit and self.is_active:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        return False

    def __repr__(self) -> str:
        return (
            f"TransactionContext("
            f"state={self._state.value}, "
            f"nesting_level={self._nesting_level}, "
            f"suppress_commit={self.suppress_commit})"
        )
