"""ORM 树存储

基于 SQLAlchemy Session 的存储实现。后代查询使用 LIKE 前缀匹配
（path LIKE 'x.y.%' ESCAPE '\\'），并合并 session 中尚未 flush 的修改，
因此同一次 flush 中多个节点的移动可以按任意顺序处理。

使用示例:
    from ytree.orm.tree.stores import OrmTreeStore

    store = OrmTreeStore(Category, session=session)
    index = TreeIndex(store)
"""

from contextlib import contextmanager
from typing import Any, Iterable, List, Optional, Type

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from ....config import TreeSettings
from ....log import get_logger
from ...transaction import transaction_manager, TransactionPropagation
from ..path_codec import LIKE_ESCAPE, is_strict_ancestor_path, subtree_match_prefix
from .base import BaseTreeStore

logger = get_logger("ytree.tree.store")


class OrmTreeStore(BaseTreeStore):
    """SQLAlchemy 树存储

    Args:
        model: 模型类，需包含配置中的父引用字段和路径字段
        session: 数据库会话，不传则使用 model.query 的会话或全局 scoped_session
        config: 树配置
        propagation: transaction() 使用的事务传播行为，默认 REQUIRED
            （已在事务中则加入，否则新建并在结束时提交）
    """

    def __init__(
        self,
        model: Type,
        session: Session = None,
        config: TreeSettings = None,
        propagation: TransactionPropagation = TransactionPropagation.REQUIRED,
    ):
        super().__init__(config)
        self.model = model
        self._session = session
        self.propagation = propagation
        self._written: List[Any] = []
        self._tx_depth = 0

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        if getattr(self.model, "query", None) is not None:
            return self.model.query.session
        from ...db_session import db_manager
        return db_manager.get_session()

    # ==================== 列与查询 ====================

    def _column(self, name: str):
        return getattr(self.model, name)

    def _ordered(self, query):
        if not self.config.order_field:
            return query
        column = self._column(self.config.order_field)
        return query.order_by(column.desc() if self.config.order_descending else column.asc())

    def _with_unflushed(self, rows: Iterable[Any], predicate) -> List[Any]:
        """合并 session 中未 flush 的同类对象，并按内存中的字段值过滤

        flush 过程中新增对象尚无主键，由插入后的创建钩子生成路径，此处跳过。
        """
        session = self.session
        candidates = list(rows)
        seen = {id(obj) for obj in candidates}
        pending = [] if session._flushing else list(session.new)
        for obj in pending + list(session.dirty):
            if isinstance(obj, self.model) and id(obj) not in seen:
                candidates.append(obj)
                seen.add(id(obj))
        matched = [obj for obj in candidates if obj not in session.deleted and predicate(obj)]
        return self.order_nodes(matched)

    # ==================== 存储接口 ====================

    def create(self, **fields) -> Any:
        node = self.model(**fields)
        self.session.add(node)
        self.session.flush()
        return node

    def save(self, node: Any) -> Any:
        self.session.add(node)
        if self._tx_depth:
            self._written.append(node)
        return node

    def get(self, node_id: Any) -> Optional[Any]:
        if node_id is None:
            return None
        session = self.session
        with session.no_autoflush:
            return session.get(self.model, node_id)

    def get_many(self, ids: Iterable[Any]) -> List[Any]:
        ids = list(ids)
        if not ids:
            return []
        session = self.session
        with session.no_autoflush:
            return session.query(self.model).filter(self.model.id.in_(ids)).all()

    def find_by_parent(self, parent_id: Any) -> List[Any]:
        session = self.session
        fk = self._column(self.config.foreign_key)
        with session.no_autoflush:
            query = session.query(self.model)
            query = query.filter(fk.is_(None) if parent_id is None else fk == parent_id)
            rows = self._ordered(query).all()
            return self._with_unflushed(rows, lambda obj: self.get_parent_id(obj) == parent_id)

    def find_descendants(self, path: str) -> List[Any]:
        session = self.session
        path_column = self._column(self.config.path_field)
        with session.no_autoflush:
            query = session.query(self.model).filter(
                path_column.like(subtree_match_prefix(path), escape=LIKE_ESCAPE)
            )
            rows = self._ordered(query).all()
            return self._with_unflushed(
                rows, lambda obj: is_strict_ancestor_path(path, self.get_path(obj))
            )

    def parent_changed(self, node: Any) -> bool:
        state = inspect(node)
        if not state.persistent:
            return False
        history = state.attrs[self.config.foreign_key].history
        if not history.added:
            return False
        if history.deleted:
            return history.deleted[0] != history.added[0]
        return True

    @contextmanager
    def transaction(self):
        """在 transaction_manager 的事务中执行；异常时丢弃本次写入对象的内存修改"""
        start = len(self._written)
        with transaction_manager.transaction(session=self.session, propagation=self.propagation) as tx:
            self._tx_depth += 1
            try:
                yield tx
            except Exception:
                logger.debug(f"事务失败，丢弃 {len(self._written) - start} 个对象的内存修改")
                for obj in self._written[start:]:
                    self.discard_changes(obj)
                raise
            finally:
                self._tx_depth -= 1
                del self._written[start:]

    def discard_changes(self, node: Any) -> None:
        state = inspect(node)
        if state.persistent:
            self.session.expire(node)
