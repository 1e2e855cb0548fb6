"""
ORM基础模型

提供自动表名、时间戳字段和常用的 CRUD 操作
"""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, TYPE_CHECKING

from sqlalchemy import DateTime, func, inspect
from sqlalchemy.orm import Mapped, mapped_column, declared_attr, Session, Query

if TYPE_CHECKING:
    from typing_extensions import Self

from ..log import get_logger
from .id_model import IdModel
from .utils import to_snake_case


logger = get_logger("ytree.orm.core_model")


class CoreModel(IdModel):
    """ORM基础模型类

    提供功能：
    - 整数自增主键（继承自 IdModel）
    - 自动表名生成（驼峰转下划线）
    - 创建/更新时间戳
    - save / update / delete / get / get_all / to_dict
    - 事务上下文中的提交抑制

    使用示例:
        from ytree.orm import CoreModel, init_database

        init_database("sqlite:///./tree.db")

        class Category(CoreModel):
            name: Mapped[str] = mapped_column(String(50))

        category = Category(name="书籍")
        category.save(commit=True)
    """
    __abstract__ = True

    # query 属性由 init_database() 或测试夹具通过 scoped_session.query_property() 设置
    query: ClassVar[Query] = None

    _session: Session = None

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """驼峰命名转下划线"""
        name = cls.__name__
        if '_' in name:
            raise ValueError(f'{name}字符中包含下划线，无法转换')
        return to_snake_case(name)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        comment="创建时间"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=True,
        onupdate=func.now(),
        comment="更新时间"
    )

    # 系统字段（构造时自动忽略）
    _system_fields: ClassVar[set] = {'id', 'created_at', 'updated_at'}

    def __init__(self, **kwargs):
        for field in self._system_fields:
            kwargs.pop(field, None)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.id}>"

    def __getattribute__(self, name):
        """访问 id 时，若对象处于 pending 状态则自动 flush 以获取主键

            node = Category(name="书籍")
            node.save()
            print(node.id)  # 自动 flush，立即可用
        """
        value = super().__getattribute__(name)

        if name == 'id' and value is None:
            state = inspect(self, raiseerr=False)
            session = state.session if state is not None else None
            # flush 过程中（如 before_flush 事件）不能再次 flush
            if session is not None and state.pending and not session._flushing:
                session.flush()
                return super().__getattribute__(name)

        return value

    @property
    def session(self) -> Session:
        """当前 session

        对象已属于某个 session 时使用该 session，否则优先使用 query 的 session，
        最后退回到全局 scoped_session
        """
        own = inspect(self).session
        if own is not None:
            return own
        if self._session is None:
            if self.__class__.query is not None:
                self._session = self.__class__.query.session
            else:
                from .db_session import db_manager
                self._session = db_manager.get_session()
        return self._session

    # ==================== CRUD 操作方法 ====================

    def save(self, commit: bool = False) -> Self:
        """保存对象（新增或更新）

        Args:
            commit: 是否立即提交
                   - 无事务时：执行 session.commit()
                   - 有事务时：commit 被抑制，改为 flush
        """
        self.session.add(self)
        self._commit_or_flush(commit)
        return self

    def update(self, commit: bool = False, **kwargs) -> Self:
        """更新对象属性

            node.update(name="新名称", commit=True)
        """
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
        self._commit_or_flush(commit)
        return self

    def delete(self, commit: bool = False):
        """删除对象"""
        self.session.delete(self)
        self._commit_or_flush(commit)

    @classmethod
    def get(cls, id: int):
        """根据ID获取对象，不存在返回None"""
        return cls.query.session.get(cls, id)

    @classmethod
    def get_all(cls):
        """获取所有记录"""
        return cls.query.all()

    def to_dict(self, exclude: set = None) -> dict:
        """转换为字典

        Args:
            exclude: 需要排除的字段集合
        """
        exclude = exclude or set()
        return {
            c.key: getattr(self, c.key)
            for c in inspect(self).mapper.column_attrs
            if c.key not in exclude
        }

    # ==================== 提交控制 ====================

    def _commit_or_flush(self, commit: bool = False):
        if not commit:
            return
        if self._should_suppress_commit():
            # 被抑制时 flush，以获取自动生成字段
            self.session.flush()
            return
        self.session.commit()

    @staticmethod
    def _should_suppress_commit() -> bool:
        from .transaction import get_current_transaction
        tx = get_current_transaction()
        if tx is not None and tx.should_suppress_commit():
            logger.debug("commit=True 被事务上下文抑制")
            return True
        return False
