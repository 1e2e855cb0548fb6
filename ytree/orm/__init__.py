"""ORM模块

提供：
- CoreModel: 核心模型基类，包含ID、时间戳、CRUD
- 数据库会话管理
- 事务管理
- 树形结构扩展

使用示例:
    from ytree.orm import CoreModel, init_database
    from ytree.orm.tree import TreeMixin, TreeFieldsWithParentMixin

    init_database("sqlite:///./tree.db")

    class Region(CoreModel, TreeFieldsWithParentMixin, TreeMixin):
        name = mapped_column(String(50))
"""

from .id_model import Base, IdModel
from .core_model import CoreModel
from .db_session import (
    db_manager,
    init_database,
    get_engine,
    db_session_scope,
    on_request_end,
)
from .transaction import (
    transaction_manager,
    TransactionManager,
    TransactionContext,
    TransactionPropagation,
    TransactionState,
    TransactionError,
    get_current_transaction,
)
from .utils import to_snake_case

__all__ = [
    "Base",
    "IdModel",
    "CoreModel",

    # 会话
    "db_manager",
    "init_database",
    "get_engine",
    "db_session_scope",
    "on_request_end",

    # 事务
    "transaction_manager",
    "TransactionManager",
    "TransactionContext",
    "TransactionPropagation",
    "TransactionState",
    "TransactionError",
    "get_current_transaction",

    "to_snake_case",
]
