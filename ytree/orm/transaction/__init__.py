"""事务管理模块

使用示例:
    from ytree.orm.transaction import transaction_manager as tm

    with tm.transaction(session=session) as tx:
        Category.get(2).move_to(4)
        with tx.savepoint():
            ...
"""

from .state import TransactionState
from .propagation import TransactionPropagation
from .exceptions import (
    TransactionError,
    TransactionNotActiveError,
    TransactionAlreadyCommittedError,
    SavepointError,
    PropagationError,
)
from .context import TransactionContext, SavepointContext
from .manager import (
    TransactionManager,
    transaction_manager,
    get_current_transaction,
)

__all__ = [
    "TransactionState",
    "TransactionPropagation",
    "TransactionError",
    "TransactionNotActiveError",
    "TransactionAlreadyCommittedError",
    "SavepointError",
    "PropagationError",
    "TransactionContext",
    "SavepointContext",
    "TransactionManager",
    "transaction_manager",
    "get_current_transaction",
]
