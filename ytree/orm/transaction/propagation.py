"""事务传播行为

定义在已有事务上下文中再次开启事务时的行为
"""

from enum import Enum


class TransactionPropagation(str, Enum):
    """事务传播行为

    使用示例:
        with tm.transaction(propagation=TransactionPropagation.MANDATORY):
            index.before_update(node)
    """

    REQUIRED = "required"
    """有事务则加入，没有则新建（默认）。树的移动与重建使用此行为"""

    MANDATORY = "mandatory"
    """必须在已有事务中执行，否则抛出 PropagationError"""

    NESTED = "nested"
    """在已有事务中创建保存点；外层回滚时一并回滚"""
