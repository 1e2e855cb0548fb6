"""树存储模块

提供不同的存储实现：
- BaseTreeStore: 存储接口
- MemoryTreeStore: 内存存储（测试与脚本）
- OrmTreeStore: SQLAlchemy 存储
"""

from .base import BaseTreeStore
from .memory import MemoryTreeStore, TreeNode
from .orm import OrmTreeStore

__all__ = [
    "BaseTreeStore",
    "MemoryTreeStore",
    "TreeNode",
    "OrmTreeStore",
]
