"""树形结构模块

提供通用的树形结构支持，使用物化路径（Materialized Path）模式，
路径为 "." 连接的 ID 链（如 "1.2.3"）。

主要组件:
- path_codec: 路径编码/解码等纯函数
- TreeIndex: 基于存储的路径维护与树查询
- 存储: BaseTreeStore / MemoryTreeStore / OrmTreeStore
- TreeMixin: SQLAlchemy 模型树操作 Mixin（自动维护路径）
- TreeFieldsMixin: 树形字段定义 Mixin
- build_tree_list: 扁平列表转嵌套树

使用示例:
    from ytree.orm import CoreModel
    from ytree.orm.tree import TreeMixin, TreeFieldsMixin

    class Category(CoreModel, TreeFieldsMixin, TreeMixin):
        parent_id = mapped_column(Integer, ForeignKey("category.id"), nullable=True)
        title = mapped_column(String(100))

    category = Category.get(1)
    children = category.get_children()       # 获取直接子节点
    descendants = category.get_descendants() # 获取所有子孙节点
    ancestors = category.get_ancestors()     # 获取所有祖先节点
    category.move_to(new_parent_id)          # 移动节点

    tree = Category.get_tree_list()          # 获取嵌套树结构
"""

from . import path_codec
from .tree_index import TreeIndex
from .stores import BaseTreeStore, MemoryTreeStore, TreeNode, OrmTreeStore
from .tree_mixin import TreeMixin
from .tree_fields import TreeFieldsMixin, TreeFieldsWithParentMixin
from .tree_utils import build_tree_list

__all__ = [
    "path_codec",
    "TreeIndex",

    # 存储
    "BaseTreeStore",
    "MemoryTreeStore",
    "TreeNode",
    "OrmTreeStore",

    # Mixin 类
    "TreeMixin",
    "TreeFieldsMixin",
    "TreeFieldsWithParentMixin",

    # 工具函数
    "build_tree_list",
]
