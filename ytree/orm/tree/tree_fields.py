"""树形结构字段定义

提供标准的树形字段定义 Mixin，简化模型定义。

使用示例:
    from ytree.orm import CoreModel
    from ytree.orm.tree import TreeFieldsMixin, TreeMixin

    class Category(CoreModel, TreeFieldsMixin, TreeMixin):
        # parent_id 需要自行定义（因为外键目标表名不同）
        parent_id = mapped_column(Integer, ForeignKey("category.id"), nullable=True)

        # path, sort_order 由 TreeFieldsMixin 自动提供
        title = mapped_column(String(100))
"""

from typing import Optional
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ...config.settings import DEFAULT_PATH_MAX_LENGTH


class TreeFieldsMixin:
    """树形结构字段 Mixin

    提供标准的树形字段定义，包括：
    - path: 物化路径（如 "1.2.3"），根节点为自身 ID
    - sort_order: 同级排序序号，默认 0

    同时声明 __tree_order__ = "sort_order"，配合 TreeMixin 使用时
    兄弟节点与后代按 sort_order 升序返回。

    注意：
    - parent_id 字段需要用户自行定义，因为外键目标表名因模型而异
    - 继承顺序：TreeFieldsMixin 应在 TreeMixin 之前
    - 层级不单独存储，由路径中 "." 的个数得出
    """

    __tree_order__ = "sort_order"

    # 节点路径，格式如 "1.2.3"
    # 用于快速查询祖先/子孙节点
    path: Mapped[Optional[str]] = mapped_column(
        String(DEFAULT_PATH_MAX_LENGTH),
        nullable=True,
        default=None,
        index=True,
        comment="节点路径（如 1.2.3）"
    )

    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        index=True,
        comment="排序序号（越小越靠前）"
    )


class TreeFieldsWithParentMixin(TreeFieldsMixin):
    """带 parent_id 的树形字段 Mixin（自关联场景）

    包含 parent_id 字段，但不带外键约束。
    适用于简单场景，外键约束需要用户自行添加。

    使用示例:
        class SimpleTree(CoreModel, TreeFieldsWithParentMixin, TreeMixin):
            name = mapped_column(String(50))
    """

    # 父节点 ID（不带外键约束）
    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=None,
        index=True,
        comment="父节点ID"
    )


__all__ = [
    "TreeFieldsMixin",
    "TreeFieldsWithParentMixin",
]
