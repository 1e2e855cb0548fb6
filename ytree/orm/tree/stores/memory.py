"""内存树存储

基于字典的存储实现，适用于开发测试和不需要持久化的场景。
读写都复制记录，调用方持有的对象与存储中的记录相互独立，
行为与数据库存储一致。父引用、路径和排序字段名按 TreeSettings 读取。
"""

import copy
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional

from ....config import TreeSettings
from ....exceptions import Err
from ..path_codec import is_strict_ancestor_path
from .base import BaseTreeStore


class TreeNode:
    """内存存储使用的节点记录

    字段不固定，创建时传入的关键字参数都成为属性；
    parent_id、path、sort_order、name 未传入时为 None。
    """

    def __init__(self, id: Any = None, **fields):
        self.id = id
        self.parent_id = None
        self.path = None
        self.sort_order = None
        self.name = None
        for key, value in fields.items():
            setattr(self, key, value)

    def to_dict(self) -> Dict[str, Any]:
        return dict(vars(self))

    def __eq__(self, other) -> bool:
        if not isinstance(other, TreeNode):
            return NotImplemented
        return vars(self) == vars(other)

    __hash__ = None

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"TreeNode({fields})"


class MemoryTreeStore(BaseTreeStore):
    """内存树存储

    使用示例:
        store = MemoryTreeStore(TreeSettings(order="sort_order"))
        index = TreeIndex(store)

        root = index.create(name="根")
        child = index.create(name="子", parent_id=root.id)
        child.path   # "1.2"

        # 自定义字段名
        store = MemoryTreeStore(TreeSettings(foreign_key="parent_dept_id", path_field="tree_path"))
    """

    def __init__(self, config: TreeSettings = None):
        super().__init__(config)
        self._records: Dict[Any, TreeNode] = {}
        self._next_id = 1
        self._tx_depth = 0

    def create(self, **fields) -> TreeNode:
        node_id = fields.pop("id", None)
        if node_id is None:
            while self._next_id in self._records:
                self._next_id += 1
            node_id = self._next_id
        elif node_id in self._records:
            raise Err.invalid(f"节点ID已存在: {node_id!r}", node_id=node_id)

        fields.setdefault(self.config.foreign_key, None)
        fields.setdefault(self.config.path_field, None)
        if self.config.order_field:
            fields.setdefault(self.config.order_field, None)

        record = TreeNode(id=node_id, **fields)
        self._records[node_id] = record
        return copy.copy(record)

    def save(self, node: TreeNode) -> TreeNode:
        if node.id is None:
            raise Err.invalid("节点尚未创建，请使用 create()")
        self._records[node.id] = copy.copy(node)
        return node

    def get(self, node_id: Any) -> Optional[TreeNode]:
        record = self._records.get(node_id)
        return copy.copy(record) if record is not None else None

    def get_many(self, ids: Iterable[Any]) -> List[TreeNode]:
        return [copy.copy(self._records[i]) for i in ids if i in self._records]

    def find_by_parent(self, parent_id: Any) -> List[TreeNode]:
        return self.order_nodes(
            copy.copy(r) for r in self._records.values() if self.get_parent_id(r) == parent_id
        )

    def find_descendants(self, path: str) -> List[TreeNode]:
        return self.order_nodes(
            copy.copy(r) for r in self._records.values()
            if is_strict_ancestor_path(path, self.get_path(r))
        )

    def parent_changed(self, node: TreeNode) -> bool:
        record = self._records.get(node.id)
        if record is None:
            return False
        return self.get_parent_id(record) != self.get_parent_id(node)

    @contextmanager
    def transaction(self):
        """快照式事务，嵌套调用并入最外层"""
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return

        snapshot = {k: copy.copy(v) for k, v in self._records.items()}
        next_id = self._next_id
        self._tx_depth = 1
        try:
            yield self
        except BaseException:
            self._records = snapshot
            self._next_id = next_id
            raise
        finally:
            self._tx_depth = 0

    def discard_changes(self, node: TreeNode) -> None:
        record = self._records.get(node.id)
        if record is None:
            return
        vars(node).clear()
        vars(node).update(vars(record))

    def __len__(self) -> int:
        return len(self._records)

    def all(self) -> List[TreeNode]:
        """全部记录（按创建顺序）"""
        return [copy.copy(r) for r in self._records.values()]
