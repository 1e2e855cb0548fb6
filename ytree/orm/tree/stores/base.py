"""树存储抽象基类

定义 TreeIndex 依赖的存储接口。节点的父引用字段与路径字段名由 config
（TreeSettings）决定，基类提供按配置读写这两个字段的辅助方法。
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Iterable, List, Optional

from ....config import TreeSettings


class BaseTreeStore(ABC):
    """树存储抽象基类

    所有存储实现都应继承此类。实现需要保证：
    - find_by_parent(None) 返回父引用为空的记录（根节点）
    - find_descendants 只返回严格后代，且前缀匹配以 "." 为边界
    - transaction() 内的写操作要么全部生效，要么全部回滚
    """

    def __init__(self, config: TreeSettings = None):
        self.config = config or TreeSettings()

    # ==================== 字段访问 ====================

    def get_id(self, node: Any) -> Any:
        return node.id

    def get_parent_id(self, node: Any) -> Any:
        return getattr(node, self.config.foreign_key)

    def set_parent_id(self, node: Any, parent_id: Any) -> None:
        setattr(node, self.config.foreign_key, parent_id)

    def get_path(self, node: Any) -> Optional[str]:
        return getattr(node, self.config.path_field)

    def set_path(self, node: Any, path: Optional[str]) -> None:
        setattr(node, self.config.path_field, path)

    def order_nodes(self, nodes: Iterable[Any]) -> List[Any]:
        """按配置的排序字段排序；未配置时保持原顺序"""
        nodes = list(nodes)
        if not self.config.order_field:
            return nodes
        present = [n for n in nodes if getattr(n, self.config.order_field) is not None]
        missing = [n for n in nodes if getattr(n, self.config.order_field) is None]
        present.sort(key=lambda n: getattr(n, self.config.order_field),
                     reverse=self.config.order_descending)
        return present + missing

    # ==================== 存储接口 ====================

    @abstractmethod
    def create(self, **fields) -> Any:
        """创建并持久化记录，由存储分配 ID

        Returns:
            新记录
        """
        pass

    @abstractmethod
    def save(self, node: Any) -> Any:
        """持久化记录的当前字段值"""
        pass

    @abstractmethod
    def get(self, node_id: Any) -> Optional[Any]:
        """按 ID 查找记录，不存在返回 None"""
        pass

    @abstractmethod
    def get_many(self, ids: Iterable[Any]) -> List[Any]:
        """按 ID 批量查找记录，不存在的 ID 被忽略，结果顺序不保证"""
        pass

    @abstractmethod
    def find_by_parent(self, parent_id: Any) -> List[Any]:
        """父引用等于 parent_id 的记录（None 表示根节点），按配置排序"""
        pass

    @abstractmethod
    def find_descendants(self, path: str) -> List[Any]:
        """路径位于 path 之下的所有严格后代，配置了排序字段时整体按其排序"""
        pass

    @abstractmethod
    def parent_changed(self, node: Any) -> bool:
        """节点的父引用是否与已持久化的值不同"""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """事务上下文：正常退出时生效，异常时回滚后继续抛出"""
        pass

    @abstractmethod
    def discard_changes(self, node: Any) -> None:
        """丢弃节点在内存中尚未持久化的修改"""
        pass
