"""树索引

在一个存储（BaseTreeStore）之上维护物化路径：创建后生成路径、父引用变更时
级联重写整棵子树的路径，并基于路径回答祖先/后代/根/深度等查询。
路径缺失时所有查询退回到沿父引用遍历，结果与基于路径时一致。

使用示例:
    from ytree.config import TreeSettings
    from ytree.orm.tree import TreeIndex, MemoryTreeStore

    index = TreeIndex(MemoryTreeStore(TreeSettings(order="sort_order")))

    root = index.create(name="R")                    # path "1"
    child = index.create(name="C", parent_id=1)      # path "1.2"
    grand = index.create(name="G", parent_id=2)      # path "1.2.3"
    other = index.create(name="N")                   # path "4"

    index.move_to(child, 4)                          # C -> "4.2", G -> "4.2.3"
    index.ancestors(index.store.get(3))              # [C, N]
"""

from typing import Any, Callable, Iterable, Iterator, List, Optional

from ...exceptions import Err
from ...log import get_logger
from . import path_codec
from .path_codec import PATH_SEPARATOR
from .stores.base import BaseTreeStore
from .tree_utils import build_tree_list

logger = get_logger("ytree.tree")


class TreeIndex:
    """物化路径树索引

    一个 TreeIndex 对应一种记录类型，自身无状态，所有数据都在 store 中。
    移动与重建在 store.transaction() 中执行，失败时不会留下部分更新的子树。

    Args:
        store: 存储实现，其 config（TreeSettings）决定字段名、排序与环检测
    """

    def __init__(self, store: BaseTreeStore):
        self.store = store

    @property
    def config(self):
        return self.store.config

    def __repr__(self) -> str:
        return f"<TreeIndex store={self.store.__class__.__name__}>"

    # ==================== 内部工具 ====================

    def _id(self, node: Any) -> Any:
        return self.store.get_id(node)

    def _id_type(self, node: Any):
        """路径段的转换类型，与主键类型一致"""
        return int if isinstance(self._id(node), int) else str

    def _require_path(self, node: Any) -> str:
        path = self.store.get_path(node)
        if not path:
            raise Err.path_required(f"节点 {self._id(node)!r} 的路径尚未生成", node_id=self._id(node))
        return path

    def _build_path(self, node: Any) -> str:
        """根据父引用计算节点应有的路径，不使用节点自身的旧路径

        父节点没有路径时继续向上遍历，直到遇到有路径的祖先或根节点。
        沿父引用回到已访问过的节点时抛出 CircularReferenceError。
        """
        node_id = self._id(node)
        id_type = self._id_type(node)
        chain = [node_id]
        visited = {node_id}
        base = None
        current = node

        while True:
            parent_id = self.store.get_parent_id(current)
            if parent_id is None:
                break
            if parent_id in visited:
                raise Err.circular(
                    f"节点 {node_id!r} 的父引用形成环",
                    node_id=node_id,
                    parent_id=parent_id,
                )
            parent = self.store.get(parent_id)
            if parent is None:
                raise Err.missing_parent(
                    f"节点 {self._id(current)!r} 的父节点 {parent_id!r} 不存在",
                    node_id=self._id(current),
                    parent_id=parent_id,
                )
            parent_path = self.store.get_path(parent)
            if parent_path:
                if self.config.prevent_cycles and visited.intersection(
                    path_codec.decode(parent_path, id_type)
                ):
                    raise Err.circular(
                        f"不能把节点 {node_id!r} 移动到自己的后代 {parent_id!r} 之下",
                        node_id=node_id,
                        parent_id=parent_id,
                    )
                base = parent_path
                break
            visited.add(parent_id)
            chain.append(parent_id)
            current = parent

        tail = path_codec.encode(reversed(chain))
        return f"{base}{PATH_SEPARATOR}{tail}" if base else tail

    def _walk_up(self, node: Any) -> Iterator[Any]:
        """沿父引用向上遍历，由近及远产出祖先"""
        visited = {self._id(node)}
        current = node
        while True:
            parent_id = self.store.get_parent_id(current)
            if parent_id is None:
                return
            if parent_id in visited:
                raise Err.circular(
                    f"节点 {self._id(node)!r} 的祖先链形成环",
                    node_id=self._id(node),
                    parent_id=parent_id,
                )
            parent = self.store.get(parent_id)
            if parent is None:
                raise Err.missing_parent(
                    f"节点 {self._id(current)!r} 的父节点 {parent_id!r} 不存在",
                    node_id=self._id(current),
                    parent_id=parent_id,
                )
            visited.add(parent_id)
            yield parent
            current = parent

    def _save_path(self, node: Any, path: Optional[str]) -> None:
        if path and len(path) > self.config.path_max_length:
            raise Err.invalid(
                f"节点 {self._id(node)!r} 的路径长度 {len(path)} 超过上限 {self.config.path_max_length}",
                node_id=self._id(node),
                path=path,
            )
        self.store.set_path(node, path)
        self.store.save(node)

    # ==================== 路径维护 ====================

    def assign_path(self, node: Any) -> Any:
        """为刚创建的节点生成并保存路径，已有路径时不做任何事

        Raises:
            MissingParentError: 父节点不存在
        """
        if self.store.get_path(node):
            return node
        path = self._build_path(node)
        self._save_path(node, path)
        logger.debug(f"节点 {self._id(node)!r} 路径生成: {path}")
        return node

    def after_create(self, node: Any) -> Any:
        """创建钩子：存储分配 ID 之后调用"""
        return self.assign_path(node)

    def create(self, **fields) -> Any:
        """创建节点并生成路径"""
        with self.store.transaction():
            node = self.store.create(**fields)
            return self.after_create(node)

    def parent_changed(self, node: Any) -> bool:
        """父引用是否与已持久化的值不同"""
        return self.store.parent_changed(node)

    def reparent(self, node: Any) -> int:
        """父引用变更后，重写节点及其所有后代的路径

        在一个存储事务中执行；任何失败都会回滚，并丢弃节点在内存中的父引用和路径修改。

        Returns:
            被重写路径的后代数量，父引用未变更时为 0
        """
        if not self.parent_changed(node):
            return 0
        try:
            with self.store.transaction():
                return self._reparent(node)
        except Exception:
            self.store.discard_changes(node)
            raise

    def before_update(self, node: Any) -> int:
        """更新钩子：在调用方已开启的事务中级联重写路径"""
        if not self.parent_changed(node):
            return 0
        return self._reparent(node)

    def move_to(self, node: Any, new_parent_id: Any) -> int:
        """把节点移动到 new_parent_id 之下（None 表示成为根节点）

        Raises:
            MissingParentError: 新父节点不存在
            CircularReferenceError: 启用环检测且新父节点是自身或后代

        Returns:
            被重写路径的后代数量
        """
        self.store.set_parent_id(node, new_parent_id)
        try:
            with self.store.transaction():
                count = self._reparent(node)
                self.store.save(node)
                return count
        except Exception:
            self.store.discard_changes(node)
            raise

    def _stored_path(self, node: Any) -> Optional[str]:
        """存储中记录的路径；调用方持有的节点可能是过期副本"""
        stored = self.store.get(self._id(node))
        path = self.store.get_path(stored) if stored is not None else None
        return path or self.store.get_path(node)

    def _reparent(self, node: Any) -> int:
        old_path = self._stored_path(node)
        self.store.set_path(node, old_path)
        new_path = self._build_path(node)

        if not old_path:
            # 旧路径缺失，无法按前缀定位后代，改为沿子节点逐个重算
            logger.warning(f"节点 {self._id(node)!r} 没有旧路径，按父引用重算其子树")
            self._save_path(node, new_path)
            return self._refresh_subtree(node)

        if new_path == old_path:
            return 0

        self._save_path(node, new_path)
        node_id = self._id(node)
        count = 0
        for descendant in self.store.find_descendants(old_path):
            if self._id(descendant) == node_id:
                continue
            rewritten = path_codec.rewrite_prefix(self.store.get_path(descendant), old_path, new_path)
            self._save_path(descendant, rewritten)
            count += 1

        logger.debug(f"节点 {self._id(node)!r} 路径 {old_path} -> {new_path}，重写后代 {count} 个")
        return count

    def _refresh_subtree(self, node: Any) -> int:
        count = 0
        for descendant in self._iter_subtree(node):
            path = self._build_path(descendant)
            if path != self.store.get_path(descendant):
                self._save_path(descendant, path)
                count += 1
        return count

    # ==================== 祖先与根 ====================

    def ancestors(self, node: Any) -> List[Any]:
        """所有祖先，由近及远；根节点返回空列表

        Raises:
            MissingParentError: 路径或父引用指向的祖先不存在
        """
        path = self.store.get_path(node)
        if not path:
            return list(self._walk_up(node))

        ids = path_codec.parent_ids(path, self._id_type(node))
        if not ids:
            return []
        found = {self._id(n): n for n in self.store.get_many(ids)}
        missing = [i for i in ids if i not in found]
        if missing:
            raise Err.missing_parent(
                f"节点 {self._id(node)!r} 的祖先不存在: {missing}",
                node_id=self._id(node),
                missing_ids=missing,
            )
        return [found[i] for i in reversed(ids)]

    def self_and_ancestors(self, node: Any) -> List[Any]:
        return [node] + self.ancestors(node)

    def root(self, node: Any) -> Any:
        """节点所在树的根节点，根节点返回自身"""
        path = self.store.get_path(node)
        if not path:
            ancestors = list(self._walk_up(node))
            return ancestors[-1] if ancestors else node

        root_id = path_codec.root_id(path, self._id_type(node))
        if root_id == self._id(node):
            return node
        root = self.store.get(root_id)
        if root is None:
            raise Err.missing_parent(f"根节点 {root_id!r} 不存在", node_id=self._id(node), root_id=root_id)
        return root

    def depth(self, node: Any) -> int:
        """层级深度，根节点为 0"""
        path = self.store.get_path(node)
        if path:
            return path_codec.depth(path)
        return sum(1 for _ in self._walk_up(node))

    def path_ids(self, node: Any) -> List[Any]:
        """从根到自身的 ID 列表"""
        path = self.store.get_path(node)
        if path:
            return path_codec.decode(path, self._id_type(node))
        return [self._id(n) for n in reversed(self.self_and_ancestors(node))]

    # ==================== 集合级查询 ====================

    def roots(self) -> List[Any]:
        """所有根节点（父引用为空），按配置排序"""
        return self.store.find_by_parent(None)

    def first_root(self) -> Optional[Any]:
        """第一个根节点，没有时返回 None"""
        roots = self.roots()
        return roots[0] if roots else None

    # ==================== 亲属查询 ====================

    def parent(self, node: Any) -> Optional[Any]:
        parent_id = self.store.get_parent_id(node)
        return self.store.get(parent_id) if parent_id is not None else None

    def children(self, node: Any) -> List[Any]:
        """直接子节点，按配置排序"""
        return self.store.find_by_parent(self._id(node))

    def self_and_siblings(self, node: Any) -> List[Any]:
        """父引用相同的所有节点（包含自身）；根节点的兄弟是其他根节点"""
        return self.store.find_by_parent(self.store.get_parent_id(node))

    def siblings(self, node: Any) -> List[Any]:
        node_id = self._id(node)
        return [n for n in self.self_and_siblings(node) if self._id(n) != node_id]

    def is_root(self, node: Any) -> bool:
        return self.store.get_parent_id(node) is None

    def is_leaf(self, node: Any) -> bool:
        return not self.children(node)

    def is_ancestor_of(self, node: Any, other: Any) -> bool:
        """node 是否为 other 的严格祖先

        Raises:
            PathRequiredError: 任一节点没有路径
        """
        return path_codec.is_strict_ancestor_path(self._require_path(node), self._require_path(other))

    def is_descendant_of(self, node: Any, other: Any) -> bool:
        return self.is_ancestor_of(other, node)

    # ==================== 后代 ====================

    def all_descendants(self, node: Any) -> List[Any]:
        """所有严格后代

        有路径时使用前缀查询；配置了排序字段时整体按该字段排序，否则为存储的自然顺序。
        路径缺失时沿子节点遍历。
        """
        path = self.store.get_path(node)
        if path:
            return self.store.find_descendants(path)
        return self.store.order_nodes(self._iter_subtree(node))

    def self_and_all_descendants(self, node: Any) -> List[Any]:
        return [node] + self.all_descendants(node)

    def _iter_subtree(self, node: Any) -> Iterator[Any]:
        """先序遍历 node 的子树（不含 node 自身）"""
        walker = self.walk([node])
        next(walker)
        yield from walker

    # ==================== 遍历与重建 ====================

    def walk(self, start_nodes: Optional[Iterable[Any]] = None) -> Iterator[Any]:
        """深度优先先序遍历，子节点按父引用获取（不依赖路径）

        Args:
            start_nodes: 起始节点，默认为所有根节点
        """
        start = list(self.roots() if start_nodes is None else start_nodes)
        stack = list(reversed(start))
        visited = set()
        while stack:
            node = stack.pop()
            node_id = self._id(node)
            if node_id in visited:
                raise Err.circular(f"遍历时重复访问节点 {node_id!r}", node_id=node_id)
            visited.add(node_id)
            yield node
            stack.extend(reversed(self.children(node)))

    def traverse(self, visit: Callable[[Any], Any], start_nodes: Optional[Iterable[Any]] = None) -> None:
        """对每个节点按先序调用 visit"""
        for node in self.walk(start_nodes):
            visit(node)

    def rebuild_all(self) -> int:
        """按父引用重建全部路径

        在一个事务中先序遍历所有树，逐个清空并重新生成路径。
        从任何根节点都不可达的记录（例如处于环中）保持不变。

        Returns:
            路径发生变化的节点数量
        """
        changed = 0
        visited = 0
        with self.store.transaction():
            for node in self.walk():
                old_path = self.store.get_path(node)
                self.store.set_path(node, None)
                self.assign_path(node)
                visited += 1
                if self.store.get_path(node) != old_path:
                    changed += 1
        logger.info(f"路径重建完成：遍历 {visited} 个节点，更新 {changed} 个")
        return changed

    # ==================== 导出 ====================

    def tree_list(self, root: Any = None, to_dict: Callable[[Any], dict] = None) -> List[dict]:
        """导出为嵌套字典列表，每个字典带 children 列表

        Args:
            root: 只导出该节点的子树，默认导出整个森林
            to_dict: 节点转字典函数，默认调用节点的 to_dict()
        """
        to_dict = to_dict or (lambda n: n.to_dict())
        if root is None:
            nodes = list(self.walk())
            root_parent = None
        else:
            nodes = list(self.walk([root]))
            root_parent = self.store.get_parent_id(root)

        return build_tree_list(
            [to_dict(n) for n in nodes],
            id_field="id",
            parent_field=self.config.foreign_key,
            root_parent_value=root_parent,
        )


__all__ = ["TreeIndex"]
