"""树形结构 Mixin

为 SQLAlchemy 模型提供物化路径（Materialized Path）树操作，所有逻辑委托给
TreeIndex + OrmTreeStore。

物化路径模式说明：
    - 每个节点存储从根到自身的 ID 链，如 "1.2.3"
    - 优点：查询祖先/子孙非常高效（使用 LIKE 前缀匹配）
    - 缺点：移动节点时需要更新所有子孙的路径

路径由 session 事件自动维护：
    - 新节点在插入后（after_flush_postexec）生成路径，随后的 flush/commit 写入
    - 父引用变更的节点在 flush 前（before_flush）级联重写整棵子树的路径

使用示例:
    from ytree.orm import CoreModel
    from ytree.orm.tree import TreeMixin, TreeFieldsWithParentMixin

    class Menu(CoreModel, TreeFieldsWithParentMixin, TreeMixin):
        title = mapped_column(String(100))

    root = Menu(title="系统").save(commit=True)    # path "1"
    child = Menu(title="用户", parent_id=root.id).save(commit=True)

    child.get_ancestors()       # [root]
    child.move_to(None)         # 成为根节点，子树路径一起改写
"""

from typing import Any, Callable, List, Optional, Union

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from ...config import TreeSettings
from ...config.settings import DEFAULT_PATH_MAX_LENGTH
from ...log import get_logger
from .stores.orm import OrmTreeStore
from .tree_index import TreeIndex

logger = get_logger("ytree.tree.mixin")

# session.info 中暂存本次 flush 新增树节点的键
_PENDING_KEY = "ytree_tree_new_nodes"


class TreeMixin:
    """树形结构 Mixin

    字段要求（使用者需定义，或使用 TreeFieldsWithParentMixin）:
        - id: 主键（支持 int/str，自动适配）
        - parent_id: 父节点ID（与 id 类型一致）
        - path: 路径字符串，如 "1.2.3"

    可配置属性（子类可覆盖）:
        - __tree_foreign_key__: 父引用字段名，默认 "parent_id"
        - __tree_path_field__: 路径字段名，默认 "path"
        - __tree_order__: 排序字段名，"-" 前缀为降序，默认不排序
        - __tree_prevent_cycles__: 是否拒绝移动到自身或后代之下，默认 True
        - __tree_path_max_length__: 路径最大长度，应与路径列长度一致
    """

    __tree_foreign_key__: str = "parent_id"
    __tree_path_field__: str = "path"
    __tree_order__: Optional[str] = None
    __tree_prevent_cycles__: bool = True
    __tree_path_max_length__: int = DEFAULT_PATH_MAX_LENGTH

    # ==================== 配置与索引 ====================

    @classmethod
    def tree_settings(cls) -> TreeSettings:
        """当前模型的树配置（按类缓存）"""
        cached = cls.__dict__.get("_tree_settings_cache")
        if cached is None:
            cached = TreeSettings(
                foreign_key=cls.__tree_foreign_key__,
                path_field=cls.__tree_path_field__,
                order=cls.__tree_order__,
                prevent_cycles=cls.__tree_prevent_cycles__,
                path_max_length=cls.__tree_path_max_length__,
            )
            cls._tree_settings_cache = cached
        return cached

    @classmethod
    def tree_index(cls, session: Session = None) -> TreeIndex:
        return TreeIndex(OrmTreeStore(cls, session=session, config=cls.tree_settings()))

    def _index(self) -> TreeIndex:
        return self.__class__.tree_index(inspect(self).session)

    # ==================== 路径 ====================

    def assign_path(self):
        """为节点生成路径（已有路径时不变）"""
        self._index().assign_path(self)
        return self

    def get_depth(self) -> int:
        """层级深度，根节点为 0"""
        return self._index().depth(self)

    def get_path_ids(self) -> List[Union[int, str]]:
        """从根到当前节点的 ID 列表，如 [1, 2, 3]"""
        return self._index().path_ids(self)

    # ==================== 节点查询方法 ====================

    def get_parent(self):
        return self._index().parent(self)

    def get_children(self) -> List:
        """直接子节点，按 __tree_order__ 排序"""
        return self._index().children(self)

    def get_ancestors(self) -> List:
        """所有祖先节点，由近及远"""
        return self._index().ancestors(self)

    def get_self_and_ancestors(self) -> List:
        return self._index().self_and_ancestors(self)

    def get_root(self):
        """所在树的根节点，根节点返回自身"""
        return self._index().root(self)

    def get_siblings(self) -> List:
        """兄弟节点（不含自身）；根节点的兄弟是其他根节点"""
        return self._index().siblings(self)

    def get_self_and_siblings(self) -> List:
        return self._index().self_and_siblings(self)

    def get_descendants(self) -> List:
        """所有子孙节点

        使用 path 前缀匹配实现高效查询；路径缺失时沿子节点遍历。
        """
        return self._index().all_descendants(self)

    def get_self_and_descendants(self) -> List:
        return self._index().self_and_all_descendants(self)

    def is_root(self) -> bool:
        return self._index().is_root(self)

    def is_leaf(self) -> bool:
        return self._index().is_leaf(self)

    def is_ancestor_of(self, node) -> bool:
        """是否为 node 的严格祖先

        Raises:
            PathRequiredError: 任一节点尚未生成路径
        """
        return self._index().is_ancestor_of(self, node)

    def is_descendant_of(self, node) -> bool:
        return self._index().is_descendant_of(self, node)

    # ==================== 节点操作方法 ====================

    def move_to(self, new_parent_id: Optional[Union[int, str]]) -> int:
        """移动节点到新的父节点下

        会在一个事务中更新当前节点及所有子孙节点的 path；
        已在事务中时加入外层事务，否则结束时提交。

        Args:
            new_parent_id: 新父节点ID，None 表示移动到根级别

        Raises:
            MissingParentError: 父节点不存在
            CircularReferenceError: 新父节点是自身或子孙节点

        Returns:
            被重写路径的子孙数量
        """
        return self._index().move_to(self, new_parent_id)

    # ==================== 类方法 ====================

    @classmethod
    def get_roots(cls) -> List:
        """所有根节点"""
        return cls.tree_index().roots()

    @classmethod
    def get_first_root(cls):
        return cls.tree_index().first_root()

    @classmethod
    def get_tree_list(cls, root_id: Union[int, str] = None) -> List[dict]:
        """获取树形结构列表（嵌套格式）

        Args:
            root_id: 根节点ID，None 表示获取所有根节点的树

        Returns:
            嵌套的树形结构列表，每个节点字典带 children 列表
        """
        index = cls.tree_index()
        if root_id is None:
            return index.tree_list()
        root = index.store.get(root_id)
        if root is None:
            return []
        return index.tree_list(root)

    @classmethod
    def traverse(cls, visit: Callable[[Any], Any]) -> None:
        """按先序遍历全部节点"""
        cls.tree_index().traverse(visit)

    @classmethod
    def rebuild_all_paths(cls) -> int:
        """重建所有节点的路径

        用于修复路径数据不一致的情况，以及给已有数据补齐路径。

        Returns:
            路径发生变化的节点数量
        """
        return cls.tree_index().rebuild_all()


# ==================== Session 事件 ====================


@event.listens_for(Session, "before_flush")
def _tree_before_flush(session, flush_context, instances):
    """flush 前：级联重写父引用变更节点的子树路径，并记录新增节点"""
    session.info[_PENDING_KEY] = [obj for obj in session.new if isinstance(obj, TreeMixin)]

    for obj in list(session.dirty):
        if not isinstance(obj, TreeMixin) or obj in session.deleted:
            continue
        index = obj.__class__.tree_index(session)
        if index.parent_changed(obj):
            count = index.before_update(obj)
            logger.debug(f"{obj!r} 父节点变更，重写子孙路径 {count} 个")


@event.listens_for(Session, "after_flush_postexec")
def _tree_after_flush_postexec(session, flush_context):
    """flush 后：为新插入的节点生成路径（此时主键已分配）

    生成的路径由下一次 flush 写入；commit 会自动再次 flush。
    """
    created = session.info.pop(_PENDING_KEY, None)
    if not created:
        return
    for obj in created:
        state = inspect(obj)
        if not state.persistent or state.session is not session:
            continue
        obj.__class__.tree_index(session).after_create(obj)


__all__ = ["TreeMixin"]
