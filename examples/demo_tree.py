"""
物化路径树使用示例

演示 ytree 的使用方法，包括：
1. 树形模型定义
2. 插入后自动生成路径
3. 树形查询方法
4. 节点移动与子树路径级联
5. 不依赖数据库的 TreeIndex + MemoryTreeStore
6. 路径重建

运行方式:
    python examples/demo_tree.py
"""

from typing import Optional

from sqlalchemy import Integer, String, ForeignKey, update
from sqlalchemy.orm import Mapped, mapped_column

from ytree import setup_root_logger
from ytree.config import TreeSettings
from ytree.orm import Base, CoreModel, init_database
from ytree.orm.tree import (
    MemoryTreeStore,
    TreeFieldsMixin,
    TreeFieldsWithParentMixin,
    TreeIndex,
    TreeMixin,
    path_codec,
)


# ============================================================
# 方式1：TreeFieldsMixin + 自定义外键
# ============================================================

class Menu(CoreModel, TreeFieldsMixin, TreeMixin):
    """菜单模型

    TreeFieldsMixin 提供 path、sort_order 字段，parent_id 自行定义外键。
    """
    __tablename__ = "demo_menu"

    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("demo_menu.id"),
        nullable=True,
        comment="父菜单ID"
    )
    title: Mapped[str] = mapped_column(String(100), comment="菜单标题")


# ============================================================
# 方式2：TreeFieldsWithParentMixin，降序排列
# ============================================================

class Region(CoreModel, TreeFieldsWithParentMixin, TreeMixin):
    """地区模型 - 兄弟节点按 sort_order 降序"""
    __tree_order__ = "-sort_order"

    name: Mapped[str] = mapped_column(String(50), comment="地区名称")


# ============================================================
# 示例函数
# ============================================================

def demo_create():
    """插入即生成路径，无需手动维护"""
    print("\n" + "=" * 60)
    print("1. 创建节点")
    print("=" * 60)

    root = Menu(title="系统管理", sort_order=1).save(commit=True)
    users = Menu(title="用户管理", parent_id=root.id, sort_order=1).save(commit=True)
    roles = Menu(title="角色管理", parent_id=root.id, sort_order=2).save(commit=True)
    user_list = Menu(title="用户列表", parent_id=users.id, sort_order=1).save(commit=True)

    for node in (root, users, roles, user_list):
        print(f"  {node.title}: path={node.path}, depth={node.get_depth()}")
    return root, users, roles, user_list


def demo_queries(root, users, user_list):
    print("\n" + "=" * 60)
    print("2. 树形查询")
    print("=" * 60)

    print(f"根节点的直接子节点: {[c.title for c in root.get_children()]}")
    print(f"根节点的所有后代: {[d.title for d in root.get_descendants()]}")
    print(f"'{user_list.title}' 的祖先（由近到远）: {[a.title for a in user_list.get_ancestors()]}")
    print(f"'{user_list.title}' 的根节点: {user_list.get_root().title}")
    print(f"'{users.title}' 的兄弟节点: {[s.title for s in users.get_siblings()]}")
    print(f"'{user_list.title}' 的路径 ID: {user_list.get_path_ids()}")
    print(f"'{root.title}' 是 '{user_list.title}' 的祖先: {root.is_ancestor_of(user_list)}")
    print(f"'{user_list.title}' 是叶子节点: {user_list.is_leaf()}")


def demo_move(root, users, user_list):
    print("\n" + "=" * 60)
    print("3. 节点移动")
    print("=" * 60)

    other = Menu(title="其他", sort_order=2).save(commit=True)
    print(f"移动前: {users.title}={users.path}, {user_list.title}={user_list.path}")

    # move_to 在一个事务中更新自身与整棵子树的路径
    users.move_to(other.id)
    print(f"move_to 后: {users.title}={users.path}, {user_list.title}={Menu.get(user_list.id).path}")

    # 直接修改 parent_id 同样会在 flush 时级联
    users.update(parent_id=None, commit=True)
    print(f"改为根节点后: {users.title}={users.path}, {user_list.title}={Menu.get(user_list.id).path}")


def demo_tree_list():
    print("\n" + "=" * 60)
    print("4. 树形结构导出")
    print("=" * 60)

    _print_tree(Menu.get_tree_list(), indent=2)


def demo_region_order():
    print("\n" + "=" * 60)
    print("5. 降序排列的地区树")
    print("=" * 60)

    china = Region(name="中国", sort_order=1).save(commit=True)
    for i, name in enumerate(["北京", "上海", "广州"], start=1):
        Region(name=name, parent_id=china.id, sort_order=i).save(commit=True)

    print(f"{china.name} 的下级（sort_order 降序）: {[r.name for r in china.get_children()]}")


def demo_memory_store():
    """TreeIndex 也可以脱离数据库，配合内存存储使用"""
    print("\n" + "=" * 60)
    print("6. 内存存储")
    print("=" * 60)

    index = TreeIndex(MemoryTreeStore(TreeSettings(order="sort_order")))
    r = index.create(sort_order=1)
    c = index.create(parent_id=r.id, sort_order=1)
    g = index.create(parent_id=c.id, sort_order=1)
    n = index.create(sort_order=2)

    print(f"路径: {[x.path for x in (r, c, g)]}")
    index.move_to(c, n.id)
    # 内存存储返回的是副本，后代的新路径需要重新读取
    g = index.store.get(g.id)
    print(f"移动 C 到 N 下: C={c.path}, G={g.path}")
    print(f"解码 {g.path}: {path_codec.decode(g.path)}, 深度 {path_codec.depth(g.path)}")
    print(f"'1.2' 是 '1.20' 的祖先: {path_codec.is_strict_ancestor_path('1.2', '1.20')}")


def demo_rebuild(session_scope):
    print("\n" + "=" * 60)
    print("7. 路径重建")
    print("=" * 60)

    session = session_scope()
    session.execute(update(Menu).values(path=None))
    session.commit()
    session.expire_all()

    changed = Menu.rebuild_all_paths()
    session.commit()
    print(f"重建路径的节点数: {changed}")
    print(f"再次重建: {Menu.rebuild_all_paths()}")


def _print_tree(nodes, indent=0):
    for node in nodes:
        print(" " * indent + f"- {node.get('title')} ({node.get('path')})")
        _print_tree(node.get("children", []), indent + 2)


def main():
    print("=" * 60)
    print("物化路径树使用示例")
    print("=" * 60)

    setup_root_logger(level="WARNING")
    engine, session_scope = init_database("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    try:
        root, users, roles, user_list = demo_create()
        demo_queries(root, users, user_list)
        demo_move(root, users, user_list)
        demo_tree_list()
        demo_region_order()
        demo_memory_store()
        demo_rebuild(session_scope)

        print("\n" + "=" * 60)
        print("示例完成!")
        print("=" * 60)
    except Exception:
        session_scope.rollback()
        raise
    finally:
        session_scope.remove()


if __name__ == "__main__":
    main()
