"""树形结构工具函数

使用示例:
    from ytree.orm.tree import build_tree_list

    flat_list = [
        {"id": 1, "parent_id": None, "name": "根节点"},
        {"id": 2, "parent_id": 1, "name": "子节点1"},
        {"id": 3, "parent_id": 1, "name": "子节点2"},
    ]
    tree = build_tree_list(flat_list)
"""

from typing import Any, Callable, Dict, List, Optional


def build_tree_list(
    nodes: List[Dict[str, Any]],
    id_field: str = "id",
    parent_field: str = "parent_id",
    children_field: str = "children",
    root_parent_value: Any = None,
    sort_key: Optional[Callable[[Dict], Any]] = None,
) -> List[Dict[str, Any]]:
    """将扁平列表构建为嵌套树结构

    同级节点保持输入顺序，传入 sort_key 时按其重新排序。
    父节点不在列表中、且父引用也不等于 root_parent_value 的节点会被丢弃。

    Args:
        nodes: 扁平的节点字典列表
        id_field: ID 字段名
        parent_field: 父节点 ID 字段名
        children_field: 输出中子节点列表的字段名
        root_parent_value: 根节点的父引用值
        sort_key: 同级节点排序函数

    Returns:
        嵌套的树形结构列表，输入字典不会被修改

    使用示例:
        tree = build_tree_list([
            {"id": 1, "parent_id": None},
            {"id": 2, "parent_id": 1},
        ])
        # [{"id": 1, "parent_id": None, "children": [
        #     {"id": 2, "parent_id": 1, "children": []}]}]
    """
    node_map: Dict[Any, Dict[str, Any]] = {}
    for node in nodes:
        node_copy = dict(node)
        node_copy[children_field] = []
        node_map[node_copy[id_field]] = node_copy

    roots: List[Dict[str, Any]] = []
    for node in node_map.values():
        parent_id = node.get(parent_field)
        if parent_id == root_parent_value or parent_id is None:
            roots.append(node)
        elif parent_id in node_map:
            node_map[parent_id][children_field].append(node)

    if sort_key:
        pending = [roots]
        while pending:
            siblings = pending.pop()
            siblings.sort(key=sort_key)
            pending.extend(n[children_field] for n in siblings if n[children_field])

    return roots


__all__ = [
    "build_tree_list",
]
