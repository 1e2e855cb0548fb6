"""物化路径编解码

路径是从根到节点自身的 ID 序列，以 "." 连接，例如 "7"、"7.9"、"7.9.12"。
本模块只包含纯函数，不访问存储。

使用示例:
    from ytree.orm.tree import path_codec

    path_codec.encode([1, 2, 3])                  # "1.2.3"
    path_codec.decode("1.2.3")                    # [1, 2, 3]
    path_codec.depth("1.2.3")                     # 2
    path_codec.is_strict_ancestor_path("1.2", "1.20")   # False
    path_codec.subtree_match_prefix("1.2")        # "1.2.%"
    path_codec.rewrite_prefix("1.2.3", "1.2", "4.2")    # "4.2.3"
"""

from typing import Any, Callable, Iterable, List

from ...exceptions import Err

# 路径分隔符
PATH_SEPARATOR = "."

# LIKE 子句使用的转义字符，存储需以 ESCAPE '\' 执行匹配
LIKE_ESCAPE = "\\"

IdType = Callable[[str], Any]


def encode(ids: Iterable[Any]) -> str:
    """把从根到自身的 ID 序列编码为路径

    Raises:
        InvalidInputError: 序列为空，或某个 ID 为空/包含分隔符
    """
    segments = []
    for node_id in ids:
        segment = "" if node_id is None else str(node_id)
        if not segment or PATH_SEPARATOR in segment:
            raise Err.invalid(f"无法编码的节点ID: {node_id!r}", node_id=node_id)
        segments.append(segment)
    if not segments:
        raise Err.invalid("ID 序列不能为空")
    return PATH_SEPARATOR.join(segments)


def decode(path: str, id_type: IdType = int) -> List[Any]:
    """把路径解码为从根到自身的 ID 列表

    Args:
        path: 路径字符串
        id_type: 每段的转换函数，整数主键用 int，字符串主键用 str

    Raises:
        MalformedPathError: 路径为空、包含空段或某段无法转换
    """
    if not isinstance(path, str) or not path:
        raise Err.malformed_path("路径不能为空", path=path)

    ids = []
    for segment in path.split(PATH_SEPARATOR):
        if not segment:
            raise Err.malformed_path(f"路径包含空段: {path!r}", path=path)
        try:
            ids.append(id_type(segment))
        except (TypeError, ValueError) as e:
            raise Err.malformed_path(f"路径段 {segment!r} 无法转换: {e}", path=path) from e
    return ids


def parent_ids(path: str, id_type: IdType = int) -> List[Any]:
    """祖先 ID 列表（从根开始，不含自身）"""
    return decode(path, id_type)[:-1]


def self_id(path: str, id_type: IdType = int) -> Any:
    """路径末段，即节点自身的 ID"""
    return decode(path, id_type)[-1]


def root_id(path: str, id_type: IdType = int) -> Any:
    """路径首段，即所在树的根节点 ID"""
    return decode(path, id_type)[0]


def depth(path: str) -> int:
    """层级深度，根节点为 0"""
    if not isinstance(path, str) or not path:
        raise Err.malformed_path("路径不能为空", path=path)
    return path.count(PATH_SEPARATOR)


def is_strict_ancestor_path(candidate: str, path: str) -> bool:
    """candidate 是否为 path 的严格祖先路径

    必须以 candidate + "." 为前缀，"1.2" 不是 "1.20" 的祖先。
    """
    if not candidate or not path:
        return False
    return len(path) > len(candidate) and path.startswith(candidate + PATH_SEPARATOR)


def escape_like(value: str) -> str:
    """转义 LIKE 通配符 % 和 _ 以及转义符自身"""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def subtree_match_prefix(path: str) -> str:
    """匹配 path 所有严格后代的 LIKE 模式（不含节点自身）

    返回 path + ".%"，path 中的通配符已转义，需配合 ESCAPE LIKE_ESCAPE 使用。
    """
    if not isinstance(path, str) or not path:
        raise Err.malformed_path("路径不能为空", path=path)
    return escape_like(path) + PATH_SEPARATOR + "%"


def rewrite_prefix(path: str, old_prefix: str, new_prefix: str) -> str:
    """把 path 开头的 old_prefix 替换为 new_prefix

    Raises:
        PrefixMismatchError: path 既不等于 old_prefix，也不位于其下
    """
    if path == old_prefix:
        return new_prefix
    if is_strict_ancestor_path(old_prefix, path):
        return new_prefix + path[len(old_prefix):]
    raise Err.prefix_mismatch(
        f"路径 {path!r} 不在 {old_prefix!r} 之下",
        path=path,
        old_prefix=old_prefix,
        new_prefix=new_prefix,
    )


__all__ = [
    "PATH_SEPARATOR",
    "LIKE_ESCAPE",
    "encode",
    "decode",
    "parent_ids",
    "self_id",
    "root_id",
    "depth",
    "is_strict_ancestor_path",
    "escape_like",
    "subtree_match_prefix",
    "rewrite_prefix",
]
