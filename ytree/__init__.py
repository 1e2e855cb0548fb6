"""
ytree - 物化路径树形层级库

在扁平存储上用 "." 连接的 ID 链（如 "1.2.3"）维护树结构，
提供祖先/后代/根/深度查询、节点移动的级联路径重写和全量重建。
"""

from .version import __version__, __author__, __description__

from .exceptions import (
    ErrorCode,
    TreeException,
    MissingParentError,
    MalformedPathError,
    PrefixMismatchError,
    PathRequiredError,
    InvalidInputError,
    CircularReferenceError,
    Err,
)
from .config import TreeSettings, AppSettings
from .log import get_logger, setup_root_logger
from .orm.tree import (
    path_codec,
    TreeIndex,
    BaseTreeStore,
    MemoryTreeStore,
    OrmTreeStore,
    TreeMixin,
    TreeFieldsMixin,
    TreeFieldsWithParentMixin,
    build_tree_list,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",

    # 异常
    "ErrorCode",
    "TreeException",
    "MissingParentError",
    "MalformedPathError",
    "PrefixMismatchError",
    "PathRequiredError",
    "InvalidInputError",
    "CircularReferenceError",
    "Err",

    # 配置与日志
    "TreeSettings",
    "AppSettings",
    "get_logger",
    "setup_root_logger",

    # 树
    "path_codec",
    "TreeIndex",
    "BaseTreeStore",
    "MemoryTreeStore",
    "OrmTreeStore",
    "TreeMixin",
    "TreeFieldsMixin",
    "TreeFieldsWithParentMixin",
    "build_tree_list",
]
