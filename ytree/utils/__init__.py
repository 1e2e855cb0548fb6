"""工具模块

使用示例:
    from ytree.utils import parse_file_size
"""

from .file_size import parse_file_size, SIZE_MULTIPLIERS

__all__ = [
    "parse_file_size",
    "SIZE_MULTIPLIERS",
]
