"""文件大小解析

日志轮转配置使用的大小字符串解析，如 "10MB"、"512KB"、"1.5G"。
"""

import re
from typing import Union


SIZE_MULTIPLIERS = {
    "B": 1,
    "K": 1024,
    "M": 1024 ** 2,
    "G": 1024 ** 3,
    "T": 1024 ** 4,
}

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMGT]?)(?:B|BYTES?)?\s*$", re.IGNORECASE)


def parse_file_size(size: Union[str, int, float]) -> int:
    """解析文件大小为字节数

    Args:
        size: 大小字符串（单位 B/KB/MB/GB/TB，不区分大小写，可省略 B），
              或直接传入字节数

    Returns:
        字节数

    Raises:
        ValueError: 格式无效

    使用示例:
        >>> parse_file_size("10MB")
        10485760
        >>> parse_file_size("1.5g")
        1610612736
    """
    if isinstance(size, bool):
        raise ValueError(f"无法解析文件大小: {size!r}")
    if isinstance(size, (int, float)):
        return int(size)

    match = _SIZE_PATTERN.match(str(size))
    if match is None:
        raise ValueError(f"无法解析文件大小: {size!r}")

    number, unit = match.groups()
    return int(float(number) * SIZE_MULTIPLIERS[unit.upper() or "B"])
