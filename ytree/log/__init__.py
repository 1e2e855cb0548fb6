"""日志模块

使用示例:
    from ytree.log import setup_root_logger, get_logger

    setup_root_logger(level="DEBUG")
    logger = get_logger("tree")
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    setup_sql_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    orm_logger,
    tree_logger,
    transaction_logger,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "setup_sql_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "orm_logger",
    "tree_logger",
    "transaction_logger",
    "logger",
    "get_logger",
]
