"""异常模块

使用示例:
    from ytree.exceptions import Err, MissingParentError, ErrorCode
"""

from .exceptions import (
    ErrorCode,
    ErrorCodeType,
    TreeException,
    MissingParentError,
    MalformedPathError,
    PrefixMismatchError,
    PathRequiredError,
    InvalidInputError,
    CircularReferenceError,
    Err,
)

__all__ = [
    "ErrorCode",
    "ErrorCodeType",
    "TreeException",
    "MissingParentError",
    "MalformedPathError",
    "PrefixMismatchError",
    "PathRequiredError",
    "InvalidInputError",
    "CircularReferenceError",
    "Err",
]
