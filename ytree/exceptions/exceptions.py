"""树结构异常类定义

定义路径编解码与树维护使用的异常类体系。
"""

import copy
from enum import Enum
from typing import Optional, List, Any, Dict, Union


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串使用和比较。

    使用示例:
        try:
            index.assign_path(node)
        except TreeException as e:
            if e.code == ErrorCode.MISSING_PARENT:
                ...
    """

    TREE_ERROR = "TREE_ERROR"

    # ==================== 数据相关 ====================
    MISSING_PARENT = "MISSING_PARENT"
    CIRCULAR_REFERENCE = "CIRCULAR_REFERENCE"

    # ==================== 路径相关 ====================
    MALFORMED_PATH = "MALFORMED_PATH"
    PREFIX_MISMATCH = "PREFIX_MISMATCH"
    PATH_REQUIRED = "PATH_REQUIRED"

    # ==================== 参数相关 ====================
    INVALID_INPUT = "INVALID_INPUT"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class TreeException(Exception):
    """树结构异常基类

    属性:
        message: 错误消息
        code: 错误代码（ErrorCode 枚举或字符串）
        details: 详细错误信息列表
        extra: 额外的上下文信息（如 node_id、path）

    使用示例:
        raise TreeException(
            "路径维护失败",
            details=["节点 3 的父节点 9 不存在"],
            node_id=3,
        )
    """

    default_message = "树结构操作失败"
    default_code: ErrorCodeType = ErrorCode.TREE_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCodeType] = None,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or []
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "message": self.message,
            "code": self.code,
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r})"
        )


class MissingParentError(TreeException):
    """父节点（或路径上的祖先）在存储中不存在

    使用示例:
        raise MissingParentError("父节点不存在", node_id=3, parent_id=9)
    """

    default_message = "父节点不存在"
    default_code = ErrorCode.MISSING_PARENT


class MalformedPathError(TreeException):
    """路径字符串格式错误（空串、空段或无法转换的段）"""

    default_message = "路径格式错误"
    default_code = ErrorCode.MALFORMED_PATH


class PrefixMismatchError(TreeException):
    """重写前缀时，路径并不位于旧前缀之下"""

    default_message = "路径不以指定前缀开头"
    default_code = ErrorCode.PREFIX_MISMATCH


class PathRequiredError(TreeException):
    """操作要求节点已有路径"""

    default_message = "节点路径尚未生成"
    default_code = ErrorCode.PATH_REQUIRED


class InvalidInputError(TreeException):
    """调用参数无效"""

    default_message = "参数无效"
    default_code = ErrorCode.INVALID_INPUT


class CircularReferenceError(TreeException):
    """父引用形成环

    移动节点到自身或其后代之下，或者沿父引用向上遍历时重复访问节点。
    """

    default_message = "检测到循环引用"
    default_code = ErrorCode.CIRCULAR_REFERENCE


class Err:
    """异常快捷创建类

    使用示例:
        from ytree.exceptions import Err

        raise Err.missing_parent(node_id=3, parent_id=9)
        raise Err.malformed_path("路径包含空段", path="1..2")
        raise Err.circular("不能移动到自己的后代之下", node_id=2, parent_id=3)
    """

    @staticmethod
    def missing_parent(message: str = None, **kwargs) -> MissingParentError:
        return MissingParentError(message, **kwargs)

    @staticmethod
    def malformed_path(message: str = None, **kwargs) -> MalformedPathError:
        return MalformedPathError(message, **kwargs)

    @staticmethod
    def prefix_mismatch(message: str = None, **kwargs) -> PrefixMismatchError:
        return PrefixMismatchError(message, **kwargs)

    @staticmethod
    def path_required(message: str = None, **kwargs) -> PathRequiredError:
        return PathRequiredError(message, **kwargs)

    @staticmethod
    def invalid(message: str = None, **kwargs) -> InvalidInputError:
        return InvalidInputError(message, **kwargs)

    @staticmethod
    def circular(message: str = None, **kwargs) -> CircularReferenceError:
        return CircularReferenceError(message, **kwargs)
