"""ORM 工具函数"""
import re


def to_snake_case(name: str) -> str:
    """驼峰命名转下划线命名（支持连续大写缩写如 API、URL）

    Examples:
        >>> to_snake_case("CategoryNode")
        'category_node'
        >>> to_snake_case("APIMenu")
        'api_menu'
        >>> to_snake_case("Dept2Tree")
        'dept2_tree'
    """
    result = re.sub(r'([A-Z\d]+)([A-Z][a-z])', r'\1_\2', name)
    result = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', result)
    return result.lower()


__all__ = [
    "to_snake_case",
]
