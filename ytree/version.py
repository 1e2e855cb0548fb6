"""版本信息"""

__version__ = "0.1.0"
__author__ = "ytree"
__description__ = "基于物化路径的树形层级索引"
