"""
配置模块
提供基础库的默认配置，业务项目可以继承并覆盖
"""

from pydantic_settings import BaseSettings
from pydantic import Field, computed_field
from typing import Optional

from ..utils import parse_file_size

# 路径列默认长度，TreeFieldsMixin 的 path 列与 TreeSettings 共用
DEFAULT_PATH_MAX_LENGTH = 500


class DatabaseSettings(BaseSettings):
    """数据库配置

    使用示例:
        from ytree.config import DatabaseSettings

        db_config = DatabaseSettings(url="sqlite:///./tree.db")
    """
    url: str = Field(default="", description="数据库连接URL")
    echo: bool = Field(default=False, description="是否打印SQL语句")
    pool_pre_ping: bool = Field(default=True, description="连接前检查")
    pool_size: int = Field(default=5, description="连接池大小")
    max_overflow: int = Field(default=10, description="连接池最大溢出")
    pool_timeout: int = Field(default=30, description="连接超时（秒）")
    pool_recycle: int = Field(default=3600, description="连接回收时间（秒）")

    class Config:
        env_prefix = "YTREE_DB_"


class LoggingSettings(BaseSettings):
    """日志配置

    使用示例:
        from ytree.config import LoggingSettings

        log_config = LoggingSettings(level="DEBUG", file_path="logs/tree.log")
        max_bytes = log_config.parsed_file_max_bytes
    """
    level: str = Field(default="INFO", description="日志级别")
    file_path: Optional[str] = Field(default=None, description="日志文件路径，为空则不写文件")
    file_max_bytes: str = Field(default="10MB", description="单个日志文件最大大小")
    file_backup_count: int = Field(default=5, description="保留的备份文件数量")
    file_encoding: str = Field(default="utf-8", description="文件编码")
    enable_console: bool = Field(default=True, description="是否启用控制台输出")

    sql_log_enabled: bool = Field(default=False, description="是否启用SQL日志")
    sql_log_file_path: Optional[str] = Field(default=None, description="SQL日志文件路径")
    sql_log_level: str = Field(default="DEBUG", description="SQL日志级别")

    @computed_field
    @property
    def parsed_file_max_bytes(self) -> int:
        """解析文件最大字节数字符串为整数"""
        return parse_file_size(self.file_max_bytes)

    class Config:
        env_prefix = "YTREE_LOG_"


class TreeSettings(BaseSettings):
    """树结构配置

    每种记录类型一份，描述父引用字段、路径字段和兄弟排序方式。

    使用示例:
        from ytree.config import TreeSettings

        tree_config = TreeSettings(order="sort_order")
        tree_config = TreeSettings(foreign_key="parent_dept_id", order="-name")

    配置说明:
        - order: 排序字段名，前缀 "-" 表示降序；为空时使用存储的自然顺序
        - prevent_cycles: 移动节点时是否拒绝移动到自身或后代之下
        - path_max_length: 生成的路径超过该长度时抛出 InvalidInputError
    """
    foreign_key: str = Field(default="parent_id", description="父引用字段名")
    path_field: str = Field(default="path", description="物化路径字段名")
    order: Optional[str] = Field(default=None, description="兄弟/后代排序字段，'-' 前缀为降序")
    prevent_cycles: bool = Field(default=True, description="是否阻止形成环的移动")
    path_max_length: int = Field(default=DEFAULT_PATH_MAX_LENGTH, description="路径最大长度，超出时拒绝写入")

    @computed_field
    @property
    def order_field(self) -> Optional[str]:
        """排序字段名（去掉方向前缀）"""
        if not self.order:
            return None
        return self.order.lstrip("-")

    @computed_field
    @property
    def order_descending(self) -> bool:
        """是否降序"""
        return bool(self.order) and self.order.startswith("-")

    class Config:
        env_prefix = "YTREE_TREE_"


class AppSettings(BaseSettings):
    """应用基础配置

    将各子配置类聚合为嵌套结构。

    配置优先级（从高到低）:
        YAML 配置文件（及显式参数） > 环境变量 > 代码中的默认值

    内置子配置及环境变量前缀:
        - database: DatabaseSettings (YTREE_DB_)
        - logging:  LoggingSettings  (YTREE_LOG_)
        - tree:     TreeSettings     (YTREE_TREE_)

    使用示例:
        from ytree.config import AppSettings, load_yaml_config

        settings = load_yaml_config("config/settings.yaml", AppSettings)

    YAML 配置示例 (config/settings.yaml):
        database:
          url: "sqlite:///./tree.db"
        logging:
          level: "DEBUG"
        tree:
          order: "sort_order"
    """
    database: DatabaseSettings = DatabaseSettings()
    logging: LoggingSettings = LoggingSettings()
    tree: TreeSettings = TreeSettings()
