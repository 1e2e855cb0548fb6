"""日志模块测试

测试 get_logger 名称推断、setup_logger 处理器配置与 setup_root_logger 配置加载
"""

import logging
import os
from logging.handlers import RotatingFileHandler

import pytest

from ytree.config import ConfigLoader, LoggingSettings
from ytree.log import (
    get_logger,
    setup_logger,
    setup_root_logger,
    setup_sql_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    tree_logger,
    orm_logger,
    transaction_logger,
)


@pytest.fixture
def restore_root_logger():
    """测试后移除本模块添加到根日志器的处理器"""
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in list(root.handlers):
        if isinstance(handler.formatter, MicrosecondFormatter):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    root.propagate = True


class TestGetLogger:
    """get_logger 名称处理"""

    def test_auto_infer_module_name(self):
        """测试无参数调用时自动推断模块名"""
        logger = get_logger()
        assert logger.name == __name__

    def test_simple_name_adds_prefix(self):
        assert get_logger("tree").name == "ytree.tree"

    def test_dotted_name_unchanged(self):
        assert get_logger("ytree.orm.transaction").name == "ytree.orm.transaction"
        assert get_logger("sqlalchemy.engine").name == "sqlalchemy.engine"

    def test_package_name_unchanged(self):
        assert get_logger("ytree").name == "ytree"

    def test_module_loggers(self):
        assert tree_logger.name == "ytree.tree"
        assert orm_logger.name == "ytree.orm"
        assert transaction_logger.name == "ytree.orm.transaction"
        assert get_logger("tree") is tree_logger


class TestFormatter:
    """格式化器"""

    def test_microsecond_formatter(self):
        formatter = create_formatter()
        assert isinstance(formatter, MicrosecondFormatter)

        record = logging.LogRecord("ytree.tree", logging.INFO, __file__, 1, "路径生成", None, None)
        record.created = 1700000000.123456
        stamp = formatter.formatTime(record)
        assert stamp.endswith(".123456")

    def test_plain_formatter(self):
        formatter = create_formatter(use_microseconds=False)
        assert not isinstance(formatter, MicrosecondFormatter)
        assert formatter._fmt == DEFAULT_LOG_FORMAT


class TestSetupLogger:
    """setup_logger 处理器配置"""

    def test_console_only(self):
        logger = setup_logger("ytree.test.console", level="DEBUG")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_repeated_setup_replaces_handlers(self):
        """测试重复调用不会累积处理器"""
        setup_logger("ytree.test.repeat")
        logger = setup_logger("ytree.test.repeat")
        assert len(logger.handlers) == 1

    def test_file_handler(self, log_dir):
        log_file = os.path.join(log_dir, "tree.log")
        logger = setup_logger("ytree.test.file", log_file=log_file, console=False)
        logger.info("节点移动")
        for handler in logger.handlers:
            handler.flush()

        assert type(logger.handlers[0]) is logging.FileHandler
        with open(log_file, encoding="utf-8") as f:
            assert "节点移动" in f.read()
        setup_logger("ytree.test.file", console=False)

    def test_rotating_file_handler(self, log_dir):
        log_file = os.path.join(log_dir, "nested", "rotate.log")
        logger = setup_logger(
            "ytree.test.rotate",
            log_file=log_file,
            console=False,
            file_handler_options={"maxBytes": 1024, "backupCount": 2},
        )
        handler = logger.handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 1024
        assert handler.backupCount == 2
        assert os.path.isdir(os.path.dirname(log_file))
        setup_logger("ytree.test.rotate", console=False)

    def test_invalid_level_falls_back_to_info(self):
        logger = setup_logger("ytree.test.level", level="verbose")
        assert logger.level == logging.INFO


class TestSetupRootLogger:
    """setup_root_logger 配置加载"""

    def test_with_settings(self, log_dir, restore_root_logger):
        config = LoggingSettings(
            level="WARNING",
            file_path=os.path.join(log_dir, "root.log"),
            file_max_bytes="1KB",
            file_backup_count=3,
        )
        root = setup_root_logger(config=config)

        assert root.level == logging.WARNING
        rotating = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(rotating) == 1
        assert rotating[0].maxBytes == 1024
        assert rotating[0].backupCount == 3

    def test_with_config_path(self, temp_file, restore_root_logger):
        ConfigLoader.clear_cache()
        path = temp_file("log_config/settings.yaml", "logging:\n  level: ERROR\n  enable_console: false\n")
        root = setup_root_logger(config_path=path)

        assert root.level == logging.ERROR
        assert root.handlers == []
        ConfigLoader.clear_cache()

    def test_sql_logger_enabled_by_config(self, restore_root_logger):
        config = LoggingSettings(sql_log_enabled=True, sql_log_level="INFO")
        setup_root_logger(config=config)

        sql_logger = logging.getLogger("sqlalchemy.engine")
        assert sql_logger.level == logging.INFO
        assert sql_logger.propagate is False
        setup_sql_logger(level="WARNING")


class TestSetupSqlLogger:
    def test_sql_logger_file(self, log_dir):
        log_file = os.path.join(log_dir, "sql.log")
        sql_logger = setup_sql_logger(level="DEBUG", log_file=log_file)

        assert sql_logger.name == "sqlalchemy.engine"
        assert sql_logger.level == logging.DEBUG
        assert any(isinstance(h, logging.FileHandler) for h in sql_logger.handlers)
        setup_sql_logger(level="WARNING")
