"""
数据库会话管理模块

公开 API:
- db_manager: 数据库管理器单例
- init_database(): 初始化数据库连接
- get_engine(): 获取数据库引擎
- db_session_scope(): 脚本/任务场景的 session 上下文管理器
- on_request_end(): 作用域结束清理
"""

import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Generator
from uuid import uuid4

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session, Session
from sqlalchemy.pool import StaticPool

from ..log import get_logger

_logger = get_logger("ytree.orm.session")

__all__ = [
    'db_manager',
    'init_database',
    'get_engine',
    'db_session_scope',
    'on_request_end',
]


class DatabaseManager:
    """数据库管理器（单例）

    使用示例:
        from ytree.orm import db_manager

        db_manager.init(database_url="sqlite:///./tree.db")
        session = db_manager.get_session()
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._engine = None
        self._session_scope = None
        self._scope_id_var: ContextVar[str] = ContextVar('ytree_scope_id', default='')
        self._initialized = True

    @property
    def engine(self):
        if self._engine is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._engine

    @property
    def session_scope(self):
        if self._session_scope is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._session_scope

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None and self._session_scope is not None

    def init(
        self,
        database_url: str = None,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True,
        logger: logging.Logger = None,
        scopefunc: Callable = None,
        config: Any = None,
        auto_setup_query: bool = True
    ):
        """初始化数据库连接

        Args:
            database_url: 数据库连接URL（如果提供 config 则忽略）
            echo: 是否输出SQL语句
            pool_size / max_overflow / pool_timeout / pool_recycle / pool_pre_ping: 连接池参数
            logger: 日志记录器
            scopefunc: scoped_session 作用域函数，默认按上下文变量区分
            config: DatabaseSettings，提供后从中提取以上参数
            auto_setup_query: 是否设置 CoreModel.query

        Returns:
            tuple: (engine, session_scope)

        使用示例:
            engine, session = init_database("sqlite:///./tree.db")
            engine, session = init_database(config=settings.database)
        """
        if config is not None:
            database_url = getattr(config, "url", database_url)
            echo = getattr(config, "echo", echo)
            pool_size = getattr(config, "pool_size", pool_size)
            max_overflow = getattr(config, "max_overflow", max_overflow)
            pool_timeout = getattr(config, "pool_timeout", pool_timeout)
            pool_recycle = getattr(config, "pool_recycle", pool_recycle)
            pool_pre_ping = getattr(config, "pool_pre_ping", pool_pre_ping)

        if not database_url:
            raise ValueError("database_url 是必需的，请通过参数或 config 提供")

        logger = logger or _logger
        logger.info(f"数据库配置URL: {database_url}")

        if database_url.startswith("sqlite"):
            db_path = database_url.split(":///", 1)[-1] if ":///" in database_url else ""
            if db_path in ("", ":memory:"):
                # 内存数据库：单连接共享
                self._engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
                logger.info("SQLite内存数据库引擎创建成功（StaticPool）")
            else:
                logger.info(f"SQLite文件数据库路径: {os.path.abspath(db_path)}")
                self._engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False, "timeout": pool_timeout},
                    pool_pre_ping=pool_pre_ping,
                )
        else:
            self._engine = create_engine(
                database_url,
                echo=echo,
                pool_pre_ping=pool_pre_ping,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle
            )
            logger.info("数据库引擎创建成功")

        session_maker = sessionmaker(autoflush=True, bind=self._engine)
        self._session_scope = scoped_session(session_maker, scopefunc=scopefunc or self._get_scope_id)

        if auto_setup_query:
            from .core_model import CoreModel
            CoreModel.query = self._session_scope.query_property()
            logger.info("CoreModel.query 属性已自动设置")

        return self._engine, self._session_scope

    def get_session(self) -> Session:
        """获取当前作用域的 session（低级 API，优先使用 db_session_scope()）"""
        return self.session_scope()

    def cleanup(self):
        """作用域结束时提交未提交的更改并移除 session（幂等）"""
        scope_id = self._get_scope_id()

        if self._session_scope is not None and self._session_scope.registry.has():
            session = self._session_scope()
            if session.dirty or session.new or session.deleted:
                try:
                    session.commit()
                    _logger.debug(f"[scope={scope_id}] 自动提交成功")
                except Exception:
                    _logger.warning(f"[scope={scope_id}] 自动提交失败，回滚", exc_info=True)
                    session.rollback()
                    raise
                finally:
                    self._session_scope.remove()
            else:
                self._session_scope.remove()
            _logger.debug(f"[scope={scope_id}] session 已移除")

        self._scope_id_var.set('')

    def _set_scope_id(self, scope_id: str = None) -> str:
        scope_id = scope_id or uuid4().hex[:8]
        self._scope_id_var.set(scope_id)
        return scope_id

    def _get_scope_id(self) -> str:
        value = self._scope_id_var.get()
        if not value:
            value = self._set_scope_id()
        return value


# ==================== 全局单例 ====================

db_manager = DatabaseManager()


def init_database(database_url: str = None, **kwargs):
    """初始化数据库连接

    db_manager.init() 的便捷包装，参数见 DatabaseManager.init()。

    Returns:
        tuple: (engine, session_scope)
    """
    return db_manager.init(database_url=database_url, **kwargs)


def get_engine():
    """获取数据库引擎

    Raises:
        RuntimeError: 数据库未初始化时
    """
    return db_manager.engine


def on_request_end():
    """作用域结束时提交并清理 session，db_manager.cleanup() 的便捷包装"""
    db_manager.cleanup()


@contextmanager
def db_session_scope(
    scope_id: str = None,
    auto_commit: bool = True
) -> Generator[Session, None, None]:
    """脚本/任务场景的 session 上下文管理器

    Args:
        scope_id: 作用域ID，用于日志追踪，不传则自动生成
        auto_commit: 是否自动提交

    使用示例:
        with db_session_scope() as session:
            Category.rebuild_all_paths()
    """
    db_manager._set_scope_id(scope_id)
    session = db_manager.get_session()
    try:
        yield session
        if auto_commit:
            session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        on_request_end()
