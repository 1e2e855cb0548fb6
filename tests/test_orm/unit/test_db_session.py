"""数据库会话管理测试

测试 init_database、db_session_scope、on_request_end 与 to_snake_case
"""

import pytest
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from ytree.config import DatabaseSettings
from ytree.orm import (
    Base,
    CoreModel,
    db_manager,
    init_database,
    get_engine,
    db_session_scope,
    on_request_end,
    to_snake_case,
)


class SessionNote(CoreModel):
    """会话测试记录"""
    __tablename__ = "test_session_notes"
    __table_args__ = {"extend_existing": True}

    title: Mapped[str] = mapped_column(String(100))


@pytest.fixture(autouse=True)
def restore_db_manager():
    """测试后恢复全局数据库管理器"""
    engine, scope = db_manager._engine, db_manager._session_scope
    # 抽象的 CoreModel 未映射，不能经由描述符读取 query_property
    query = CoreModel.__dict__.get("query")
    yield db_manager
    if db_manager._session_scope is not None and db_manager._session_scope is not scope:
        db_manager._session_scope.remove()
    if db_manager._engine is not None and db_manager._engine is not engine:
        db_manager._engine.dispose()
    db_manager._engine, db_manager._session_scope = engine, scope
    CoreModel.query = query


@pytest.fixture
def file_db(tmp_path):
    """初始化文件数据库并建表"""
    engine, scope = init_database(f"sqlite:///{tmp_path / 'session.db'}")
    Base.metadata.create_all(bind=engine)
    return engine, scope


def count_notes(engine):
    with engine.connect() as conn:
        return conn.exec_driver_sql("SELECT COUNT(*) FROM test_session_notes").scalar()


class TestInitDatabase:
    """init_database 测试"""

    def test_not_initialized(self):
        db_manager._engine = None
        db_manager._session_scope = None

        assert db_manager.is_initialized is False
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            db_manager.get_session()

    def test_memory_database(self):
        engine, scope = init_database("sqlite:///:memory:")

        assert isinstance(engine.pool, StaticPool)
        assert get_engine() is engine
        assert db_manager.is_initialized
        assert CoreModel.__dict__.get("query") is not None
        assert SessionNote.query.session is scope()

    def test_init_from_settings(self, tmp_path):
        config = DatabaseSettings(url=f"sqlite:///{tmp_path / 'config.db'}")
        engine, _ = init_database(config=config)

        assert str(engine.url).endswith("config.db")

    def test_missing_url(self):
        with pytest.raises(ValueError):
            init_database(config=DatabaseSettings(url=""))

    def test_skip_query_setup(self):
        CoreModel.query = None
        init_database("sqlite:///:memory:", auto_setup_query=False)
        assert CoreModel.__dict__.get("query") is None


class TestSessionScope:
    """db_session_scope / on_request_end 测试"""

    def test_auto_commit(self, file_db):
        engine, _ = file_db
        with db_session_scope(scope_id="job-1") as session:
            session.add(SessionNote(title="提交"))

        assert count_notes(engine) == 1

    def test_rollback_on_exception(self, file_db):
        engine, _ = file_db
        with pytest.raises(ValueError):
            with db_session_scope() as session:
                session.add(SessionNote(title="回滚"))
                session.flush()
                raise ValueError("失败")

        assert count_notes(engine) == 0

    def test_no_auto_commit(self, file_db):
        engine, _ = file_db
        with db_session_scope(auto_commit=False) as session:
            session.add(SessionNote(title="未提交"))

        # 结束时 cleanup 仍会提交未提交的更改
        assert count_notes(engine) == 1

    def test_session_removed_after_scope(self, file_db):
        _, scope = file_db
        with db_session_scope(scope_id="job-2") as session:
            pass

        assert not scope.registry.has()
        assert session is not db_manager.get_session()

    def test_on_request_end_commits_pending(self, file_db):
        engine, _ = file_db
        SessionNote(title="请求结束").save()
        on_request_end()

        assert count_notes(engine) == 1
        on_request_end()


class TestToSnakeCase:
    @pytest.mark.parametrize("name,expected", [
        ("CategoryNode", "category_node"),
        ("APIMenu", "api_menu"),
        ("Dept2Tree", "dept2_tree"),
        ("Region", "region"),
    ])
    def test_convert(self, name, expected):
        assert to_snake_case(name) == expected

    def test_auto_table_name(self):
        class RegionNode(CoreModel):
            __table_args__ = {"extend_existing": True}
            name: Mapped[str] = mapped_column(String(20))

        assert RegionNode.__tablename__ == "region_node"
