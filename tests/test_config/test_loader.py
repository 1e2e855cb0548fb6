"""配置加载器测试

测试 YAML 配置加载、配置段读取和 .env 解析
"""

import os

import pytest
import yaml

from ytree.config import (
    AppSettings,
    TreeSettings,
    ConfigLoader,
    load_yaml_config,
    load_section,
    load_env_file,
    set_env_from_file,
)


@pytest.fixture(autouse=True)
def clear_config_cache():
    """每个测试前后清空配置缓存"""
    ConfigLoader.clear_cache()
    yield
    ConfigLoader.clear_cache()


class TestConfigLoader:
    """ConfigLoader 测试"""

    def test_load_yaml_config(self, sample_yaml_config):
        """测试加载 YAML 配置"""
        config = ConfigLoader.load(sample_yaml_config, use_cache=False)

        assert config["database"]["url"] == "sqlite:///test.db"
        assert config["tree"]["order"] == "-sort_order"
        assert config["tree"]["prevent_cycles"] is False

    def test_config_caching(self, sample_yaml_config):
        """测试配置缓存"""
        config1 = ConfigLoader.load(sample_yaml_config)
        config2 = ConfigLoader.load(sample_yaml_config)

        assert config1 is config2
        assert ConfigLoader.get_cached_paths() == [os.path.abspath(sample_yaml_config)]

    def test_no_cache(self, sample_yaml_config):
        config1 = ConfigLoader.load(sample_yaml_config, use_cache=False)
        config2 = ConfigLoader.load(sample_yaml_config, use_cache=False)

        assert config1 is not config2
        assert ConfigLoader.get_cached_paths() == []

    def test_cache_does_not_auto_refresh_until_reload(self, temp_file):
        """测试缓存不会自动刷新，需显式 reload"""
        path = temp_file("reload/settings.yaml", "tree:\n  order: sort_order\n")

        assert ConfigLoader.load(path)["tree"]["order"] == "sort_order"

        with open(path, "w", encoding="utf-8") as f:
            f.write("tree:\n  order: name\n")
        assert ConfigLoader.load(path)["tree"]["order"] == "sort_order"

        assert ConfigLoader.reload(path)["tree"]["order"] == "name"

    def test_base_dir(self, sample_yaml_config):
        """测试相对路径按 base_dir 解析"""
        base_dir = os.path.dirname(sample_yaml_config)
        config = ConfigLoader.load("settings.yaml", base_dir=base_dir)
        assert config["logging"]["level"] == "DEBUG"

    def test_empty_file(self, temp_file):
        path = temp_file("empty.yaml", "")
        assert ConfigLoader.load(path) == {}

    def test_file_not_found(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load(os.path.join(temp_dir, "missing.yaml"))

    def test_invalid_yaml(self, temp_file):
        path = temp_file("invalid.yaml", "tree: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            ConfigLoader.load(path)


class TestLoadYamlConfig:
    """load_yaml_config / load_section 测试"""

    def test_load_app_settings(self, sample_yaml_config):
        settings = load_yaml_config(sample_yaml_config, AppSettings)

        assert settings.database.url == "sqlite:///test.db"
        assert settings.logging.level == "DEBUG"
        assert settings.logging.file_path == "logs/test.log"
        assert settings.tree.order_field == "sort_order"
        assert settings.tree.order_descending is True
        assert settings.tree.prevent_cycles is False

    def test_overrides(self, sample_yaml_config):
        settings = load_yaml_config(
            sample_yaml_config, AppSettings, tree={"order": "name"}
        )
        assert settings.tree.order == "name"
        assert settings.tree.prevent_cycles is True

    def test_overrides_do_not_touch_cache(self, sample_yaml_config):
        load_yaml_config(sample_yaml_config, AppSettings, tree={"order": "name"})
        assert ConfigLoader.load(sample_yaml_config)["tree"]["order"] == "-sort_order"

    def test_load_section(self, sample_yaml_config):
        tree_config = load_section(sample_yaml_config, "tree", TreeSettings)

        assert isinstance(tree_config, TreeSettings)
        assert tree_config.foreign_key == "parent_id"
        assert tree_config.order == "-sort_order"
        assert tree_config.path_field == "path"

    def test_load_missing_section_uses_defaults(self, temp_file, monkeypatch):
        monkeypatch.delenv("YTREE_TREE_ORDER", raising=False)
        path = temp_file("no_tree.yaml", "database:\n  url: sqlite://\n")
        tree_config = load_section(path, "tree", TreeSettings)

        assert tree_config.order is None
        assert tree_config.prevent_cycles is True

    def test_load_section_reads_env(self, temp_file, monkeypatch):
        """测试 YAML 未提供的字段从环境变量读取"""
        monkeypatch.setenv("YTREE_TREE_PATH_FIELD", "tree_path")
        path = temp_file("env_tree.yaml", "tree:\n  order: name\n")
        tree_config = load_section(path, "tree", TreeSettings)

        assert tree_config.path_field == "tree_path"
        assert tree_config.order == "name"


class TestEnvFile:
    """.env 文件测试"""

    def test_load_env_file(self, sample_env_file):
        env_vars = load_env_file(sample_env_file)

        assert env_vars == {
            "YTREE_DB_URL": "sqlite:///env.db",
            "YTREE_LOG_LEVEL": "WARNING",
            "YTREE_TREE_ORDER": "name",
        }

    def test_missing_env_file(self, temp_dir):
        assert load_env_file(os.path.join(temp_dir, "missing.env")) == {}

    def test_set_env_from_file(self, sample_env_file, monkeypatch):
        monkeypatch.setenv("YTREE_DB_URL", "sqlite:///existing.db")
        # 先 setenv 再 delenv，保证测试结束后文件写入的变量被移除
        for key in ("YTREE_LOG_LEVEL", "YTREE_TREE_ORDER"):
            monkeypatch.setenv(key, "")
            monkeypatch.delenv(key)

        set_env_from_file(sample_env_file)

        assert os.environ["YTREE_DB_URL"] == "sqlite:///existing.db"
        assert os.environ["YTREE_LOG_LEVEL"] == "WARNING"
        assert TreeSettings().order == "name"

    def test_set_env_from_file_override(self, sample_env_file, monkeypatch):
        monkeypatch.setenv("YTREE_DB_URL", "sqlite:///existing.db")
        monkeypatch.setenv("YTREE_LOG_LEVEL", "INFO")
        monkeypatch.setenv("YTREE_TREE_ORDER", "id")

        set_env_from_file(sample_env_file, override=True)

        assert os.environ["YTREE_DB_URL"] == "sqlite:///env.db"
