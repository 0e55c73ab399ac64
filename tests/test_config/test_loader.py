"""配置加载器测试

测试 YAML 加载、缓存与连接描述加载
"""

import os

import pytest

from ysql.config import AppSettings, ConfigLoader, load_descriptor, load_yaml_config
from ysql.db import ConfigurationError, DriverManagerDescriptor


class TestConfigLoader:
    """ConfigLoader 测试"""

    def test_load(self, sample_yaml_config):
        """测试加载 YAML"""
        config = ConfigLoader.load(sample_yaml_config)
        assert config["database"]["classname"] == "pysqlite"
        assert config["logging"]["level"] == "DEBUG"

    def test_cache(self, sample_yaml_config):
        """测试缓存与重新加载"""
        first = ConfigLoader.load(sample_yaml_config)
        assert ConfigLoader.load(sample_yaml_config) is first
        assert os.path.abspath(sample_yaml_config) in ConfigLoader.get_cached_paths()

        with open(sample_yaml_config, "a", encoding="utf-8") as f:
            f.write("extra: 1\n")

        assert "extra" not in ConfigLoader.load(sample_yaml_config)
        assert ConfigLoader.reload(sample_yaml_config)["extra"] == 1

        ConfigLoader.clear_cache()
        assert ConfigLoader.get_cached_paths() == []

    def test_base_dir(self, sample_yaml_config, temp_dir):
        """测试相对路径按 base_dir 解析"""
        config = ConfigLoader.load("config/settings.yaml", base_dir=temp_dir)
        assert "database" in config

    def test_missing_file(self, temp_dir):
        """测试文件不存在"""
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load(os.path.join(temp_dir, "missing.yaml"))

    def test_empty_file(self, temp_file):
        """测试空文件返回空字典"""
        assert ConfigLoader.load(temp_file("empty.yaml", "")) == {}


class TestLoadYamlConfig:
    """load_yaml_config 测试"""

    def test_app_settings(self, sample_yaml_config):
        """测试加载聚合配置"""
        settings = load_yaml_config(sample_yaml_config, AppSettings)

        assert settings.database.subname == "///./app.db"
        assert settings.database.properties == {"timeout": 5}
        assert settings.logging.level == "DEBUG"
        assert settings.logging.enable_console is False
        assert settings.identifiers.stropping == "ansi"

    def test_overrides(self, sample_yaml_config):
        """测试参数覆盖 YAML"""
        settings = load_yaml_config(sample_yaml_config, AppSettings, logging={"level": "ERROR"})
        assert settings.logging.level == "ERROR"


class TestLoadDescriptor:
    """load_descriptor 测试"""

    def test_database_section(self, sample_yaml_config):
        """测试从 database 段加载连接描述"""
        descriptor = load_descriptor(sample_yaml_config)

        assert isinstance(descriptor, DriverManagerDescriptor)
        assert descriptor.url == "sqlite+pysqlite:///./app.db"
        assert descriptor.extras == {"timeout": 5}

    def test_missing_section(self, sample_yaml_config):
        """测试配置段不存在"""
        with pytest.raises(ConfigurationError):
            load_descriptor(sample_yaml_config, section="replica")

    def test_unmatched_section(self, temp_file):
        """测试配置段不匹配任何连接描述形式"""
        path = temp_file("bad.yaml", "database:\n  host: localhost\n")
        with pytest.raises(ConfigurationError):
            load_descriptor(path)
