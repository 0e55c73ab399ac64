"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 临时目录与文件
- 伪 DB-API 连接与连接描述
- 诊断输出收集
"""

import os
import tempfile

import pytest

from ysql.config import ConfigLoader
from ysql.db import diagnostic_sink, naming_directory

from tests.helpers import FakeConnection, factory_descriptor


# ==================== 基础 Fixtures ====================

@pytest.fixture(scope="session")
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_file(temp_dir):
    """创建临时文件的工厂函数"""
    created_files = []

    def _create_file(filename: str, content: str = "") -> str:
        filepath = os.path.join(temp_dir, filename)
        if os.path.dirname(filepath):
            os.makedirs(os.path.dirname(filepath), exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        created_files.append(filepath)
        return filepath

    yield _create_file

    # 清理
    for f in created_files:
        if os.path.exists(f):
            os.remove(f)


@pytest.fixture
def sample_yaml_config(temp_file):
    """示例 YAML 配置文件"""
    content = """
database:
  classname: pysqlite
  subprotocol: sqlite
  subname: "///./app.db"
  properties:
    timeout: 5

logging:
  level: DEBUG
  file_path: ""
  enable_console: false

identifiers:
  stropping: ansi
  inbound_case: lower
"""
    return temp_file("config/settings.yaml", content)


@pytest.fixture(autouse=True)
def clear_config_cache():
    """每个测试前后清除配置缓存"""
    ConfigLoader.clear_cache()
    yield
    ConfigLoader.clear_cache()


# ==================== 数据库 Fixtures ====================

@pytest.fixture
def fake_connection():
    """记录调用的伪连接（初始为自动提交）"""
    return FakeConnection()


@pytest.fixture
def fake_descriptor(fake_connection):
    """产出 fake_connection 的工厂形式连接描述"""
    return factory_descriptor(fake_connection)


@pytest.fixture
def clean_directory():
    """测试后清空全局命名目录"""
    yield naming_directory
    naming_directory.clear()


@pytest.fixture
def diagnostics():
    """收集诊断输出的列表"""
    messages = []
    with diagnostic_sink(messages.append):
        yield messages
