"""配置模块

提供配置管理功能：
- AppSettings: 聚合配置，支持 YAML + 环境变量
- 子配置类: DatabaseSettings, LoggingSettings, IdentifierSettings
- ConfigLoader: YAML 配置加载器
- load_descriptor: 从 YAML 直接得到已校验的连接描述

快速开始:
    from ysql.config import AppSettings, load_yaml_config

    settings = load_yaml_config("config/settings.yaml", AppSettings)

配置优先级: 环境变量 > YAML 文件 > 默认值
"""

from .settings import (
    AppSettings,
    DatabaseSettings,
    LoggingSettings,
    IdentifierSettings,
)

from .loader import (
    ConfigLoader,
    load_yaml_config,
    load_descriptor,
)

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "IdentifierSettings",
    "ConfigLoader",
    "load_yaml_config",
    "load_descriptor",
]
