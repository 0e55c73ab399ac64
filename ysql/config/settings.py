"""
配置模块
提供 ysql 的默认配置，业务项目可以继承并覆盖
"""

from contextlib import contextmanager
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


_CASE_CONVERTERS = {
    "none": None,
    "upper": str.upper,
    "lower": str.lower,
}


class DatabaseSettings(BaseSettings):
    """数据库连接配置（DriverManager 形式的连接描述）

    classname 为 SQLAlchemy 驱动名，subprotocol 为方言名，subname 为连接串其余部分，
    三者拼成 ``{subprotocol}+{classname}:{subname}``。

    使用示例:
        from ysql.config import DatabaseSettings

        db_config = DatabaseSettings(
            classname="psycopg2",
            subprotocol="postgresql",
            subname="//user:pass@localhost:5432/mydb",
            properties={"connect_timeout": 10},
        )
        with_connection(db_config.to_descriptor(), work)
    """
    classname: str = Field(default="", description="驱动名（如 pysqlite、psycopg2、pymysql）")
    subprotocol: str = Field(default="", description="数据库方言（如 sqlite、postgresql、mysql）")
    subname: str = Field(default="", description="连接串剩余部分（如 //host:5432/db）")
    properties: Dict[str, Any] = Field(default_factory=dict, description="传给驱动 connect() 的附加参数")

    class Config:
        env_prefix = "YSQL_DB_"

    @property
    def is_configured(self) -> bool:
        """三个必填项是否都已配置"""
        return bool(self.classname and self.subprotocol and self.subname)

    def to_descriptor(self) -> Dict[str, Any]:
        """转换为连接描述字典"""
        return {
            **self.properties,
            "classname": self.classname,
            "subprotocol": self.subprotocol,
            "subname": self.subname,
        }


class LoggingSettings(BaseSettings):
    """日志配置

    使用示例:
        from ysql.config import LoggingSettings
        from ysql.log import setup_root_logger

        setup_root_logger(config=LoggingSettings(level="DEBUG", file_path="logs/ysql.log"))
    """
    level: str = Field(default="INFO", description="日志级别")
    file_path: str = Field(default="", description="日志文件路径，为空则不写文件")
    file_max_bytes: int = Field(default=10 * 1024 * 1024, description="单个日志文件最大字节数")
    file_backup_count: int = Field(default=5, description="保留的备份文件数量")
    file_encoding: str = Field(default="utf-8", description="文件编码")
    enable_console: bool = Field(default=True, description="是否启用控制台输出")

    class Config:
        env_prefix = "YSQL_LOG_"


class IdentifierSettings(BaseSettings):
    """标识符转换配置

    stropping 取值见 ``ysql.db.identifiers.STROPPING_PRESETS``（ansi / mysql / sqlserver），
    为空表示不加引号；inbound_case / outbound_case 取值 none / upper / lower。

    使用示例:
        settings = IdentifierSettings(stropping="mysql", inbound_case="lower")

        with settings.scope():
            as_identifier(["Users", "ID"])   # -> `users`.`id`
    """
    stropping: Optional[str] = Field(default=None, description="引号风格预设名")
    inbound_case: str = Field(default="none", description="生成 SQL 时标识符的大小写转换")
    outbound_case: str = Field(default="none", description="读取结果时列名的大小写转换")

    class Config:
        env_prefix = "YSQL_ID_"

    def to_stropping(self):
        """构建 Stropping 配置"""
        from ..db.identifiers import Stropping, stropping_preset

        if not self.stropping:
            return Stropping()
        return stropping_preset(self.stropping)

    def to_naming_strategy(self):
        """构建 NamingStrategy 配置"""
        from ..db.exceptions import ConfigurationError
        from ..db.identifiers import NamingStrategy

        converters = {}
        for direction, case in (("inbound", self.inbound_case), ("outbound", self.outbound_case)):
            if case not in _CASE_CONVERTERS:
                raise ConfigurationError(f"不支持的大小写转换: {direction}_case={case!r}")
            if _CASE_CONVERTERS[case] is not None:
                converters[direction] = _CASE_CONVERTERS[case]
        return NamingStrategy(**converters)

    @contextmanager
    def scope(self):
        """在当前上下文中同时安装引号配置与命名策略"""
        from ..db.identifiers import use_naming_strategy, use_stropping

        with use_stropping(self.to_stropping()), use_naming_strategy(self.to_naming_strategy()):
            yield


class AppSettings(BaseSettings):
    """应用基础配置

    将各子配置类聚合为嵌套结构，支持 YAML 配置文件和环境变量。

    内置子配置及环境变量前缀:
        - database:    DatabaseSettings    (YSQL_DB_)
        - logging:     LoggingSettings     (YSQL_LOG_)
        - identifiers: IdentifierSettings  (YSQL_ID_)

    YAML 配置示例 (config/settings.yaml):
        database:
          classname: pysqlite
          subprotocol: sqlite
          subname: "///./app.db"
        logging:
          level: DEBUG
        identifiers:
          stropping: ansi
    """
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    identifiers: IdentifierSettings = Field(default_factory=IdentifierSettings)

    class Config:
        env_prefix = "YSQL_"
        env_nested_delimiter = "__"
