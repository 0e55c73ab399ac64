"""连接描述

连接描述是一个映射，必须匹配以下五种形式之一（按顺序判定）：

    工厂形式:
        factory      （必填）单参数函数，参数为除 factory 外的其余键组成的字典
        （其他键）    （可选）原样传给 factory

    DriverManager 形式:
        classname    （必填）驱动名，如 pysqlite、psycopg2、pymysql
        subprotocol  （必填）方言名，如 sqlite、postgresql、mysql
        subname      （必填）连接串剩余部分，如 ///app.db、//host:5432/db
        （其他键）    （可选）作为 connect_args 传给驱动

    数据源 + 凭据形式:
        datasource   （必填）数据源或 SQLAlchemy Engine
        username     （必填）
        password     （必填）

    数据源形式:
        datasource   （必填）数据源或 SQLAlchemy Engine

    目录查找形式:
        name         （必填）字符串，或分段序列
        environment  （可选）传给目录工厂的映射

都不匹配时抛出 ConfigurationError，且不会尝试建立连接。
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy import create_engine
from sqlalchemy.exc import ArgumentError
from sqlalchemy.pool import NullPool

from .datasource import as_datasource
from .directory import resolve_directory
from .exceptions import ConfigurationError


class ConnectionDescriptor(BaseModel):
    """连接描述基类"""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow", frozen=True)

    shape: ClassVar[str] = ""

    @property
    def extras(self) -> Dict[str, Any]:
        """描述中未被本形式使用的其余键"""
        return dict(self.model_extra or {})

    def connect(self) -> Any:
        raise NotImplementedError


class FactoryDescriptor(ConnectionDescriptor):
    """工厂形式"""

    shape: ClassVar[str] = "factory"

    factory: Callable[[Dict[str, Any]], Any]

    def connect(self) -> Any:
        return self.factory(self.extras)


class DriverManagerDescriptor(ConnectionDescriptor):
    """DriverManager 形式，通过 SQLAlchemy 按 URL 建立驱动连接"""

    shape: ClassVar[str] = "driver_manager"

    classname: str
    subprotocol: str
    subname: str

    @property
    def url(self) -> str:
        return f"{self.subprotocol}+{self.classname}:{self.subname}"

    def connect(self) -> Any:
        try:
            engine = create_engine(self.url, poolclass=NullPool, connect_args=self.extras)
        except ArgumentError as e:
            raise ConfigurationError(f"无法加载驱动 {self.url}: {e}") from e
        return engine.raw_connection()


class DataSourceDescriptor(ConnectionDescriptor):
    """数据源形式"""

    shape: ClassVar[str] = "datasource"

    datasource: Any

    def connect(self) -> Any:
        return as_datasource(self.datasource).get_connection()


class CredentialsDataSourceDescriptor(DataSourceDescriptor):
    """数据源 + 凭据形式"""

    shape: ClassVar[str] = "datasource_credentials"

    username: str
    password: str = Field(repr=False)

    def connect(self) -> Any:
        return as_datasource(self.datasource).get_connection(self.username, self.password)


class DirectoryDescriptor(ConnectionDescriptor):
    """目录查找形式"""

    shape: ClassVar[str] = "directory"

    name: Union[str, Tuple[str, ...]]
    environment: Optional[Dict[str, Any]] = None

    def connect(self) -> Any:
        datasource = resolve_directory(self.environment).lookup(self.name)
        return as_datasource(datasource).get_connection()


# 判定顺序：(必填键, 描述类)
_SHAPES: Tuple[Tuple[Tuple[str, ...], Type[ConnectionDescriptor]], ...] = (
    (("factory",), FactoryDescriptor),
    (("classname", "subprotocol", "subname"), DriverManagerDescriptor),
    (("datasource", "username", "password"), CredentialsDataSourceDescriptor),
    (("datasource",), DataSourceDescriptor),
    (("name",), DirectoryDescriptor),
)


def parse_descriptor(value: Union[Mapping[str, Any], ConnectionDescriptor]) -> ConnectionDescriptor:
    """校验连接描述并返回对应形式的描述对象

    Raises:
        ConfigurationError: 不匹配任何形式，或字段类型不正确
    """
    if isinstance(value, ConnectionDescriptor):
        return value
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"连接描述必须是映射，实际为 {type(value).__name__}")

    data = dict(value)
    for required, descriptor_class in _SHAPES:
        if all(data.get(key) is not None for key in required):
            try:
                return descriptor_class.model_validate(data)
            except ValidationError as e:
                raise ConfigurationError(
                    f"连接描述不符合 {descriptor_class.shape} 形式: {e}"
                ) from e

    raise ConfigurationError(f"连接描述缺少必需参数，现有键: {sorted(map(str, data))}")
