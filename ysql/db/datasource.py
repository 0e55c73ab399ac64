"""数据源

数据源是能够按需提供连接的对象，约定实现 ``get_connection()`` 和
``get_connection(username, password)``。SQLAlchemy Engine 可直接当作数据源使用。
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool


@runtime_checkable
class DataSource(Protocol):
    """数据源协议"""

    def get_connection(self, username: Optional[str] = None, password: Optional[str] = None) -> Any: ...


class EngineDataSource:
    """把 SQLAlchemy Engine 适配为数据源

    返回的是驱动层（DB-API）连接的池代理，close() 时归还给 Engine 的连接池。
    带用户名密码取连接时，以替换了凭据的 URL 新建一个不带连接池的 Engine。

    使用示例:
        engine = create_engine("postgresql+psycopg2://db.internal/app")
        with_connection({"datasource": engine, "username": "app", "password": "secret"}, work)
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def get_connection(self, username: Optional[str] = None, password: Optional[str] = None) -> Any:
        if username is None:
            return self.engine.raw_connection()
        url = self.engine.url.set(username=username, password=password)
        return create_engine(url, poolclass=NullPool).raw_connection()

    def __repr__(self) -> str:
        return f"EngineDataSource({self.engine.url!r})"


def as_datasource(obj: Any) -> DataSource:
    """Engine 包装为 EngineDataSource，其余对象原样返回"""
    if isinstance(obj, Engine):
        return EngineDataSource(obj)
    return obj
