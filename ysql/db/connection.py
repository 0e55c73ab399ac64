"""连接作用域

在一段动态范围内打开连接、安装全新的执行上下文（层级 0、新的回滚标记），
退出时无论成功或异常都关闭连接。

使用示例:
    from ysql.db import connection_scope, with_connection

    # 上下文管理器
    with connection_scope({"classname": "pysqlite", "subprotocol": "sqlite", "subname": "///app.db"}) as con:
        execute_batch("DELETE FROM sessions")

    # 函数式写法
    result = with_connection(descriptor, lambda: execute_query(["SELECT 1 AS one"], list))
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Any, Callable, Generator, Mapping, TypeVar, Union

from sqlalchemy.pool import PoolProxiedConnection

from ysql.log import get_logger

from .context import ExecutionContext, RollbackFlag, bind_context
from .descriptors import ConnectionDescriptor, parse_descriptor

logger = get_logger("ysql.db.connection")

T = TypeVar("T")

Descriptor = Union[Mapping[str, Any], ConnectionDescriptor]


def get_connection(descriptor: Descriptor) -> Any:
    """按连接描述建立连接

    Raises:
        ConfigurationError: 连接描述不匹配任何形式（不会尝试连接）
    """
    parsed = parse_descriptor(descriptor)
    con = parsed.connect()
    logger.debug(f"打开连接 ({parsed.shape})")
    return con


@contextmanager
def connection_scope(descriptor: Descriptor) -> Generator[Any, None, None]:
    """连接作用域（上下文管理器），产出当前连接"""
    con = get_connection(descriptor)
    try:
        with bind_context(ExecutionContext(connection=con, level=0, rollback=RollbackFlag())):
            yield con
    finally:
        con.close()
        logger.debug("关闭连接")


def with_connection(descriptor: Descriptor, func: Callable[[], T]) -> T:
    """在新连接的作用域内执行 func，返回其结果"""
    with connection_scope(descriptor):
        return func()


# ==================== 自动提交 ====================

# sqlite3 在 Python 3.12 之前没有 autocommit 属性，3.12 起默认值为 LEGACY_TRANSACTION_CONTROL，
# 这两种情况下都以 isolation_level 表示自动提交（None 为自动提交）
_LEGACY_TRANSACTION_CONTROL = getattr(sqlite3, "LEGACY_TRANSACTION_CONTROL", -1)


def driver_connection(con: Any) -> Any:
    """取得驱动层连接（SQLAlchemy 连接池代理会被解开）"""
    if isinstance(con, PoolProxiedConnection):
        return con.dbapi_connection
    return con


def _autocommit_style(raw: Any) -> str:
    # PyMySQL / mysqlclient: get_autocommit() + autocommit(bool)
    if callable(getattr(raw, "get_autocommit", None)):
        return "methods"
    if isinstance(raw, sqlite3.Connection):
        if getattr(raw, "autocommit", _LEGACY_TRANSACTION_CONTROL) == _LEGACY_TRANSACTION_CONTROL:
            return "isolation_level"
    return "attribute"


def get_autocommit(con: Any) -> Any:
    """读取连接的自动提交设置，返回值可原样交给 set_autocommit 恢复"""
    raw = driver_connection(con)
    style = _autocommit_style(raw)
    if style == "methods":
        return raw.get_autocommit()
    if style == "isolation_level":
        return raw.isolation_level is None
    return raw.autocommit


def set_autocommit(con: Any, value: Any) -> None:
    """修改连接的自动提交设置

    sqlite3 的 isolation_level 方式下，关闭自动提交时保留原有的 BEGIN 模式（DEFERRED / IMMEDIATE 等），
    原本就是自动提交时使用默认的 DEFERRED。
    """
    raw = driver_connection(con)
    style = _autocommit_style(raw)
    if style == "methods":
        raw.autocommit(value)
    elif style == "isolation_level":
        if value:
            raw.isolation_level = None
        elif raw.isolation_level is None:
            raw.isolation_level = ""
    else:
        raw.autocommit = value
