"""命名目录

按名称登记数据源，连接描述中可以只写名称（目录查找形式），由目录解析出数据源。

使用示例:
    from ysql.db.directory import naming_directory

    naming_directory.bind("db/main", engine)
    with_connection({"name": "db/main"}, work)

    # 名称也可以写成分段形式
    with_connection({"name": ("db", "main")}, work)

    # 通过 environment 指定其他目录
    with_connection({
        "name": "db/main",
        "environment": {INITIAL_CONTEXT_FACTORY: lambda env: tenant_directory},
    }, work)
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from ysql.log import get_logger

from .exceptions import ConfigurationError, NameNotBoundError

logger = get_logger("ysql.db.directory")

# environment 中指定目录工厂的键
INITIAL_CONTEXT_FACTORY = "naming.factory.initial"

Name = Union[str, Sequence[str]]


def normalize_name(name: Name) -> str:
    """名称规范化：分段形式用 "/" 连接"""
    if isinstance(name, str):
        return name
    return "/".join(str(part) for part in name)


class NamingDirectory:
    """数据源命名目录（线程安全）"""

    def __init__(self):
        self._bindings: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def bind(self, name: Name, datasource: Any) -> None:
        """登记数据源

        Raises:
            ConfigurationError: 名称已被占用
        """
        key = normalize_name(name)
        with self._lock:
            if key in self._bindings:
                raise ConfigurationError(f"名称 '{key}' 已绑定数据源")
            self._bindings[key] = datasource
        logger.debug(f"绑定数据源: {key}")

    def rebind(self, name: Name, datasource: Any) -> None:
        """登记或覆盖数据源"""
        key = normalize_name(name)
        with self._lock:
            self._bindings[key] = datasource
        logger.debug(f"重新绑定数据源: {key}")

    def unbind(self, name: Name) -> None:
        """移除登记（名称不存在时忽略）"""
        with self._lock:
            self._bindings.pop(normalize_name(name), None)

    def lookup(self, name: Name) -> Any:
        """按名称查找数据源

        Raises:
            NameNotBoundError: 名称未绑定
        """
        key = normalize_name(name)
        with self._lock:
            try:
                return self._bindings[key]
            except KeyError:
                raise NameNotBoundError(key) from None

    def clear(self) -> None:
        with self._lock:
            self._bindings.clear()

    def __contains__(self, name: Name) -> bool:
        with self._lock:
            return normalize_name(name) in self._bindings


# 全局目录
naming_directory = NamingDirectory()


def resolve_directory(environment: Optional[Mapping[str, Any]] = None) -> NamingDirectory:
    """根据 environment 取得目录

    environment 中带有 INITIAL_CONTEXT_FACTORY 时，调用该工厂（参数为 environment）得到目录，
    否则使用全局目录。
    """
    if environment:
        factory: Optional[Callable[[Mapping[str, Any]], NamingDirectory]] = environment.get(
            INITIAL_CONTEXT_FACTORY
        )
        if factory is not None:
            if not callable(factory):
                raise ConfigurationError(f"{INITIAL_CONTEXT_FACTORY} 必须是可调用对象")
            return factory(environment)
    return naming_directory
