"""执行上下文

保存当前连接、事务嵌套层级和回滚标记。上下文绑定在 ContextVar 上，
每个线程 / 协程各自独立，调用链中的任何函数无需传参即可取到当前连接。

使用示例:
    from ysql.db import with_connection, require_connection

    def work():
        con = require_connection()
        ...

    with_connection(descriptor, work)
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from typing import Any, Generator, Optional

from .exceptions import NoActiveConnectionError


class RollbackFlag:
    """回滚标记

    同一连接作用域内所有嵌套事务共享同一个标记对象，
    任意层设置后最外层事务在结束时都能看到。重复设置为 True 与设置一次等价。
    """

    __slots__ = ("_value",)

    def __init__(self, value: bool = False):
        self._value = bool(value)

    def get(self) -> bool:
        return self._value

    def set(self, value: bool) -> None:
        self._value = bool(value)

    def __bool__(self) -> bool:
        return self._value

    def __repr__(self) -> str:
        return f"RollbackFlag({self._value})"


@dataclass(frozen=True)
class ExecutionContext:
    """执行上下文

    Attributes:
        connection: 当前连接，由外层连接作用域独占
        level: 事务嵌套层级，0 表示不在事务中
        rollback: 共享的回滚标记
    """
    connection: Any
    level: int = 0
    rollback: RollbackFlag = field(default_factory=RollbackFlag)

    def nested(self) -> "ExecutionContext":
        """派生下一层事务的上下文（共享回滚标记）"""
        return replace(self, level=self.level + 1)


# 当前执行上下文（线程/协程安全）
_current_context: ContextVar[Optional[ExecutionContext]] = ContextVar(
    "_current_context", default=None
)


def get_current_context() -> Optional[ExecutionContext]:
    """获取当前执行上下文，不在连接作用域内时返回 None"""
    return _current_context.get()


def require_context() -> ExecutionContext:
    """获取当前执行上下文

    Raises:
        NoActiveConnectionError: 不在连接作用域内
    """
    ctx = _current_context.get()
    if ctx is None or ctx.connection is None:
        raise NoActiveConnectionError()
    return ctx


@contextmanager
def bind_context(ctx: ExecutionContext) -> Generator[ExecutionContext, None, None]:
    """在当前调用链上绑定执行上下文，退出时恢复原绑定"""
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def current_connection() -> Optional[Any]:
    """返回当前连接（没有则返回 None）"""
    ctx = _current_context.get()
    return ctx.connection if ctx is not None else None


def require_connection() -> Any:
    """返回当前连接（没有则抛出 NoActiveConnectionError）

    所有语句执行函数都应通过它获取连接。
    """
    return require_context().connection


def nesting_level() -> int:
    """当前事务嵌套层级，不在连接作用域内时为 0"""
    ctx = _current_context.get()
    return ctx.level if ctx is not None else 0


def get_rollback() -> bool:
    """读取共享回滚标记"""
    return require_context().rollback.get()


def set_rollback(value: bool) -> None:
    """设置共享回滚标记

    在任意嵌套层级设置为 True，都会使最外层事务结束时回滚而不是提交。
    """
    require_context().rollback.set(value)
