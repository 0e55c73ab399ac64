"""标识符转换

把应用层的符号名（字符串、枚举成员或它们组成的序列）转换为目标 SQL 方言所需的标识符文本：
先应用 inbound 命名策略，再转义，最后加引号（stropping），多段之间用 "." 连接。

当前生效的命名策略与引号配置绑定在 ContextVar 上，不同线程 / 协程互不影响。

使用示例:
    from ysql.db.identifiers import as_identifier, stropping, naming_strategy

    as_identifier(["public", "users"])            # -> public.users

    with stropping("`"):
        as_identifier(["public", "users"])        # -> `public`.`users`

    with naming_strategy(inbound=str.upper):
        as_identifier("users")                    # -> USERS
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple, TypeVar, Union

from .exceptions import ConfigurationError, InvalidArgumentError

T = TypeVar("T")

StringFn = Callable[[str], str]


def _identity(value: str) -> str:
    return value


@dataclass(frozen=True)
class NamingStrategy:
    """命名策略

    Attributes:
        inbound: 应用层名称 -> 驱动层名称（生成 SQL 时使用）
        outbound: 驱动返回的列名 -> 应用层名称（读取结果时使用）
    """
    inbound: StringFn = _identity
    outbound: StringFn = _identity


@dataclass(frozen=True)
class Stropping:
    """引号配置

    Attributes:
        prefix: 左引号
        suffix: 右引号
        escape: 加引号前对标识符文本做的转义
    """
    prefix: str = ""
    suffix: str = ""
    escape: StringFn = _identity

    def wrap(self, text: str) -> str:
        return f"{self.prefix}{text}{self.suffix}"

    def render(self, text: str) -> str:
        return self.wrap(self.escape(text))


def escape_delimiter(delimiter: str) -> StringFn:
    """构建转义函数：把标识符中出现的右引号写两遍（SQL 标准做法）"""
    if not delimiter:
        return _identity
    doubled = delimiter * 2

    def _escape(text: str) -> str:
        return text.replace(delimiter, doubled)

    return _escape


# 常见方言的引号风格
STROPPING_PRESETS: Dict[str, Tuple[str, str]] = {
    "ansi": ('"', '"'),
    "mysql": ("`", "`"),
    "sqlserver": ("[", "]"),
}


def stropping_preset(name: str) -> Stropping:
    """按预设名构建引号配置（右引号自动转义）

    Raises:
        ConfigurationError: 未知的预设名
    """
    try:
        prefix, suffix = STROPPING_PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f"未知的引号风格: {name!r}，可选值: {', '.join(STROPPING_PRESETS)}"
        ) from None
    return Stropping(prefix, suffix, escape_delimiter(suffix))


_naming_strategy: ContextVar[NamingStrategy] = ContextVar(
    "_naming_strategy", default=NamingStrategy()
)
_stropping: ContextVar[Stropping] = ContextVar("_stropping", default=Stropping())


def current_naming_strategy() -> NamingStrategy:
    return _naming_strategy.get()


def current_stropping() -> Stropping:
    return _stropping.get()


@contextmanager
def use_naming_strategy(strategy: NamingStrategy):
    """在当前调用链上安装命名策略"""
    token = _naming_strategy.set(strategy)
    try:
        yield strategy
    finally:
        _naming_strategy.reset(token)


@contextmanager
def use_stropping(config: Stropping):
    """在当前调用链上安装引号配置"""
    token = _stropping.set(config)
    try:
        yield config
    finally:
        _stropping.reset(token)


def _as_delimiters(chars: Union[str, Iterable[str]]) -> Tuple[str, str]:
    if isinstance(chars, str):
        return chars, chars
    try:
        delimiters = tuple(chars)
    except TypeError:
        delimiters = ()
    if len(delimiters) != 2 or not all(isinstance(d, str) for d in delimiters):
        raise InvalidArgumentError(f"引号应为单个字符串或 (左引号, 右引号)，实际为 {chars!r}")
    return delimiters[0], delimiters[1]


@contextmanager
def stropping(chars: Union[str, Tuple[str, str]], escape: Optional[StringFn] = None):
    """在代码块内让 as_identifier 输出带引号的标识符

    Args:
        chars: 单个字符串（两侧相同）或 (左引号, 右引号)
        escape: 加引号前的转义函数，默认不转义

    使用示例:
        with stropping(("[", "]")):
            as_identifier("order")    # -> [order]
    """
    prefix, suffix = _as_delimiters(chars)
    with use_stropping(Stropping(prefix, suffix, escape or _identity)) as config:
        yield config


@contextmanager
def naming_strategy(inbound: Optional[StringFn] = None, outbound: Optional[StringFn] = None):
    """在代码块内应用命名策略

    Args:
        inbound: 生成 SQL 时的转换函数，默认不转换
        outbound: 读取结果列名时的转换函数，默认不转换
    """
    strategy = NamingStrategy(inbound or _identity, outbound or _identity)
    with use_naming_strategy(strategy) as installed:
        yield installed


def with_stropping(chars: Union[str, Tuple[str, str]], escape: Optional[StringFn], func: Callable[[], T]) -> T:
    """函数式写法：在引号配置下执行 func"""
    with stropping(chars, escape):
        return func()


def with_naming_strategy(inbound: Optional[StringFn], outbound: Optional[StringFn], func: Callable[[], T]) -> T:
    """函数式写法：在命名策略下执行 func"""
    with naming_strategy(inbound, outbound):
        return func()


def as_str(value: Any) -> str:
    """符号名转为字符串

    字符串原样返回；枚举成员取字符串值，非字符串值取成员名；其他对象使用 str()。
    """
    if isinstance(value, str):
        return value
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name
    return str(value)


def _segments(identifier: Any) -> Iterable[Any]:
    if isinstance(identifier, (str, bytes, Enum)):
        return (identifier,)
    try:
        return tuple(identifier)
    except TypeError:
        return (identifier,)


def as_identifier(identifier: Any) -> str:
    """生成（可限定的）SQL 标识符

    Args:
        identifier: 单个符号名，或按 schema、table、column 顺序排列的符号名序列

    Returns:
        标识符文本，各段依次经过 inbound 命名策略、转义、加引号后用 "." 连接
    """
    strategy = _naming_strategy.get()
    config = _stropping.get()
    return ".".join(
        config.render(strategy.inbound(as_str(segment)))
        for segment in _segments(identifier)
    )


def as_key(name: Any) -> str:
    """对驱动返回的列名应用 outbound 命名策略"""
    return _naming_strategy.get().outbound(as_str(name))
