"""驱动错误诊断输出

把驱动异常链（消息、SQLSTATE、厂商错误码）和批量执行的逐条结果整理成可读文本，
交给可替换的输出端（sink）。默认输出端写入 ysql.db.diagnostics 日志（ERROR 级别）。

使用示例:
    from ysql.db.diagnostics import diagnostic_sink, StreamDiagnosticSink

    with diagnostic_sink(StreamDiagnosticSink()):   # 打到 stderr
        with_transaction(work)
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Optional, TextIO

from ysql.log import get_logger

from .exceptions import DriverError

# 批量执行中单条语句的特殊结果
SUCCESS_NO_INFO = -2
"""语句执行成功，但驱动没有给出影响行数"""

EXECUTE_FAILED = -3
"""语句执行失败"""

SPECIAL_COUNTS = {
    EXECUTE_FAILED: "EXECUTE_FAILED",
    SUCCESS_NO_INFO: "SUCCESS_NO_INFO",
}

DiagnosticSink = Callable[[str], Any]


class LoggingDiagnosticSink:
    """写入日志的输出端"""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.ERROR):
        self.logger = logger or get_logger("ysql.db.diagnostics")
        self.level = level

    def __call__(self, message: str) -> None:
        self.logger.log(self.level, message)


class StreamDiagnosticSink:
    """写入文本流的输出端，默认 sys.stderr（写入时才取，便于测试替换）"""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def __call__(self, message: str) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        stream.write(message + "\n")


_default_sink: DiagnosticSink = LoggingDiagnosticSink()
_current_sink: ContextVar[Optional[DiagnosticSink]] = ContextVar("_current_sink", default=None)


def set_default_diagnostic_sink(sink: DiagnosticSink) -> DiagnosticSink:
    """替换进程级默认输出端，返回原输出端"""
    global _default_sink
    previous, _default_sink = _default_sink, sink
    return previous


def get_diagnostic_sink() -> DiagnosticSink:
    """当前生效的输出端"""
    return _current_sink.get() or _default_sink


@contextmanager
def diagnostic_sink(sink: DiagnosticSink):
    """在代码块内使用指定输出端"""
    token = _current_sink.set(sink)
    try:
        yield sink
    finally:
        _current_sink.reset(token)


def sql_state_of(error: BaseException) -> Optional[str]:
    """提取异常的 SQLSTATE

    兼容 ysql DriverError、psycopg（sqlstate / pgcode）与 sqlite3（sqlite_errorname）。
    """
    for attr in ("sql_state", "sqlstate", "pgcode", "sqlite_errorname"):
        value = getattr(error, attr, None)
        if value is not None:
            return value
    return None


def error_code_of(error: BaseException) -> Any:
    """提取异常的厂商错误码

    兼容 ysql DriverError、sqlite3（sqlite_errorcode）与 PyMySQL / mysqlclient（args[0] 为整数）。
    """
    for attr in ("error_code", "sqlite_errorcode", "errno"):
        value = getattr(error, attr, None)
        if value is not None:
            return value
    args = getattr(error, "args", ())
    if len(args) > 1 and isinstance(args[0], int):
        return args[0]
    return None


def is_driver_error(error: BaseException) -> bool:
    """判断异常是否来自数据库驱动

    ysql DriverError、带 SQLSTATE 的异常，以及定义在 DB-API 驱动包（包级别有 apilevel）中的异常。
    """
    if isinstance(error, DriverError) or sql_state_of(error) is not None:
        return True
    for cls in type(error).__mro__:
        package = sys.modules.get(cls.__module__.partition(".")[0])
        if package is not None and hasattr(package, "apilevel"):
            return True
    return False


def iter_exception_chain(error: Optional[BaseException]) -> Iterator[BaseException]:
    """沿 __cause__ / __context__ 遍历异常链"""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        yield error
        if error.__cause__ is not None:
            error = error.__cause__
        elif not error.__suppress_context__:
            error = error.__context__
        else:
            error = None


def format_sql_exception(error: BaseException) -> str:
    """格式化单个异常"""
    code = error_code_of(error)
    return (
        f"{type(error).__name__}:\n"
        f" Message: {error}\n"
        f" SQLState: {sql_state_of(error)}\n"
        f" Error Code: {code if code is not None else 0}"
    )


def format_update_counts(update_counts) -> str:
    """格式化批量执行的逐条结果（序号从 0 开始）"""
    lines = ["Update counts:"]
    for index, count in enumerate(update_counts):
        lines.append(f" Statement {index}: {SPECIAL_COUNTS.get(count, count)}")
    return "\n".join(lines)


def report_exception_chain(error: BaseException, sink: Optional[DiagnosticSink] = None) -> None:
    """把异常链逐个输出"""
    sink = sink or get_diagnostic_sink()
    for item in iter_exception_chain(error):
        sink(format_sql_exception(item))


def report_update_counts(error: BaseException, sink: Optional[DiagnosticSink] = None) -> None:
    """输出批量执行异常携带的逐条结果"""
    sink = sink or get_diagnostic_sink()
    sink(format_update_counts(getattr(error, "update_counts", ())))
