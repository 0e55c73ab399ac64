"""事务管理器

提供嵌套事务的统一入口：嵌套的事务被最外层事务吸收，只有最外层真正提交或回滚。
任意一层把回滚标记置为 True（或事务体抛出异常），最外层结束时整体回滚。
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, TypeVar

from ysql.log import transaction_logger as logger

from ..connection import get_autocommit, set_autocommit
from ..context import ExecutionContext, bind_context, get_current_context, require_context
from ..diagnostics import is_driver_error, report_exception_chain, report_update_counts
from ..exceptions import BatchExecutionError, TransactionRolledBackError
from .state import TransactionOutcome

T = TypeVar("T")


class TransactionManager:
    """事务管理器

    使用示例:
        from ysql.db import transaction_manager as tm

        # 上下文管理器
        with tm.transaction():
            execute_batch("UPDATE account SET balance = balance - ? WHERE id = ?", [(100, 1)])
            execute_batch("UPDATE account SET balance = balance + ? WHERE id = ?", [(100, 2)])

        # 装饰器
        @tm.transactional()
        def transfer(src, dst, amount):
            ...

        # 嵌套：内层被吸收，外层统一提交
        with tm.transaction():
            transfer(1, 2, 100)
            if overdrawn():
                tm.set_rollback_only()   # 外层结束时回滚
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    # ==================== 状态访问 ====================

    @property
    def nesting_level(self) -> int:
        """当前事务嵌套层级"""
        ctx = get_current_context()
        return ctx.level if ctx is not None else 0

    def in_transaction(self) -> bool:
        """当前是否在事务中"""
        return self.nesting_level > 0

    def is_rollback_only(self) -> bool:
        """当前事务是否已被标记为回滚"""
        return require_context().rollback.get()

    def set_rollback_only(self) -> None:
        """标记当前事务在最外层结束时回滚"""
        require_context().rollback.set(True)

    # ==================== 事务入口 ====================

    @contextmanager
    def transaction(self) -> Generator[ExecutionContext, None, None]:
        """开启事务（已在事务中时加入外层事务）

        Raises:
            NoActiveConnectionError: 不在连接作用域内
            TransactionRolledBackError: 事务体抛出异常，已整体回滚
        """
        ctx = require_context().nested()
        with bind_context(ctx):
            if ctx.level > 1:
                logger.debug(f"加入现有事务 (level={ctx.level})")
                yield ctx
                return

            con = ctx.connection
            auto_commit = get_autocommit(con)
            set_autocommit(con, False)
            logger.debug("事务开始")
            try:
                yield ctx
            except BatchExecutionError as e:
                report_update_counts(e)
                report_exception_chain(e)
                self._throw_rollback(ctx, e)
            except Exception as e:
                if is_driver_error(e):
                    report_exception_chain(e)
                self._throw_rollback(ctx, e)
            except BaseException:
                ctx.rollback.set(True)
                raise
            finally:
                self._finish(ctx, auto_commit)

    def with_transaction(self, func: Callable[[], T]) -> T:
        """在事务中执行 func，返回其结果"""
        with self.transaction():
            return func()

    def transactional(self):
        """事务装饰器

        使用示例:
            @tm.transactional()
            def create_order(order):
                execute_batch(INSERT_ORDER, [order.values()])
        """
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            @wraps(func)
            def wrapper(*args, **kwargs) -> T:
                with self.transaction():
                    return func(*args, **kwargs)
            return wrapper

        return decorator

    # ==================== 内部方法 ====================

    def _throw_rollback(self, ctx: ExecutionContext, error: Exception) -> None:
        ctx.rollback.set(True)
        logger.debug(f"事务体异常，标记回滚: {error!r}")
        raise TransactionRolledBackError(error) from error

    def _finish(self, ctx: ExecutionContext, auto_commit: Any) -> None:
        """按回滚标记提交或回滚，然后复位标记并恢复自动提交设置"""
        con = ctx.connection
        outcome = TransactionOutcome.ROLLED_BACK if ctx.rollback.get() else TransactionOutcome.COMMITTED
        try:
            if outcome is TransactionOutcome.ROLLED_BACK:
                con.rollback()
            else:
                con.commit()
            logger.debug(f"事务结束: {outcome.value}")
        finally:
            try:
                ctx.rollback.set(False)
            finally:
                set_autocommit(con, auto_commit)


# 全局单例
transaction_manager = TransactionManager()


def transaction():
    """开启事务（见 TransactionManager.transaction）"""
    return transaction_manager.transaction()


def with_transaction(func: Callable[[], T]) -> T:
    """在事务中执行 func（见 TransactionManager.with_transaction）"""
    return transaction_manager.with_transaction(func)


def transactional():
    """事务装饰器（见 TransactionManager.transactional）"""
    return transaction_manager.transactional()
