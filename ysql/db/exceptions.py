"""数据库访问异常类

定义连接、语句执行与事务管理相关的异常层次结构
"""

from typing import Any, List, Optional, Sequence


class YsqlError(Exception):
    """ysql 错误基类

    所有 ysql 抛出的异常都继承自此类
    """
    pass


class ConfigurationError(YsqlError, ValueError):
    """配置错误

    连接描述不匹配任何已知形式时抛出，此时不会尝试建立连接
    """
    pass


class NameNotBoundError(ConfigurationError):
    """目录查找失败

    按名称在命名目录中查找数据源，但该名称未绑定时抛出
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"名称 '{name}' 未绑定数据源")


class NoActiveConnectionError(YsqlError):
    """没有活动连接

    在连接作用域之外执行语句或开启事务时抛出
    """

    def __init__(self, message: str = "当前没有活动的数据库连接"):
        super().__init__(message)


class InvalidArgumentError(YsqlError, ValueError):
    """参数形状错误

    调用参数不符合约定（如查询参数不是以 SQL 开头的列表）时抛出，此时不会调用驱动
    """
    pass


class DriverError(YsqlError):
    """驱动错误

    包装驱动在创建游标、执行、取数过程中抛出的异常，原始异常保存在 __cause__ 中

    Attributes:
        sql_state: 驱动提供的 SQLSTATE（可能为 None）
        error_code: 驱动提供的厂商错误码（可能为 None）
    """

    def __init__(
        self,
        message: str,
        sql_state: Optional[str] = None,
        error_code: Any = None
    ):
        self.sql_state = sql_state
        self.error_code = error_code
        super().__init__(message)

    @classmethod
    def from_driver_error(cls, error: BaseException, **kwargs) -> "DriverError":
        """从驱动原始异常构建，复制其 SQLSTATE 与错误码"""
        from .diagnostics import error_code_of, sql_state_of

        return cls(
            str(error),
            sql_state=sql_state_of(error),
            error_code=error_code_of(error),
            **kwargs
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({str(self)!r}, "
            f"sql_state={self.sql_state!r}, error_code={self.error_code!r})"
        )


class BatchExecutionError(DriverError):
    """批量执行部分失败

    Attributes:
        update_counts: 各条语句的执行结果，失败的语句记为 EXECUTE_FAILED
    """

    def __init__(
        self,
        message: str,
        sql_state: Optional[str] = None,
        error_code: Any = None,
        update_counts: Sequence[int] = ()
    ):
        self.update_counts: List[int] = list(update_counts)
        super().__init__(message, sql_state=sql_state, error_code=error_code)


class TransactionError(YsqlError):
    """事务错误基类"""
    pass


class TransactionRolledBackError(TransactionError):
    """事务已回滚

    事务体内发生任何异常后，最外层事务回滚并抛出此异常，原始异常保存在 __cause__ 中。
    这是唯一会穿过事务边界的异常类型。
    """

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"transaction rolled back: {cause}")
