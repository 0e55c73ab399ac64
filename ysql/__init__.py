"""
ysql - DB-API 数据库访问工具库

提供连接作用域、嵌套事务、语句执行、标识符转换、配置与日志等基础功能
"""

from .version import __version__, __author__, __description__

# 导出数据库访问
from .db import (
    # 连接
    get_connection,
    connection_scope,
    with_connection,
    current_connection,
    require_connection,
    # 事务
    transaction_manager,
    transaction,
    with_transaction,
    transactional,
    get_rollback,
    set_rollback,
    # 语句
    execute_batch,
    execute_query,
    # 标识符
    as_identifier,
    as_key,
    stropping,
    naming_strategy,
    with_stropping,
    with_naming_strategy,
    # 异常
    YsqlError,
    ConfigurationError,
    NoActiveConnectionError,
    InvalidArgumentError,
    DriverError,
    BatchExecutionError,
    TransactionRolledBackError,
)

# 导出日志
from .log import get_logger, setup_logger, setup_root_logger

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "get_connection",
    "connection_scope",
    "with_connection",
    "current_connection",
    "require_connection",
    "transaction_manager",
    "transaction",
    "with_transaction",
    "transactional",
    "get_rollback",
    "set_rollback",
    "execute_batch",
    "execute_query",
    "as_identifier",
    "as_key",
    "stropping",
    "naming_strategy",
    "with_stropping",
    "with_naming_strategy",
    "YsqlError",
    "ConfigurationError",
    "NoActiveConnectionError",
    "InvalidArgumentError",
    "DriverError",
    "BatchExecutionError",
    "TransactionRolledBackError",
    "get_logger",
    "setup_logger",
    "setup_root_logger",
]
