"""数据库访问模块

在 DB-API 2.0 驱动之上提供：
- 连接作用域：按连接描述打开连接，在调用链上隐式传递，退出时关闭
- 嵌套事务：内层事务被最外层吸收，共享回滚标记
- 语句执行：批量执行与按行处理的查询
- 标识符：分隔符包裹与命名策略
- 诊断：驱动异常链与批量执行结果的输出

快速开始:
    from ysql.db import with_connection, transaction, execute_batch, execute_query

    descriptor = {"classname": "pysqlite", "subprotocol": "sqlite", "subname": "///app.db"}

    def work():
        with transaction():
            execute_batch("INSERT INTO fruit (name) VALUES (?)", [("apple",), ("pear",)])
        return execute_query(["SELECT name FROM fruit"], lambda rows: [r["name"] for r in rows])

    names = with_connection(descriptor, work)
"""

from .exceptions import (
    YsqlError,
    ConfigurationError,
    NameNotBoundError,
    NoActiveConnectionError,
    InvalidArgumentError,
    DriverError,
    BatchExecutionError,
    TransactionError,
    TransactionRolledBackError,
)

from .context import (
    RollbackFlag,
    ExecutionContext,
    get_current_context,
    require_context,
    bind_context,
    current_connection,
    require_connection,
    nesting_level,
    get_rollback,
    set_rollback,
)

from .identifiers import (
    NamingStrategy,
    Stropping,
    STROPPING_PRESETS,
    stropping_preset,
    escape_delimiter,
    current_naming_strategy,
    current_stropping,
    use_naming_strategy,
    use_stropping,
    stropping,
    naming_strategy,
    with_stropping,
    with_naming_strategy,
    as_str,
    as_identifier,
    as_key,
)

from .datasource import (
    DataSource,
    EngineDataSource,
    as_datasource,
)

from .directory import (
    INITIAL_CONTEXT_FACTORY,
    NamingDirectory,
    naming_directory,
    resolve_directory,
)

from .descriptors import (
    ConnectionDescriptor,
    FactoryDescriptor,
    DriverManagerDescriptor,
    DataSourceDescriptor,
    CredentialsDataSourceDescriptor,
    DirectoryDescriptor,
    parse_descriptor,
)

from .connection import (
    get_connection,
    connection_scope,
    with_connection,
    get_autocommit,
    set_autocommit,
)

from .transaction import (
    TransactionOutcome,
    TransactionManager,
    transaction_manager,
    transaction,
    with_transaction,
    transactional,
)

from .statements import (
    execute_batch,
    execute_query,
)

from .diagnostics import (
    SUCCESS_NO_INFO,
    EXECUTE_FAILED,
    LoggingDiagnosticSink,
    StreamDiagnosticSink,
    set_default_diagnostic_sink,
    get_diagnostic_sink,
    diagnostic_sink,
    format_sql_exception,
    format_update_counts,
    report_exception_chain,
    report_update_counts,
)

__all__ = [
    # 异常
    "YsqlError",
    "ConfigurationError",
    "NameNotBoundError",
    "NoActiveConnectionError",
    "InvalidArgumentError",
    "DriverError",
    "BatchExecutionError",
    "TransactionError",
    "TransactionRolledBackError",
    # 执行上下文
    "RollbackFlag",
    "ExecutionContext",
    "get_current_context",
    "require_context",
    "bind_context",
    "current_connection",
    "require_connection",
    "nesting_level",
    "get_rollback",
    "set_rollback",
    # 标识符
    "NamingStrategy",
    "Stropping",
    "STROPPING_PRESETS",
    "stropping_preset",
    "escape_delimiter",
    "current_naming_strategy",
    "current_stropping",
    "use_naming_strategy",
    "use_stropping",
    "stropping",
    "naming_strategy",
    "with_stropping",
    "with_naming_strategy",
    "as_str",
    "as_identifier",
    "as_key",
    # 数据源与目录
    "DataSource",
    "EngineDataSource",
    "as_datasource",
    "INITIAL_CONTEXT_FACTORY",
    "NamingDirectory",
    "naming_directory",
    "resolve_directory",
    # 连接
    "ConnectionDescriptor",
    "FactoryDescriptor",
    "DriverManagerDescriptor",
    "DataSourceDescriptor",
    "CredentialsDataSourceDescriptor",
    "DirectoryDescriptor",
    "parse_descriptor",
    "get_connection",
    "connection_scope",
    "with_connection",
    "get_autocommit",
    "set_autocommit",
    # 事务
    "TransactionOutcome",
    "TransactionManager",
    "transaction_manager",
    "transaction",
    "with_transaction",
    "transactional",
    # 语句
    "execute_batch",
    "execute_query",
    # 诊断
    "SUCCESS_NO_INFO",
    "EXECUTE_FAILED",
    "LoggingDiagnosticSink",
    "StreamDiagnosticSink",
    "set_default_diagnostic_sink",
    "get_diagnostic_sink",
    "diagnostic_sink",
    "format_sql_exception",
    "format_update_counts",
    "report_exception_chain",
    "report_update_counts",
]
