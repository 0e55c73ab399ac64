"""日志模块

提供 ysql 的日志配置与获取：
- get_logger: 按模块名获取日志记录器
- setup_logger / setup_root_logger: 控制台与轮转文件输出

使用示例:
    from ysql.log import setup_root_logger, get_logger

    setup_root_logger(level="DEBUG", log_file="logs/ysql.log")
    logger = get_logger()
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    sql_logger,
    transaction_logger,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "sql_logger",
    "transaction_logger",
    "logger",
    "get_logger",
]
