"""事务管理模块

提供嵌套事务的吸收语义：
- 只有最外层事务真正关闭自动提交、提交或回滚，内层事务被吸收
- 回滚标记在同一连接作用域内共享，任意一层设置都会让最外层回滚
- 事务体抛出的异常在最外层被包装为 TransactionRolledBackError

使用示例:
    from ysql.db import transaction_manager as tm

    with tm.transaction():
        execute_batch(sql, rows)

    @tm.transactional()
    def create_user(data):
        ...
"""

from .state import TransactionOutcome
from .manager import (
    TransactionManager,
    transaction_manager,
    transaction,
    with_transaction,
    transactional,
)

__all__ = [
    "TransactionOutcome",
    "TransactionManager",
    "transaction_manager",
    "transaction",
    "with_transaction",
    "transactional",
]
