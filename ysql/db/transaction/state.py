"""事务结果枚举"""

from enum import Enum


class TransactionOutcome(str, Enum):
    """最外层事务结束时的结果

    回滚标记被设置（包括事务体抛出异常）时为 ROLLED_BACK，否则为 COMMITTED。
    """

    COMMITTED = "committed"
    """已提交"""

    ROLLED_BACK = "rolled_back"
    """已回滚"""
