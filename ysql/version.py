"""版本信息"""

__version__ = "0.1.0"
__author__ = "ysql"
__description__ = "DB-API 连接作用域、嵌套事务与语句执行工具库"
