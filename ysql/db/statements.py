"""语句执行

在当前连接上执行 SQL：
- execute_batch: 同一条语句按多组参数依次执行（在事务中）
- execute_query: 执行查询并把逐行产出的结果交给处理函数

参数一律按位置绑定，占位符写法取决于驱动的 paramstyle（sqlite3 为 ?，psycopg2 / PyMySQL 为 %s）。

使用示例:
    from ysql.db import execute_batch, execute_query

    counts = execute_batch(
        "INSERT INTO fruit (name, cost) VALUES (?, ?)",
        [("apple", 3), ("banana", 2)],
    )                                   # -> [1, 1]

    names = execute_query(
        ["SELECT name FROM fruit WHERE cost < ?", 3],
        lambda rows: [row["name"] for row in rows],
    )
"""

from __future__ import annotations

from contextlib import closing, contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, TypeVar, Union

from ysql.log import sql_logger as logger

from .context import require_connection
from .diagnostics import EXECUTE_FAILED, SUCCESS_NO_INFO
from .exceptions import BatchExecutionError, DriverError, InvalidArgumentError, YsqlError
from .identifiers import as_key
from .transaction import with_transaction

T = TypeVar("T")

Row = Dict[str, Any]


@contextmanager
def _driver_errors():
    """把驱动调用抛出的异常包装为 DriverError"""
    try:
        yield
    except YsqlError:
        raise
    except Exception as e:
        raise DriverError.from_driver_error(e) from e


@contextmanager
def _cursor(con: Any) -> Iterator[Any]:
    with _driver_errors():
        cursor = con.cursor()
    try:
        yield cursor
    finally:
        with _driver_errors():
            cursor.close()


def _execute(cursor: Any, sql: str, params: Sequence[Any]) -> None:
    if params:
        cursor.execute(sql, tuple(params))
    else:
        cursor.execute(sql)


def _row_count(cursor: Any) -> int:
    count = cursor.rowcount
    if count is None or count < 0:
        return SUCCESS_NO_INFO
    return count


def _generated_key_row(cursor: Any) -> Optional[Row]:
    key = getattr(cursor, "lastrowid", None)
    if key is None:
        return None
    return {as_key("generated_key"): key}


def make_keys_unique(keys: Iterable[str]) -> List[str]:
    """重复列名依次加后缀：id, id_2, id_3"""
    seen: Dict[str, int] = {}
    unique = []
    for key in keys:
        if key in seen:
            seen[key] += 1
            unique.append(f"{key}_{seen[key]}")
        else:
            seen[key] = 1
            unique.append(key)
    return unique


def _run_batch(
    cursor: Any,
    sql: str,
    param_groups: List[Sequence[Any]],
    return_keys: bool
) -> Union[List[int], Optional[Row]]:
    counts: List[int] = []
    key_row = None
    for params in param_groups:
        try:
            _execute(cursor, sql, params)
        except Exception as e:
            counts.append(EXECUTE_FAILED)
            raise BatchExecutionError.from_driver_error(e, update_counts=counts) from e
        counts.append(_row_count(cursor))
        if return_keys and key_row is None:
            key_row = _generated_key_row(cursor)
    return key_row if return_keys else counts


def execute_batch(
    sql: str,
    param_groups: Iterable[Sequence[Any]] = (),
    return_keys: bool = False
) -> Union[List[int], Optional[Row]]:
    """按多组参数执行同一条语句

    整批在事务中执行（已在事务中时被外层吸收）。没有参数组时不带参数执行一次。

    Args:
        sql: SQL 语句
        param_groups: 参数组序列，每组按位置绑定
        return_keys: 是否返回生成的主键

    Returns:
        return_keys 为 False 时返回每组参数的影响行数（驱动未提供时为 SUCCESS_NO_INFO），
        为 True 时返回第一行生成主键 ``{"generated_key": ...}``（驱动未提供时为 None）

    Raises:
        NoActiveConnectionError: 不在连接作用域内
        TransactionRolledBackError: 执行失败，事务已回滚（原因为 BatchExecutionError / DriverError）
    """
    con = require_connection()
    groups = [tuple(group) for group in param_groups] or [()]
    logger.debug(f"执行语句: {sql} (参数组数={len(groups)})")
    with _cursor(con) as cursor:
        return with_transaction(lambda: _run_batch(cursor, sql, groups, return_keys))


def _result_rows(cursor: Any) -> Iterator[Row]:
    description = cursor.description
    keys = make_keys_unique(as_key(column[0]) for column in description or ())

    def _rows() -> Iterator[Row]:
        if not keys:
            return
        while True:
            with _driver_errors():
                batch = cursor.fetchmany()
            if not batch:
                return
            for values in batch:
                yield dict(zip(keys, values))

    return _rows()


def _check_sql_params(sql_params: Any) -> None:
    if (
        not isinstance(sql_params, (list, tuple))
        or not sql_params
        or not isinstance(sql_params[0], str)
    ):
        raise InvalidArgumentError(
            f"sql_params 应为 [sql, *params] 形式的列表，实际为 "
            f"{type(sql_params).__name__} {sql_params!r}"
        )


def execute_query(sql_params: Sequence[Any], row_handler: Callable[[Iterator[Row]], T]) -> T:
    """执行查询，把结果行交给 row_handler 处理

    结果行是按需产出的字典（键为经过 outbound 命名策略的列名），只在 row_handler 执行期间有效；
    row_handler 返回或抛出异常后关闭结果与游标。

    Args:
        sql_params: ``[sql, 参数1, 参数2, ...]``
        row_handler: 接收结果行迭代器的函数

    Returns:
        row_handler 的返回值

    Raises:
        InvalidArgumentError: sql_params 形状不正确（不会调用驱动）
        NoActiveConnectionError: 不在连接作用域内
        DriverError: 驱动执行或取数失败
    """
    _check_sql_params(sql_params)
    sql, params = sql_params[0], tuple(sql_params[1:])
    con = require_connection()
    logger.debug(f"执行查询: {sql}")
    with _cursor(con) as cursor:
        with _driver_errors():
            _execute(cursor, sql, params)
        with closing(_result_rows(cursor)) as rows:
            return row_handler(rows)
