"""语句执行测试

测试 execute_batch 与 execute_query：
1. 参数绑定、影响行数与生成主键
2. 批量执行失败时的逐条结果与回滚
3. 查询参数校验、结果行的键与按需取数
4. 游标在各种退出路径下都被关闭
"""

import logging

import pytest

from ysql.db import (
    BatchExecutionError,
    DriverError,
    EXECUTE_FAILED,
    InvalidArgumentError,
    NoActiveConnectionError,
    SUCCESS_NO_INFO,
    TransactionRolledBackError,
    execute_batch,
    execute_query,
    naming_strategy,
    transaction,
    with_connection,
)
from ysql.db.statements import make_keys_unique

from tests.helpers import FakeConnection, FakeDriverError, factory_descriptor


INSERT = "INSERT INTO fruit (name, cost) VALUES (?, ?)"
SELECT = "SELECT id, name FROM fruit"


def run(connection, func):
    return with_connection(factory_descriptor(connection), func)


# ==================== execute_batch ====================

class TestExecuteBatch:
    """批量执行测试"""

    def test_counts(self):
        """测试逐组执行并返回影响行数"""
        con = FakeConnection()
        counts = run(con, lambda: execute_batch(INSERT, [("apple", 3), ["pear", 2]]))

        assert counts == [1, 1]
        assert con.executed == [(INSERT, ("apple", 3)), (INSERT, ("pear", 2))]
        assert len(con.cursors) == 1
        assert con.cursors[0].closed

    def test_runs_in_transaction(self):
        """测试整批在一个事务中执行"""
        con = FakeConnection()
        run(con, lambda: execute_batch(INSERT, [("apple", 3), ("pear", 2)]))

        assert con.events == [
            ("set_autocommit", False),
            ("commit",),
            ("set_autocommit", True),
            ("close",),
        ]

    def test_absorbed_by_outer_transaction(self):
        """测试在外层事务中执行时不单独提交"""
        con = FakeConnection()

        def work():
            with transaction():
                execute_batch(INSERT, [("apple", 3)])
                execute_batch(INSERT, [("pear", 2)])

        run(con, work)
        assert con.count("commit") == 1
        assert con.count("set_autocommit") == 2

    def test_no_params(self):
        """测试没有参数组时不带参数执行一次"""
        con = FakeConnection(rowcounts={"DELETE FROM fruit": 4})
        assert run(con, lambda: execute_batch("DELETE FROM fruit")) == [4]
        assert con.executed == [("DELETE FROM fruit", None)]

    def test_no_row_count(self):
        """测试驱动没有给出影响行数"""
        con = FakeConnection(rowcounts={"CREATE TABLE t (id INT)": -1})
        assert run(con, lambda: execute_batch("CREATE TABLE t (id INT)")) == [SUCCESS_NO_INFO]

    def test_return_keys(self):
        """测试返回第一行生成主键"""
        con = FakeConnection(generate_keys=True)
        key = run(con, lambda: execute_batch(INSERT, [("apple", 3), ("pear", 2)], return_keys=True))

        assert key == {"generated_key": 1}
        assert len(con.executed) == 2

    def test_return_keys_outbound(self):
        """测试生成主键的键名经过 outbound 命名策略"""
        con = FakeConnection(generate_keys=True)

        def work():
            with naming_strategy(outbound=str.upper):
                return execute_batch(INSERT, [("apple", 3)], return_keys=True)

        assert run(con, work) == {"GENERATED_KEY": 1}

    def test_return_keys_none(self):
        """测试驱动没有生成主键"""
        con = FakeConnection()
        assert run(con, lambda: execute_batch(INSERT, [("apple", 3)], return_keys=True)) is None

    def test_requires_connection(self):
        """测试作用域外执行"""
        with pytest.raises(NoActiveConnectionError):
            execute_batch(INSERT, [("apple", 3)])

    def test_partial_failure(self, diagnostics):
        """测试第二组失败时回滚，并携带逐条结果"""
        driver_error = FakeDriverError("UNIQUE constraint failed", sqlstate="23505", errno=1062)

        def fail_on(sql, params):
            return driver_error if params == ("pear", 2) else None

        con = FakeConnection(fail_on=fail_on)

        with pytest.raises(TransactionRolledBackError) as exc_info:
            run(con, lambda: execute_batch(INSERT, [("apple", 3), ("pear", 2), ("fig", 1)]))

        batch_error = exc_info.value.__cause__
        assert isinstance(batch_error, BatchExecutionError)
        assert batch_error.update_counts == [1, EXECUTE_FAILED]
        assert batch_error.sql_state == "23505"
        assert batch_error.error_code == 1062
        assert batch_error.__cause__ is driver_error

        assert len(con.executed) == 2
        assert con.count("rollback") == 1
        assert con.count("commit") == 0
        assert con.cursors[0].closed

        assert diagnostics[0] == "Update counts:\n Statement 0: 1\n Statement 1: EXECUTE_FAILED"
        assert diagnostics[1].startswith("BatchExecutionError:\n Message: UNIQUE constraint failed")
        assert diagnostics[2] == (
            "FakeDriverError:\n Message: UNIQUE constraint failed\n SQLState: 23505\n Error Code: 1062"
        )

    def test_cursor_error(self):
        """测试创建游标失败"""
        con = FakeConnection()
        con.fail_cursor = FakeDriverError("connection closed")

        with pytest.raises(DriverError) as exc_info:
            run(con, lambda: execute_batch(INSERT, [("apple", 3)]))
        assert isinstance(exc_info.value.__cause__, FakeDriverError)
        assert con.events == [("close",)]


# ==================== execute_query ====================

class TestExecuteQuery:
    """查询测试"""

    @pytest.mark.parametrize("sql_params", [
        "SELECT 1",
        [],
        (),
        [1, 2],
        {"sql": "SELECT 1"},
        None,
    ])
    def test_invalid_sql_params(self, sql_params):
        """测试 sql_params 形状不正确时不调用驱动"""
        con = FakeConnection()

        with pytest.raises(InvalidArgumentError):
            run(con, lambda: execute_query(sql_params, list))
        assert con.executed == []
        assert con.cursors == []

    def test_invalid_without_connection(self):
        """测试参数校验先于连接检查"""
        with pytest.raises(InvalidArgumentError) as exc_info:
            execute_query("SELECT 1", list)
        assert "SELECT 1" in str(exc_info.value)

    def test_rows(self):
        """测试结果行为字典，参数按位置绑定"""
        con = FakeConnection(results={
            "SELECT id, name FROM fruit WHERE cost < ?": (["id", "name"], [(1, "apple"), (2, "pear")]),
        })

        rows = run(con, lambda: execute_query(["SELECT id, name FROM fruit WHERE cost < ?", 3], list))

        assert rows == [{"id": 1, "name": "apple"}, {"id": 2, "name": "pear"}]
        assert con.executed == [("SELECT id, name FROM fruit WHERE cost < ?", (3,))]
        assert con.count("set_autocommit") == 0

    def test_no_params(self):
        """测试只有 SQL 时不带参数执行"""
        con = FakeConnection(results={SELECT: (["id", "name"], [])})
        assert run(con, lambda: execute_query((SELECT,), list)) == []
        assert con.executed == [(SELECT, None)]

    def test_lazy_fetch(self):
        """测试结果按需分批取出"""
        data = [(i, f"fruit-{i}") for i in range(5)]
        con = FakeConnection(results={SELECT: (["id", "name"], data)}, arraysize=2)

        def first_row(rows):
            return next(rows)

        assert run(con, lambda: execute_query([SELECT], first_row)) == {"id": 0, "name": "fruit-0"}
        assert con.fetch_sizes == [2]

    def test_outbound_keys(self):
        """测试结果键经过 outbound 命名策略"""
        con = FakeConnection(results={SELECT: (["ID", "NAME"], [(1, "apple")])})

        def work():
            with naming_strategy(outbound=str.lower):
                return execute_query([SELECT], list)

        assert run(con, work) == [{"id": 1, "name": "apple"}]

    def test_duplicate_columns(self):
        """测试重复列名加后缀"""
        sql = "SELECT a.id, b.id, c.id FROM a, b, c"
        con = FakeConnection(results={sql: (["id", "id", "id"], [(1, 2, 3)])})

        assert run(con, lambda: execute_query([sql], list)) == [{"id": 1, "id_2": 2, "id_3": 3}]

    def test_no_result_set(self):
        """测试没有结果集的语句"""
        con = FakeConnection()
        assert run(con, lambda: execute_query(["UPDATE fruit SET cost = 1"], list)) == []

    def test_cursor_closed_after_handler(self):
        """测试处理函数返回后关闭游标"""
        con = FakeConnection(results={SELECT: (["id", "name"], [(1, "apple")])})

        def handler(rows):
            assert not con.cursors[0].closed
            return len(list(rows))

        assert run(con, lambda: execute_query([SELECT], handler)) == 1
        assert con.cursors[0].closed

    def test_handler_error_not_wrapped(self):
        """测试处理函数的异常原样传播，游标仍被关闭"""
        con = FakeConnection(results={SELECT: (["id", "name"], [(1, "apple")])})
        error = LookupError("handler failed")

        def handler(rows):
            raise error

        with pytest.raises(LookupError) as exc_info:
            run(con, lambda: execute_query([SELECT], handler))

        assert exc_info.value is error
        assert con.cursors[0].closed
        assert con.close_count == 1

    def test_execute_error_wrapped(self):
        """测试驱动执行失败包装为 DriverError"""
        driver_error = FakeDriverError("no such table: fruit", sqlstate="42P01")
        con = FakeConnection(fail_on=lambda sql, params: driver_error)

        with pytest.raises(DriverError) as exc_info:
            run(con, lambda: execute_query([SELECT], list))

        assert exc_info.value.__cause__ is driver_error
        assert exc_info.value.sql_state == "42P01"
        assert con.cursors[0].closed

    def test_fetch_error_wrapped(self):
        """测试取数失败包装为 DriverError"""
        con = FakeConnection(results={SELECT: (["id", "name"], [(1, "apple")])})
        con.fail_fetch = FakeDriverError("connection reset")

        with pytest.raises(DriverError):
            run(con, lambda: execute_query([SELECT], list))
        assert con.cursors[0].closed

    def test_requires_connection(self):
        """测试作用域外查询"""
        with pytest.raises(NoActiveConnectionError):
            execute_query([SELECT], list)


class TestStatementLogging:
    """SQL 日志测试"""

    def test_statements_logged(self, caplog):
        """测试语句以 DEBUG 级别写入 ysql.db.sql 日志器"""
        con = FakeConnection()

        def work():
            execute_batch(INSERT, [("apple", 3), ("pear", 2)])
            execute_query([SELECT], list)

        with caplog.at_level(logging.DEBUG, logger="ysql.db.sql"):
            run(con, work)

        messages = [record.getMessage() for record in caplog.records if record.name == "ysql.db.sql"]
        assert messages == [
            f"执行语句: {INSERT} (参数组数=2)",
            f"执行查询: {SELECT}",
        ]


class TestMakeKeysUnique:
    """列名去重测试"""

    def test_unique(self):
        """测试无重复时原样返回"""
        assert make_keys_unique(["id", "name"]) == ["id", "name"]

    def test_suffix(self):
        """测试重复列名依次加后缀"""
        assert make_keys_unique(["id", "name", "id", "id"]) == ["id", "name", "id_2", "id_3"]
