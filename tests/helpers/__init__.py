"""测试辅助工具"""

from .fake_driver import (
    FakeDriverError,
    FakeCursor,
    FakeConnection,
    FakeDataSource,
    FakeMySQLConnection,
    factory_descriptor,
)

__all__ = [
    "FakeDriverError",
    "FakeCursor",
    "FakeConnection",
    "FakeDataSource",
    "FakeMySQLConnection",
    "factory_descriptor",
]
