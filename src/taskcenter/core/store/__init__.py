"""Task Center Core Store -- SQLite 持久化实现

StoreGroup 是进程级共享的连接持有者：由网关 lifespan 或 CLI 显式创建、
显式关闭，并以引用方式传入各组件；发现连接断开时自动重建。
"""

from pathlib import Path

import aiosqlite
import structlog

from .run_log_store import SqliteRunLogStore
from .source_store import SqliteSourceReader
from .sqlite_init import init_db
from .task_store import SqliteTaskStore

log = structlog.get_logger()


async def open_connection(db_path: str) -> aiosqlite.Connection:
    """打开并初始化数据库连接（行以列名访问）"""
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    return conn


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection, db_path: str) -> None:
        self.db_path = db_path
        self._bind(conn)

    def _bind(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.run_log_store = SqliteRunLogStore(conn)
        self.source = SqliteSourceReader(conn)

    async def ping(self) -> bool:
        """检查连接是否可用"""
        try:
            cursor = await self.conn.execute("SELECT 1")
            await cursor.fetchone()
        except Exception:
            return False
        return True

    async def ensure_connected(self) -> None:
        """复用现有连接；连接失效时重新建立

        Raises:
            Exception: 数据库无法打开时向上抛出（由调用方判定为致命错误）
        """
        if await self.ping():
            return
        log.warning("db_connection_lost_reconnecting", db_path=self.db_path)
        try:
            await self.conn.close()
        except Exception:
            log.debug("db_connection_close_failed", db_path=self.db_path)
        conn = await open_connection(self.db_path)
        self._bind(conn)
        log.info("db_reconnected", db_path=self.db_path)

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    conn = await open_connection(db_path)
    return StoreGroup(conn=conn, db_path=db_path)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "open_connection",
    "SqliteTaskStore",
    "SqliteRunLogStore",
    "SqliteSourceReader",
    "init_db",
]
