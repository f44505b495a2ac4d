"""SQLite 数据库初始化

PRAGMA 配置 + 任务/运行日志表 + 业务源数据表 DDL + 索引。
业务源数据表由各 CRUD 服务写入，引擎只读；此处建表保证空库可用。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id                  TEXT PRIMARY KEY,
    natural_key              TEXT NOT NULL,
    type                     TEXT NOT NULL,
    scope                    TEXT NOT NULL,
    status                   TEXT NOT NULL DEFAULT 'pending',
    related_project_id       TEXT,
    related_collaboration_id TEXT,
    related_talent_id        TEXT,
    title                    TEXT NOT NULL DEFAULT '',
    description              TEXT NOT NULL DEFAULT '',
    due_date                 TEXT,
    count                    INTEGER,
    last_action              TEXT NOT NULL DEFAULT 'created',
    created_at               TEXT NOT NULL,
    updated_at               TEXT NOT NULL,
    completed_at             TEXT
);
"""

_TASKS_INDEXES = [
    # 自然键唯一约束：并发 upsert 不会产生重复记录
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_tasks_natural_key ON tasks(natural_key);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_type_status ON tasks(type, status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_project ON tasks(related_project_id, status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
]

# run_logs 表 DDL（append-only）
_RUN_LOGS_DDL = """
CREATE TABLE IF NOT EXISTS run_logs (
    run_id          TEXT PRIMARY KEY,
    trigger         TEXT NOT NULL,
    started_at      TEXT NOT NULL,
    finished_at     TEXT NOT NULL,
    duration_ms     INTEGER NOT NULL DEFAULT 0,
    overall_status  TEXT NOT NULL,
    per_rule        TEXT NOT NULL DEFAULT '[]',
    error           TEXT
);
"""

_RUN_LOGS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_run_logs_started_at ON run_logs(started_at DESC);",
]

# 业务源数据表 DDL
_SOURCE_DDL = [
    """
    CREATE TABLE IF NOT EXISTS projects (
        id      TEXT PRIMARY KEY,
        name    TEXT NOT NULL DEFAULT '',
        status  TEXT NOT NULL DEFAULT ''
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS collaborations (
        id                    TEXT PRIMARY KEY,
        project_id            TEXT NOT NULL,
        talent_id             TEXT,
        talent_name           TEXT NOT NULL DEFAULT '',
        status                TEXT NOT NULL DEFAULT '',
        planned_release_date  TEXT,
        publish_date          TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS works (
        id                    TEXT PRIMARY KEY,
        collaboration_id      TEXT NOT NULL,
        project_id            TEXT,
        t7_stats_updated_at   TEXT,
        t21_stats_updated_at  TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS talents (
        id                        TEXT PRIMARY KEY,
        nickname                  TEXT NOT NULL DEFAULT '',
        performance_last_updated  TEXT,
        prices                    TEXT NOT NULL DEFAULT '[]'
    );
    """,
]

_SOURCE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_projects_status ON projects(status);",
    "CREATE INDEX IF NOT EXISTS idx_collaborations_project ON collaborations(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_collaborations_status ON collaborations(status);",
    "CREATE INDEX IF NOT EXISTS idx_works_project ON works(project_id);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    await conn.execute(_TASKS_DDL)
    await conn.execute(_RUN_LOGS_DDL)
    for ddl in _SOURCE_DDL:
        await conn.execute(ddl)

    for idx_sql in _TASKS_INDEXES + _RUN_LOGS_INDEXES + _SOURCE_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效"""
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
