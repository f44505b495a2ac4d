"""配置模块 -- 可通过环境变量覆盖

数据库路径通过 getter 读取（测试可随时改写环境变量）；
引擎运行参数（时区、扫描间隔、日志分页）由 EngineConfig 统一加载。
"""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from pydantic import BaseModel, Field, field_validator

log = structlog.get_logger()

# 日志查询默认条数
DEFAULT_LOG_LIMIT: int = 10

# 日志查询单次上限
MAX_LOG_LIMIT: int = 100


def _get_base_dir() -> Path:
    """获取 data 基础目录"""
    return Path(os.environ.get("TASKCENTER_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径（任务、运行日志与业务源数据共用同一库）"""
    return os.environ.get(
        "TASKCENTER_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskcenter.db"),
    )


class EngineConfig(BaseModel):
    """任务引擎运行配置

    环境变量:
        TASKCENTER_TIMEZONE: 计算“今天”所用的时区（默认 Asia/Shanghai）
        TASKCENTER_SCAN_INTERVAL_S: 进程内定时扫描间隔（秒，0 表示关闭）
        TASKCENTER_LOG_LIMIT: getLogs 默认返回条数
    """

    timezone: str = Field(default="Asia/Shanghai", description="业务日期时区")
    scan_interval_s: int = Field(default=3600, ge=0, description="定时扫描间隔（秒）")
    log_limit: int = Field(
        default=DEFAULT_LOG_LIMIT,
        ge=1,
        le=MAX_LOG_LIMIT,
        description="运行日志默认分页大小",
    )

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {value}") from e
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _int_from_env(env_var: str, fallback: int) -> int | None:
    val = os.environ.get(env_var)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        log.warning(
            "invalid_int_config",
            env_var=env_var,
            value=val,
            fallback=fallback,
        )
        return None


def load_engine_config() -> EngineConfig:
    """从环境变量加载引擎配置

    数值型环境变量无法解析时记录警告并使用默认值，不阻塞启动；
    未知时区由校验直接拒绝。
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKCENTER_TIMEZONE"):
        kwargs["timezone"] = val

    interval = _int_from_env("TASKCENTER_SCAN_INTERVAL_S", 3600)
    if interval is not None:
        kwargs["scan_interval_s"] = interval

    limit = _int_from_env("TASKCENTER_LOG_LIMIT", DEFAULT_LOG_LIMIT)
    if limit is not None:
        kwargs["log_limit"] = limit

    return EngineConfig(**kwargs)
