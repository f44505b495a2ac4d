"""业务源数据模型（只读）

项目、合作、作品、达人由各自的 CRUD 服务维护，引擎只读取。
状态值沿用业务系统中的原始取值。
"""

from datetime import date

from pydantic import BaseModel, Field

# 参与扫描的项目状态
ACTIVE_PROJECT_STATUSES: tuple[str, ...] = ("执行中", "待结算")

# 已进入结算/收尾阶段的项目状态（不再提醒定案）
CLOSED_PROJECT_STATUSES: frozenset[str] = frozenset({"待结算", "已收款", "已终结"})

# 客户已定档：合作已排期但尚未发布
COLLAB_STATUS_SCHEDULED = "客户已定档"

# 达人报价已确认
PRICE_STATUS_CONFIRMED = "confirmed"


def parse_calendar_date(value: str | None) -> date | None:
    """将 ISO 日期/时间字符串解析为日历日期

    只比较日期部分，避免时区换算导致跨日误判。
    格式错误时抛出 ValueError，由扫描器记为规则错误。
    """
    if value is None or value == "":
        return None
    return date.fromisoformat(value[:10])


class Project(BaseModel):
    id: str
    name: str = ""
    status: str = ""


class Collaboration(BaseModel):
    id: str
    project_id: str
    talent_id: str | None = None
    talent_name: str = ""
    status: str = ""
    planned_release_date: str | None = None
    publish_date: str | None = None


class Work(BaseModel):
    id: str
    collaboration_id: str
    project_id: str | None = None
    t7_stats_updated_at: str | None = None
    t21_stats_updated_at: str | None = None


class TalentPrice(BaseModel):
    year: int
    month: int
    status: str = ""


class Talent(BaseModel):
    id: str
    nickname: str = ""
    performance_last_updated: str | None = None
    prices: list[TalentPrice] = Field(default_factory=list)
