"""系统级规则 -- 按固定节奏提醒维护达人数据

报价检查按“所属月份”判断：每月 2 日起为当月，1 日仍属上月。
节奏日之外保留的任务因此始终以其创建时的月份来判定是否已解决。
"""

from datetime import date, timedelta

from ..models.enums import TaskScope, TaskType
from ..models.source import PRICE_STATUS_CONFIRMED, Talent, parse_calendar_date
from ..models.task import TaskContent, natural_key
from ..store.protocols import SourceReader
from .base import Rule, TalentRoster

PERFORMANCE_STALE_DAYS = 7
PERFORMANCE_CADENCE_WEEKDAY = 0  # 周一
PRICE_CADENCE_DAY = 2


async def load_talent_roster(source: SourceReader, today: date) -> list[TalentRoster]:
    talents = await source.list_talents()
    return [TalentRoster(talents=talents, today=today)]


def _performance_stale(talent: Talent, today: date) -> bool:
    last = parse_calendar_date(talent.performance_last_updated)
    return last is None or (today - last).days > PERFORMANCE_STALE_DAYS


def _stale_performance_count(roster: TalentRoster) -> int:
    return sum(1 for t in roster.talents if _performance_stale(t, roster.today))


def _render_performance(roster: TalentRoster) -> TaskContent:
    count = _stale_performance_count(roster)
    return TaskContent(
        title="达人表现数据待更新",
        description=f"有 {count} 位达人的表现数据超过一周未更新。",
        count=count,
    )


def price_period(today: date) -> tuple[int, int]:
    """报价检查所属的 (年, 月)：节奏日之前仍按上月判断"""
    if today.day >= PRICE_CADENCE_DAY:
        return today.year, today.month
    last_month = today.replace(day=1) - timedelta(days=1)
    return last_month.year, last_month.month


def _has_confirmed_price(talent: Talent, year: int, month: int) -> bool:
    return any(
        p.year == year and p.month == month and p.status == PRICE_STATUS_CONFIRMED
        for p in talent.prices
    )


def _unconfirmed_price_count(roster: TalentRoster) -> int:
    year, month = price_period(roster.today)
    return sum(1 for t in roster.talents if not _has_confirmed_price(t, year, month))


def _render_price(roster: TalentRoster) -> TaskContent:
    year, month = price_period(roster.today)
    count = _unconfirmed_price_count(roster)
    return TaskContent(
        title="达人报价待更新",
        description=f"有 {count} 位达人缺少 {year}年{month}月 的已确认报价。",
        count=count,
    )


PERFORMANCE_UPDATE_RULE = Rule(
    type=TaskType.TALENT_PERFORMANCE_UPDATE_REMINDER,
    scope=TaskScope.SYSTEM,
    load=load_talent_roster,
    key_of=lambda _roster: natural_key(TaskType.TALENT_PERFORMANCE_UPDATE_REMINDER),
    predicate=lambda roster: _stale_performance_count(roster) > 0,
    render=_render_performance,
    cadence=lambda today: today.weekday() == PERFORMANCE_CADENCE_WEEKDAY,
)

PRICE_UPDATE_RULE = Rule(
    type=TaskType.TALENT_PRICE_UPDATE_REMINDER,
    scope=TaskScope.SYSTEM,
    load=load_talent_roster,
    key_of=lambda _roster: natural_key(TaskType.TALENT_PRICE_UPDATE_REMINDER),
    predicate=lambda roster: _unconfirmed_price_count(roster) > 0,
    render=_render_price,
    cadence=lambda today: today.day == PRICE_CADENCE_DAY,
)


def next_cadence_date(rule: Rule, today: date) -> date | None:
    """从今天起（含今天）下一个允许新建任务的日期；无节奏规则返回 None"""
    if rule.cadence is None:
        return None
    day = today
    # 月度节奏最多 31 天内必然命中
    for _ in range(32):
        if rule.cadence(day):
            return day
        day += timedelta(days=1)
    return None
