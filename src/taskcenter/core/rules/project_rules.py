"""项目级规则

- 达人待发布：已定档、计划发布日已到但未发布的合作（每条合作一个任务）
- T+7 / T+21 数据逾期：最晚发布日之后 N 天仍有作品缺少对应数据
- 项目待定案：T+21 周期结束但项目尚未进入结算
"""

from dataclasses import dataclass
from datetime import date, timedelta

from ..models.enums import TaskScope, TaskType
from ..models.source import (
    ACTIVE_PROJECT_STATUSES,
    CLOSED_PROJECT_STATUSES,
    COLLAB_STATUS_SCHEDULED,
    Collaboration,
    parse_calendar_date,
)
from ..models.task import TaskContent, natural_key
from ..store.protocols import SourceReader
from .base import ProjectSnapshot, PublishCandidate, Rule

# ---------------------------------------------------------------------------
# 候选加载
# ---------------------------------------------------------------------------


async def load_scheduled_collaborations(
    source: SourceReader, today: date
) -> list[PublishCandidate]:
    """只加载活跃项目下处于“客户已定档”的合作"""
    pairs = await source.list_collaborations_in_status(
        COLLAB_STATUS_SCHEDULED, ACTIVE_PROJECT_STATUSES
    )
    return [PublishCandidate(project=p, collaboration=c, today=today) for p, c in pairs]


async def load_project_snapshots(source: SourceReader, today: date) -> list[ProjectSnapshot]:
    """加载活跃项目及其合作、作品"""
    projects = await source.list_projects(ACTIVE_PROJECT_STATUSES)
    project_ids = [p.id for p in projects]
    collaborations = await source.list_collaborations(project_ids)
    works = await source.list_works(project_ids)

    collabs_by_project: dict[str, list[Collaboration]] = {}
    for c in collaborations:
        collabs_by_project.setdefault(c.project_id, []).append(c)
    works_by_collab = {w.collaboration_id: w for w in works}

    snapshots = []
    for project in projects:
        project_collabs = collabs_by_project.get(project.id, [])
        snapshots.append(
            ProjectSnapshot(
                project=project,
                collaborations=project_collabs,
                works_by_collaboration={
                    c.id: works_by_collab[c.id] for c in project_collabs if c.id in works_by_collab
                },
                today=today,
            )
        )
    return snapshots


# ---------------------------------------------------------------------------
# 达人待发布
# ---------------------------------------------------------------------------


def _publish_overdue(candidate: PublishCandidate) -> bool:
    collab = candidate.collaboration
    if collab.status != COLLAB_STATUS_SCHEDULED or collab.publish_date:
        return False
    planned = parse_calendar_date(collab.planned_release_date)
    return planned is not None and planned <= candidate.today


def _render_pending_publish(candidate: PublishCandidate) -> TaskContent:
    collab = candidate.collaboration
    planned = parse_calendar_date(collab.planned_release_date)
    talent = collab.talent_name or collab.talent_id or collab.id
    return TaskContent(
        title="达人待发布",
        description=(
            f"项目 [{candidate.project.name}] 的达人 {talent} 计划于 {planned} 发布，"
            "尚未更新发布状态。"
        ),
        due_date=planned,
        count=1,
    )


PENDING_PUBLISH_RULE = Rule(
    type=TaskType.PROJECT_PENDING_PUBLISH,
    scope=TaskScope.PROJECT,
    load=load_scheduled_collaborations,
    key_of=lambda c: natural_key(
        TaskType.PROJECT_PENDING_PUBLISH, c.project.id, c.collaboration.id
    ),
    predicate=_publish_overdue,
    render=_render_pending_publish,
)


# ---------------------------------------------------------------------------
# 数据逾期 / 待定案
# ---------------------------------------------------------------------------


def _latest_publish_date(collaborations: list[Collaboration]) -> date | None:
    dates = [parse_calendar_date(c.publish_date) for c in collaborations if c.publish_date]
    return max(dates) if dates else None


def _waiting_for_release(collaborations: list[Collaboration]) -> bool:
    # 仍有已定档未发布的合作时，暂停数据逾期告警
    return any(c.status == COLLAB_STATUS_SCHEDULED and not c.publish_date for c in collaborations)


@dataclass(frozen=True)
class _Overdue:
    due_date: date
    overdue_days: int
    missing: int


def _data_overdue(snapshot: ProjectSnapshot, days: int, stats_field: str) -> _Overdue | None:
    if _waiting_for_release(snapshot.collaborations):
        return None
    latest = _latest_publish_date(snapshot.collaborations)
    if latest is None:
        return None
    due = latest + timedelta(days=days)
    if snapshot.today <= due:
        return None
    missing = [
        c
        for c in snapshot.collaborations
        if c.publish_date
        and not getattr(snapshot.works_by_collaboration.get(c.id), stats_field, None)
    ]
    if not missing:
        return None
    return _Overdue(due_date=due, overdue_days=(snapshot.today - due).days, missing=len(missing))


def _data_overdue_rule(task_type: TaskType, days: int, stats_field: str, label: str) -> Rule:
    def render(snapshot: ProjectSnapshot) -> TaskContent:
        overdue = _data_overdue(snapshot, days, stats_field)
        if overdue is None:
            raise ValueError(f"{task_type.value}: project {snapshot.project.id} is not overdue")
        return TaskContent(
            title=f"[告警] {label} 数据已逾期",
            description=(
                f"项目 [{snapshot.project.name}] 的 {label} 数据已逾期 "
                f"{overdue.overdue_days} 天！"
            ),
            due_date=overdue.due_date,
            count=overdue.missing,
        )

    return Rule(
        type=task_type,
        scope=TaskScope.PROJECT,
        load=load_project_snapshots,
        key_of=lambda s: natural_key(task_type, s.project.id),
        predicate=lambda s: _data_overdue(s, days, stats_field) is not None,
        render=render,
    )


DATA_OVERDUE_T7_RULE = _data_overdue_rule(
    TaskType.PROJECT_DATA_OVERDUE_T7, 7, "t7_stats_updated_at", "T+7"
)

DATA_OVERDUE_T21_RULE = _data_overdue_rule(
    TaskType.PROJECT_DATA_OVERDUE_T21, 21, "t21_stats_updated_at", "T+21"
)

FINALIZE_AFTER_DAYS = 21


def _finalize_due(snapshot: ProjectSnapshot) -> date | None:
    if snapshot.project.status in CLOSED_PROJECT_STATUSES:
        return None
    latest = _latest_publish_date(snapshot.collaborations)
    if latest is None:
        return None
    finalize_date = latest + timedelta(days=FINALIZE_AFTER_DAYS)
    return finalize_date if snapshot.today > finalize_date else None


FINALIZE_REMINDER_RULE = Rule(
    type=TaskType.PROJECT_FINALIZE_REMINDER,
    scope=TaskScope.PROJECT,
    load=load_project_snapshots,
    key_of=lambda s: natural_key(TaskType.PROJECT_FINALIZE_REMINDER, s.project.id),
    predicate=lambda s: _finalize_due(s) is not None,
    render=lambda s: TaskContent(
        title="项目待定案",
        description=(
            f"项目 [{s.project.name}] 的T+21数据周期已结束，请确认最终数据，"
            "发送结算邮件，并将项目状态更新为‘待结算’。"
        ),
        due_date=_finalize_due(s),
    ),
)
