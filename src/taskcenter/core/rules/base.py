"""规则定义与候选对象

Rule 是纯声明式的：加载候选、计算自然键、判定条件、渲染内容。
扫描器对所有规则一视同仁，新增规则只需扩充规则目录。
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol

from ..models.enums import TaskScope, TaskType
from ..models.source import Collaboration, Project, Talent, Work
from ..models.task import TaskContent, TaskRefs
from ..store.protocols import SourceReader


class Candidate(Protocol):
    """规则候选对象：至少能给出关联实体"""

    @property
    def refs(self) -> TaskRefs: ...


@dataclass(frozen=True)
class PublishCandidate:
    """待发布候选：一条已定档合作"""

    project: Project
    collaboration: Collaboration
    today: date

    @property
    def refs(self) -> TaskRefs:
        return TaskRefs(
            project_id=self.project.id,
            collaboration_id=self.collaboration.id,
            talent_id=self.collaboration.talent_id,
        )


@dataclass(frozen=True)
class ProjectSnapshot:
    """项目级候选：项目及其全部合作、按合作索引的作品"""

    project: Project
    collaborations: list[Collaboration]
    works_by_collaboration: dict[str, Work]
    today: date

    @property
    def refs(self) -> TaskRefs:
        return TaskRefs(project_id=self.project.id)


@dataclass(frozen=True)
class TalentRoster:
    """系统级候选：全部达人"""

    talents: list[Talent]
    today: date

    @property
    def refs(self) -> TaskRefs:
        return TaskRefs()


Loader = Callable[[SourceReader, date], Awaitable[list[Any]]]


@dataclass(frozen=True)
class Rule:
    """任务触发规则

    Attributes:
        type: 任务类型（规则目录内唯一）
        scope: PROJECT / SYSTEM
        load: 加载本规则所需的最小候选集
        key_of: 候选 -> 自然键
        predicate: 候选 -> 条件是否成立
        render: 候选 -> 任务内容
        cadence: 仅系统级规则使用；返回 False 的日期不新建/刷新任务，
            但条件仍成立的 pending 任务保持不变
    """

    type: TaskType
    scope: TaskScope
    load: Loader
    key_of: Callable[[Any], str]
    predicate: Callable[[Any], bool]
    render: Callable[[Any], TaskContent]
    cadence: Callable[[date], bool] | None = field(default=None)

    def opens_on(self, today: date) -> bool:
        """今天是否允许新建/刷新任务"""
        return self.cadence is None or self.cadence(today)
