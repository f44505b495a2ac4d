"""规则判定测试（纯函数，不访问数据库）

重点覆盖日期边界：计划发布日当天、T+N 当天与次日、表现数据恰好 7 天。
"""

from datetime import date

import pytest
from taskcenter.core.models import Collaboration, Project, Talent, TalentPrice, TaskScope, TaskType, Work
from taskcenter.core.rules import (
    RULE_CATALOG,
    SYSTEM_TASK_TYPES,
    ProjectSnapshot,
    PublishCandidate,
    TalentRoster,
    get_rule,
    next_cadence_date,
)
from taskcenter.core.rules.system_rules import price_period

TODAY = date(2025, 3, 10)  # 周一
PROJECT = Project(id="p1", name="春季上新", status="执行中")


def _collab(cid: str, status: str = "客户已定档", planned: str | None = None, published: str | None = None):
    return Collaboration(
        id=cid,
        project_id="p1",
        talent_id=f"t-{cid}",
        talent_name=f"达人{cid}",
        status=status,
        planned_release_date=planned,
        publish_date=published,
    )


def _snapshot(collabs, works=(), project=PROJECT, today=TODAY) -> ProjectSnapshot:
    return ProjectSnapshot(
        project=project,
        collaborations=list(collabs),
        works_by_collaboration={w.collaboration_id: w for w in works},
        today=today,
    )


class TestCatalog:
    def test_catalog_order(self):
        assert [r.type for r in RULE_CATALOG] == [
            TaskType.PROJECT_PENDING_PUBLISH,
            TaskType.PROJECT_DATA_OVERDUE_T7,
            TaskType.PROJECT_DATA_OVERDUE_T21,
            TaskType.PROJECT_FINALIZE_REMINDER,
            TaskType.TALENT_PERFORMANCE_UPDATE_REMINDER,
            TaskType.TALENT_PRICE_UPDATE_REMINDER,
        ]

    def test_system_types(self):
        assert set(SYSTEM_TASK_TYPES) == {
            TaskType.TALENT_PERFORMANCE_UPDATE_REMINDER,
            TaskType.TALENT_PRICE_UPDATE_REMINDER,
        }
        for rule in RULE_CATALOG:
            assert (rule.cadence is not None) == (rule.scope == TaskScope.SYSTEM)

    def test_get_rule_unknown(self):
        with pytest.raises(KeyError):
            get_rule("NOT_A_TYPE")


class TestPendingPublish:
    rule = get_rule(TaskType.PROJECT_PENDING_PUBLISH)

    @pytest.mark.parametrize(
        "planned,expected",
        [
            ("2025-03-09", True),
            ("2025-03-10", True),
            ("2025-03-10T23:30:00.000Z", True),
            ("2025-03-11", False),
            (None, False),
        ],
    )
    def test_planned_date_boundary(self, planned, expected):
        candidate = PublishCandidate(PROJECT, _collab("c1", planned=planned), TODAY)
        assert self.rule.predicate(candidate) is expected

    def test_published_collaboration_not_pending(self):
        candidate = PublishCandidate(
            PROJECT, _collab("c1", planned="2025-03-01", published="2025-03-02"), TODAY
        )
        assert self.rule.predicate(candidate) is False

    def test_key_refs_and_content(self):
        candidate = PublishCandidate(PROJECT, _collab("c1", planned="2025-03-08"), TODAY)
        assert self.rule.key_of(candidate) == "PROJECT_PENDING_PUBLISH:p1:c1"
        assert candidate.refs.talent_id == "t-c1"
        content = self.rule.render(candidate)
        assert content.title == "达人待发布"
        assert content.due_date == date(2025, 3, 8)
        assert content.count == 1
        assert "春季上新" in content.description
        assert "达人c1" in content.description

    def test_malformed_planned_date_raises(self):
        candidate = PublishCandidate(PROJECT, _collab("c1", planned="03/08/2025"), TODAY)
        with pytest.raises(ValueError):
            self.rule.predicate(candidate)


class TestDataOverdue:
    t7 = get_rule(TaskType.PROJECT_DATA_OVERDUE_T7)
    t21 = get_rule(TaskType.PROJECT_DATA_OVERDUE_T21)

    def test_due_day_itself_not_overdue(self):
        # 最晚发布 03-03，T+7 = 03-10 = 今天
        snap = _snapshot([_collab("c1", status="视频已发布", published="2025-03-03")])
        assert self.t7.predicate(snap) is False

    def test_day_after_due_is_overdue(self):
        snap = _snapshot(
            [
                _collab("c1", status="视频已发布", published="2025-03-02"),
                _collab("c2", status="视频已发布", published="2025-02-20"),
            ],
            works=[Work(id="w2", collaboration_id="c2", t7_stats_updated_at="2025-02-28")],
        )
        assert self.t7.predicate(snap) is True
        content = self.t7.render(snap)
        assert content.title == "[告警] T+7 数据已逾期"
        assert content.due_date == date(2025, 3, 9)
        assert content.count == 1
        assert "1 天" in content.description

    def test_all_data_present(self):
        snap = _snapshot(
            [_collab("c1", status="视频已发布", published="2025-03-01")],
            works=[Work(id="w1", collaboration_id="c1", t7_stats_updated_at="2025-03-08")],
        )
        assert self.t7.predicate(snap) is False

    def test_waiting_for_release_suppresses_alert(self):
        snap = _snapshot(
            [
                _collab("c1", status="视频已发布", published="2025-01-01"),
                _collab("c2", planned="2025-04-01"),
            ]
        )
        assert self.t7.predicate(snap) is False
        assert self.t21.predicate(snap) is False

    def test_no_publish_date(self):
        snap = _snapshot([_collab("c1", status="视频已发布")])
        assert self.t7.predicate(snap) is False

    def test_t21_uses_own_field_and_window(self):
        collabs = [_collab("c1", status="视频已发布", published="2025-02-10")]
        works = [Work(id="w1", collaboration_id="c1", t7_stats_updated_at="2025-02-18")]
        snap = _snapshot(collabs, works)
        assert self.t7.predicate(snap) is False
        assert self.t21.predicate(snap) is True
        content = self.t21.render(snap)
        assert content.due_date == date(2025, 3, 3)
        assert self.t21.key_of(snap) == "PROJECT_DATA_OVERDUE_T21:p1"

    def test_render_rejects_snapshot_that_is_not_overdue(self):
        snap = _snapshot([_collab("c1", status="视频已发布", published="2025-03-03")])
        with pytest.raises(ValueError, match="not overdue"):
            self.t7.render(snap)


class TestFinalizeReminder:
    rule = get_rule(TaskType.PROJECT_FINALIZE_REMINDER)

    def test_after_t21_window(self):
        snap = _snapshot([_collab("c1", status="视频已发布", published="2025-02-16")])
        assert self.rule.predicate(snap) is True
        assert self.rule.render(snap).due_date == date(2025, 3, 9)

    def test_on_last_day_of_window(self):
        snap = _snapshot([_collab("c1", status="视频已发布", published="2025-02-17")])
        assert self.rule.predicate(snap) is False

    @pytest.mark.parametrize("status", ["待结算", "已收款", "已终结"])
    def test_closed_projects_skipped(self, status):
        project = Project(id="p1", name="x", status=status)
        snap = _snapshot(
            [_collab("c1", status="视频已发布", published="2025-01-01")], project=project
        )
        assert self.rule.predicate(snap) is False


class TestPerformanceReminder:
    rule = get_rule(TaskType.TALENT_PERFORMANCE_UPDATE_REMINDER)

    def test_stale_count(self):
        roster = TalentRoster(
            talents=[
                Talent(id="t1", performance_last_updated=None),
                Talent(id="t2", performance_last_updated="2025-03-03T10:00:00Z"),  # 恰好 7 天
                Talent(id="t3", performance_last_updated="2025-03-02"),  # 8 天
                Talent(id="t4", performance_last_updated="2025-03-09"),
            ],
            today=TODAY,
        )
        assert self.rule.predicate(roster) is True
        content = self.rule.render(roster)
        assert content.title == "达人表现数据待更新"
        assert content.count == 2
        assert "有 2 位达人" in content.description
        assert self.rule.key_of(roster) == "TALENT_PERFORMANCE_UPDATE_REMINDER"

    def test_all_fresh(self):
        roster = TalentRoster(talents=[Talent(id="t1", performance_last_updated="2025-03-09")], today=TODAY)
        assert self.rule.predicate(roster) is False

    def test_cadence_is_monday(self):
        assert self.rule.opens_on(date(2025, 3, 10)) is True
        assert self.rule.opens_on(date(2025, 3, 11)) is False


class TestPriceReminder:
    rule = get_rule(TaskType.TALENT_PRICE_UPDATE_REMINDER)

    def test_unconfirmed_count(self):
        roster = TalentRoster(
            talents=[
                Talent(id="t1", prices=[TalentPrice(year=2025, month=3, status="confirmed")]),
                Talent(id="t2", prices=[TalentPrice(year=2025, month=3, status="provisional")]),
                Talent(id="t3", prices=[TalentPrice(year=2025, month=2, status="confirmed")]),
                Talent(id="t4"),
            ],
            today=TODAY,
        )
        assert self.rule.predicate(roster) is True
        content = self.rule.render(roster)
        assert content.title == "达人报价待更新"
        assert content.count == 3
        assert "有 3 位达人" in content.description
        assert "2025年3月" in content.description

    @pytest.mark.parametrize(
        "today,expected",
        [
            (date(2025, 5, 2), (2025, 5)),
            (date(2025, 5, 31), (2025, 5)),
            (date(2025, 5, 1), (2025, 4)),
            (date(2025, 1, 1), (2024, 12)),
        ],
    )
    def test_price_period(self, today, expected):
        assert price_period(today) == expected

    def test_first_of_month_still_checks_previous_month(self):
        april_confirmed = [TalentPrice(year=2025, month=4, status="confirmed")]
        roster = TalentRoster(talents=[Talent(id="t1", prices=april_confirmed)], today=date(2025, 5, 1))
        assert self.rule.predicate(roster) is False

        unresolved = TalentRoster(talents=[Talent(id="t1")], today=date(2025, 5, 1))
        assert self.rule.predicate(unresolved) is True
        assert "2025年4月" in self.rule.render(unresolved).description

    def test_cadence_is_second_of_month(self):
        assert self.rule.opens_on(date(2025, 4, 2)) is True
        assert self.rule.opens_on(date(2025, 4, 1)) is False


class TestNextCadenceDate:
    def test_weekly(self):
        rule = get_rule(TaskType.TALENT_PERFORMANCE_UPDATE_REMINDER)
        assert next_cadence_date(rule, date(2025, 3, 10)) == date(2025, 3, 10)
        assert next_cadence_date(rule, date(2025, 3, 11)) == date(2025, 3, 17)

    def test_monthly(self):
        rule = get_rule(TaskType.TALENT_PRICE_UPDATE_REMINDER)
        assert next_cadence_date(rule, date(2025, 3, 3)) == date(2025, 4, 2)

    def test_project_rule_has_no_cadence(self):
        assert next_cadence_date(get_rule(TaskType.PROJECT_PENDING_PUBLISH), TODAY) is None
