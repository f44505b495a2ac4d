"""Task Center 规则目录"""

from .base import Candidate, ProjectSnapshot, PublishCandidate, Rule, TalentRoster
from .catalog import RULE_CATALOG, SYSTEM_TASK_TYPES, get_rule
from .system_rules import next_cadence_date

__all__ = [
    "Candidate",
    "ProjectSnapshot",
    "PublishCandidate",
    "Rule",
    "TalentRoster",
    "RULE_CATALOG",
    "SYSTEM_TASK_TYPES",
    "get_rule",
    "next_cadence_date",
]
