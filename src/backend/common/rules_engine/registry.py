from __future__ import annotations

import inspect
import logging
from typing import Iterable, List, Type, Union

from .context import RuleContext
from .models import Finding, RuleInfo, Severity
from .rule import Rule

logger = logging.getLogger(__name__)

RULE_FAILED_DESCRIPTION = "Rule check failed"


class RuleRegistry:
    def __init__(self):
        self._rules: List[Rule] = []
        self._ids: set[str] = set()

    def register(self, rule: Union[Rule, Type[Rule]]) -> None:
        if isinstance(rule, type):
            rule = rule()
        rule_id = getattr(rule, "rule_id", None)
        if not rule_id:
            raise ValueError("Rule class missing rule_id")
        if rule_id in self._ids:
            raise ValueError(f"Duplicate rule_id registered: {rule_id}")
        self._ids.add(rule_id)
        self._rules.append(rule)

    def register_all(self, rules: Iterable[Union[Rule, Type[Rule]]]) -> None:
        for rule in rules:
            self.register(rule)

    def rules(self) -> List[RuleInfo]:
        return [rule.info() for rule in self._rules]

    def get(self, rule_id: str) -> Rule:
        for rule in self._rules:
            if rule.rule_id == rule_id:
                return rule
        raise KeyError(rule_id)

    def ids(self) -> List[str]:
        return [rule.rule_id for rule in self._rules]

    def __len__(self) -> int:
        return len(self._rules)

    async def evaluate(self, ctx: RuleContext) -> List[Finding]:
        findings: List[Finding] = []
        for rule in self._rules:
            if not ctx.rules_config.is_enabled(rule.rule_id):
                continue
            try:
                outcome = rule.check(ctx)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception:
                logger.exception("Rule %s failed for building %s", rule.rule_id, ctx.building.id)
                findings.append(
                    Finding(
                        check_id=rule.rule_id,
                        description=RULE_FAILED_DESCRIPTION,
                        level=Severity.WARNING,
                        field=rule.field,
                    )
                )
                continue
            if outcome is not None:
                findings.append(
                    Finding(
                        check_id=rule.rule_id,
                        description=outcome,
                        level=rule.severity,
                        field=rule.field,
                    )
                )
        return findings
