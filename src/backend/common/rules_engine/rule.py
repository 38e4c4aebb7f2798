from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Optional, Type, Union

from pydantic import BaseModel

from .config import RuleConfigBase
from .context import RuleContext
from .models import RuleInfo, Severity

CheckOutcome = Union[Optional[str], Awaitable[Optional[str]]]


class Rule(ABC):
    rule_id: str
    rule_title: str = ""
    severity: Severity
    field: str
    rule_set: str
    config_model: Type[BaseModel] = RuleConfigBase

    def __init__(self):
        if not getattr(self, "rule_id", None):
            raise ValueError("Rule must define rule_id")

    @abstractmethod
    def check(self, ctx: RuleContext) -> CheckOutcome:  # pragma: no cover
        """Return a finding description, or None when the building passes.

        Implementations may be coroutines.
        """
        raise NotImplementedError

    def info(self) -> RuleInfo:
        return RuleInfo(id=self.rule_id, severity=self.severity, field=self.field, rule_set=self.rule_set)
