from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T", bound=BaseModel)


class RuleConfigBase(BaseModel):
    enabled: bool = True


class DistanceThresholdRuleConfig(RuleConfigBase):
    # Findings fire when the measured distance is strictly greater than this.
    max_distance_m: float = 50.0


class RulesConfig(BaseModel):
    """Per-rule configuration keyed by rule id.

    Rules pull their typed config via `get_rule_config`.
    """

    rules: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def get_rule_config(
        self,
        rule_id: str,
        model: Type[T],
        default: Optional[T] = None,
    ) -> T:
        if rule_id not in self.rules:
            if default is not None:
                return default
            return model()  # type: ignore[call-arg]
        raw = self.rules.get(rule_id, {})
        if default is not None:
            raw = {**default.model_dump(), **raw}
        return model.model_validate(raw)

    def is_enabled(self, rule_id: str) -> bool:
        return bool(self.rules.get(rule_id, {}).get("enabled", True))


def load_rules_config(path: Path) -> RulesConfig:
    """Read a rules config file (`.json`, `.yaml` or `.yml`).

    The file holds either `{"rules": {...}}` or the per-rule mapping directly.
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        import yaml

        raw = yaml.safe_load(text) or {}
    else:
        raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError(f"Rules config must be a mapping: {path}")
    if "rules" not in raw:
        raw = {"rules": raw}
    return RulesConfig.model_validate(raw)
