from __future__ import annotations

import argparse
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .models import RuleInfo
from .registry import RuleRegistry
from .rules import build_registry


class RuleCatalogEntry(BaseModel):
    rule_id: str
    rule_title: str
    severity: str
    field: str
    rule_set: str

    module: str
    class_name: str

    config_model: str
    config_schema: Dict[str, Any]


def build_catalog(registry: Optional[RuleRegistry] = None) -> List[RuleCatalogEntry]:
    registry = registry or build_registry()
    entries: List[RuleCatalogEntry] = []
    for rule_id in registry.ids():
        rule = registry.get(rule_id)
        cfg_model = rule.config_model
        entries.append(
            RuleCatalogEntry(
                rule_id=rule_id,
                rule_title=rule.rule_title,
                severity=rule.severity.value,
                field=rule.field,
                rule_set=rule.rule_set,
                module=type(rule).__module__,
                class_name=type(rule).__name__,
                config_model=cfg_model.__name__,
                config_schema=cfg_model.model_json_schema(),
            )
        )
    return entries


def group_by_rule_set(rules: List[RuleInfo]) -> Dict[str, Any]:
    """Listing grouped by rule set, in first-registration order."""
    grouped: Dict[str, Dict[str, Any]] = {}
    for rule in rules:
        group = grouped.setdefault(rule.rule_set, {"ruleSet": rule.rule_set, "rules": []})
        group["rules"].append({"id": rule.id, "severity": rule.severity.value, "field": rule.field})
    return {"totalRules": len(rules), "ruleSets": list(grouped.values())}


def _dump_json(catalog: list[dict[str, Any]]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True)


def _dump_yaml(catalog: list[dict[str, Any]]) -> str:
    import yaml

    return yaml.safe_dump(catalog, sort_keys=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate a rules catalog from the registry.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write to this file instead of stdout.",
    )
    args = parser.parse_args(argv)

    catalog = [entry.model_dump() for entry in build_catalog()]
    text = _dump_json(catalog) if args.format == "json" else _dump_yaml(catalog)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as handle:
            handle.write(text)
    else:
        print(text)


if __name__ == "__main__":
    main()
