"""Address checks (ADR-001 to ADR-008).

Each check compares one address component between SAP and GWR exactly as
stored. Manual corrections are not consulted.
"""

from __future__ import annotations

from typing import Optional

from ..context import RuleContext
from ..models import Severity, SourceField
from ..registry import RuleRegistry
from ..rule import Rule


def compare_source_field(source: SourceField, label: str) -> Optional[str]:
    sap = source.sap
    gwr = source.gwr
    if not sap and not gwr:
        return None
    if not sap:
        return f"{label}: missing in SAP (GWR: {gwr})"
    if not gwr:
        return f"{label}: missing in GWR (SAP: {sap})"
    if sap != gwr:
        return f"{label}: SAP '{sap}', GWR '{gwr}'"
    return None


class AddressRule(Rule):
    rule_set = "address"
    label: str

    def check(self, ctx: RuleContext) -> Optional[str]:
        return compare_source_field(ctx.building.source_field(self.field), self.label)


class ADR_001(AddressRule):
    rule_id = "ADR-001"
    rule_title = "Country code matches"
    severity = Severity.ERROR
    field = "country"
    label = "Country code"


class ADR_002(AddressRule):
    rule_id = "ADR-002"
    rule_title = "Canton matches"
    severity = Severity.WARNING
    field = "kanton"
    label = "Canton"


class ADR_003(AddressRule):
    rule_id = "ADR-003"
    rule_title = "Municipality matches"
    severity = Severity.WARNING
    field = "gemeinde"
    label = "Municipality"


class ADR_004(AddressRule):
    rule_id = "ADR-004"
    rule_title = "Postal code matches"
    severity = Severity.WARNING
    field = "plz"
    label = "Postal code"


class ADR_005(AddressRule):
    rule_id = "ADR-005"
    rule_title = "Locality matches"
    severity = Severity.WARNING
    field = "ort"
    label = "Locality"


class ADR_006(AddressRule):
    rule_id = "ADR-006"
    rule_title = "Street matches"
    severity = Severity.INFO
    field = "strasse"
    label = "Street"


class ADR_007(AddressRule):
    rule_id = "ADR-007"
    rule_title = "House number matches"
    severity = Severity.WARNING
    field = "hausnummer"
    label = "House number"


class ADR_008(AddressRule):
    rule_id = "ADR-008"
    rule_title = "Address supplement matches"
    severity = Severity.INFO
    field = "zusatz"
    label = "Address supplement"


RULES = (ADR_001, ADR_002, ADR_003, ADR_004, ADR_005, ADR_006, ADR_007, ADR_008)


def register(registry: RuleRegistry) -> None:
    registry.register_all(RULES)
