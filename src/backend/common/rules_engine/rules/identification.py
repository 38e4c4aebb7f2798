"""Identification checks (ID-001 to ID-007).

Linkage of a building to the authoritative registers: the EGID ties it to the
GWR building, the EGRID to the cadastral parcel.
"""

from __future__ import annotations

import re
from typing import Optional

from ..context import RuleContext, resolve
from ..models import Severity
from ..registry import RuleRegistry
from ..rule import Rule

EGID_PATTERN = re.compile(r"^[1-9][0-9]{0,8}$")


class IdentificationRule(Rule):
    rule_set = "identification"


class ID_001(IdentificationRule):
    rule_id = "ID-001"
    rule_title = "EGID present"
    severity = Severity.ERROR
    field = "egid"

    def check(self, ctx: RuleContext) -> Optional[str]:
        if not resolve(ctx.building.egid):
            return "No EGID available"
        return None


class ID_002(IdentificationRule):
    rule_id = "ID-002"
    rule_title = "EGID format"
    severity = Severity.ERROR
    field = "egid"

    def check(self, ctx: RuleContext) -> Optional[str]:
        egid = resolve(ctx.building.egid)
        if not egid:
            return None  # ID-001
        if not EGID_PATTERN.match(egid):
            return f"EGID has invalid format: {egid}"
        return None


class ID_003(IdentificationRule):
    rule_id = "ID-003"
    rule_title = "EGID verified against GWR"
    severity = Severity.ERROR
    field = "egid"

    def check(self, ctx: RuleContext) -> Optional[str]:
        egid = ctx.building.egid
        if not egid.sap or not egid.gwr:
            return None
        if egid.sap != egid.gwr:
            return f"EGID mismatch: SAP {egid.sap}, GWR {egid.gwr}"
        return None


class ID_004(IdentificationRule):
    rule_id = "ID-004"
    rule_title = "EGRID present"
    severity = Severity.WARNING
    field = "egrid"

    def check(self, ctx: RuleContext) -> Optional[str]:
        if not resolve(ctx.building.egrid):
            return "No EGRID available"
        return None


class ID_005(IdentificationRule):
    rule_id = "ID-005"
    rule_title = "EGID duplicate"
    severity = Severity.ERROR
    field = "egid"

    def check(self, ctx: RuleContext) -> Optional[str]:
        if ctx.dataset is None:
            return None
        egid = resolve(ctx.building.egid)
        if ctx.dataset.has_duplicate_egid(egid):
            return f"EGID {egid} is used by multiple buildings"
        return None


class ID_006(IdentificationRule):
    rule_id = "ID-006"
    rule_title = "Coordinate duplicate"
    severity = Severity.WARNING
    field = "lat"

    def check(self, ctx: RuleContext) -> Optional[str]:
        if ctx.dataset is None:
            return None
        if ctx.dataset.shares_coordinates(ctx.building.id):
            return "Coordinates are shared with another building"
        return None


class ID_007(IdentificationRule):
    rule_id = "ID-007"
    rule_title = "Multiple GWR buildings"
    severity = Severity.INFO
    field = "inGwr"

    def check(self, ctx: RuleContext) -> Optional[str]:
        # TODO: flag 1:N SAP-to-GWR linkage once a GWR building lookup is available.
        return None


RULES = (ID_001, ID_002, ID_003, ID_004, ID_005, ID_006, ID_007)


def register(registry: RuleRegistry) -> None:
    registry.register_all(RULES)
