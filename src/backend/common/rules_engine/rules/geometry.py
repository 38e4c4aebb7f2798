"""Geometry checks (GEO-001 to GEO-003).

GEO-002 and GEO-003 bail out on their own when coordinates do not parse, so a
building with missing coordinates is only reported by GEO-001.
"""

from __future__ import annotations

from typing import Optional

from ..config import DistanceThresholdRuleConfig
from ..context import RuleContext, haversine_distance, parse_coordinate, resolve, round_half_up
from ..models import Severity
from ..registry import RuleRegistry
from ..rule import Rule


class GeometryRule(Rule):
    rule_set = "geometry"


class GEO_001(GeometryRule):
    rule_id = "GEO-001"
    rule_title = "Coordinates present"
    severity = Severity.ERROR
    field = "lat"

    def check(self, ctx: RuleContext) -> Optional[str]:
        lat = resolve(ctx.building.lat)
        lng = resolve(ctx.building.lng)
        if not lat or not lng:
            return "Coordinates missing in all sources"
        if parse_coordinate(lat) is None or parse_coordinate(lng) is None:
            return "Coordinates are invalid"
        return None


class GEO_002(GeometryRule):
    rule_id = "GEO-002"
    rule_title = "SAP and GWR coordinates agree"
    severity = Severity.WARNING
    field = "lat"
    config_model = DistanceThresholdRuleConfig
    default_config = DistanceThresholdRuleConfig(max_distance_m=50.0)

    def check(self, ctx: RuleContext) -> Optional[str]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, DistanceThresholdRuleConfig, self.default_config)
        b = ctx.building
        sap_lat = parse_coordinate(b.lat.sap)
        sap_lng = parse_coordinate(b.lng.sap)
        gwr_lat = parse_coordinate(b.lat.gwr)
        gwr_lng = parse_coordinate(b.lng.gwr)
        if sap_lat is None or sap_lng is None or gwr_lat is None or gwr_lng is None:
            return None

        distance = haversine_distance(sap_lat, sap_lng, gwr_lat, gwr_lng)
        if distance > cfg.max_distance_m:
            return f"SAP and GWR coordinates deviate by {round_half_up(distance)}m"
        return None


class GEO_003(GeometryRule):
    rule_id = "GEO-003"
    rule_title = "Address matches coordinates"
    severity = Severity.INFO
    field = "lat"
    config_model = DistanceThresholdRuleConfig
    default_config = DistanceThresholdRuleConfig(max_distance_m=100.0)

    async def check(self, ctx: RuleContext) -> Optional[str]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, DistanceThresholdRuleConfig, self.default_config)
        lat = parse_coordinate(ctx.resolved("lat"))
        lng = parse_coordinate(ctx.resolved("lng"))
        street = ctx.resolved("strasse")
        house_number = ctx.resolved("hausnummer")
        postal_code = ctx.resolved("plz")
        city = ctx.resolved("ort")
        if lat is None or lng is None or not street or not postal_code or not city:
            return None
        if ctx.geocoder is None:
            return None

        geocoded = await ctx.geocoder.geocode(street, house_number, postal_code, city)
        if geocoded is None:
            return None

        distance = haversine_distance(lat, lng, geocoded.lat, geocoded.lng)
        if distance > cfg.max_distance_m:
            return f"Address and coordinates deviate by {round_half_up(distance)}m"
        return None


RULES = (GEO_001, GEO_002, GEO_003)


def register(registry: RuleRegistry) -> None:
    registry.register_all(RULES)
