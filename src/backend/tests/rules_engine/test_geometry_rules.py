import asyncio

from building_factories import FakeGeocoder, sf, same
from common.rules_engine.context import GeocodeResult
from common.rules_engine.rules.geometry import GEO_001, GEO_002, GEO_003


def _located(make_building, **fields):
    base = {
        "lat": same("46.9466"),
        "lng": same("7.4440"),
        "strasse": same("Bundesplatz"),
        "hausnummer": same("3"),
        "plz": same("3003"),
        "ort": same("Bern"),
    }
    base.update(fields)
    return make_building(**base)


def test_coordinates_missing_everywhere(make_building, make_ctx):
    ctx = make_ctx(make_building())
    assert GEO_001().check(ctx) == "Coordinates missing in all sources"
    assert GEO_002().check(ctx) is None
    assert asyncio.run(GEO_003().check(ctx)) is None


def test_coordinates_unparseable(make_building, make_ctx):
    ctx = make_ctx(make_building(lat=same("north"), lng=same("7.4440")))
    assert GEO_001().check(ctx) == "Coordinates are invalid"


def test_coordinates_from_correction_only(make_building, make_ctx):
    ctx = make_ctx(make_building(lat=sf("", "", "46.9"), lng=sf("", "", "7.4")))
    assert GEO_001().check(ctx) is None


def test_sap_gwr_deviation_reports_rounded_meters(make_building, make_ctx):
    ctx = make_ctx(
        make_building(lat=sf("46.9480", "46.9490"), lng=sf("7.4474", "7.4484")),
    )
    assert GEO_002().check(ctx) == "SAP and GWR coordinates deviate by 135m"


def test_sap_gwr_deviation_respects_configured_threshold(make_building, make_ctx):
    b = make_building(lat=sf("46.9480", "46.9490"), lng=sf("7.4474", "7.4484"))
    ctx = make_ctx(b, rules={"GEO-002": {"max_distance_m": 200}})
    assert GEO_002().check(ctx) is None


def test_sap_gwr_close_coordinates_pass(make_building, make_ctx):
    ctx = make_ctx(make_building(lat=sf("46.94800", "46.94801"), lng=sf("7.44740", "7.44741")))
    assert GEO_002().check(ctx) is None


def test_sap_gwr_deviation_ignores_correction(make_building, make_ctx):
    ctx = make_ctx(make_building(lat=sf("46.9480", "", "46.9490"), lng=sf("7.4474", "", "7.4484")))
    assert GEO_002().check(ctx) is None


def test_address_deviation_uses_geocoder(make_building, make_ctx):
    geocoder = FakeGeocoder(GeocodeResult(lat=46.9486, lng=7.4440, label="Bundesplatz 3 3003 Bern"))
    ctx = make_ctx(_located(make_building), geocoder=geocoder)

    assert asyncio.run(GEO_003().check(ctx)) == "Address and coordinates deviate by 222m"
    assert geocoder.calls == [("Bundesplatz", "3", "3003", "Bern")]


def test_address_within_threshold_passes(make_building, make_ctx):
    geocoder = FakeGeocoder(GeocodeResult(lat=46.9470, lng=7.4440))
    ctx = make_ctx(_located(make_building), geocoder=geocoder)
    assert asyncio.run(GEO_003().check(ctx)) is None


def test_address_check_skipped_without_geocoder_or_result(make_building, make_ctx):
    assert asyncio.run(GEO_003().check(make_ctx(_located(make_building)))) is None

    geocoder = FakeGeocoder(None)
    ctx = make_ctx(_located(make_building), geocoder=geocoder)
    assert asyncio.run(GEO_003().check(ctx)) is None
    assert len(geocoder.calls) == 1


def test_address_check_needs_street_postal_code_and_city(make_building, make_ctx):
    geocoder = FakeGeocoder(GeocodeResult(lat=0.0, lng=0.0))
    for missing in ("strasse", "plz", "ort"):
        ctx = make_ctx(_located(make_building, **{missing: sf("", "")}), geocoder=geocoder)
        assert asyncio.run(GEO_003().check(ctx)) is None
    assert geocoder.calls == []


def test_address_check_house_number_optional(make_building, make_ctx):
    geocoder = FakeGeocoder(GeocodeResult(lat=46.9466, lng=7.4440))
    ctx = make_ctx(_located(make_building, hausnummer=sf("", "")), geocoder=geocoder)
    assert asyncio.run(GEO_003().check(ctx)) is None
    assert geocoder.calls == [("Bundesplatz", "", "3003", "Bern")]
