import math

import pytest

from taxi_pricing.cache.memory_cache import MemoryTTLCache
from taxi_pricing.domain.errors import Err, ErrorKind, Failure
from taxi_pricing.domain.geocoder import Geocoder, map_provider_result
from taxi_pricing.security.rate_limiter import TokenBucketRateLimiter
from tests.fakes import FakeGeocodingClient, google_ok, google_result

MAIRIE = google_result(
    "3 Place de la Mairie, 38230 Tignieu-Jameyzieu, France",
    45.7339,
    5.1872,
    number="3",
    street="Place de la Mairie",
    postcode="38230",
    city="Tignieu-Jameyzieu",
)


def test_short_input_is_rejected_without_calling_provider(geocoder, geocoding_client):
    result = geocoder.geocode("  ab  ", "1.2.3.4")

    assert result.failure.kind is ErrorKind.INVALID_INPUT
    assert geocoding_client.calls == []


def test_geocode_maps_provider_result(geocoder, geocoding_client):
    geocoding_client.payloads["3 place de la mairie"] = google_ok(MAIRIE)

    [c] = geocoder.geocode("3 place de la mairie", "1.2.3.4").unwrap()

    assert c.label == "3 Place de la Mairie, 38230 Tignieu-Jameyzieu, France"
    assert c.street == "Place de la Mairie"
    assert c.street_number == "3"
    assert c.postcode == "38230"
    assert c.city == "Tignieu-Jameyzieu"
    assert c.country == "France"
    assert (c.lat, c.lng) == (45.7339, 5.1872)


def test_label_synthesized_when_provider_omits_it():
    raw = google_result(
        None, 45.7, 5.1, number="8", street="Rue du Lac", postcode="38230", city="Charvieu", city_type="postal_town"
    )

    c = map_provider_result(raw)

    assert c.label == "8 Rue du Lac, 38230 Charvieu, France"
    assert c.city == "Charvieu"


def test_missing_geometry_maps_to_nan():
    c = map_provider_result({"formatted_address": "Somewhere"})

    assert math.isnan(c.lat) and math.isnan(c.lng)


def test_cache_hit_skips_provider_and_ignores_case(geocoder, geocoding_client):
    geocoding_client.payloads["3 place de la mairie"] = google_ok(MAIRIE)
    first = geocoder.geocode("3 place de la mairie", "1.2.3.4").unwrap()
    tokens = geocoder.rate_limiter.available("1.2.3.4")

    second = geocoder.geocode("  3 Place De La Mairie ", "1.2.3.4").unwrap()

    assert second == first
    assert geocoding_client.calls == ["3 place de la mairie"]
    assert geocoder.rate_limiter.available("1.2.3.4") == tokens


def test_cache_entry_expires(geocoder, geocoding_client, clock):
    geocoding_client.payloads["3 place de la mairie"] = google_ok(MAIRIE)
    geocoder.geocode("3 place de la mairie", None)

    clock.advance(24 * 3600)
    geocoder.geocode("3 place de la mairie", None)

    assert len(geocoding_client.calls) == 2


@pytest.mark.parametrize(
    "status,kind",
    [
        ("ZERO_RESULTS", ErrorKind.NOT_FOUND),
        ("INVALID_REQUEST", ErrorKind.INVALID_INPUT),
        ("OVER_QUERY_LIMIT", ErrorKind.UPSTREAM_UNAVAILABLE),
        ("REQUEST_DENIED", ErrorKind.UPSTREAM_UNAVAILABLE),
        ("SOMETHING_NEW", ErrorKind.UPSTREAM_UNAVAILABLE),
    ],
)
def test_provider_status_mapping(geocoder, geocoding_client, status, kind):
    geocoding_client.payloads["rue de la paix"] = {"status": status, "results": []}

    assert geocoder.geocode("rue de la paix", "1.2.3.4").failure.kind is kind


def test_upstream_error_is_passed_through(geocoder, geocoding_client):
    geocoding_client.payloads["rue de la paix"] = Err(Failure(ErrorKind.UPSTREAM_UNAVAILABLE, "timeout"))

    result = geocoder.geocode("rue de la paix", "1.2.3.4")

    assert result.failure.kind is ErrorKind.UPSTREAM_UNAVAILABLE


def test_failures_are_not_cached(geocoder, geocoding_client):
    geocoder.geocode("rue de la paix", "1.2.3.4")
    geocoder.geocode("rue de la paix", "1.2.3.4")

    assert len(geocoding_client.calls) == 2


def test_non_finite_points_dropped(geocoder, geocoding_client):
    broken = google_result("Nowhere, France", "n/a", None)
    geocoding_client.payloads["nowhere land"] = google_ok(broken)

    assert geocoder.geocode("nowhere land", "1.2.3.4").failure.kind is ErrorKind.NOT_FOUND

    geocoding_client.payloads["mairie tignieu"] = google_ok(broken, MAIRIE)
    [c] = geocoder.geocode("mairie tignieu", "1.2.3.4").unwrap()
    assert c.lat == 45.7339


def test_duplicates_differing_in_case_collapse(geocoder, geocoding_client):
    shouting = dict(MAIRIE, formatted_address=MAIRIE["formatted_address"].upper())
    geocoding_client.payloads["mairie tignieu"] = google_ok(MAIRIE, shouting)

    assert len(geocoder.geocode("mairie tignieu", "1.2.3.4").unwrap()) == 1


def test_results_capped(geocoder, geocoding_client):
    results = [
        google_result(f"{i} Rue Centrale, 38460 Crémieu, France", 45.72 + i / 1000, 5.25, number=str(i))
        for i in range(1, 9)
    ]
    geocoding_client.payloads["rue centrale"] = google_ok(*results)

    out = geocoder.geocode("rue centrale", "1.2.3.4").unwrap()

    assert [c.street_number for c in out] == ["1", "2", "3", "4", "5"]


def test_rate_limited_per_client(clock):
    client = FakeGeocodingClient()
    geocoder = Geocoder(
        client,
        MemoryTTLCache(ttl_sec=3600, clock=clock),
        TokenBucketRateLimiter(capacity=2, window_sec=300, clock=clock),
    )

    assert geocoder.geocode("rue de la paix", "1.1.1.1").failure.kind is ErrorKind.NOT_FOUND
    assert geocoder.geocode("rue de la paix", "1.1.1.1").failure.kind is ErrorKind.NOT_FOUND

    limited = geocoder.geocode("rue de la paix", "1.1.1.1")
    assert limited.failure.kind is ErrorKind.RATE_LIMITED
    assert limited.failure.retry_after == pytest.approx(150)
    assert len(client.calls) == 2

    # other clients and trusted callers are unaffected
    assert geocoder.geocode("rue de la paix", "2.2.2.2").failure.kind is ErrorKind.NOT_FOUND
    assert geocoder.geocode("rue de la paix", None).failure.kind is ErrorKind.NOT_FOUND
