import math

from taxi_pricing.domain.addresses import (
    dedupe_candidates,
    fold,
    normalize_candidate,
    parse_address_parts,
    strip_leading_number,
    suggest,
)
from taxi_pricing.domain.models import AddressCandidate


def candidate(label, **kwargs):
    kwargs.setdefault("lat", 45.73)
    kwargs.setdefault("lng", 5.18)
    return AddressCandidate(label=label, **kwargs)


def test_fold_strips_accents_and_punctuation():
    assert fold("Crémieu-Ville, ÉGLISE!") == "cremieu ville eglise"


def test_parse_address_parts_french_label():
    parts = parse_address_parts("12 Rue de la Paix, 75002 Paris, France")

    assert parts.postcode == "75002"
    assert parts.street == "12 Rue de la Paix"
    assert parts.street_number == "12"
    assert parts.city == "Paris"


def test_strip_leading_number_removes_every_copy():
    assert strip_leading_number("114 114 route de cremieu", "114") == "route de cremieu"
    assert strip_leading_number("route de cremieu", "114") == "route de cremieu"


def test_duplicated_street_number_is_moved_out_of_street():
    c = candidate(
        "114 114 route de cremieu, 38230 Tignieu-Jameyzieu",
        street="114 114 route de cremieu",
    )

    out = normalize_candidate(c, "114 route de cremieu")

    assert out.street == "route de cremieu"
    assert out.street_number == "114"
    assert out.postcode == "38230"
    assert out.city == "Tignieu-Jameyzieu"


def test_leading_number_kept_in_street_when_unrelated_to_query():
    c = candidate("Route 66, 38230 Tignieu-Jameyzieu", street="66 route nationale")

    out = normalize_candidate(c, "route nationale")

    assert out.street == "66 route nationale"
    assert out.street_number is None


def test_label_gets_missing_fragments_and_country():
    c = candidate(
        "Route de Crémieu",
        street="Route de Crémieu",
        street_number="114",
        postcode="38230",
        city="Tignieu-Jameyzieu",
        country="France",
    )

    out = normalize_candidate(c, "114 route de cremieu")

    assert out.label == "114 Route de Crémieu, 38230 Tignieu-Jameyzieu, France"


def test_postcode_inserted_before_city_already_in_label():
    c = candidate(
        "12 Rue Centrale, Crémieu, France",
        street="Rue Centrale",
        street_number="12",
        postcode="38460",
        city="Crémieu",
        country="France",
    )

    out = normalize_candidate(c)

    assert out.label == "12 Rue Centrale, 38460 Crémieu, France"


def test_postcode_not_inserted_inside_street_named_after_city():
    c = candidate(
        "12 Rue de Lyon, Lyon, France",
        street="Rue de Lyon",
        street_number="12",
        postcode="69001",
        city="Lyon",
        country="France",
    )

    assert normalize_candidate(c).label == "12 Rue de Lyon, 69001 Lyon, France"


def test_locality_appended_when_city_is_only_in_street():
    c = candidate("12 Rue de Lyon", street="Rue de Lyon", street_number="12", postcode="69001", city="Lyon")

    assert normalize_candidate(c).label == "12 Rue de Lyon, 69001 Lyon"


def test_complete_label_left_alone():
    label = "3 Place de la Mairie, 38230 Tignieu-Jameyzieu, France"
    c = candidate(
        label,
        street="Place de la Mairie",
        street_number="3",
        postcode="38230",
        city="Tignieu-Jameyzieu",
        country="France",
    )

    assert normalize_candidate(c, "3 place de la mairie").label == label


def test_dedupe_ignores_label_case_and_keeps_first():
    first = candidate("3 Place de la Mairie, 38230 Tignieu", postcode="38230", city="Tignieu")
    second = candidate("3 PLACE DE LA MAIRIE, 38230 TIGNIEU", postcode="38230", city="Tignieu")
    other = candidate("3 Place de la Mairie, 38230 Tignieu", postcode="38230", city="Tignieu", lat=45.8)

    out = dedupe_candidates([first, second, other])

    assert out == [first, other]


def test_suggest_filters_and_keeps_number_matches():
    wanted = candidate(
        "114 Route de Crémieu, 38230 Tignieu-Jameyzieu, France",
        street="Route de Crémieu",
        street_number="114",
        postcode="38230",
        city="Tignieu-Jameyzieu",
        country="France",
    )
    other_number = candidate(
        "2 Route de Crémieu, 38460 Crémieu, France",
        street="Route de Crémieu",
        street_number="2",
        postcode="38460",
        city="Crémieu",
        country="France",
    )
    no_locality = candidate("114 Route de Crémieu", street="Route de Crémieu", street_number="114")
    no_point = wanted.model_copy(update={"lat": math.nan})

    out = suggest([no_point, no_locality, other_number, wanted, wanted], "114 route de crem")

    assert [c.label for c in out] == [wanted.label]


def test_suggest_drops_exact_echo_of_query():
    label = "3 Place de la Mairie, 38230 Tignieu-Jameyzieu, France"
    c = candidate(label, street="Place de la Mairie", street_number="3", postcode="38230", city="Tignieu-Jameyzieu")

    assert suggest([c], label) == []


def test_suggest_caps_results():
    many = [
        candidate(f"Rue {i}, 38230 Tignieu-Jameyzieu", postcode="38230", city="Tignieu-Jameyzieu", lat=45.0 + i / 100)
        for i in range(8)
    ]

    assert len(suggest(many, "tignieu", limit=5)) == 5
