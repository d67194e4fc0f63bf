from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable, List, Optional

from taxi_pricing.domain.models import AddressCandidate

_POSTCODE_RE = re.compile(r"\b(\d{5})\b")
_QUERY_NUMBER_RE = re.compile(r"\b(\d{1,4})\b")
_LEADING_NUMBER_RE = re.compile(r"^\s*(\d+)\s+")
_SEGMENT_SPLIT_RE = re.compile(r"\s*[,|]\s*|\s+-\s+")
_LETTERS_RE = re.compile(r"[^\W\d_]{3,}")


@dataclass(frozen=True)
class AddressParts:
    postcode: str = ""
    city: str = ""
    street: str = ""
    street_number: str = ""


def fold(text: str) -> str:
    """Lowercase, strip accents and punctuation, collapse spaces."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"[\W_]+", " ", stripped.lower()).strip()


def query_number(query: str) -> Optional[str]:
    m = _QUERY_NUMBER_RE.search(query)
    return m.group(1) if m else None


def parse_address_parts(label: str) -> AddressParts:
    """Best-effort split of a free-text French address label."""
    normalized = re.sub(r"\s+", " ", label or "").strip()
    cp_match = _POSTCODE_RE.search(normalized)
    postcode = cp_match.group(1) if cp_match else ""
    segments = [s for s in _SEGMENT_SPLIT_RE.split(normalized) if s.strip()]

    street = ""
    street_number = ""
    for segment in segments:
        if re.search(r"\d", segment) and re.search(r"[^\W\d_]", segment):
            num = _LEADING_NUMBER_RE.match(segment)
            street_number = num.group(1) if num else ""
            street = segment
            if postcode:
                street = re.sub(rf"\b{postcode}\b", "", street).strip()
            if street_number and street == street_number:
                street = ""
            break

    city = ""
    if cp_match:
        after = normalized[cp_match.end():]
        for part in _SEGMENT_SPLIT_RE.split(after):
            if _LETTERS_RE.search(part):
                city = part.strip()
                break
    else:
        for segment in segments:
            if _LETTERS_RE.search(segment) and not re.search(r"\d", segment):
                city = segment.strip()
                break

    return AddressParts(postcode=postcode, city=city, street=street, street_number=street_number)


def strip_leading_number(street: str, number: str) -> str:
    """Remove every leading copy of the house number ("114 114 rue X" -> "rue X")."""
    pattern = re.compile(rf"^\s*{re.escape(number)}\s+", re.IGNORECASE)
    previous = None
    while previous != street:
        previous = street
        street = pattern.sub("", street, count=1)
    return street.strip()


def _insert_or_prepend(label: str, anchor: str, prefix: str, full: str) -> str:
    idx = label.lower().find(anchor.lower()) if anchor else -1
    if prefix and idx >= 0:
        return f"{label[:idx]}{prefix} {label[idx:]}"
    return f"{full}, {label}" if label else full


def _insert_postcode(label: str, postcode: Optional[str], city: Optional[str], locality_line: str) -> str:
    # only a whole ", Lyon," segment is the city; "Rue de Lyon" is not
    if postcode and city:
        segments = [s.strip() for s in label.split(",")]
        for i, segment in enumerate(segments):
            if segment.lower() == city.lower():
                segments[i] = f"{postcode} {segment}"
                return ", ".join(segments)
    return f"{label}, {locality_line}" if label else locality_line


def normalize_candidate(candidate: AddressCandidate, query: str = "") -> AddressCandidate:
    parsed = parse_address_parts(candidate.label)
    typed_number = query_number(query)

    street = (candidate.street or parsed.street or "").strip()
    number = (candidate.street_number or parsed.street_number or "").strip()
    if not number:
        lead = _LEADING_NUMBER_RE.match(street)
        if lead:
            repeated = re.match(rf"^\s*{lead.group(1)}\s+{lead.group(1)}\s+", street)
            if lead.group(1) == typed_number or repeated:
                number = lead.group(1)
    if number:
        street = strip_leading_number(street, number)

    postcode = candidate.postcode or parsed.postcode or None
    city = candidate.city or parsed.city or None

    label = (candidate.label or "").strip()
    street_line = " ".join(p for p in (number, street) if p)
    if street_line and street_line.lower() not in label.lower():
        label = _insert_or_prepend(label, street, number, street_line)

    locality_line = " ".join(p for p in (postcode, city) if p)
    if locality_line and locality_line.lower() not in label.lower():
        label = _insert_postcode(label, postcode, city, locality_line)

    if candidate.country and candidate.country.lower() not in label.lower():
        label = f"{label}, {candidate.country}"

    return candidate.model_copy(
        update={
            "label": label,
            "street": street or None,
            "street_number": number or None,
            "postcode": postcode,
            "city": city,
        }
    )


def dedupe_key(candidate: AddressCandidate) -> tuple:
    return (
        candidate.label.lower(),
        candidate.lat,
        candidate.lng,
        candidate.postcode or "",
        candidate.city or "",
    )


def dedupe_candidates(candidates: Iterable[AddressCandidate]) -> List[AddressCandidate]:
    seen = set()
    out: List[AddressCandidate] = []
    for c in candidates:
        key = dedupe_key(c)
        if key in seen:
            continue
        seen.add(key)
        out.append(c)
    return out


def _matches_query(candidate: AddressCandidate, folded_query: str) -> bool:
    haystack = fold(
        " ".join(
            p
            for p in (
                candidate.label,
                candidate.street_number,
                candidate.street,
                candidate.postcode,
                candidate.city,
            )
            if p
        )
    )
    return all(token in haystack for token in folded_query.split())


def suggest(
    candidates: Iterable[AddressCandidate], query: str, limit: int = 5
) -> List[AddressCandidate]:
    """Autocomplete list: normalized, query-matching, deduplicated, capped."""
    folded_query = fold(query)
    typed_number = query_number(query)
    kept = []
    for raw in candidates:
        c = normalize_candidate(raw, query)
        if not (math.isfinite(c.lat) and math.isfinite(c.lng)):
            continue
        if not ((c.city or "").strip() or (c.postcode or "").strip()):
            continue
        if not _matches_query(c, folded_query):
            continue
        if typed_number and typed_number not in (c.street_number or ""):
            continue
        if c.label.strip().lower() == query.strip().lower():
            continue
        kept.append(c)
    return dedupe_candidates(kept)[:limit]
