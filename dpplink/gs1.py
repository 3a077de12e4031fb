"""GS1 Digital Link helpers.

Parses resolver URLs of the form
``/resolver/01/{gtin}/10/{lot}/21/{serial}``, builds them back with
percent-encoding, validates GTIN-14 check digits, and produces the EPC
and EPCIS representations used when publishing events for a product.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote, unquote_plus, urlsplit

from dpplink.core.timefmt import format_iso
from dpplink.models.links import LinkKey

_RESOLVER_PATH = re.compile(
    r"/resolver/01/(\d{14})/10/([^/]+)(?:/21/([^/?#]*))?", re.IGNORECASE
)
_EPCIS_CONTEXT = "https://ref.gs1.org/standards/epcis/2.0.0/epcis-context.jsonld"


def gtin_check_digit(body: str) -> int:
    """GS1 mod-10 check digit for the first 13 digits of a GTIN-14."""
    total = 0
    for position, char in enumerate(reversed(body)):
        weight = 3 if position % 2 == 0 else 1
        total += int(char) * weight
    return (10 - total % 10) % 10


def is_valid_gtin(gtin: str) -> bool:
    if not re.fullmatch(r"\d{14}", gtin):
        return False
    return gtin_check_digit(gtin[:13]) == int(gtin[13])


def parse_digital_link(raw: str) -> LinkKey | None:
    """Extract the GS1 key from a full resolver URL or a bare path.

    Returns ``None`` when the input does not contain a resolver path.
    A missing ``/21/{serial}`` segment yields an empty serial.
    """
    trimmed = raw.strip()
    if not trimmed:
        return None

    path = trimmed
    parts = urlsplit(trimmed)
    if parts.scheme and parts.netloc:
        path = parts.path

    match = _RESOLVER_PATH.search(path)
    if match is None:
        return None

    gtin, lot, serial = match.group(1), match.group(2), match.group(3) or ""
    return LinkKey(gtin=gtin, lot=unquote_plus(lot), serial=unquote_plus(serial))


def build_resolver_path(key: LinkKey) -> str:
    path = f"/resolver/01/{key.gtin}/10/{quote(key.lot, safe='')}"
    if key.serial:
        path += f"/21/{quote(key.serial, safe='')}"
    return path


def build_resolver_url(base_url: str, key: LinkKey) -> str:
    return base_url.rstrip("/") + build_resolver_path(key)


# ---------------------------------------------------------------------------
# EPC / EPCIS
# ---------------------------------------------------------------------------


def format_sgtin(gtin: str, serial: str) -> str:
    """SGTIN EPC pure-identity URN for a GTIN-14 and serial.

    Company prefix length is assumed to be 7 digits.
    """
    if not re.fullmatch(r"\d{14}", gtin):
        raise ValueError("GTIN must contain 14 digits to build an SGTIN.")
    company = gtin[1:8]
    item_reference = gtin[0] + gtin[8:13]
    return f"urn:epc:id:sgtin:{company}.{item_reference}.{serial}"


def build_object_event(
    key: LinkKey,
    *,
    read_point_gln: str = "",
    biz_step: str = "commissioning",
    disposition: str = "active",
    event_time: datetime | None = None,
) -> dict[str, Any]:
    """A minimal EPCIS 2.0 ObjectEvent (JSON-LD) commissioning the item."""
    moment = event_time or datetime.now(timezone.utc)
    event: dict[str, Any] = {
        "@context": [_EPCIS_CONTEXT],
        "type": "ObjectEvent",
        "action": "ADD",
        "bizStep": biz_step,
        "disposition": disposition,
        "eventTime": format_iso(moment),
        "eventTimeZoneOffset": "+00:00",
        "epcList": [format_sgtin(key.gtin, key.serial)],
        "ilmd": {"cbvmda:lotNumber": key.lot},
    }
    if read_point_gln:
        event["readPoint"] = {"id": f"urn:epc:id:sgln:{read_point_gln}"}
    return event
