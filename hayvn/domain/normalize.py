# hayvn/domain/normalize.py
from __future__ import annotations

from typing import Any, Callable, Mapping

from ..models import ListingStatus
from .parsing import get_first, to_date_only, to_datetime, to_int, to_number, to_str
from .types import NormalizedListing

_ACTIVE = {"active", "comingsoon", "coming soon", "activeundercontract", "active under contract"}
_PENDING = {"pending", "undercontract", "under contract", "contingent", "hold"}
_SOLD = {"closed", "sold"}


def normalize_status(raw: object) -> ListingStatus:
    """Map RESO-ish status strings onto the four statuses the listings table allows."""
    s = str(raw if raw is not None else "").strip().lower()
    if s in _ACTIVE:
        return ListingStatus.active
    if s in _PENDING:
        return ListingStatus.pending
    if s in _SOLD:
        return ListingStatus.sold
    return ListingStatus.other


# Canonical field -> vendor field names, highest priority first.
# Vendors drift between these names; first non-null wins.
FIELD_CHAINS: dict[str, tuple[str, ...]] = {
    "status": ("StandardStatus", "MlsStatus", "Status"),
    "list_date": ("OnMarketDate", "ListingContractDate", "ListDate"),
    "close_date": ("CloseDate",),
    "status_last_changed_at": (
        "StatusChangeTimestamp",
        "ContractStatusChangeDate",
        "ModificationTimestamp",
        "OriginatingSystemModificationTimestamp",
    ),
    "property_type": ("PropertyType", "PropertySubType"),
    "listing_title": ("UnparsedAddress", "StreetAddress", "ListingTitle"),
    "description": ("PublicRemarks", "PrivateRemarks", "Description"),
    "list_price": ("ListPrice",),
    "original_list_price": ("OriginalListPrice",),
    "close_price": ("ClosePrice",),
    "beds": ("BedroomsTotal",),
    "baths": ("BathroomsTotalInteger", "BathroomsTotal"),
    "sqft": ("LivingArea", "BuildingAreaTotal"),
    "lot_sqft": ("LotSizeSquareFeet",),
    "year_built": ("YearBuilt",),
    "street_number": ("StreetNumber",),
    "street_dir_prefix": ("StreetDirPrefix",),
    "street_name": ("StreetName",),
    "street_suffix": ("StreetSuffix",),
    "unit": ("UnitNumber", "Unit"),
    "city": ("City", "PostalCity"),
    "state": ("StateOrProvince",),
    "postal_code": ("PostalCode", "PostalCodePlus4"),
    "county": ("CountyOrParish",),
    "latitude": ("Latitude",),
    "longitude": ("Longitude",),
}

_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "status": normalize_status,
    "list_date": to_date_only,
    "close_date": to_date_only,
    "status_last_changed_at": to_datetime,
    "list_price": to_number,
    "original_list_price": to_number,
    "close_price": to_number,
    "beds": to_number,
    "baths": to_number,
    "sqft": to_number,
    "lot_sqft": to_number,
    "year_built": to_int,
    "latitude": to_number,
    "longitude": to_number,
}


def resolve_mls_number(record: Mapping[str, Any]) -> str | None:
    v = get_first(record, "ListingKey", "ListingId")
    if v is None and record.get("ListingKeyNumeric") is not None:
        v = record["ListingKeyNumeric"]
    return to_str(v)


def normalize_listing(record: Mapping[str, Any], mls_source: str | None) -> NormalizedListing | None:
    """
    One raw RESO Property record -> NormalizedListing.

    Returns None when there is no usable natural id; callers drop those rows.
    The full record is kept verbatim as raw_payload.
    """
    if not isinstance(record, Mapping):
        return None

    mls_number = resolve_mls_number(record)
    if not mls_number:
        return None

    fields: dict[str, Any] = {}
    for name, keys in FIELD_CHAINS.items():
        convert = _CONVERTERS.get(name, to_str)
        fields[name] = convert(get_first(record, *keys))

    return NormalizedListing(
        mls_number=mls_number,
        mls_source=mls_source,
        raw_payload=dict(record),
        **fields,
    )
