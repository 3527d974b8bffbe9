"""
Item tag (EPC) decoding.

Both GS1 and IFT URNs are recognised, for serialised items (SGTIN,
including the GS1 pattern form) and for lots (LGTIN). The GTIN is
rebuilt as a 14-digit number: indicator digit + company prefix + item reference + check digit.
"""

from dataclasses import dataclass
from typing import Optional

URN_GS1_SGTIN = 'urn:epc:id:sgtin:'
URN_GS1_LGTIN = 'urn:epc:class:lgtin:'
URN_IFT_SGTIN = 'urn:ibm:ift:product:serial:obj:'
URN_IFT_LGTIN = 'urn:ibm:ift:product:lot:class:'
URN_PAT_SGTIN = 'urn:epc:idpat:sgtin:'

TAG_KINDS = (
    ((URN_GS1_SGTIN, URN_IFT_SGTIN, URN_PAT_SGTIN), 'serial'),
    ((URN_GS1_LGTIN, URN_IFT_LGTIN), 'lot'),
)


@dataclass(frozen=True)
class ProductIdentity:
    gtin: str
    serial_or_lot: str
    kind: str  # 'serial' or 'lot'


def gtin_check_digit(digits: str) -> str:
    """GS1 mod-10 check digit for the digits preceding it"""
    total = 0
    for position, digit in enumerate(reversed(digits)):
        weight = 3 if position % 2 == 0 else 1
        total += int(digit) * weight
    return str((10 - total % 10) % 10)


def _identity_from_body(body: str, kind: str) -> Optional[ProductIdentity]:
    parts = body.split('.', 2)
    if len(parts) != 3:
        return None
    company_prefix, item_reference, serial_or_lot = parts
    if not (company_prefix.isdigit() and item_reference.isdigit()):
        return None
    # company prefix + indicator + item reference is always 13 digits
    if len(company_prefix) + len(item_reference) != 13 or not serial_or_lot:
        return None

    partial = item_reference[0] + company_prefix + item_reference[1:]
    return ProductIdentity(
        gtin=partial + gtin_check_digit(partial),
        serial_or_lot=serial_or_lot,
        kind=kind,
    )


def decode_item_tag(tag: Optional[str]) -> Optional[ProductIdentity]:
    """
    Decode an item tag into the product it identifies.
    Returns None for anything that is not a recognised GTIN-bearing tag.
    """
    if not tag:
        return None
    tag = tag.strip()

    for prefixes, kind in TAG_KINDS:
        for prefix in prefixes:
            if tag.startswith(prefix):
                return _identity_from_body(tag[len(prefix):], kind)
    return None
