"""Field parsers for the map detail panel.

The detail panel carries no semantic field names. Each field is recovered
from positional conventions of its "item" buttons, and each convention
lives in exactly one function here so a markup change touches one place.

Item buttons look like::

    <button data-item-id="address" aria-label="Address: Jl. Contoh No. 1">
    <button data-item-id="phone:tel:0812-345" aria-label="Phone: 0812-345">
"""

from typing import Iterable, Optional


NO_TITLE = "No title"
NO_ADDRESS = "No address"


def parse_title(text: Optional[str]) -> str:
    """Return the trimmed panel title, or ``NO_TITLE`` when absent.

    Args:
        text: Raw text content of the title element, None if missing

    Returns:
        Title string
    """
    if text is None:
        return NO_TITLE
    title = text.strip()
    return title or NO_TITLE


def parse_address(labels: Iterable[Optional[str]]) -> str:
    """Extract the address from the label of the first item button.

    The label reads ``"<Field>: <value>"``; the address is the text after
    the first colon, trimmed, and may be empty (``"Address:"``). A label
    without a colon is used whole.

    Args:
        labels: Label strings of the panel's item buttons in page order

    Returns:
        Address string, ``NO_ADDRESS`` when there is no first button label

    Example:
        >>> parse_address(["Address: Jl. Contoh No. 1"])
        'Jl. Contoh No. 1'
    """
    first = next(iter(labels), None)
    if first is None:
        return NO_ADDRESS

    head, sep, tail = first.partition(":")
    return tail.strip() if sep else head.strip()


def parse_phone(identifiers: Iterable[Optional[str]]) -> str:
    """Extract the phone number from the item button identifiers.

    The first identifier that splits on ``:`` into at least three segments
    wins (``"phone:tel:0812-345"``). The phone is its third segment with
    only the first hyphen removed.

    Args:
        identifiers: Raw identifier strings of the panel's item buttons

    Returns:
        Phone string, empty when no identifier matches

    Example:
        >>> parse_phone(["abc", "phone:tel:-0812345"])
        '0812345'
    """
    for identifier in identifiers:
        if not identifier:
            continue
        segments = identifier.split(":")
        if len(segments) >= 3:
            return segments[2].replace("-", "", 1)
    return ""
