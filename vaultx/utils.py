"""Small helpers shared by the workflows and the UI."""

import base64
import binascii
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from urllib.parse import urlparse


def encrypt_id(value: str) -> str:
    """
    Encode an account ID into a sharable ID.

    This is a reversible base64 encoding, not encryption. It keeps raw
    Plaid account IDs out of URLs and copy-paste, nothing more.
    """
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def decrypt_id(value: str) -> str:
    """Reverse encrypt_id. Raises ValueError on malformed input."""
    try:
        return base64.b64decode(value.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError) as e:
        raise ValueError(f"Not a valid sharable ID: {value}") from e


def extract_customer_id_from_url(url: str) -> str:
    """
    Pull the customer ID out of a Dwolla customer URL.

    https://api-sandbox.dwolla.com/customers/<id> -> <id>
    """
    path = urlparse(url).path.rstrip("/")
    customer_id = path.rsplit("/", 1)[-1]
    if not customer_id:
        raise ValueError(f"No customer ID in URL: {url}")
    return customer_id


def to_decimal(value: Union[str, int, float, Decimal, None]) -> Optional[Decimal]:
    """Convert provider numbers to Decimal, None if not convertible."""
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def format_amount(amount: Union[Decimal, float, int, None]) -> str:
    """Format an amount as US dollars, e.g. $1,500.35 or -$12.00."""
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"
