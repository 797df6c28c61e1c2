# ledger/validation.py
from __future__ import annotations

import math
import re
from typing import Union

_NOT_AMOUNT = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


class InvalidAmountError(ValueError):
    """Amount is missing, not a number, or not positive."""


def sanitize_amount_text(text: str) -> str:
    """Keep digits and dots only, the way the amount field filters keystrokes."""
    return _NOT_AMOUNT.sub("", text or "")


def parse_amount(value: Union[str, int, float, None]) -> float:
    """
    Parse a user-entered amount.
      "12.50"   -> 12.5
      "$1,200"  -> 1200.0
      "3.4.5"   -> 3.4   (leading number wins)
    Raises InvalidAmountError for blanks, NaN and anything <= 0.
    """
    if isinstance(value, bool):
        raise InvalidAmountError("Please enter a valid amount")

    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        m = _LEADING_NUMBER.match(sanitize_amount_text(value or ""))
        if not m:
            raise InvalidAmountError("Please enter a valid amount")
        amount = float(m.group(0))

    if math.isnan(amount) or math.isinf(amount) or amount <= 0:
        raise InvalidAmountError("Please enter a valid amount")
    return amount
