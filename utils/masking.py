"""
Masking utilities for sensitive data in logs.

The upstream mobile API authenticates with opaque header values (``ft``,
``xhel``, ``xss``) captured from a real device.  They must never reach the
logs or API responses in clear text:
- Full masking (100%): anything that can be replayed as-is
- Partial masking: long tokens where the first/last few chars help tell
  two captures apart
"""

from typing import Dict, Optional

SIGNATURE_KEYS = ('ft', 'xhel', 'xss')


def mask_full(value: Optional[str]) -> str:
    """
    Fully mask a sensitive value (100% hidden).

    Returns:
        '********' if value exists, 'None' if value is None/empty
    """
    if not value:
        return 'None'
    return '********'


def mask_partial(value: Optional[str], show_start: int = 4, show_end: int = 4,
                 min_masked: int = 4) -> str:
    """
    Partially mask a value, showing first and last few characters.

    Values too short to keep *min_masked* characters hidden are fully
    masked instead.

    Examples:
        'abcdefghijklmnop' -> 'abcd********mnop'
        'short' -> '********'
    """
    if not value:
        return 'None'

    value_str = str(value)
    hidden = len(value_str) - show_start - show_end
    if hidden < min_masked:
        return mask_full(value_str)
    return value_str[:show_start] + '*' * hidden + value_str[-show_end:]


def mask_signatures(signatures: Dict[str, str]) -> Dict[str, str]:
    """
    Return a copy of a signatures mapping with the header values masked.

    Keys other than ``ft``/``xhel``/``xss`` (e.g. ``lastUpdated``) are kept.
    """
    masked = dict(signatures)
    for key in SIGNATURE_KEYS:
        if key in masked:
            masked[key] = mask_partial(masked[key])
    return masked
