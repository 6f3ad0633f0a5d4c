"""
Region name normalization.

The case data and the boundary data spell LGA names differently: the case
data carries council-type annotations such as ``"Albury (C)"`` or
``"Central Coast (C) (NSW)"`` and mixed case, while the boundary data uses
bare uppercase names, sometimes with a suffix (``"ALBURY CITY"``). Both sides
are reduced to the same canonical form before joining.
"""

import re
from typing import Iterable, Mapping, Optional

import pandas as pd

# One trailing "(...)" group, with the whitespace before it
TRAILING_ANNOTATION = re.compile(r"\s*\([^()]*\)\s*$")


def strip_annotation(name: str) -> str:
    """Remove a single trailing parenthesized annotation."""
    return TRAILING_ANNOTATION.sub("", name)


def canonical_name(name: str) -> str:
    """Strip up to two trailing annotations and uppercase."""
    return strip_annotation(strip_annotation(name)).strip().upper()


def normalize_region_name(
    name: Optional[str], aliases: Optional[Mapping[str, str]] = None
) -> Optional[str]:
    """Normalize a raw region name to the boundary dataset's convention.

    Two trailing annotations are stripped; a third survives. Aliases are
    looked up on the stripped, uppercased name. Missing names stay ``None``.

    >>> normalize_region_name("Foo Area (A) (B)")
    'FOO AREA'
    >>> normalize_region_name("Albury (C)", {"ALBURY": "ALBURY CITY"})
    'ALBURY CITY'
    """
    if name is None or (not isinstance(name, str) and pd.isna(name)):
        return None

    normalized = canonical_name(str(name))
    if not normalized:
        return None

    if aliases:
        normalized = aliases.get(normalized, normalized)
    return normalized


def normalize_region_names(
    names: pd.Series, aliases: Optional[Mapping[str, str]] = None
) -> pd.Series:
    """Vectorized wrapper over :func:`normalize_region_name`."""
    return pd.Series(
        [normalize_region_name(name, aliases) for name in names],
        index=names.index,
        name=names.name,
        dtype=object,
    )


def is_unmatched(name: Optional[str], sentinels: Iterable[str]) -> bool:
    """True for names that never join to a polygon: sentinels and missing names."""
    if name is None or pd.isna(name):
        return True
    return name in set(sentinels)
