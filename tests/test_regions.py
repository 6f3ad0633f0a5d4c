import numpy as np
import pandas as pd
import pytest

from processing.regions import (
    canonical_name,
    is_unmatched,
    normalize_region_name,
    normalize_region_names,
    strip_annotation,
)

ALIASES = {"ALBURY": "ALBURY CITY", "UPPER HUNTER": "UPPER HUNTER SHIRE"}


def test_strip_annotation_removes_only_the_last_group():
    assert strip_annotation("Foo (A) (B)") == "Foo (A)"
    assert strip_annotation("Foo") == "Foo"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Foo Area (A) (B)", "FOO AREA"),
        ("Central Coast (C) (NSW)", "CENTRAL COAST"),
        ("Sydney (C)", "SYDNEY"),
        ("Foo(A)", "FOO"),
        ("  waverley  ", "WAVERLEY"),
        ("Correctional settings", "CORRECTIONAL SETTINGS"),
    ],
)
def test_normalize_strips_and_uppercases(raw, expected):
    assert normalize_region_name(raw) == expected


def test_third_annotation_survives():
    assert normalize_region_name("Foo (A) (B) (C)") == "FOO (A)"


def test_inner_parentheses_are_kept():
    assert canonical_name("Foo (North) Area") == "FOO (NORTH) AREA"


def test_alias_applied_after_strip_and_uppercase():
    assert normalize_region_name("Albury", ALIASES) == "ALBURY CITY"
    assert normalize_region_name("Albury (C)", ALIASES) == "ALBURY CITY"
    assert normalize_region_name("albury", ALIASES) == "ALBURY CITY"


def test_alias_not_applied_to_partial_names():
    assert normalize_region_name("Albury North", ALIASES) == "ALBURY NORTH"


@pytest.mark.parametrize(
    "raw",
    ["Foo Area (A) (B)", "Albury (C)", "Upper Hunter (A)", "Sydney", "FOO", "Bayside (A)"],
)
def test_normalize_is_idempotent(raw):
    once = normalize_region_name(raw, ALIASES)
    assert normalize_region_name(once, ALIASES) == once


@pytest.mark.parametrize("missing", [None, np.nan, pd.NA, "", "   "])
def test_missing_names_normalize_to_none(missing):
    assert normalize_region_name(missing) is None


def test_normalize_series_keeps_index_and_missing():
    names = pd.Series(["Albury (C)", None, "Sydney (C)"], index=[10, 11, 12])
    result = normalize_region_names(names, ALIASES)

    assert list(result.index) == [10, 11, 12]
    assert result.tolist() == ["ALBURY CITY", None, "SYDNEY"]


def test_is_unmatched():
    sentinels = ["CORRECTIONAL SETTINGS"]
    assert is_unmatched(None, sentinels)
    assert is_unmatched("CORRECTIONAL SETTINGS", sentinels)
    assert not is_unmatched("SYDNEY", sentinels)


@pytest.mark.parametrize("missing", [np.nan, pd.NA])
def test_is_unmatched_treats_nan_as_missing(missing):
    assert is_unmatched(missing, ["CORRECTIONAL SETTINGS"])


def test_normalize_series_is_object_dtype_with_none_for_missing():
    names = pd.Series([None, np.nan, "Waverley (A)"], dtype="string")
    result = normalize_region_names(names)

    assert result.dtype == object
    assert result.iloc[0] is None
    assert result.iloc[1] is None
    assert result.iloc[2] == "WAVERLEY"
