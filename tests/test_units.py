"""Tests for unit-suffixed quantity parsing."""

from __future__ import annotations

import argparse

import pytest

from tusk.errors import InvalidQuantity
from tusk.units import (
    StorageScale,
    StorageUnit,
    TimeScale,
    TimeUnit,
    parse_storage_unit,
    parse_time_unit,
    time_unit_arg,
)


@pytest.mark.parametrize("text", ["5us", "250ms", "30s", "5min", "2h", "7d"])
def test_time_unit_display_matches_input(text: str) -> None:
    assert str(parse_time_unit(text)) == text


@pytest.mark.parametrize("text", ["512", "2kB", "64MB", "32GB", "1TB"])
def test_storage_unit_display_matches_input(text: str) -> None:
    assert str(parse_storage_unit(text)) == text


def test_time_unit_keeps_magnitude_and_scale() -> None:
    value = TimeUnit.parse("5min")

    assert value.magnitude == 5
    assert value.scale is TimeScale.MINUTES


def test_storage_byte_count_uses_binary_multipliers() -> None:
    assert StorageUnit.parse("1GB").byte_count() == 1073741824
    assert StorageUnit.parse("2kB").byte_count() == 2048
    assert StorageUnit.parse("3MB").byte_count() == 3 * 1024**2
    assert StorageUnit.parse("1TB").byte_count() == 1024**4
    assert StorageUnit.parse("17").byte_count() == 17


def test_storage_magnitude_is_not_normalized() -> None:
    value = StorageUnit.parse("32GB")

    assert value.magnitude == 32
    assert value.scale is StorageScale.GIBIBYTES


def test_storage_without_suffix_defaults_to_bytes() -> None:
    assert StorageUnit.parse("4096") == StorageUnit(4096, StorageScale.BYTES)


@pytest.mark.parametrize("text", ["5xyz", "abc", "", "5", "-5s", "1.5h", "5 min", "5MIN", "min"])
def test_time_unit_rejects_malformed_input(text: str) -> None:
    with pytest.raises(InvalidQuantity) as excinfo:
        TimeUnit.parse(text)

    assert excinfo.value.value == text


@pytest.mark.parametrize("text", ["5xyz", "abc", "", "1gb", "2KB", "-1GB", "1.5GB"])
def test_storage_unit_rejects_malformed_input(text: str) -> None:
    with pytest.raises(InvalidQuantity):
        StorageUnit.parse(text)


def test_magnitude_must_fit_in_64_bits() -> None:
    assert StorageUnit.parse(f"{2**64 - 1}").magnitude == 2**64 - 1
    with pytest.raises(InvalidQuantity):
        StorageUnit.parse(f"{2**64}")


def test_invalid_quantity_names_offending_input() -> None:
    with pytest.raises(InvalidQuantity, match="'5xyz'"):
        parse_time_unit("5xyz")


def test_time_unit_arg_raises_argparse_error() -> None:
    assert time_unit_arg("10s") == TimeUnit(10, TimeScale.SECONDS)
    with pytest.raises(argparse.ArgumentTypeError):
        time_unit_arg("ten seconds")
