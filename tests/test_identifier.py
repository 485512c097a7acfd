import pytest

from decalpak.errors import ValidationError, E_ID_FORMAT, E_ID_RANGE
from decalpak.packing.assembler import TemplateAssembler
from decalpak.packing.identifier import (
    IDENTIFIER_FIELD,
    format_identifier,
    parse_identifier,
    patch_identifier,
)


@pytest.mark.parametrize(
    "value,expected",
    [("0", 0), ("999", 999), ("13", 13), ("007", 7), (" 42 ", 42), (5, 5)],
)
def test_parse_valid(value, expected):
    assert parse_identifier(value) == expected


@pytest.mark.parametrize("value", ["abc", "", "1.5", "1_0", "0x10", True])
def test_parse_malformed(value):
    with pytest.raises(ValidationError) as exc:
        parse_identifier(value)
    assert exc.value.code == E_ID_FORMAT
    assert "Could not parse index" in exc.value.message


@pytest.mark.parametrize("value", ["-1", "1000", 5000, -20])
def test_parse_out_of_range(value):
    with pytest.raises(ValidationError) as exc:
        parse_identifier(value)
    assert exc.value.code == E_ID_RANGE


def test_format_zero_padded():
    assert format_identifier(0) == b"000"
    assert format_identifier(7) == b"007"
    assert format_identifier(999) == b"999"


def test_every_identifier_patches_all_copies(templates, payload):
    asm = TemplateAssembler(templates)
    entry = asm.assemble(payload)
    for n in range(0, 1000):
        assert patch_identifier(entry, asm.table, n) == 5
        expected = f"{n:03d}".encode("ascii")
        assert entry.read_field(asm.table, IDENTIFIER_FIELD) == [expected] * 5
