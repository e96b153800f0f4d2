import pytest

from dbseed.schema.type_map import match_type, normalize_type
from dbseed.schema.types import SemanticType


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("VARCHAR(255)", SemanticType.TEXT),
        ("character varying", SemanticType.TEXT),
        ("text", SemanticType.TEXT),
        ("uuid", SemanticType.TEXT),
        ("INTEGER", SemanticType.INTEGER),
        ("bigint", SemanticType.INTEGER),
        ("SERIAL", SemanticType.INTEGER),
        ("smallserial", SemanticType.INTEGER),
        ("DECIMAL(10,2)", SemanticType.DECIMAL),
        ("numeric", SemanticType.DECIMAL),
        ("double precision", SemanticType.DECIMAL),
        ("float", SemanticType.DECIMAL),
        ("TIMESTAMP", SemanticType.TIMESTAMP),
        ("timestamptz", SemanticType.TIMESTAMP),
        ("date", SemanticType.TIMESTAMP),
        ("interval", SemanticType.TIMESTAMP),
        ("BOOLEAN", SemanticType.BOOLEAN),
        ("bool", SemanticType.BOOLEAN),
    ],
)
def test_known_types(raw, expected):
    assert normalize_type(raw) == expected


@pytest.mark.parametrize("raw", ["geometry", "point", "", None, "xml"])
def test_unknown_types_fall_back_to_text(raw):
    assert normalize_type(raw) == SemanticType.TEXT


def test_match_type_reports_unknown_as_none():
    assert match_type("geometry") is None
    assert match_type("int") == SemanticType.INTEGER
