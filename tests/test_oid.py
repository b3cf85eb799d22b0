import pytest

from pqkit.oid import Oid, type_name


@pytest.mark.parametrize(
    "oid, name",
    [
        (Oid.INT8, "INT8"),
        (Oid.INT4, "INT4"),
        (Oid.INT2, "INT2"),
        (Oid.VARCHAR, "VARCHAR"),
        (Oid.TEXT, "TEXT"),
        (Oid.BOOL, "BOOL"),
        (Oid.NUMERIC, "NUMERIC"),
        (Oid.DATE, "DATE"),
        (Oid.TIME, "TIME"),
        (Oid.TIMETZ, "TIMETZ"),
        (Oid.TIMESTAMP, "TIMESTAMP"),
        (Oid.TIMESTAMPTZ, "TIMESTAMPTZ"),
        (Oid.BYTEA, "BYTEA"),
    ],
)
def test_type_name_of_scalar_types(oid, name):
    assert type_name(oid) == name


def test_array_types_carry_leading_underscore():
    assert type_name(Oid.XML_ARRAY) == "_XML"
    assert type_name(Oid.INT2VECTOR_ARRAY) == "_INT2VECTOR"
    assert type_name(Oid.TXID_SNAPSHOT_ARRAY) == "_TXID_SNAPSHOT"


@pytest.mark.parametrize(
    "value, member, name",
    [
        (16, Oid.BOOL, "BOOL"),
        (705, Oid.UNKNOWN, "UNKNOWN"),
        (2950, Oid.UUID, "UUID"),
    ],
)
def test_values_fixed_by_server_catalogue(value, member, name):
    assert Oid(value) is member
    assert type_name(value) == name


def test_type_name_accepts_plain_int():
    assert type_name(int(Oid.BYTEA)) == "BYTEA"
    assert type_name(int(Oid.REFCURSOR_ARRAY)) == "_REFCURSOR"


def test_unknown_oid_has_empty_name():
    assert type_name(999999) == ""
    assert type_name(0) == ""


def test_names_are_unique_and_round_trip():
    names = [type_name(member) for member in Oid]
    assert len(names) == len(set(names))
    for member in Oid:
        assert Oid(int(member)) is member


def test_array_names_match_their_element_type():
    for member in Oid:
        name = type_name(member)
        if name.startswith("_"):
            element = Oid[member.name[: -len("_ARRAY")]]
            assert type_name(element) == name[1:]


def test_values_are_unique():
    values = [int(member) for member in Oid]
    assert len(values) == len(set(values))
    assert [Oid(value) for value in values] == list(Oid)