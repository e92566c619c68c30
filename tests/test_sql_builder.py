"""Tests for ormhouse.sql_builder."""

import pytest

from ormhouse import ValidationError
from ormhouse.sql_builder import BuiltQuery, SQLBuilder, placeholder, positional_to_named, quote_identifier


def test_quote_identifier():
    assert quote_identifier("users") == "`users`"
    for bad in ("users`; DROP TABLE x", "1a", "", "a.b"):
        with pytest.raises(ValidationError, match="Invalid SQL identifier"):
            quote_identifier(bad)


def test_placeholders_and_named_params():
    assert placeholder(3, "UInt8") == "{param3:UInt8}"
    assert positional_to_named(["a", "b"], start=2) == {"param2": "a", "param3": "b"}
    assert BuiltQuery(sql="", params=[1]).named_params() == {"param0": 1}


def test_select_with_every_clause():
    built = (
        SQLBuilder()
        .select(["id", "name"])
        .from_("users")
        .where("`age` > {param0:Int32}")
        .where("`name` != {param1:String}")
        .group_by(["name"])
        .order_by("id", "desc")
        .limit(10)
        .offset(20)
        .build()
    )
    assert built.sql == (
        "SELECT `id`, `name` FROM `users` WHERE `age` > {param0:Int32} AND `name` != {param1:String}"
        " GROUP BY `name` ORDER BY `id` DESC LIMIT 10 OFFSET 20"
    )
    assert built.params == []


def test_select_defaults_to_star():
    assert SQLBuilder().select().from_("t").build().sql == "SELECT * FROM `t`"
    assert SQLBuilder().from_("t").build().sql == "SELECT * FROM `t`"


def test_select_raw_and_trailing_raw():
    built = SQLBuilder().select_raw("COUNT(*) AS `count`").from_("t").raw("SETTINGS max_threads = 2").build()
    assert built.sql == "SELECT COUNT(*) AS `count` FROM `t` SETTINGS max_threads = 2"


def test_invalid_order_direction():
    with pytest.raises(ValidationError, match="direction"):
        SQLBuilder().order_by("id", "sideways")


def test_insert():
    built = (
        SQLBuilder()
        .insert_into("users", ["id", "name"])
        .values([[1, "a"], [2, "b"]], ["UInt32", "String"])
        .build()
    )
    assert built.sql == (
        "INSERT INTO `users` (`id`, `name`) VALUES "
        "({param0:UInt32}, {param1:String}), ({param2:UInt32}, {param3:String})"
    )
    assert built.params == [1, "a", 2, "b"]


def test_insert_infers_types_and_checks_row_length():
    built = SQLBuilder().insert_into("t", ["a"]).values([[True]]).build()
    assert built.sql == "INSERT INTO `t` (`a`) VALUES ({param0:UInt8})"
    with pytest.raises(ValidationError, match="Expected 2 values per row"):
        SQLBuilder().insert_into("t", ["a", "b"]).values([[1]])
    with pytest.raises(ValidationError, match="at least one row"):
        SQLBuilder().insert_into("t", ["a"]).build()


def test_update_continues_numbering_into_where():
    builder = SQLBuilder().update("users").set({"name": "x", "age": 3}, {"age": "UInt8"})
    assert builder.next_param_index == 2
    built = builder.where("`id` = {param2:Int32}").build()
    assert built.sql == "UPDATE `users` SET `name` = {param0:String}, `age` = {param1:UInt8} WHERE `id` = {param2:Int32}"
    assert built.params == ["x", 3]


def test_start_param_index():
    built = SQLBuilder(start_param_index=4).update("t").set({"a": 1}).build()
    assert built.sql == "UPDATE `t` SET `a` = {param4:Int32}"
    assert built.named_params(4) == {"param4": 1}


def test_update_requires_assignments():
    with pytest.raises(ValidationError, match="at least one assignment"):
        SQLBuilder().update("t").build()


def test_delete():
    assert SQLBuilder().delete_from("t").where("`a` = 1").build().sql == "DELETE FROM `t` WHERE `a` = 1"


def test_missing_table():
    with pytest.raises(ValidationError, match="no table"):
        SQLBuilder().select().build()
