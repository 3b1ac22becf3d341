"""
tests/test_fluent.py
Tests for fescaffold.fluent, the IEntityTypeConfiguration<T> reader.

Tests cover:
    - Lambda member extraction (single, parenthesised, composite, malformed)
    - Configured entity detection from the base type list
    - Rule tokens per property, in call order
    - Files that configure nothing
    - Later files replacing earlier rules for the same entity
"""

from __future__ import annotations

import pathlib
import textwrap

import pytest

from fescaffold.fluent import (
    configured_entity_name,
    extract_fluent_rules,
    extract_lambda_member,
    extract_lambda_members,
    parse_configuration_source,
)
from fescaffold.syntax import parse_classes, parse_source


def _config(body: str, entity: str = "Order", param: str = "builder") -> str:
    return textwrap.dedent(f"""
        public class {entity}Configuration : IEntityTypeConfiguration<{entity}>
        {{
            public void Configure(EntityTypeBuilder<{entity}> {param})
            {{
        {textwrap.indent(textwrap.dedent(body), "        ")}
            }}
        }}
    """)


# ==========================================================================
# Lambda selectors
# ==========================================================================


class TestLambdaMembers:
    """extract_lambda_member and extract_lambda_members."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("x => x.Total", "Total"),
            ("e => e.Id", "Id"),
            ("(p) => p.Name", "Name"),
            ("  o=>o.Reference  ", "Reference"),
        ],
    )
    def test_simple_member(self, expression: str, expected: str) -> None:
        assert extract_lambda_member(expression) == expected

    @pytest.mark.parametrize(
        "expression",
        [
            "e => e.Customer.Name",
            "x => y.Name",
            "x => x.Name.ToUpper()",
            "Name",
            '"Shadow"',
            "",
        ],
    )
    def test_other_shapes_yield_none(self, expression: str) -> None:
        assert extract_lambda_member(expression) is None

    def test_composite_key(self) -> None:
        assert extract_lambda_members("x => new { x.OrderId, x.LineNo }") == ["OrderId", "LineNo"]

    def test_single_key_as_list(self) -> None:
        assert extract_lambda_members("k => k.Id") == ["Id"]

    def test_malformed_composite_yields_empty(self) -> None:
        assert extract_lambda_members("x => new { x.A, y.B }") == []
        assert extract_lambda_members("x => Tuple.Create(x.A)") == []


# ==========================================================================
# Configuration classes
# ==========================================================================


class TestConfiguredEntity:
    """Entity name taken from the IEntityTypeConfiguration<T> base."""

    def test_plain_base(self) -> None:
        decl = parse_classes(parse_source("class C : IEntityTypeConfiguration<Order> { }"))[0]
        assert configured_entity_name(decl) == "Order"

    def test_qualified_base_among_others(self) -> None:
        src = (
            "class C : Base, "
            "Microsoft.EntityFrameworkCore.IEntityTypeConfiguration<Shop.Order> { }"
        )
        assert configured_entity_name(parse_classes(parse_source(src))[0]) == "Shop.Order"

    def test_unrelated_base(self) -> None:
        decl = parse_classes(parse_source("class C : IComparable<Order> { }"))[0]
        assert configured_entity_name(decl) is None


class TestParseConfigurationSource:
    """Rule extraction from one configuration file."""

    def test_key_and_property_rules(self) -> None:
        src = _config("""
            builder.HasKey(x => x.Id);
            builder.Property(x => x.Total).HasPrecision(18, 2).HasMaxLength(10);
            builder.Property(x => x.Reference).IsRequired();
        """)
        entity, rules = parse_configuration_source(src)
        assert entity == "Order"
        assert rules == {
            "Id": ["HasKey"],
            "Total": ["HasPrecision(18, 2)", "HasMaxLength(10)"],
            "Reference": ["IsRequired()"],
        }

    def test_repeated_property_chains_accumulate(self) -> None:
        src = _config("""
            builder.Property(x => x.Name).IsRequired();
            builder.Property(x => x.Name).HasMaxLength(50);
        """)
        _, rules = parse_configuration_source(src)
        assert rules["Name"] == ["IsRequired()", "HasMaxLength(50)"]

    def test_composite_key(self) -> None:
        src = _config("builder.HasKey(x => new { x.OrderId, x.LineNo });", entity="OrderLine")
        entity, rules = parse_configuration_source(src)
        assert entity == "OrderLine"
        assert rules == {"OrderId": ["HasKey"], "LineNo": ["HasKey"]}

    def test_other_chains_and_comments_ignored(self) -> None:
        src = _config("""
            // builder.Property(x => x.Ghost).IsRequired();
            builder.ToTable("Orders");
            builder.HasOne(x => x.Customer).WithMany();
            builder.Property<string>("Shadow").HasMaxLength(5);
            builder.Property(x => x.Customer.Name).IsRequired();
        """)
        _, rules = parse_configuration_source(src)
        assert rules == {}

    def test_property_without_rules(self) -> None:
        _, rules = parse_configuration_source(_config("builder.Property(x => x.Note);"))
        assert rules == {"Note": []}

    def test_custom_builder_name(self) -> None:
        src = _config("b.HasKey(x => x.Id);", param="b")
        assert parse_configuration_source(src) == ("Order", {})
        assert parse_configuration_source(src, builder_name="b") == ("Order", {"Id": ["HasKey"]})

    def test_expression_bodied_configure(self) -> None:
        src = """
        public class OrderConfiguration : IEntityTypeConfiguration<Order>
        {
            public void Configure(EntityTypeBuilder<Order> builder) => builder.HasKey(o => o.Id);
        }
        """
        assert parse_configuration_source(src) == ("Order", {"Id": ["HasKey"]})

    def test_no_class(self) -> None:
        assert parse_configuration_source("namespace Empty;") is None

    def test_class_without_configuration_base(self) -> None:
        assert parse_configuration_source("public class Helper { public void Configure() { } }") is None

    def test_missing_configure_method(self) -> None:
        src = "public class OrderConfiguration : IEntityTypeConfiguration<Order> { }"
        assert parse_configuration_source(src) is None


# ==========================================================================
# Multiple files
# ==========================================================================


class TestExtractFluentRules:
    """extract_fluent_rules across files on disk."""

    def test_sample_project(self, sample_project: pathlib.Path) -> None:
        files = sorted((sample_project / "Data" / "Configurations").glob("*.cs"))
        rules = extract_fluent_rules(files)
        assert rules == {
            "Order": {
                "Id": ["HasKey"],
                "Total": ["HasPrecision(18, 2)", "HasMaxLength(10)"],
                "Reference": ["IsRequired()"],
            }
        }

    def test_later_file_replaces_earlier(self, tmp_path: pathlib.Path, write_cs) -> None:
        first = write_cs(tmp_path, "A.cs", _config("builder.Property(x => x.Name).IsRequired();"))
        second = write_cs(tmp_path, "B.cs", _config("builder.HasKey(x => x.Code);"))
        rules = extract_fluent_rules([first, second])
        assert rules == {"Order": {"Code": ["HasKey"]}}

    def test_files_configuring_nothing_are_skipped(self, tmp_path: pathlib.Path, write_cs) -> None:
        junk = write_cs(tmp_path, "Junk.cs", "public class Nothing { }")
        real = write_cs(tmp_path, "Real.cs", _config("builder.HasKey(x => x.Id);", entity="Tag"))
        assert extract_fluent_rules([junk, real]) == {"Tag": {"Id": ["HasKey"]}}

    def test_utf16_configuration_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "OrderConfiguration.cs"
        path.write_bytes(_config("// clé\nbuilder.HasKey(x => x.Id);").encode("utf-16"))
        assert extract_fluent_rules([path]) == {"Order": {"Id": ["HasKey"]}}

    def test_no_files(self) -> None:
        assert extract_fluent_rules([]) == {}
