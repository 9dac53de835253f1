"""
Tests for the synthetic CSV generator.
"""

import pytest
import csv
import io
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dataroom.llm.synth import (
    DEFAULT_COLUMNS, ENUM_POOLS, NOUNS, generate_csv_fallback, generate_rows,
    infer_columns, kind_for_column, parse_enum_list, quote_field
)


def parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestColumnInference:
    """Tests for reading column names out of a prompt."""

    def test_after_first_colon(self):
        prompt = "sales data: Price, Qty | City\nnotes"
        assert infer_columns(prompt) == ["price", "qty", "city", "notes"]

    def test_without_colon(self):
        assert infer_columns("weather readings") == ["weather_readings"]

    def test_default_schema(self):
        assert infer_columns("") == DEFAULT_COLUMNS
        assert infer_columns("data: , ,") == DEFAULT_COLUMNS

    def test_deduplicates_and_limits_length(self):
        long_name = "x" * 41
        assert infer_columns(f"t: a, a, {long_name}, b") == ["a", "b"]

    def test_enum_blocks_are_not_columns(self):
        prompt = "orders: id, status{new, shipped}, amount"
        assert infer_columns(prompt) == ["id", "status", "amount"]

    def test_parse_enum_list(self):
        prompt = "orders: id, status{New, Shipped | returned}"
        assert parse_enum_list(prompt) == {"status": ["new", "shipped", "returned"]}


class TestKinds:
    """Tests for the column-name heuristics."""

    @pytest.mark.parametrize("name, kind", [
        ("user_id", "id"),
        ("id", "id"),
        ("signup_date", "date"),
        ("event_timestamp", "date"),
        ("active_flag", "bool"),
        ("plan", "enum_guess"),
        ("region", "enum_guess"),
        ("monthly_fee", "float"),
        ("close", "float"),
        ("seats", "int"),
        ("age", "int"),
        ("notes", "string"),
    ])
    def test_kind_for_column(self, name, kind):
        assert kind_for_column(name, {}) == kind

    def test_enum_wins(self):
        assert kind_for_column("plan", {"plan": ["a", "b"]}) == "enum"


class TestQuoteField:
    """Tests for minimal CSV quoting."""

    def test_plain(self):
        assert quote_field("plain") == "plain"

    def test_comma(self):
        assert quote_field("a,b") == '"a,b"'

    def test_quote(self):
        assert quote_field('say "hi"') == '"say ""hi"""'


class TestGenerate:
    """Tests for full dataset generation."""

    def test_deterministic(self):
        prompt = "subscriptions: user_id, plan, monthly_fee"
        assert generate_csv_fallback(prompt, 60, 7) == generate_csv_fallback(prompt, 60, 7)

    def test_seed_changes_output(self):
        prompt = "subscriptions: user_id, plan, monthly_fee"
        assert generate_csv_fallback(prompt, 60, 7) != generate_csv_fallback(prompt, 60, 8)

    def test_row_count(self):
        rows = parse(generate_csv_fallback("t: a, b", 50, 1))
        assert len(rows) == 51
        assert rows[0] == ["a", "b"]

    def test_value_kinds(self):
        rows = generate_rows("t: user_id, seats, monthly_fee, active_flag, notes, signup_date", 200, 3)
        for row in rows[1:]:
            user_id, seats, fee, active, notes, signup = row
            assert 100000 <= int(user_id) <= 999999
            assert 0 <= int(seats) <= 100
            assert 0.0 <= float(fee) <= 1000.0
            assert active in ("0", "1")
            assert notes in NOUNS
            assert "2021-01-01" <= signup <= "2025-09-01"

    def test_enum_guess_values(self):
        pool_values = {v for pool in ENUM_POOLS for v in pool}
        rows = generate_rows("t: plan", 100, 4)
        assert all(row[0] in pool_values for row in rows[1:])

    def test_explicit_enum_values(self):
        rows = generate_rows("t: tier{gold, silver}, n", 100, 5)
        assert rows[0] == ["tier", "n"]
        assert {row[0] for row in rows[1:]} <= {"gold", "silver"}

    def test_churn_rule(self):
        """Active accounts have no churn date; churned ones churn after signup."""
        rows = parse(generate_csv_fallback("", 300, 11))
        header = rows[0]
        assert header == DEFAULT_COLUMNS
        active = header.index("active_flag")
        signup = header.index("signup_date")
        churn = header.index("churn_date")

        churned = 0
        for row in rows[1:]:
            if row[active] == "1":
                assert row[churn] == ""
            else:
                churned += 1
                assert row[churn] >= row[signup]
        assert churned > 0
