"""Validate customer CSV parsing and its failure modes."""

import pytest

from doubles import customer_csv
from scout.core.exceptions import CSVParsingError
from scout.data.csv_parser import CustomerCSVProcessor, parse_customer_csv


class TestCustomerCSVProcessor:
    """Validate CSV processing functionality."""

    def setup_method(self):
        self.processor = CustomerCSVProcessor()
        self.sample_csv = (
            "name,title,deal_value,status\n"
            "Ada,CTO,12000,active\n"
            "Grace,VP Eng,,churned\n"
            "\n"
            "Linus,Founder,4000,active\n"
        )

    def test_rows_and_columns(self):
        records = self.processor.parse(self.sample_csv)

        assert records.total_records == 3
        assert records.columns == ["name", "title", "deal_value", "status"]
        assert records.rows[0] == {
            "name": "Ada",
            "title": "CTO",
            "deal_value": 12000.0,
            "status": "active",
        }

    def test_missing_values_become_none(self):
        records = self.processor.parse(self.sample_csv)

        grace = next(r for r in records.rows if r["name"] == "Grace")
        assert grace["deal_value"] is None

    def test_large_file_counts_every_row(self):
        records = parse_customer_csv(customer_csv(150))

        assert records.total_records == 150
        assert len(records.context_rows(100)) == 100
        assert records.is_truncated(100)
        assert not records.is_truncated(150)

    def test_header_only_is_rejected(self):
        with pytest.raises(CSVParsingError, match="no data rows"):
            parse_customer_csv("name,title,deal_value\n")

    @pytest.mark.parametrize("text", ["", "   \n  "])
    def test_empty_is_rejected(self, text):
        with pytest.raises(CSVParsingError, match="no data found"):
            parse_customer_csv(text)

    def test_ragged_rows_are_rejected(self):
        with pytest.raises(CSVParsingError) as exc_info:
            parse_customer_csv("name,deal\nAcme,100\nBeta,200,300,400\n")
        assert exc_info.value.message.startswith("Failed to parse CSV:")
        assert exc_info.value.status_code == 400

    def test_plain_prose_is_rejected(self):
        with pytest.raises(CSVParsingError):
            parse_customer_csv("this is not a spreadsheet")
