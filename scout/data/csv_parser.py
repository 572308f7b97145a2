"""
Customer CSV parsing for segmentation analysis.

Parses uploaded customer exports with pandas, refusing anything that is not
header + delimited rows rather than guessing a schema.
"""

import io
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pandas as pd
import structlog

from scout.core.exceptions import CSVParsingError

logger = structlog.get_logger(__name__)


@dataclass
class CustomerRecords:
    """Parsed customer rows plus the bookkeeping the prompt needs."""

    rows: List[Dict[str, Any]]
    columns: List[str] = field(default_factory=list)

    @property
    def total_records(self) -> int:
        return len(self.rows)

    def context_rows(self, limit: int) -> List[Dict[str, Any]]:
        """First ``limit`` rows, the slice that is sent to the model."""
        return self.rows[:limit]

    def is_truncated(self, limit: int) -> bool:
        return self.total_records > limit


class CustomerCSVProcessor:
    """
    CSV processing with validation and normalization.
    """

    def read_frame(self, csv_text: str) -> pd.DataFrame:
        """
        Read CSV text into a DataFrame.

        Raises:
            CSVParsingError: If the text is empty or not delimited tabular data
        """
        if not csv_text or not csv_text.strip():
            raise CSVParsingError("Failed to parse CSV: no data found")

        try:
            df = pd.read_csv(io.StringIO(csv_text), skip_blank_lines=True)
        except pd.errors.EmptyDataError as e:
            raise CSVParsingError("Failed to parse CSV: no data found") from e
        except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
            raise CSVParsingError(f"Failed to parse CSV: {e}") from e

        df.columns = [str(c).strip() for c in df.columns]
        if all(c.startswith("Unnamed:") or not c for c in df.columns):
            raise CSVParsingError("Failed to parse CSV: header row has no column names")

        df = df.dropna(how="all")
        if df.empty:
            raise CSVParsingError("Failed to parse CSV: no data rows found below the header")

        return df

    def to_records(self, df: pd.DataFrame) -> List[Dict[str, Any]]:
        """
        Convert rows to JSON-safe dicts.

        NaN becomes ``None`` and numpy scalars become plain Python numbers.
        """
        return json.loads(df.to_json(orient="records", date_format="iso"))

    def parse(self, csv_text: str) -> CustomerRecords:
        df = self.read_frame(csv_text)
        records = CustomerRecords(rows=self.to_records(df), columns=list(df.columns))

        logger.info(
            "customer_csv_parsed",
            rows=records.total_records,
            columns=len(records.columns),
        )
        return records


def parse_customer_csv(csv_text: str) -> CustomerRecords:
    """
    Parse customer CSV text into records.

    Args:
        csv_text: Raw CSV text with a header row

    Returns:
        CustomerRecords with every parsed row

    Raises:
        CSVParsingError: On empty, header-only or malformed input
    """
    return CustomerCSVProcessor().parse(csv_text)
