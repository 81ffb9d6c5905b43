"""
Review Parser - Excel/CSV Review Import
=======================================

Parses a review export (Excel or CSV) and auto-detects the review columns.
Supports .xlsx, .xls, and .csv formats.

Rows come back as plain dicts shaped like a review submission; validation
and classification happen later in the intake pipeline, not here.
"""

import io
import logging
import re
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple, Union

import pandas as pd

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ['.xlsx', '.xls', '.csv']

# Common column name variations for auto-detection, checked in this order
COLUMN_PATTERNS = {
    'property_id': ['property_id', 'hotel_id', 'resort_id', 'property', 'hotel'],
    'rating': ['rating', 'stars', 'score'],
    'text': ['text', 'review_text', 'review', 'comment', 'feedback'],
    'author': ['author', 'guest_name', 'guest', 'reviewer', 'name'],
    'author_phone': ['author_phone', 'phone', 'mobile', 'whatsapp', 'contact'],
    'source': ['source', 'platform', 'channel'],
    'categories': ['categories', 'category', 'aspect'],
    'urgency': ['urgency', 'priority'],
    'festival_tag': ['festival_tag', 'festival', 'occasion'],
}
REQUIRED_COLUMNS = ['property_id', 'rating', 'text']


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, float) and pd.isna(value)) or str(value).strip() == ''


class ReviewParser:
    """
    Excel/CSV review parser with auto-detection of review columns.

    Usage:
        parser = ReviewParser()
        rows, columns = parser.parse("reviews.xlsx")
        # rows: [{"property_id": "mh001", "rating": "2", "text": "...", ...}, ...]
    """

    def __init__(self):
        self.detected_columns: Dict[str, Optional[str]] = {}

    def parse(self, file_path: str, sheet_name: Optional[str] = None) -> Tuple[List[Dict], Dict[str, Optional[str]]]:
        """
        Parse a review file from disk.

        Returns:
            Tuple of (rows list, detected column mapping)
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        with open(path, 'rb') as f:
            return self.parse_buffer(f, path.suffix, sheet_name)

    def parse_buffer(self, buffer: Union[BinaryIO, bytes], ext: str,
                     sheet_name: Optional[str] = None) -> Tuple[List[Dict], Dict[str, Optional[str]]]:
        """Parse an in-memory upload (no temp file)."""
        ext = ext.lower()
        if ext not in SUPPORTED_EXTENSIONS:
            raise ValueError(f"Unsupported file format: {ext}. Use .xlsx, .xls, or .csv")
        if isinstance(buffer, bytes):
            buffer = io.BytesIO(buffer)

        try:
            if ext == '.csv':
                df = pd.read_csv(buffer, dtype=str)
            else:
                df = pd.read_excel(buffer, sheet_name=sheet_name or 0, dtype=str)
        except Exception as e:
            logger.error(f"Failed to read review file: {e}")
            raise ValueError(f"Could not read file: {e}") from e

        return self._extract(df)

    def _extract(self, df: pd.DataFrame) -> Tuple[List[Dict], Dict[str, Optional[str]]]:
        # Clean column names
        df.columns = [str(c).strip().lower() for c in df.columns]

        claimed: List[str] = []
        self.detected_columns = {}
        for key, patterns in COLUMN_PATTERNS.items():
            col = self._find_column(df.columns, patterns, claimed)
            self.detected_columns[key] = col
            if col:
                claimed.append(col)

        logger.info(f"Detected review columns: {self.detected_columns}")

        missing = [k for k in REQUIRED_COLUMNS if not self.detected_columns[k]]
        if missing:
            raise ValueError(f"Could not detect column(s): {', '.join(missing)}")

        rows = []
        for _, record in df.iterrows():
            row = {}
            for key, col in self.detected_columns.items():
                if col and not _is_blank(record.get(col)):
                    row[key] = str(record.get(col)).strip()

            # Skip fully empty lines
            if not any(row.get(k) for k in REQUIRED_COLUMNS):
                continue

            if 'rating' in row:
                row['rating'] = self._clean_rating(row['rating'])
            if 'categories' in row:
                row['categories'] = [c.strip().lower() for c in re.split(r'[,;|]', row['categories']) if c.strip()]
            if 'source' in row:
                row['source'] = row['source'].lower()
            if 'urgency' in row:
                row['urgency'] = row['urgency'].lower()
            rows.append(row)

        logger.info(f"Parsed {len(rows)} review rows")
        return rows, self.detected_columns

    def _find_column(self, columns: List[str], patterns: List[str], claimed: List[str]) -> Optional[str]:
        """Exact name match first, then a column containing a pattern."""
        free = [c for c in columns if c not in claimed]
        for pattern in patterns:
            if pattern in free:
                return pattern
        for pattern in patterns:
            for col in free:
                if pattern in col:
                    return col
        return None

    def _clean_rating(self, rating: str) -> str:
        # Spreadsheets hand integers back as "4.0"
        match = re.fullmatch(r'(\d+)\.0+', rating)
        return match.group(1) if match else rating


def parse_reviews(file_path: str, sheet_name: Optional[str] = None) -> List[Dict]:
    """Convenience function: parse a review file and return the rows."""
    rows, _ = ReviewParser().parse(file_path, sheet_name)
    return rows
