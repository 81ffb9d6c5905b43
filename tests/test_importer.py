"""
test_importer.py - Excel/CSV Review Import
"""

import pandas as pd
import pytest

from review_intel.infrastructure.importer import ReviewParser, parse_reviews

CSV_CONTENT = (
    "Hotel ID,Rating,Review,Guest Name,Phone,Platform,Category\n"
    "mh001,2,Room was dirty and the AC was broken.,Asha,9876543210,Google,\"food, service\"\n"
    "mh003,5.0,Wonderful stay with a great view.,,,TripAdvisor,\n"
)


class TestReviewParser:
    """Column detection and row cleaning."""

    def test_detects_columns(self, tmp_path):
        path = tmp_path / "reviews.csv"
        path.write_text(CSV_CONTENT, encoding="utf-8")

        rows, columns = ReviewParser().parse(str(path))

        assert columns["property_id"] == "hotel id"
        assert columns["rating"] == "rating"
        assert columns["text"] == "review"
        assert columns["author"] == "guest name"
        assert columns["author_phone"] == "phone"
        assert columns["source"] == "platform"
        assert columns["categories"] == "category"
        assert len(rows) == 2

    def test_row_values(self, tmp_path):
        path = tmp_path / "reviews.csv"
        path.write_text(CSV_CONTENT, encoding="utf-8")

        first, second = parse_reviews(str(path))

        assert first == {
            "property_id": "mh001",
            "rating": "2",
            "text": "Room was dirty and the AC was broken.",
            "author": "Asha",
            "author_phone": "9876543210",
            "source": "google",
            "categories": ["food", "service"],
        }
        assert second["rating"] == "5"
        assert "author" not in second
        assert "categories" not in second

    def test_parse_buffer_from_bytes(self):
        rows, _ = ReviewParser().parse_buffer(CSV_CONTENT.encode("utf-8"), ".CSV")
        assert [r["property_id"] for r in rows] == ["mh001", "mh003"]

    def test_excel(self, tmp_path):
        path = tmp_path / "reviews.xlsx"
        pd.DataFrame([
            {"property_id": "mh001", "rating": 1, "text": "Cockroaches in the bathroom twice."},
        ]).to_excel(path, index=False)

        rows = parse_reviews(str(path))

        assert rows == [{
            "property_id": "mh001",
            "rating": "1",
            "text": "Cockroaches in the bathroom twice.",
        }]

    def test_missing_required_column(self):
        with pytest.raises(ValueError, match="rating"):
            ReviewParser().parse_buffer(b"hotel,text\nmh001,Lovely stay overall\n", ".csv")

    def test_unsupported_extension(self):
        with pytest.raises(ValueError, match="Unsupported"):
            ReviewParser().parse_buffer(b"", ".txt")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ReviewParser().parse(str(tmp_path / "nope.csv"))
