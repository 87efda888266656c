"""
Unit tests for search query data models.

Tests the SearchQuery model including validation, permission masks
and modification-time parsing.
"""

import pytest
from datetime import datetime
from pydantic import ValidationError

from filefinder.errors import InvalidTimeFormatError
from filefinder.models.search_query import SearchQuery, PermissionType


class TestPermissionType:
    """Test cases for PermissionType enum."""

    def test_permission_values(self):
        assert PermissionType.READ.value == "r"
        assert PermissionType.WRITE.value == "w"
        assert PermissionType.READ_WRITE.value == "rw"

    def test_masks(self):
        """Each mask requires the bit for owner, group and others."""
        assert PermissionType.READ.get_mask() == 0o444
        assert PermissionType.WRITE.get_mask() == 0o222
        assert PermissionType.READ_WRITE.get_mask() == 0o666


class TestSearchQuery:
    """Test cases for SearchQuery model."""

    def test_keyword_query(self):
        query = SearchQuery(keyword="flag")

        assert query.keyword == "flag"
        assert query.has_keyword() is True
        assert query.permission is None
        assert query.modified_after is None

    def test_keyword_whitespace_kept(self):
        """Keywords are matched verbatim, including surrounding spaces."""
        assert SearchQuery(keyword=" flag ").keyword == " flag "

    def test_blank_keyword_is_absent(self):
        query = SearchQuery(keyword="   ", permission="r")
        assert query.keyword is None
        assert query.has_keyword() is False

    def test_permission_conversion(self):
        assert SearchQuery(permission="RW").permission == PermissionType.READ_WRITE
        assert SearchQuery(permission=PermissionType.WRITE).permission == PermissionType.WRITE

    def test_invalid_permission(self):
        with pytest.raises(ValidationError, match="Invalid permission type"):
            SearchQuery(permission="x")

    def test_requires_a_criterion(self):
        with pytest.raises(ValidationError, match="At least one"):
            SearchQuery()

        with pytest.raises(ValidationError):
            SearchQuery(keyword="", permission="", modified_after=" ")

    def test_time_limit(self):
        query = SearchQuery(modified_after=" 2024-03-15 ")

        assert query.modified_after == "2024-03-15"
        assert query.get_time_limit() == datetime(2024, 3, 15)

    def test_no_time_limit(self):
        assert SearchQuery(keyword="x").get_time_limit() is None

    @pytest.mark.parametrize("value", ["2024/03/15", "15-03-2024", "2024-13-01", "yesterday"])
    def test_invalid_time_format(self, value):
        """Malformed dates are accepted at construction and rejected when parsed."""
        query = SearchQuery(modified_after=value)

        with pytest.raises(InvalidTimeFormatError) as exc_info:
            query.get_time_limit()
        assert exc_info.value.value == value
        assert "YYYY-MM-DD" in str(exc_info.value)

    def test_to_dict(self):
        data = SearchQuery(keyword="flag", permission="r").to_dict()

        assert data == {'keyword': "flag", 'permission': "r", 'modified_after': None}

    def test_from_dict(self):
        query = SearchQuery.from_dict({'keyword': "x", 'permission': "w"})
        assert query.permission == PermissionType.WRITE

    def test_str(self):
        text = str(SearchQuery(keyword="flag", permission="rw", modified_after="2024-01-01"))

        assert "Keyword: 'flag'" in text
        assert "Permission: rw" in text
        assert "Modified after: 2024-01-01" in text
