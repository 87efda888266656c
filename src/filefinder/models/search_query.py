"""
Search query data models for the File Finder.

A query names up to three independent criteria: a keyword (matched against
file names and/or contents), a permission mask, and a modification-time lower
bound. Results of all criteria are merged into one result set.
"""

from typing import Dict, Optional, Any
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, field_validator, model_validator

from ..errors import InvalidTimeFormatError


TIME_FORMAT = '%Y-%m-%d'


class PermissionType(Enum):
    """Permission masks understood by the permission finder."""
    READ = "r"
    WRITE = "w"
    READ_WRITE = "rw"

    def get_mask(self) -> int:
        """Get the mode bits that must all be set."""
        return {
            PermissionType.READ: 0o444,
            PermissionType.WRITE: 0o222,
            PermissionType.READ_WRITE: 0o666,
        }[self]


class SearchQuery(BaseModel):
    """
    Represents a search request with all of its criteria.

    Attributes:
        keyword: Substring matched against names and/or contents
        permission: Permission mask every result must carry (r, w, rw)
        modified_after: Only files modified after this date (YYYY-MM-DD)
    """

    keyword: Optional[str] = Field(None, description="Keyword matched against names and contents")
    permission: Optional[PermissionType] = Field(None, description="Required permission mask")
    modified_after: Optional[str] = Field(None, description="Lower bound on modification date")

    @field_validator('keyword')
    @classmethod
    def validate_keyword(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank keywords as absent."""
        if v is None or not v.strip():
            return None
        return v

    @field_validator('permission', mode='before')
    @classmethod
    def validate_permission(cls, v) -> Optional[PermissionType]:
        """Validate and convert permission to enum."""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            try:
                return PermissionType(v.strip().lower())
            except ValueError:
                raise ValueError(f"Invalid permission type: {v}")
        return v

    @field_validator('modified_after')
    @classmethod
    def validate_modified_after(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace; the format is checked when the query runs."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @model_validator(mode='after')
    def validate_criteria(self):
        """Require at least one search criterion."""
        if self.keyword is None and self.permission is None and self.modified_after is None:
            raise ValueError("At least one of keyword, permission or modified_after is required")
        return self

    def has_keyword(self) -> bool:
        """Check if this query searches by keyword."""
        return self.keyword is not None

    def get_time_limit(self) -> Optional[datetime]:
        """
        Parse the modification-time bound.

        Returns:
            Parsed datetime or None if no bound was given

        Raises:
            InvalidTimeFormatError: If the value is not a YYYY-MM-DD date
        """
        if self.modified_after is None:
            return None
        try:
            return datetime.strptime(self.modified_after, TIME_FORMAT)
        except ValueError:
            raise InvalidTimeFormatError(self.modified_after) from None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the search query to a dictionary representation."""
        data = self.model_dump()
        data['permission'] = self.permission.value if self.permission else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchQuery':
        """Create a SearchQuery instance from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the search query."""
        parts = []
        if self.keyword:
            parts.append(f"Keyword: '{self.keyword}'")
        if self.permission:
            parts.append(f"Permission: {self.permission.value}")
        if self.modified_after:
            parts.append(f"Modified after: {self.modified_after}")
        return " | ".join(parts)
