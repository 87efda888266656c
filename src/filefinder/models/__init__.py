"""
Data models for the File Finder.

This module contains all the core data structures used throughout the system.
"""

from .config import SearchConfig, SearchMode
from .search_query import SearchQuery, PermissionType
from .search_results import FileRecord, MatchResult, MatchType, SearchResults

__all__ = [
    'SearchConfig',
    'SearchMode',
    'SearchQuery',
    'PermissionType',
    'FileRecord',
    'MatchResult',
    'MatchType',
    'SearchResults'
]
