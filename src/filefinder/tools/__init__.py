"""
Search tools and utilities for the File Finder.

This module contains the components behind each search strategy: filesystem
walking, index building, text decoding, substring matching and context
extraction.
"""
