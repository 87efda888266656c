"""
File Finder - Core Package

Locates files on a local filesystem by name, content, permission mask or
modification time using a concurrent in-memory index and a Boyer-Moore
content matcher.
"""

__version__ = "0.1.0"
__author__ = "File Finder Team"
