"""
Configuration files for File Finder.

YAML discovery, loading, validation and template generation for SearchConfig.
"""

from .parser import (
    ConfigParser,
    ConfigParseResult,
    ConfigurationError,
    create_config_template,
    load_config,
    read_yaml_mapping,
    validate_config_file
)

__all__ = [
    'ConfigParser',
    'ConfigParseResult',
    'ConfigurationError',
    'create_config_template',
    'load_config',
    'read_yaml_mapping',
    'validate_config_file'
]
