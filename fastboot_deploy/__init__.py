"""
.. include:: ../README.md
"""

__all__ = [
    "asset_map",
    "archive",
    "builder",
    "config",
    "elastic_beanstalk",
    "exceptions",
    "hashing",
    "pipeline",
    "storage",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
