"""
Realty Admin API

Deduplicated property view counting and cached admin dashboard statistics.
"""

__version__ = "1.0.0"
