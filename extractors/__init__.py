"""
Extractors pulling values out of page / element handles.

Each extractor is a small strategy object; ExtractorRegistry dispatches on
the `type` key of an extraction config.
"""

from .base import BaseExtractor
from .registry import ExtractorRegistry, build_default_extractors

__all__ = [
    'BaseExtractor',
    'ExtractorRegistry',
    'build_default_extractors',
]
