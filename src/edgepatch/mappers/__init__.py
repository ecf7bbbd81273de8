"""Suggestion-to-patch mappers, one per opportunity type."""

from edgepatch.mappers.base import BaseMapper, Mapper
from edgepatch.mappers.content import ContentSummarizationMapper
from edgepatch.mappers.faq import FaqMapper
from edgepatch.mappers.generic import GenericMapper
from edgepatch.mappers.headings import HeadingsMapper
from edgepatch.mappers.readability import ReadabilityMapper
from edgepatch.mappers.registry import MapperRegistry
from edgepatch.mappers.toc import TocMapper

__all__ = [
    "BaseMapper",
    "ContentSummarizationMapper",
    "FaqMapper",
    "GenericMapper",
    "HeadingsMapper",
    "Mapper",
    "MapperRegistry",
    "ReadabilityMapper",
    "TocMapper",
]
