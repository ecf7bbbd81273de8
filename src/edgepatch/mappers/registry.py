"""Registry mapping opportunity types to mapper instances."""

import logging
from typing import Iterable, Optional

from edgepatch.mappers.base import Mapper
from edgepatch.mappers.content import ContentSummarizationMapper
from edgepatch.mappers.faq import FaqMapper
from edgepatch.mappers.generic import GenericMapper
from edgepatch.mappers.headings import HeadingsMapper
from edgepatch.mappers.readability import ReadabilityMapper
from edgepatch.mappers.toc import TocMapper

logger = logging.getLogger(__name__)


def default_mappers() -> list[Mapper]:
    return [
        HeadingsMapper(),
        ContentSummarizationMapper(),
        FaqMapper(),
        ReadabilityMapper(),
        TocMapper(),
        GenericMapper(),
    ]


class MapperRegistry:
    """
    Owns one mapper per opportunity type. Each instance has its own table, so
    registering a custom mapper never leaks into other registries.
    """

    def __init__(self, mappers: Optional[Iterable[Mapper]] = None):
        self._mappers: dict[str, Mapper] = {}
        for mapper in default_mappers() if mappers is None else mappers:
            self.register(mapper)

    def register(self, mapper: Mapper) -> None:
        """Add a mapper, replacing any existing one for the same type."""
        opportunity_type = mapper.opportunity_type()
        if opportunity_type in self._mappers:
            logger.debug("Mapper for opportunity type %s is being overridden", opportunity_type)
        self._mappers[opportunity_type] = mapper

    def lookup(self, opportunity_type: Optional[str]) -> Optional[Mapper]:
        """Mapper for the type, or None for unknown, empty or missing types."""
        if not opportunity_type:
            return None
        return self._mappers.get(opportunity_type)

    def supported_types(self) -> list[str]:
        return list(self._mappers.keys())

    def is_supported(self, opportunity_type: Optional[str]) -> bool:
        return self.lookup(opportunity_type) is not None
