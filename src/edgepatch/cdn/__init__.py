"""CDN invalidation clients."""

from edgepatch.cdn.base import BaseCdnClient
from edgepatch.cdn.http_purge import HttpPurgeCdnClient
from edgepatch.cdn.registry import CdnClientRegistry

__all__ = ["BaseCdnClient", "CdnClientRegistry", "HttpPurgeCdnClient"]
