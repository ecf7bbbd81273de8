"""Storage keys for per-URL configs and the domain metaconfig."""

import base64
import logging
from urllib.parse import urlparse

from edgepatch.errors import ValidationError

logger = logging.getLogger(__name__)

CONFIG_PREFIX = "opportunities"
PREVIEW_PREFIX = "preview"
METACONFIG_NAME = "config"


def normalize_path(path: str) -> str:
    """Leading slash always; trailing slash dropped except for the root path."""
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


def host_name(url: str) -> str:
    """Host of an absolute URL with any leading `www.` removed."""
    try:
        host = urlparse(url).hostname
    except ValueError as e:
        raise ValueError(f"Error extracting host name: {e}") from e
    if not host:
        raise ValueError(f"Error extracting host name: {url} has no host")
    return host[4:] if host.startswith("www.") else host


def base64url_encode(value: str) -> str:
    """URL-safe base64 of the UTF-8 bytes, without padding."""
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii").rstrip("=")


def _prefix(preview: bool) -> str:
    return f"{PREVIEW_PREFIX}/{CONFIG_PREFIX}" if preview else CONFIG_PREFIX


def config_key(url: str, preview: bool = False) -> str:
    """
    Key of the config for one page, e.g. `opportunities/example.com/L3BhZ2Ux`
    for https://www.example.com/page1 (the last segment is the encoded path).
    """
    try:
        host = host_name(url)
        path = normalize_path(urlparse(url).path)
    except ValueError as e:
        logger.error("Failed to generate config key for %s: %s", url, e)
        raise ValidationError(f"Failed to generate config key for {url}") from e
    return f"{_prefix(preview)}/{host}/{base64url_encode(path)}"


def metaconfig_key(url: str, preview: bool = False) -> str:
    """Key of the domain-level metaconfig, e.g. `opportunities/example.com/config`."""
    try:
        host = host_name(url)
    except ValueError as e:
        logger.error("Failed to generate metaconfig key for %s: %s", url, e)
        raise ValidationError(f"Failed to generate metaconfig key for {url}") from e
    return f"{_prefix(preview)}/{host}/{METACONFIG_NAME}"
