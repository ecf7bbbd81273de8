"""Preview support: verify the edge cache picked up a new config."""

from edgepatch.preview.verifier import CacheVerifier

__all__ = ["CacheVerifier"]
