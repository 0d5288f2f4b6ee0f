"""Cache version computation.

When the cache version is configured as "auto", the version is derived from
a hash of the page shell so the cache generation changes whenever the
shipped page changes, without manual version bumps.
"""

import hashlib


def compute_cache_version(content: str) -> str:
    """Return a short content-hash version such as "v1a2b3c4d"."""
    content_hash = hashlib.sha256(content.encode()).hexdigest()[:8]
    return f"v{content_hash}"
