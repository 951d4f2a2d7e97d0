"""Caching layer for parsed schemas.

Provides:
    * Size-bounded in-memory dictionary cache with TTL + file mtime staleness
      checks.
    * :class:`CachedSchemaParser`, which memoizes :class:`~xsdscan.models.Schema`
      results by the md5 of the document text and the parser configuration.

Parsing is pure and deterministic, so a cached result is always identical to a
fresh parse of the same text; the cache only saves the work. Parsed schemas
are frozen dataclasses and are handed out shared, without copies.

Quick examples:

Local cache get/set::

    from xsdscan.cache import SchemaCache
    cache = SchemaCache(default_ttl=5)
    key = cache._make_key('text', 'abc')
    cache.set(key, {'parsed': True})
    assert cache.get(key)['parsed'] is True

Cached parser convenience::

    from xsdscan.cache import get_cached_parser
    parser = get_cached_parser()
    schema = parser.parse_file(Path('orders.xsd'))
    print(len(schema.nodes))
"""

from __future__ import annotations

import hashlib
import logging
import os
import time
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, cast

from .models import Schema
from .xsd_parser import ParserConfig, XSDParser

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cache entry with TTL and source file tracking."""

    data: Any
    timestamp: float = field(default_factory=time.time)
    ttl: float = 3600.0  # 1 hour default
    file_mtime: float = 0.0

    def is_expired(self) -> bool:
        """Check if cache entry has expired."""
        return time.time() - self.timestamp > self.ttl

    def is_stale(self, file_path: Path) -> bool:
        """Check if cache is stale based on file modification time."""
        if not file_path.exists():
            return True
        current_mtime = file_path.stat().st_mtime
        return current_mtime > self.file_mtime


class SchemaCache:
    """Simple in-memory cache for parsed schemas.

    Notes:
        * Single-thread oriented, like the parser itself.
        * Expired entries are evicted on ``get`` and whenever ``set`` finds the
          cache full; if none have expired the oldest entry is dropped.
    """

    def __init__(self, default_ttl: float = 3600.0, max_entries: int = 256):
        """Initialize cache with default TTL in seconds and a size bound."""
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._cache: Dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def _make_key(self, *args) -> str:
        """Create cache key from arguments."""
        key_data = str(args).encode()
        return hashlib.md5(key_data).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        """Retrieve a value if present and not expired.

        Args:
            key: Opaque cache key (md5 hex string).
        Returns:
            Cached value or None if absent/expired.
        """
        entry = self._cache.get(key)
        if entry is None:
            self.misses += 1
            return None

        if entry.is_expired():
            del self._cache[key]
            self.misses += 1
            return None

        self.hits += 1
        return entry.data

    def set(
        self,
        key: str,
        data: Any,
        ttl: Optional[float] = None,
        file_path: Optional[Path] = None,
    ) -> None:
        """Insert or replace a value in the cache.

        Args:
            key: Cache key.
            data: Arbitrary Python object (stored as-is).
            ttl: Optional time-to-live override in seconds (defaults to instance default).
            file_path: Optional source file whose mtime drives stale detection.
        """
        file_mtime = 0.0
        if file_path and file_path.exists():
            file_mtime = file_path.stat().st_mtime

        # Re-inserting moves the key to the newest position
        self._cache.pop(key, None)
        if len(self._cache) >= self.max_entries:
            self._evict()

        self._cache[key] = CacheEntry(
            data=data,
            ttl=ttl if ttl is not None else self.default_ttl,
            file_mtime=file_mtime,
        )

    def _evict(self) -> None:
        """Drop expired entries, then the oldest ones until there is room."""
        for key in [k for k, entry in self._cache.items() if entry.is_expired()]:
            del self._cache[key]
        while self._cache and len(self._cache) >= self.max_entries:
            oldest = next(iter(self._cache))
            logger.debug(f"Evicting cache entry {oldest}")
            del self._cache[oldest]

    def invalidate(self, key: str) -> None:
        """Remove specific entry from cache."""
        self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cache entries."""
        self._cache.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get current cache statistics."""
        return {
            "cache_size": len(self._cache),
            "hits": self.hits,
            "misses": self.misses,
            "default_ttl": self.default_ttl,
            "max_entries": self.max_entries,
        }

    def check_file_staleness(self, key: str, file_path: Path) -> bool:
        """Check if cached entry is stale based on file modification."""
        entry = self._cache.get(key)
        if entry is None:
            return True
        return entry.is_stale(file_path)


def _default_ttl() -> float:
    return float(os.getenv("XSDSCAN_CACHE_TTL", "3600"))


def _default_max_entries() -> int:
    return int(os.getenv("XSDSCAN_CACHE_SIZE", "256"))


_schema_cache = SchemaCache(default_ttl=_default_ttl(), max_entries=_default_max_entries())


class CachedSchemaParser:
    """Parser wrapper that memoizes parsed :class:`Schema` objects.

    Public methods provide two entry points:
        * parse_text: Schema text already in memory.
        * parse_file: Read a document from disk (UTF-8), re-parsing when the
          file changes.
    """

    def __init__(
        self,
        cache: Optional[SchemaCache] = None,
        parser_config: Optional[ParserConfig] = None,
    ):
        """Initialize with optional cache and parser config."""
        self.cache = cache or _schema_cache
        self.parser_config = parser_config or ParserConfig()

    def parse_text(self, text: str, force_refresh: bool = False) -> Schema:
        """Parse schema text (cached by content + configuration).

        Args:
            text: Complete schema document.
            force_refresh: Skip cache and re-parse if True.
        Returns:
            Schema: Parsed object graph.
        Raises:
            SchemaParseError: Propagated from the parser; failures are not cached.
        """
        digest = hashlib.md5(text.encode("utf-8")).hexdigest()
        cache_key = self.cache._make_key("text", digest, str(self.parser_config.__dict__))

        if not force_refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cast(Schema, cached)

        result = XSDParser(text, config=self.parser_config).parse()
        self.cache.set(cache_key, result)
        return result

    def parse_file(self, path: Path, force_refresh: bool = False) -> Schema:
        """Read and parse a schema file, re-parsing when its mtime changes.

        Args:
            path: Path to a UTF-8 encoded schema document.
            force_refresh: Skip cache and re-parse if True.
        Returns:
            Schema: Parsed object graph.
        Raises:
            FileNotFoundError: ``path`` does not exist.
            SchemaParseError: Propagated from the parser.
        """
        path = Path(path)
        cache_key = self.cache._make_key("file", str(path.resolve()), str(self.parser_config.__dict__))

        if not force_refresh and not self.cache.check_file_staleness(cache_key, path):
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cast(Schema, cached)

        logger.debug(f"Parsing schema file {path}")
        text = path.read_text(encoding="utf-8")
        result = XSDParser(text, config=self.parser_config).parse()
        self.cache.set(cache_key, result, file_path=path)
        return result

    def invalidate_all(self) -> None:
        """Clear all cached schemas."""
        self.cache.clear()


def parse_config_string(config_str: Optional[str]) -> ParserConfig:
    """Build a :class:`ParserConfig` from ``key=value,key=value`` text.

    Booleans accept ``true``/``false``; other fields take the raw string.
    Unknown keys are ignored.

    Example:
        >>> parse_config_string("build_particle_tree=true").build_particle_tree
        True
    """
    config = ParserConfig()
    if not config_str:
        return config
    for pair in config_str.split(","):
        if "=" not in pair:
            continue
        key, value = (part.strip() for part in pair.split("=", 1))
        if not hasattr(config, key):
            continue
        if isinstance(getattr(config, key), bool):
            setattr(config, key, value.lower() == "true")
        else:
            setattr(config, key, value)
    # Re-run validation on the mutated instance
    config.__post_init__()
    return config


# Convenience function for lazy loading
@lru_cache(maxsize=4)
def get_cached_parser(parser_config_key: Optional[str] = None) -> CachedSchemaParser:
    """Get or create a cached parser instance.

    Args:
        parser_config_key: Optional ``key=value,...`` parser configuration.

    Returns:
        CachedSchemaParser instance sharing the module-level cache.
    """
    return CachedSchemaParser(cache=_schema_cache, parser_config=parse_config_string(parser_config_key))
