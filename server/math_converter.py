#!/usr/bin/env python3
"""
Math Delimiter Converter
Routes text to the explicit delimiter rewriter or the heuristic line classifier
Caches results by content hash
"""

import hashlib
import logging
import time
from threading import Lock
from typing import Dict

from delimiter_rewriter import DelimiterRewriter, has_explicit_delimiters
from line_classifier import Classification, classify_text

logger = logging.getLogger('mathdelims.converter')

CACHE_SIZE = 10


class MathConverter:
    def __init__(self, trace: bool = False):
        self.rewriter = DelimiterRewriter()
        self.trace = trace

        # Performance caches
        self._content_cache: Dict[str, str] = {}  # hash -> converted text
        self._cache_lock = Lock()
        self._cache_hits = 0
        self._conversions = 0
        self._total_time = 0.0

    def convert(self, text: str, force: bool = False) -> str:
        """
        Convert backslash math delimiters to dollar delimiters
        Explicit \\( and \\[ markers win; otherwise lines are classified
        """
        content_hash = self._hash_content(text)

        # Tracing needs a real pass over the lines
        if not force and not self.trace:
            with self._cache_lock:
                cached = self._content_cache.get(content_hash)
                if cached is not None:
                    self._cache_hits += 1
                    return cached

        start_time = time.time()
        if has_explicit_delimiters(text):
            logger.debug(f"Rewriting explicit delimiters ({len(text)} chars)")
            result = self.rewriter.process(text)
        else:
            logger.debug(f"Classifying lines ({len(text)} chars)")
            result = classify_text(text, self._trace_line if self.trace else None)
        elapsed = time.time() - start_time

        with self._cache_lock:
            self._conversions += 1
            self._total_time += elapsed
            self._content_cache[content_hash] = result

            # Limit cache size to avoid memory bloat
            if len(self._content_cache) > CACHE_SIZE:
                oldest_keys = list(self._content_cache.keys())[:-CACHE_SIZE]
                for key in oldest_keys:
                    del self._content_cache[key]

        return result

    def _trace_line(self, index: int, line: str, classification: Classification):
        logger.debug(f"line {index}: {classification.value} ({len(line)} chars) {line!r}")

    def _hash_content(self, text: str) -> str:
        """Hash of the text, used as cache key"""
        return hashlib.md5(text.encode('utf-8', 'surrogatepass')).hexdigest()

    def clear_cache(self):
        with self._cache_lock:
            self._content_cache.clear()

    def get_stats(self) -> Dict[str, float]:
        """Get conversion statistics for monitoring"""
        with self._cache_lock:
            avg_time = (self._total_time / self._conversions) if self._conversions > 0 else 0
            return {
                'conversions': self._conversions,
                'cache_hits': self._cache_hits,
                'cache_size': len(self._content_cache),
                'avg_conversion_time_ms': avg_time * 1000,
            }


def convert(text: str) -> str:
    """Convert text with a fresh, uncached pass"""
    if has_explicit_delimiters(text):
        return DelimiterRewriter().process(text)
    return classify_text(text)
