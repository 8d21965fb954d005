#!/usr/bin/env python3
"""
Workspace Document Store
Enumerates, reads and writes Markdown documents under a base path
Reads are cached by modification time
"""

import logging
from pathlib import Path
from typing import Dict, List, Tuple

logger = logging.getLogger('mathdelims.documents')

MARKDOWN_EXTENSIONS = ('.md', '.markdown')
CACHE_SIZE = 50


class DocumentError(Exception):
    """A document could not be resolved, read or written"""


class DocumentStore:
    def __init__(self, base_path: str = '.'):
        self.base_path = Path(base_path).resolve()

        # File content cache: filepath -> (mtime, content)
        self._file_cache: Dict[Path, Tuple[float, str]] = {}
        self._cache_hits = 0
        self._cache_misses = 0

    def list_documents(self) -> List[Path]:
        """All Markdown documents under the base path, hidden directories skipped"""
        documents = []
        for path in self.base_path.rglob('*'):
            relative = path.relative_to(self.base_path)
            if any(part.startswith('.') for part in relative.parts):
                continue
            if path.is_file() and path.suffix.lower() in MARKDOWN_EXTENSIONS:
                documents.append(path)
        return sorted(documents)

    def resolve_file_path(self, target: str) -> Path:
        """
        Resolve a document name relative to the base path
        Tries the exact name, then .md and .markdown
        """
        for ext in ('',) + MARKDOWN_EXTENSIONS:
            file_path = (self.base_path / f"{target}{ext}").resolve()
            if not file_path.is_relative_to(self.base_path):
                raise DocumentError(f"Outside of workspace: {target}")
            if file_path.is_file():
                return file_path

        raise DocumentError(f"File not found: {target}")

    def read(self, filepath: Path) -> str:
        """Read a document, using the cached content while its mtime is unchanged"""
        try:
            current_mtime = filepath.stat().st_mtime

            if filepath in self._file_cache:
                cached_mtime, cached_content = self._file_cache[filepath]
                if cached_mtime == current_mtime:
                    self._cache_hits += 1
                    return cached_content

            self._cache_misses += 1
            # newline='' keeps \r\n line endings as they are on disk
            with open(filepath, encoding='utf-8', newline='') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentError(f"Cannot read {filepath}: {e}") from e

        self._file_cache[filepath] = (current_mtime, content)

        # Limit cache size
        if len(self._file_cache) > CACHE_SIZE:
            oldest_keys = list(self._file_cache.keys())[:-CACHE_SIZE]
            for key in oldest_keys:
                del self._file_cache[key]

        return content

    def write(self, filepath: Path, content: str):
        """Write a document and drop its cache entry"""
        try:
            with open(filepath, 'w', encoding='utf-8', newline='') as f:
                f.write(content)
        except OSError as e:
            raise DocumentError(f"Cannot write {filepath}: {e}") from e
        finally:
            self._file_cache.pop(filepath, None)
        logger.debug(f"Wrote {filepath} ({len(content)} chars)")

    def clear_file_cache(self):
        """Clear the file content cache"""
        self._file_cache.clear()
        self._cache_hits = 0
        self._cache_misses = 0

    def get_cache_stats(self) -> Dict[str, int]:
        """Get cache statistics for monitoring"""
        total = self._cache_hits + self._cache_misses
        hit_rate = (self._cache_hits / total * 100) if total > 0 else 0
        return {
            'hits': self._cache_hits,
            'misses': self._cache_misses,
            'total': total,
            'hit_rate': hit_rate,
            'cache_size': len(self._file_cache)
        }
