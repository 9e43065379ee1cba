"""Country reference data: the (code, name) list every quiz is built from.

The list is downloaded once from a public ISO 3166-1 alpha-2 map and cached
to a local JSON file. A ``CountryCatalog`` owns the loaded list and is handed
to the Flask app at creation time.
"""

import json
import logging
import os
import re
import unicodedata
from typing import Iterable, List, Optional, Tuple

import requests

from flagzim.errors import UpstreamFetchError

logger = logging.getLogger(__name__)

CountryEntry = Tuple[str, str]

MIN_COUNTRIES = 200

# Not in the ISO map but common in flag games
EXTRA_FLAGS: List[CountryEntry] = [
    ('gb-eng', 'England'),
    ('gb-sct', 'Scotland'),
    ('gb-wls', 'Wales'),
    ('gb-nir', 'Northern Ireland'),
    ('eu', 'European Union'),
]

# Netherlands Antilles, dissolved
BLOCKED_CODES = {'an'}


def normalize_name(name) -> str:
    return re.sub(r'\s+', ' ', str(name)).strip()


def _sort_key(entry: CountryEntry):
    folded = unicodedata.normalize('NFKD', entry[1])
    folded = ''.join(ch for ch in folded if not unicodedata.combining(ch))
    return folded.casefold(), entry[1]


def build_countries(alpha2_map: dict) -> List[CountryEntry]:
    """Turn ``{"BR": "Brazil", ...}`` into a name-sorted list of (code, name)."""
    entries = [
        (str(code).lower(), normalize_name(name))
        for code, name in alpha2_map.items()
    ]
    entries = [e for e in entries if e[0] not in BLOCKED_CODES]
    existing = {code for code, _ in entries}
    for code, name in EXTRA_FLAGS:
        if code not in existing:
            entries.append((code, name))
    entries.sort(key=_sort_key)
    return entries


class CountryCatalog:
    def __init__(self, source_url: Optional[str] = None, cache_path: Optional[str] = None,
                 timeout: float = 15, entries: Optional[Iterable] = None):
        self.source_url = source_url
        self.cache_path = cache_path
        self.timeout = timeout
        self._entries: Optional[List[CountryEntry]] = None
        if entries is not None:
            self._entries = [(str(code), str(name)) for code, name in entries]

    @classmethod
    def from_config(cls, config) -> 'CountryCatalog':
        return cls(
            source_url=config.get('COUNTRIES_SOURCE_URL'),
            cache_path=config.get('COUNTRIES_CACHE_PATH'),
            timeout=config.get('COUNTRIES_FETCH_TIMEOUT_SEC', 15),
        )

    @property
    def ready(self) -> bool:
        return self._entries is not None

    @property
    def entries(self) -> List[CountryEntry]:
        if self._entries is None:
            raise RuntimeError('country catalog has not been loaded')
        return list(self._entries)

    def __len__(self):
        return len(self._entries or [])

    def load(self) -> List[CountryEntry]:
        """Load from the cache if it is usable, else download and cache."""
        if self._entries is not None:
            return self.entries
        cached = self._read_cache()
        if cached is not None:
            self._entries = cached
            logger.info(f"[countries] loaded from cache: {len(cached)}")
            return self.entries
        return self.refresh()

    def refresh(self) -> List[CountryEntry]:
        entries = self._download()
        self._entries = entries
        self._write_cache(entries)
        logger.info(f"[countries] downloaded and cached: {len(entries)}")
        return self.entries

    def _read_cache(self) -> Optional[List[CountryEntry]]:
        if not self.cache_path or not os.path.exists(self.cache_path):
            return None
        try:
            with open(self.cache_path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning(f"[countries] ignoring unreadable cache {self.cache_path}: {exc}")
            return None
        if not isinstance(raw, list) or len(raw) < MIN_COUNTRIES:
            return None
        try:
            return [(str(code), str(name)) for code, name in raw]
        except (TypeError, ValueError):
            logger.warning(f"[countries] ignoring malformed cache {self.cache_path}")
            return None

    def _write_cache(self, entries: List[CountryEntry]) -> None:
        if not self.cache_path:
            return
        try:
            with open(self.cache_path, 'w', encoding='utf-8') as f:
                json.dump([list(e) for e in entries], f, indent=2, ensure_ascii=False)
        except OSError as exc:
            logger.warning(f"[countries] could not write cache {self.cache_path}: {exc}")

    def _download(self) -> List[CountryEntry]:
        if not self.source_url:
            raise UpstreamFetchError('no country source configured')
        try:
            res = requests.get(self.source_url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise UpstreamFetchError(f'Failed to fetch ISO list: {exc}') from exc
        if not res.ok:
            raise UpstreamFetchError(f'Failed to fetch ISO list: {res.status_code}')
        try:
            alpha2_map = res.json()
        except ValueError as exc:
            raise UpstreamFetchError('ISO list is not valid JSON') from exc
        if not isinstance(alpha2_map, dict):
            raise UpstreamFetchError('ISO list has an unexpected shape')
        entries = build_countries(alpha2_map)
        if len(entries) < MIN_COUNTRIES:
            raise UpstreamFetchError('Built countries list too small')
        return entries
