"""Parse localisation .yml files into per-language translation tables.

Files are named ``*_l_<language>.yml`` and hold one entry per line:

  l_english:
   tech_lasers_1:0 "Red Lasers"
   tech_lasers_1_desc: "Focused light."

Entries are matched line by line with a regex; the YAML is never loaded
as YAML. Values may reference other keys as ``$key$``, which lookup()
resolves recursively.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from stellaris_tech_tree.models.technology import TechLocalization, Technology


logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "english"
MAX_REFERENCE_DEPTH = 10

_LANGUAGE_FILE_RE = re.compile(r"_l_(\w+)\.yml$", re.IGNORECASE)
_VERSIONED_ENTRY_RE = re.compile(r'^\s*([a-zA-Z0-9_.\-]+):\d+\s+"(.+)"')
_PLAIN_ENTRY_RE = re.compile(r'^\s*([a-zA-Z0-9_.\-]+):\s*"(.+)"')
_REFERENCE_RE = re.compile(r"\$([A-Za-z0-9_.\-]+)\$")


def language_of(path: Path) -> str | None:
    """Return the language named by a localisation file name, if any."""
    match = _LANGUAGE_FILE_RE.search(path.name)
    return match.group(1) if match else None


def parse_localization_text(text: str) -> dict[str, str]:
    """Parse the contents of one localisation file into key → text."""
    entries: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or stripped.startswith("l_"):
            continue
        match = _VERSIONED_ENTRY_RE.match(line) or _PLAIN_ENTRY_RE.match(line)
        if match is None:
            continue
        value = match.group(2).replace('\\"', '"').replace("\\n", "\n")
        entries[match.group(1)] = value
    return entries


@dataclass
class Localization:
    """Translation tables keyed by language, then by localisation key."""

    _languages: dict[str, dict[str, str]] = field(default_factory=dict)

    def add(self, language: str, entries: Mapping[str, str]) -> None:
        """Merge entries into a language table; later entries win."""
        self._languages.setdefault(language, {}).update(entries)

    def languages(self) -> list[str]:
        return sorted(self._languages)

    def lookup(self, key: str, language: str) -> str | None:
        """Return the text for key with $references$ resolved, or None."""
        table = self._languages.get(language)
        if table is None or key not in table:
            return None
        return self._resolve(table[key], table, 0)

    def _resolve(self, text: str, table: dict[str, str], depth: int) -> str:
        if depth >= MAX_REFERENCE_DEPTH:
            return text

        def _replace(match: re.Match[str]) -> str:
            ref = table.get(match.group(1))
            if ref is None:
                return match.group(0)
            return self._resolve(ref, table, depth + 1)

        return _REFERENCE_RE.sub(_replace, text)

    def name(self, tech_key: str, language: str) -> str:
        return self.lookup(tech_key, language) or ""

    def description(self, tech_key: str, language: str) -> str:
        return self.lookup(tech_key + "_desc", language) or ""

    def parse_file(self, path: Path, language: str) -> None:
        """Parse one file into *language*. Raises OSError if unreadable."""
        text = path.read_bytes().decode("utf-8-sig", errors="replace")
        self.add(language, parse_localization_text(text))

    @classmethod
    def from_directory(cls, root: Path) -> "Localization":
        """Parse every ``*_l_<language>.yml`` file under root.

        Raises FileNotFoundError if root does not exist. Files that cannot
        be read are reported and skipped.
        """
        if not root.is_dir():
            raise FileNotFoundError(f"Localization directory does not exist: {root}")
        loc = cls()
        for path in sorted(root.rglob("*")):
            if not path.is_file() or path.suffix.lower() != ".yml":
                continue
            language = language_of(path)
            if language is None:
                continue
            try:
                loc.parse_file(path, language)
            except OSError as exc:
                logger.warning("failed to parse localization file %s: %s", path, exc)
        return loc


def apply_localizations(
    technologies: Iterable[Technology],
    localization: Localization,
    preferred_language: str = DEFAULT_LANGUAGE,
) -> None:
    """Attach localized names and descriptions to already-built technologies.

    Every language with a name or description is stored on
    ``tech.localizations``; ``tech.name``/``tech.description`` come from
    the preferred language, else the first available one.
    """
    languages = localization.languages()
    for tech in technologies:
        for language in languages:
            name = localization.name(tech.key, language)
            desc = localization.description(tech.key, language)
            if name or desc:
                tech.localizations[language] = TechLocalization(name=name, description=desc)

        chosen = tech.localizations.get(preferred_language)
        if chosen is None and tech.localizations:
            chosen = tech.localizations[min(tech.localizations)]
        if chosen is not None:
            tech.name = chosen.name
            tech.description = chosen.description
