"""
calnotes Public Suffix Rules

Parses the public suffix list into a table of effective-TLD rules and
answers longest-suffix lookups against it.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional

import requests

from calnotes.exceptions import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = 1
FETCH_TIMEOUT = 30

SECTION_RE = re.compile(r"^//\s*===BEGIN (ICANN|PRIVATE) DOMAINS===\s*$")
COMMENT_RE = re.compile(r"^//")
RULE_RE = re.compile(r"^(!|\*\.)?([^\s!*]+)$")


@dataclass(frozen=True)
class TldRule:
    """One suffix rule.

    ``level`` is the number of trailing labels forming the effective TLD,
    already adjusted for the modifier (wildcard +1, exception -1).
    """
    suffix: str
    level: int
    is_exception: bool = False
    is_wildcard: bool = False

    @classmethod
    def from_line(cls, line: str) -> Optional["TldRule"]:
        """Build a rule from one ruleset line, or None if it is not a rule."""
        match = RULE_RE.match(line)
        if not match:
            return None
        modifier, suffix = match.group(1), match.group(2).lower().strip(".")
        if not suffix:
            return None
        level = len(suffix.split("."))
        if modifier == "*.":
            level += 1
        elif modifier == "!":
            level -= 1
        return cls(
            suffix=suffix,
            level=level,
            is_exception=modifier == "!",
            is_wildcard=modifier == "*.",
        )


class TldTable:
    """Suffix rule table keyed by dotted suffix."""

    def __init__(self, rules: Optional[Dict[str, TldRule]] = None):
        self._rules: Dict[str, TldRule] = dict(rules or {})

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, suffix: str) -> bool:
        return suffix in self._rules

    def __iter__(self) -> Iterator[TldRule]:
        return iter(self._rules.values())

    def get(self, suffix: str) -> Optional[TldRule]:
        return self._rules.get(suffix)

    def add(self, rule: TldRule):
        self._rules[rule.suffix] = rule

    def level_for(self, domain: str) -> int:
        """Effective TLD level for a domain.

        Checks progressively longer right-aligned label sequences; the
        longest suffix with a rule wins. Falls back to DEFAULT_LEVEL.
        """
        labels = domain.lower().strip(".").split(".")
        level = None
        stack = ""
        for label in reversed(labels):
            stack = f"{label}.{stack}" if stack else label
            rule = self._rules.get(stack)
            if rule is not None:
                level = rule.level
        return DEFAULT_LEVEL if level is None else level

    @classmethod
    def parse(cls, text: str) -> "TldTable":
        """Parse a public-suffix style ruleset.

        Lines before the first section marker are ignored when the text has
        section markers at all. Comments, blank lines and lines that do not
        look like a rule are skipped.
        """
        table = cls()
        lines = [line.strip() for line in re.split(r"[\r\n]+", text)]
        in_section = not any(SECTION_RE.match(line) for line in lines)

        for line in lines:
            if SECTION_RE.match(line):
                in_section = True
                continue
            if not line or COMMENT_RE.match(line) or not in_section:
                continue
            rule = TldRule.from_line(line)
            if rule is not None:
                table.add(rule)

        logger.debug("Loaded %d suffix rules", len(table))
        return table

    @classmethod
    def fetch(cls, url: str, cache_path: Optional[Path] = None) -> "TldTable":
        """Download and parse the ruleset.

        A successful download refreshes the on-disk cache; when the download
        fails the cache is used instead.

        Raises:
            NetworkError: If the download fails and no cache is available.
        """
        try:
            response = requests.get(url, timeout=FETCH_TIMEOUT)
            response.raise_for_status()
            text = response.text
        except requests.RequestException as e:
            if cache_path is not None and cache_path.exists():
                logger.warning("Suffix list download failed (%s), using cached copy", e)
                return cls.parse(cache_path.read_text(encoding="utf-8"))
            raise NetworkError("Could not download the public suffix list", endpoint=url, details=str(e))

        if cache_path is not None:
            try:
                cache_path.parent.mkdir(parents=True, exist_ok=True)
                cache_path.write_text(text, encoding="utf-8")
            except IOError as e:
                logger.warning("Could not cache suffix list at %s: %s", cache_path, e)

        return cls.parse(text)
