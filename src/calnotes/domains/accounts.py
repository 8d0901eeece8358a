"""
calnotes Account Directory

Resolves root domains to company names. A YAML file caches every answer so
the company lookup service is only asked once per domain.
"""

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Optional

import requests
import yaml

logger = logging.getLogger(__name__)

COMPANY_SUGGEST_URL = "https://autocomplete.clearbit.com/v1/companies/suggest"
NOT_FOUND = "NoLabelFound"
LOOKUP_TIMEOUT = 10


@dataclass
class AccountRecord:
    """Cached company metadata for one root domain."""
    domain: str
    name: str = ""
    label: str = ""
    blacklisted: bool = False

    @property
    def found(self) -> bool:
        return bool(self.name) and self.name != NOT_FOUND


class AccountCache:
    """YAML-file backed domain -> AccountRecord table."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._records: Dict[str, AccountRecord] = {}
        self._load()

    def _load(self):
        if self.path is None or not self.path.exists():
            return
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (yaml.YAMLError, IOError) as e:
            logger.warning("Ignoring unreadable account cache %s: %s", self.path, e)
            return
        for domain, values in data.items():
            values = values or {}
            self._records[domain] = AccountRecord(
                domain=domain,
                name=str(values.get("name", "")),
                label=str(values.get("label", "")),
                blacklisted=bool(values.get("blacklisted", False)),
            )

    def _save(self):
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            domain: {k: v for k, v in asdict(record).items() if k != "domain"}
            for domain, record in self._records.items()
        }
        self.path.write_text(
            yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=True),
            encoding="utf-8",
        )

    def get(self, domain: str) -> Optional[AccountRecord]:
        return self._records.get(domain)

    def set(self, record: AccountRecord):
        self._records[record.domain] = record
        self._save()


class CompanyLookup:
    """Company name suggestions for a domain fragment."""

    def __init__(self, url: str = COMPANY_SUGGEST_URL, session: Optional[requests.Session] = None):
        self.url = url
        self.session = session or requests.Session()

    def suggest(self, fragment: str) -> List[Dict[str, str]]:
        """Return suggestions as a list of dicts with at least a ``name``.

        Failures are logged and produce an empty list.
        """
        try:
            response = self.session.get(self.url, params={"query": fragment}, timeout=LOOKUP_TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Company lookup for %s failed: %s", fragment, e)
            return []
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict) and item.get("name")]


class AccountDirectory:
    """Cache-first company name resolution."""

    def __init__(
        self,
        cache: AccountCache,
        lookup: Optional[CompanyLookup] = None,
        label_prefix: str = "",
    ):
        self.cache = cache
        self.lookup = lookup
        self.label_prefix = label_prefix

    def account(self, domain: str) -> AccountRecord:
        record = self.cache.get(domain)
        if record is not None:
            return record

        record = AccountRecord(domain=domain, name=NOT_FOUND, label=NOT_FOUND)
        suggestions = self.lookup.suggest(domain) if self.lookup else []
        if suggestions:
            record.name = suggestions[0]["name"]
            record.label = self.label_prefix + record.name
        logger.debug("Resolved account %s -> %s", domain, record.name)
        self.cache.set(record)
        return record

    def company_name(self, domain: str) -> Optional[str]:
        """Company name for a root domain, or None if unknown or blacklisted."""
        record = self.account(domain)
        if record.blacklisted or not record.found:
            return None
        return record.name

    def company_names(self, domains: List[str]) -> List[str]:
        names = []
        for domain in domains:
            name = self.company_name(domain)
            if name and name not in names:
                names.append(name)
        return names
