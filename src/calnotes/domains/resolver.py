"""
calnotes Domain Resolver

Maps email addresses to organization root domains and classifies them as
internal or external.
"""

from typing import Callable, Dict, Iterable, List, Optional

from calnotes.domains.tld import TldTable


def address_domain(address: str) -> str:
    """The bare domain of an address (everything after the last '@')."""
    return address.strip().rsplit("@", 1)[-1].lower()


class DomainResolver:
    """Root-domain computation and internal/external classification.

    The rule table is loaded lazily through ``table_loader`` so a run that
    sees no events never downloads the suffix list.
    """

    def __init__(
        self,
        blacklist_domains: Iterable[str] = (),
        table: Optional[TldTable] = None,
        table_loader: Optional[Callable[[], TldTable]] = None,
    ):
        self.blacklist = {d.strip().lower() for d in blacklist_domains if d.strip()}
        self._table = table
        self._table_loader = table_loader
        self._root_cache: Dict[str, str] = {}

    @property
    def table(self) -> TldTable:
        if self._table is None:
            self._table = self._table_loader() if self._table_loader else TldTable()
        return self._table

    def root_domain(self, address: str) -> str:
        """Organization-identifying domain: the (level + 1) rightmost labels."""
        domain = address_domain(address)
        cached = self._root_cache.get(domain)
        if cached is not None:
            return cached

        labels = domain.split(".")
        level = self.table.level_for(domain)
        root = ".".join(labels[-(level + 1):])
        self._root_cache[domain] = root
        return root

    def is_external(self, address: str) -> bool:
        """True unless the address's own domain is blacklisted.

        Compared on the full domain as configured, not the computed root.
        """
        return address_domain(address) not in self.blacklist

    def root_domains(self, addresses: Iterable[str], external_only: bool = True) -> List[str]:
        """Unique root domains for a list of addresses, in first-seen order."""
        seen: List[str] = []
        for address in addresses:
            if not address:
                continue
            if external_only and not self.is_external(address):
                continue
            root = self.root_domain(address)
            if root not in seen:
                seen.append(root)
        return seen
