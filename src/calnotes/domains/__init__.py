"""
calnotes Domains

Public-suffix rule tables, root-domain resolution and company lookup.
"""

from calnotes.domains.tld import TldRule, TldTable
from calnotes.domains.resolver import DomainResolver, address_domain
from calnotes.domains.accounts import (
    AccountCache,
    AccountDirectory,
    AccountRecord,
    CompanyLookup,
)

__all__ = [
    'TldRule',
    'TldTable',
    'DomainResolver',
    'address_domain',
    'AccountCache',
    'AccountDirectory',
    'AccountRecord',
    'CompanyLookup',
]
