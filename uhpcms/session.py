"""
Per-login session state: the selected organization, the auth token and the
enabled-module list fetched for the current tenant.
"""

import itertools
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional

from uhpcms.config import SELECTED_ORG_KEY, TOKEN_KEY


class SessionStore:
    """Session-scoped key/value storage. Missing keys read as ``""``."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str:
        return self._data.get(key, "")

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


@dataclass(frozen=True)
class ModuleFetch:
    """Ticket for one enabled-modules request."""
    org_id: str
    sequence: int


class SessionContext:
    """Session state handed explicitly to the tenant resolver and routes."""

    def __init__(self, store: Optional[SessionStore] = None, token: str = ""):
        self.store = store if store is not None else SessionStore()
        if token:
            self.store.set(TOKEN_KEY, token)
        self._fetch_seq = itertools.count(1)
        self._latest_fetch: Optional[ModuleFetch] = None
        self._modules_org: Optional[str] = None
        self._modules: Optional[FrozenSet[str]] = None

    # ── Organization selection ───────────────────────────────────────

    @property
    def selected_organization_id(self) -> str:
        return self.store.get(SELECTED_ORG_KEY)

    @property
    def token(self) -> str:
        return self.store.get(TOKEN_KEY)

    def select_organization(self, org_id: Optional[str]) -> None:
        """Store *org_id* as the selection; an empty value clears it."""
        if org_id:
            self.store.set(SELECTED_ORG_KEY, str(org_id))
        else:
            self.store.remove(SELECTED_ORG_KEY)

    def reconcile(self, valid_org_ids: Iterable[str]) -> bool:
        """Clear a selection that is missing from a fresh organization list.

        An empty list is treated as "not loaded" and leaves the selection alone.
        Returns True when the selection was cleared.
        """
        valid = {str(o) for o in valid_org_ids}
        selected = self.selected_organization_id
        if selected and valid and selected not in valid:
            self.select_organization("")
            return True
        return False

    def logout(self) -> None:
        """Drop the token and the selection together."""
        self.store.remove(TOKEN_KEY)
        self.store.remove(SELECTED_ORG_KEY)
        self._latest_fetch = None
        self._modules_org = None
        self._modules = None

    # ── Enabled-module fencing ───────────────────────────────────────

    def begin_module_fetch(self, org_id: str) -> ModuleFetch:
        ticket = ModuleFetch(org_id=org_id or "", sequence=next(self._fetch_seq))
        self._latest_fetch = ticket
        return ticket

    def complete_module_fetch(self, ticket: ModuleFetch, modules: Optional[Iterable[str]]) -> bool:
        """Keep *modules* only if *ticket* is the most recent request.

        Responses for superseded requests (including ones for another tenant)
        are discarded and False is returned.
        """
        if self._latest_fetch is None or ticket != self._latest_fetch:
            return False
        self._modules_org = ticket.org_id
        self._modules = frozenset(modules) if modules is not None else None
        return True

    def enabled_modules_for(self, org_id: str) -> Optional[FrozenSet[str]]:
        """Cached modules for *org_id*, or None if they were fetched for another tenant."""
        if self._modules_org is None or self._modules_org != (org_id or ""):
            return None
        return self._modules
