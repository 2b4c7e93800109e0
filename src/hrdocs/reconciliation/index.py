"""Read-only snapshot of the users a roster refers to."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from hrdocs.core.protocols import IUserStore
from hrdocs.models.roster import AuthoritativeUser, RosterRecord
from hrdocs.reconciliation.validator import validate_id


class ExistingStateIndex(Mapping[str, AuthoritativeUser]):
    """Immutable ``cedula -> AuthoritativeUser`` map built from one bulk read."""

    def __init__(self, users: Iterable[AuthoritativeUser] = ()) -> None:
        self._users = MappingProxyType({user.id: user for user in users})

    @classmethod
    def build(cls, store: IUserStore, records: Iterable[RosterRecord]) -> "ExistingStateIndex":
        cedulas = sorted({r.id for r in records if validate_id(r.id)})
        if not cedulas:
            return cls()
        return cls(store.get_users_by_ids(cedulas))

    def __getitem__(self, cedula: str) -> AuthoritativeUser:
        return self._users[cedula]

    def __iter__(self) -> Iterator[str]:
        return iter(self._users)

    def __len__(self) -> int:
        return len(self._users)
