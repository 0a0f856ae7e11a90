"""Typed shapes shared by every action: permissions, authorities, actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..keys import public_key_bytes
from .codec import serialize


@dataclass(frozen=True)
class PermissionLevel:
    actor: str
    permission: str = "active"

    def to_dict(self) -> dict[str, str]:
        return {"actor": self.actor, "permission": self.permission}


@dataclass(frozen=True)
class KeyWeight:
    key: str
    weight: int = 1


@dataclass(frozen=True)
class PermissionLevelWeight:
    permission: PermissionLevel
    weight: int = 1


@dataclass(frozen=True)
class WaitWeight:
    wait_sec: int
    weight: int = 1


@dataclass
class Authority:
    """Weighted set of keys/accounts required to satisfy a permission.

    The node requires keys and accounts in ascending order; the serializer
    reads them through :meth:`sorted_keys` and :meth:`sorted_accounts`.
    """

    threshold: int = 1
    keys: list[KeyWeight] = field(default_factory=list)
    accounts: list[PermissionLevelWeight] = field(default_factory=list)
    waits: list[WaitWeight] = field(default_factory=list)

    @classmethod
    def single_key(cls, public_key: str) -> "Authority":
        return cls(threshold=1, keys=[KeyWeight(public_key, 1)])

    def sorted_keys(self) -> list[KeyWeight]:
        return sorted(self.keys, key=lambda kw: public_key_bytes(kw.key))

    def sorted_accounts(self) -> list[PermissionLevelWeight]:
        return sorted(
            self.accounts,
            key=lambda plw: (plw.permission.actor, plw.permission.permission),
        )


@dataclass
class Action:
    """
    A single contract action.

    ``data`` is a mapping or object whose fields match the registered
    struct ``data_type``; it is serialized when the action is packed.
    """

    account: str
    name: str
    authorization: list[PermissionLevel]
    data: Any
    data_type: str

    def pack_data(self) -> bytes:
        return serialize(self.data_type, self.data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "name": self.name,
            "authorization": [level.to_dict() for level in self.authorization],
            "data": self.pack_data().hex(),
        }
