"""
Accounting Actions - Submit ledger, account and transaction records.

Each builder wraps the acting party and its content groups into one
action, authorized by the contract itself (``contract@active``), and
pushes it in its own transaction.  The creator/issuer field only names
the party in the payload; it never signs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .chain.codec import register_struct
from .chain.rpc import ChainApi
from .chain.tx import exec_trx
from .chain.types import Action, PermissionLevel
from .content import ContentGroup


@dataclass(frozen=True)
class CreateLedger:
    creator: str
    ledger_info: list[ContentGroup] = field(default_factory=list)


@dataclass(frozen=True)
class CreateAccount:
    creator: str
    account_info: list[ContentGroup] = field(default_factory=list)


@dataclass(frozen=True)
class Transact:
    issuer: str
    trx_info: list[ContentGroup] = field(default_factory=list)


register_struct("create_ledger", [("creator", "name"), ("ledger_info", "content_group[]")])
register_struct("create_account", [("creator", "name"), ("account_info", "content_group[]")])
register_struct("transact_record", [("issuer", "name"), ("trx_info", "content_group[]")])


def _contract_action(contract: str, name: str, data: object, data_type: str) -> Action:
    return Action(
        account=contract,
        name=name,
        authorization=[PermissionLevel(contract, "active")],
        data=data,
        data_type=data_type,
    )


def build_add_ledger_action(contract: str, creator: str, ledger: Sequence[ContentGroup]) -> Action:
    return _contract_action(contract, "addledger", CreateLedger(creator, list(ledger)), "create_ledger")


def build_create_acct_action(contract: str, creator: str, account: Sequence[ContentGroup]) -> Action:
    return _contract_action(contract, "create", CreateAccount(creator, list(account)), "create_account")


def build_transact_action(contract: str, issuer: str, trx: Sequence[ContentGroup]) -> Action:
    return _contract_action(contract, "transact", Transact(issuer, list(trx)), "transact_record")


def add_ledger(api: ChainApi, contract: str, creator: str, ledger: Sequence[ContentGroup]) -> str:
    """
    Create a ledger on the accounting contract.

    Args:
        api: Client bound to the node and signer
        contract: Accounting contract account (also the authorizer)
        creator: Account recorded as the ledger's creator
        ledger: Ledger description content groups

    Returns:
        Transaction id
    """
    return exec_trx(api, [build_add_ledger_action(contract, creator, ledger)])


def create_acct(api: ChainApi, contract: str, creator: str, account: Sequence[ContentGroup]) -> str:
    """Create an account (a ledger sub-account, not a chain account). Returns the transaction id."""
    return exec_trx(api, [build_create_acct_action(contract, creator, account)])


def transact(api: ChainApi, contract: str, issuer: str, trx: Sequence[ContentGroup]) -> str:
    """Record a transaction issued by ``issuer``. Returns the transaction id."""
    return exec_trx(api, [build_transact_action(contract, issuer, trx)])
