"""Token Contract - eosio.token compatible create/issue/transfer."""

from __future__ import annotations

from ..chain.codec import register_struct
from ..chain.rpc import ChainApi
from ..chain.tx import exec_trx
from ..chain.types import Action, PermissionLevel


register_struct("token_create", [("issuer", "name"), ("maximum_supply", "asset")])
register_struct("token_issue", [("to", "name"), ("quantity", "asset"), ("memo", "string")])
register_struct(
    "token_transfer",
    [("from", "name"), ("to", "name"), ("quantity", "asset"), ("memo", "string")],
)


def create(api: ChainApi, contract: str, issuer: str, max_supply: str) -> str:
    action = Action(
        account=contract,
        name="create",
        authorization=[PermissionLevel(contract, "active")],
        data={"issuer": issuer, "maximum_supply": max_supply},
        data_type="token_create",
    )
    return exec_trx(api, [action])


def issue(api: ChainApi, contract: str, issuer: str, quantity: str, memo: str = "memo") -> str:
    """Issue ``quantity`` to the issuer itself."""
    action = Action(
        account=contract,
        name="issue",
        authorization=[PermissionLevel(issuer, "active")],
        data={"to": issuer, "quantity": quantity, "memo": memo},
        data_type="token_issue",
    )
    return exec_trx(api, [action])


def transfer(
    api: ChainApi,
    contract: str,
    sender: str,
    recipient: str,
    quantity: str,
    memo: str,
) -> str:
    action = Action(
        account=contract,
        name="transfer",
        authorization=[PermissionLevel(sender, "active")],
        data={"from": sender, "to": recipient, "quantity": quantity, "memo": memo},
        data_type="token_transfer",
    )
    return exec_trx(api, [action])
