"""
Telos Decide - Voting treasury setup, voter registration and minting.

The DAO manages an HVOICE treasury; members register as voters and
receive voting power by minting.
"""

from __future__ import annotations

from ..chain.codec import register_struct
from ..chain.rpc import ChainApi
from ..chain.tx import exec_trx
from ..chain.types import Action, PermissionLevel

APP_VERSION = "v2.0.0"
HVOICE_MAX_SUPPLY = "1000000000.00 HVOICE"
HVOICE_SYMBOL = "2,HVOICE"


register_struct("decide_init", [("app_version", "string")])
register_struct(
    "decide_newtreasury",
    [("manager", "name"), ("max_supply", "asset"), ("access", "name")],
)
register_struct(
    "decide_regvoter",
    [("voter", "name"), ("treasury_symbol", "symbol"), ("referrer", "name?")],
)
register_struct("decide_mint", [("to", "name"), ("quantity", "asset"), ("memo", "string")])


def _push(api: ChainApi, contract: str, name: str, actor: str, data: dict, data_type: str) -> str:
    action = Action(
        account=contract,
        name=name,
        authorization=[PermissionLevel(actor, "active")],
        data=data,
        data_type=data_type,
    )
    return exec_trx(api, [action])


def init(api: ChainApi, telos_decide: str) -> str:
    return _push(api, telos_decide, "init", telos_decide, {"app_version": APP_VERSION}, "decide_init")


def new_treasury(
    api: ChainApi,
    telos_decide: str,
    manager: str,
    max_supply: str = HVOICE_MAX_SUPPLY,
) -> str:
    data = {"manager": manager, "max_supply": max_supply, "access": "public"}
    return _push(api, telos_decide, "newtreasury", manager, data, "decide_newtreasury")


def reg_voter(api: ChainApi, telos_decide: str, voter: str, treasury_symbol: str = HVOICE_SYMBOL) -> str:
    data = {"voter": voter, "treasury_symbol": treasury_symbol, "referrer": None}
    return _push(api, telos_decide, "regvoter", voter, data, "decide_regvoter")


def mint(api: ChainApi, telos_decide: str, manager: str, to: str, quantity: str) -> str:
    """Mint voting power to ``to``; the treasury manager authorizes."""
    data = {"to": to, "quantity": quantity, "memo": "original mint"}
    return _push(api, telos_decide, "mint", manager, data, "decide_mint")
