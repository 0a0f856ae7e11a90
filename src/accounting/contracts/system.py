"""
System Contract - Accounts, permissions and contract deployment.

All system actions run against ``eosio``.  Accounts are created without
resource staking, which a local development node accepts.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..chain.abi import ContractArtifact, load_abi, load_wasm, pack_abi
from ..chain.codec import register_struct
from ..chain.rpc import ChainApi
from ..chain.tx import exec_trx
from ..chain.types import Action, Authority, PermissionLevel
from ..keys import DEFAULT_KEY, generate_key
from . import token

logger = logging.getLogger(__name__)

SYSTEM_ACCOUNT = "eosio"
CODE_PERMISSION = "eosio.code"


register_struct(
    "newaccount",
    [("creator", "name"), ("name", "name"), ("owner", "authority"), ("active", "authority")],
)
register_struct(
    "updateauth",
    [("account", "name"), ("permission", "name"), ("parent", "name"), ("auth", "authority")],
)
register_struct(
    "setcode",
    [("account", "name"), ("vmtype", "uint8"), ("vmversion", "uint8"), ("code", "bytes")],
)
register_struct("setabi", [("account", "name"), ("abi", "bytes")])


def new_account_action(creator: str, name: str, public_key: str) -> Action:
    authority = Authority.single_key(public_key)
    return Action(
        account=SYSTEM_ACCOUNT,
        name="newaccount",
        authorization=[PermissionLevel(creator, "active")],
        data={"creator": creator, "name": name, "owner": authority, "active": authority},
        data_type="newaccount",
    )


def update_auth_action(
    account: str,
    permission: str,
    parent: str,
    authority: Authority,
    using_permission: str,
) -> Action:
    return Action(
        account=SYSTEM_ACCOUNT,
        name="updateauth",
        authorization=[PermissionLevel(account, using_permission)],
        data={"account": account, "permission": permission, "parent": parent, "auth": authority},
        data_type="updateauth",
    )


def update_auth(
    api: ChainApi,
    account: str,
    permission: str,
    parent: str,
    authority: Authority,
    using_permission: str,
) -> str:
    return exec_trx(api, [update_auth_action(account, permission, parent, authority, using_permission)])


def set_code_action(account: str, code: bytes) -> Action:
    return Action(
        account=SYSTEM_ACCOUNT,
        name="setcode",
        authorization=[PermissionLevel(account, "active")],
        data={"account": account, "vmtype": 0, "vmversion": 0, "code": code},
        data_type="setcode",
    )


def set_abi_action(account: str, abi: bytes) -> Action:
    return Action(
        account=SYSTEM_ACCOUNT,
        name="setabi",
        authorization=[PermissionLevel(account, "active")],
        data={"account": account, "abi": abi},
        data_type="setabi",
    )


def create_account(
    api: ChainApi,
    name: str,
    private_key: str = DEFAULT_KEY,
    creator: str = SYSTEM_ACCOUNT,
) -> str:
    """
    Create ``name`` controlled by ``private_key`` (owner and active).

    The key is added to the api's signer so later actions by the account
    can be signed.

    Returns:
        The new account name
    """
    public_key = api.signer.import_private_key(private_key)
    exec_trx(api, [new_account_action(creator, name, public_key)])
    return name


def create_account_with_random_key(
    api: ChainApi,
    name: str,
    creator: str = SYSTEM_ACCOUNT,
) -> tuple[str, str]:
    """
    Create ``name`` with a freshly generated key.

    Returns:
        Tuple of (public_key, account_name)
    """
    private_key, public_key = generate_key()
    create_account(api, name, private_key, creator)
    return public_key, name


def set_contract(api: ChainApi, account: str, artifact: ContractArtifact) -> str:
    """
    Deploy code and ABI to ``account`` in a single transaction.

    Returns:
        Transaction id
    """
    code = load_wasm(artifact.wasm)
    abi = pack_abi(load_abi(artifact.abi))
    logger.info("deploying %s to %s", artifact.wasm.name, account)
    return exec_trx(api, [set_code_action(account, code), set_abi_action(account, abi)])


def token_artifact(token_home: Path) -> ContractArtifact:
    return ContractArtifact.under(token_home / "token", "token")


def deploy_and_create_token(
    api: ChainApi,
    token_home: Path,
    contract: str,
    issuer: str,
    max_supply: str,
) -> str:
    """Deploy the token contract to ``contract`` and create ``max_supply``. Returns the create transaction id."""
    set_contract(api, contract, token_artifact(token_home))
    return token.create(api, contract, issuer, max_supply)
