"""
Transaction Builder - Build, sign, and push EOSIO transactions.

Uses ueosio for TaPoS, packing and signing, and the node API for the
required-keys lookup and submission.  Every call submits exactly one
transaction; nothing is retried.
"""

from __future__ import annotations

import logging
import time
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Sequence

from ueosio import DataStream, build_push_transaction_body, get_expiration, get_tapos_info, sign_tx

from .rpc import ChainApi
from .types import Action

logger = logging.getLogger(__name__)

DEFAULT_EXPIRE_SECONDS = 30

_last_expiration = 0


def _next_expiration(expire_seconds: int) -> str:
    """Expiration timestamp, strictly increasing within the process.

    Two identical transactions built in the same second would otherwise
    share an id and the node would reject the second as a duplicate.
    """
    global _last_expiration
    epoch = int(time.time()) + expire_seconds
    if epoch <= _last_expiration:
        epoch = _last_expiration + 1
    _last_expiration = epoch
    base = datetime.fromtimestamp(epoch, timezone.utc).replace(tzinfo=None)
    return get_expiration(base, 0)


def build_transaction(
    api: ChainApi,
    actions: Sequence[Action],
    expire_seconds: int = DEFAULT_EXPIRE_SECONDS,
) -> tuple[dict[str, Any], str]:
    """
    Build an unsigned transaction referencing the last irreversible block.

    Returns:
        Tuple of (transaction dict, chain_id)
    """
    info = api.get_info()
    ref_block_num, ref_block_prefix = get_tapos_info(info["last_irreversible_block_id"])

    tx = {
        "expiration": _next_expiration(expire_seconds),
        "ref_block_num": ref_block_num,
        "ref_block_prefix": ref_block_prefix,
        "max_net_usage_words": 0,
        "max_cpu_usage_ms": 0,
        "delay_sec": 0,
        "context_free_actions": [],
        "actions": [action.to_dict() for action in actions],
        "transaction_extensions": [],
    }
    return tx, info["chain_id"]


def sign_transaction(api: ChainApi, tx: dict[str, Any], chain_id: str) -> list[str]:
    """
    Sign with every key the node says the transaction needs.

    Raises:
        KeyNotFoundError: If the signer lacks a required private key
    """
    required = api.get_required_keys(tx, api.signer.available_keys())
    signatures = []
    for public_key in required:
        private_key = api.signer.private_key_for(public_key)
        unsigned = deepcopy(tx)
        unsigned["context_free_data"] = []
        _, signed = sign_tx(chain_id, unsigned, private_key)
        signatures.append(signed["signatures"][-1])
    return signatures


def exec_trx(
    api: ChainApi,
    actions: Sequence[Action],
    expire_seconds: int = DEFAULT_EXPIRE_SECONDS,
) -> str:
    """
    Build, sign, and push a transaction carrying ``actions``.

    Args:
        api: Client bound to the node and signer
        actions: Actions to include, in order
        expire_seconds: Expiration offset from now

    Returns:
        Transaction id (hex)

    Raises:
        ChainRejectedError: If the node rejects the transaction
    """
    tx, chain_id = build_transaction(api, actions, expire_seconds)
    signatures = sign_transaction(api, tx, chain_id)

    packed = deepcopy(tx)
    packed["context_free_data"] = []
    ds = DataStream()
    ds.pack_transaction(packed)
    packed_trx = ds.getvalue().hex()

    body = build_push_transaction_body(signatures[0] if signatures else "", packed_trx)
    body["signatures"] = signatures

    logger.debug(
        "pushing %s to %s",
        ", ".join(f"{a.account}::{a.name}" for a in actions),
        api.url,
    )
    result = api.push_transaction(body)
    return result["transaction_id"]
