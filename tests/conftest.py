"""
Shared fixtures: an in-process fake node behind httpx.MockTransport.

The fake node answers the handful of ``/v1/chain/*`` endpoints the client
uses, records every request, and can be told to reject a path with a
node-style error body.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

import httpx
import pytest

from accounting.chain.rpc import ChainApi
from accounting.keys import DEFAULT_KEY, KeyBag, public_key_from_private


CHAIN_ID = "8a34ec7df1b8cd06ff4a8abbaa7cc50300823350cadc59ab296cb00d104d2b8f"
LIB_ID = "0000002a5b2f1c3d4e5f60718293a4b5c6d7e8f90a1b2c3d4e5f60718293a4b5"


class FakeNode:
    """Records requests and serves canned chain responses."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.required_keys = [public_key_from_private(DEFAULT_KEY)]
        self.table_rows: list[dict[str, Any]] = []
        self.code_hash = "0" * 64
        self.rejections: dict[str, dict[str, Any]] = {}
        self.failures: dict[str, int] = {}

    def reject(self, path: str, name: str = "eosio_assert_message_exception", what: str = "assertion failure") -> None:
        self.rejections[path] = {
            "code": 500,
            "message": "Internal Service Error",
            "error": {
                "code": 3050003,
                "name": name,
                "what": what,
                "details": [{"message": f"{what} with message: rejected"}],
            },
        }

    def fail(self, path: str, status: int = 502) -> None:
        """Answer ``path`` with a plain-text error page instead of JSON."""
        self.failures[path] = status

    def calls(self, path: str) -> list[dict[str, Any]]:
        return [payload for p, payload in self.requests if p == path]

    @property
    def pushed(self) -> list[dict[str, Any]]:
        return self.calls("/v1/chain/push_transaction")

    @property
    def transactions(self) -> list[dict[str, Any]]:
        """Unsigned transactions, as sent to get_required_keys."""
        return [payload["transaction"] for payload in self.calls("/v1/chain/get_required_keys")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        payload = json.loads(request.content or b"{}")
        self.requests.append((path, payload))

        if path in self.failures:
            return httpx.Response(self.failures[path], text="Bad Gateway")
        if path in self.rejections:
            return httpx.Response(500, json=self.rejections[path])

        if path == "/v1/chain/get_info":
            return httpx.Response(200, json={
                "chain_id": CHAIN_ID,
                "head_block_num": 43,
                "last_irreversible_block_id": LIB_ID,
            })
        if path == "/v1/chain/get_required_keys":
            return httpx.Response(200, json={"required_keys": self.required_keys})
        if path == "/v1/chain/push_transaction":
            digest = hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()
            return httpx.Response(200, json={"transaction_id": digest, "processed": {}})
        if path == "/v1/chain/get_table_rows":
            return httpx.Response(200, json={"rows": self.table_rows, "more": False})
        if path == "/v1/chain/get_code_hash":
            return httpx.Response(200, json={
                "account_name": payload["account_name"],
                "code_hash": self.code_hash,
            })
        return httpx.Response(404, text="not found")


@pytest.fixture()
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture()
def api(node: FakeNode) -> ChainApi:
    """Client wired to the fake node, signing with the development key."""
    key_bag = KeyBag()
    key_bag.import_private_key(DEFAULT_KEY)
    client = httpx.Client(transport=httpx.MockTransport(node.handler))
    with ChainApi("http://fake-node:8888", signer=key_bag, client=client) as chain_api:
        yield chain_api
