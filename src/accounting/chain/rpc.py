"""
Node API Client for EOSIO-family chains.

Thin wrapper over the ``/v1/chain/*`` HTTP endpoints using httpx.
Errors reported by the node are raised as :class:`ChainRejectedError`;
transport failures propagate as httpx exceptions.
"""

from __future__ import annotations

import os
from typing import Any, Optional

import httpx

from ..keys import KeyBag


DEFAULT_ENDPOINT = "http://localhost:8888"

ZERO_HASH = "0" * 64


def get_endpoint() -> str:
    """Get the node endpoint from environment or default."""
    return os.environ.get("ACCOUNTING_ENDPOINT", DEFAULT_ENDPOINT)


class ChainError(RuntimeError):
    """Base error for failures reported by the node."""


class ChainRejectedError(ChainError):
    """The node answered with an error body (contract, auth, resources...)."""

    def __init__(
        self,
        code: int,
        name: str,
        what: str,
        details: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        self.code = code
        self.name = name
        self.what = what
        self.details = details or []
        message = f"{name} ({code}): {what}"
        if self.details:
            message += " - " + "; ".join(d.get("message", "") for d in self.details)
        super().__init__(message)

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "ChainRejectedError":
        error = data.get("error") or {}
        return cls(
            code=error.get("code", data.get("code", 0)),
            name=error.get("name", "unknown"),
            what=error.get("what", data.get("message", "")),
            details=error.get("details"),
        )


class ChainApi:
    """
    Client handle bound to one node endpoint and one signer.

    Args:
        url: Node endpoint (default: ``ACCOUNTING_ENDPOINT`` or localhost:8888)
        signer: Key bag used to sign transactions (default: empty bag)
        timeout: HTTP timeout in seconds
        client: Pre-built httpx client (tests inject a mock transport here)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        signer: Optional[KeyBag] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.url = (url or get_endpoint()).rstrip("/")
        self.signer = signer if signer is not None else KeyBag()
        self._client = client or httpx.Client(timeout=timeout)

    def __enter__(self) -> "ChainApi":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def set_signer(self, signer: KeyBag) -> None:
        self.signer = signer

    def _call(self, path: str, payload: Optional[dict[str, Any]] = None) -> Any:
        """
        POST to a node endpoint.

        Returns:
            Decoded JSON body

        Raises:
            ChainRejectedError: If the node returns an error body
            httpx.HTTPError: On transport failure or a non-JSON error status
        """
        response = self._client.post(f"{self.url}{path}", json=payload or {})
        try:
            data = response.json()
        except ValueError:
            response.raise_for_status()
            raise

        if isinstance(data, dict) and "error" in data:
            raise ChainRejectedError.from_response(data)
        response.raise_for_status()
        return data

    def get_info(self) -> dict[str, Any]:
        return self._call("/v1/chain/get_info")

    def get_code_hash(self, account_name: str) -> str:
        """Hash of the code deployed to an account; all zeros when none."""
        result = self._call("/v1/chain/get_code_hash", {"account_name": account_name})
        return result.get("code_hash", ZERO_HASH)

    def get_table_rows(
        self,
        code: str,
        scope: str,
        table: str,
        limit: int = 10,
        reverse: bool = False,
        lower_bound: str = "",
        upper_bound: str = "",
        index_position: int = 1,
        key_type: str = "",
    ) -> dict[str, Any]:
        payload = {
            "json": True,
            "code": code,
            "scope": scope,
            "table": table,
            "limit": limit,
            "reverse": reverse,
            "lower_bound": lower_bound,
            "upper_bound": upper_bound,
            "index_position": index_position,
            "key_type": key_type,
        }
        return self._call("/v1/chain/get_table_rows", payload)

    def get_required_keys(self, transaction: dict[str, Any], available_keys: list[str]) -> list[str]:
        result = self._call(
            "/v1/chain/get_required_keys",
            {"transaction": transaction, "available_keys": available_keys},
        )
        return result["required_keys"]

    def push_transaction(self, body: dict[str, Any]) -> dict[str, Any]:
        return self._call("/v1/chain/push_transaction", body)
