"""
Contract Artifacts - Loads compiled wasm and ABI files, packs ABIs.

Artifacts are produced by the contracts' own builds; this module only
reads them.  ``setabi`` needs the ABI in its binary form, which
:func:`pack_abi` produces from the JSON file.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from .codec import register_struct, serialize


@dataclass(frozen=True)
class ContractArtifact:
    """Location of a contract's compiled code and interface description."""

    wasm: Path
    abi: Path

    @classmethod
    def under(cls, directory: Path, stem: str) -> "ContractArtifact":
        return cls(wasm=directory / f"{stem}.wasm", abi=directory / f"{stem}.abi")


@lru_cache(maxsize=16)
def load_wasm(path: Path) -> bytes:
    """
    Load compiled contract code.

    Raises:
        FileNotFoundError: If the wasm file does not exist
    """
    if not path.exists():
        raise FileNotFoundError(f"Contract code not found: {path}")
    return path.read_bytes()


@lru_cache(maxsize=16)
def load_abi(path: Path) -> dict[str, Any]:
    """
    Load a contract ABI (JSON).

    Raises:
        FileNotFoundError: If the ABI file does not exist
    """
    if not path.exists():
        raise FileNotFoundError(f"ABI not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _normalized(abi: dict[str, Any]) -> dict[str, Any]:
    out = dict(abi)
    out.setdefault("version", "eosio::abi/1.1")
    for key in ("types", "structs", "actions", "tables", "ricardian_clauses",
                "error_messages", "abi_extensions"):
        out.setdefault(key, [])
    out.setdefault("variants", [])

    out["structs"] = [{"base": "", **s} for s in out["structs"]]
    out["actions"] = [{"ricardian_contract": "", **a} for a in out["actions"]]
    out["tables"] = [
        {"index_type": "i64", "key_names": [], "key_types": [], **t}
        for t in out["tables"]
    ]
    return out


def pack_abi(abi: dict[str, Any]) -> bytes:
    """Binary ``abi_def`` for a JSON ABI. Missing sections pack as empty."""
    return serialize("abi_def", _normalized(abi))


register_struct("type_def", [("new_type_name", "string"), ("type", "string")])
register_struct("field_def", [("name", "string"), ("type", "string")])
register_struct("struct_def", [("name", "string"), ("base", "string"), ("fields", "field_def[]")])
register_struct("action_def", [("name", "name"), ("type", "string"), ("ricardian_contract", "string")])
register_struct(
    "table_def",
    [
        ("name", "name"),
        ("index_type", "string"),
        ("key_names", "string[]"),
        ("key_types", "string[]"),
        ("type", "string"),
    ],
)
register_struct("clause_pair", [("id", "string"), ("body", "string")])
register_struct("error_message", [("error_code", "uint64"), ("error_msg", "string")])
register_struct("extension", [("tag", "uint16"), ("value", "bytes")])
register_struct("variant_def", [("name", "string"), ("types", "string[]")])
register_struct("action_result_def", [("name", "name"), ("result_type", "string")])
register_struct(
    "abi_def",
    [
        ("version", "string"),
        ("types", "type_def[]"),
        ("structs", "struct_def[]"),
        ("actions", "action_def[]"),
        ("tables", "table_def[]"),
        ("ricardian_clauses", "clause_pair[]"),
        ("error_messages", "error_message[]"),
        ("abi_extensions", "extension[]"),
        ("variants", "variant_def[]$"),
        ("action_results", "action_result_def[]$"),
    ],
)
