"""
Environment Configuration - Endpoint, artifact locations and tuning.

Artifact paths are derived from a development home directory laid out
the way the contract repositories build:

    <dev_home>/accounting-contracts/build/accounting/accounting.wasm
    <dev_home>/develop/eosio-contracts/build/hyphadao/hyphadao.wasm
    <dev_home>/token/token/token.wasm
    ...

Any path can be overridden explicitly.  ``EnvironmentConfig.from_env``
reads ``ACCOUNTING_*`` variables, optionally from a ``.env`` file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .chain.abi import ContractArtifact
from .chain.rpc import DEFAULT_ENDPOINT

DEFAULT_DEV_HOME = "/src"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class EnvironmentConfig:
    endpoint: str = DEFAULT_ENDPOINT
    dev_home: Path = Path(DEFAULT_DEV_HOME)

    accounting: Optional[ContractArtifact] = None
    dao: Optional[ContractArtifact] = None
    token_home: Optional[Path] = None
    telos_decide: Optional[ContractArtifact] = None
    treasury: Optional[ContractArtifact] = None
    monitor: Optional[ContractArtifact] = None
    escrow: Optional[ContractArtifact] = None

    # DAO, treasury, tokens, voting; off by default
    deploy_full_dao_stack: bool = False

    voting_duration_seconds: int = 2
    seeds_deferral_factor: int = 100
    hypha_deferral_factor: int = 25
    period_duration: timedelta = timedelta(seconds=6)
    num_periods: int = 10

    whale_voting_power: Optional[str] = None
    member_count: int = 0
    member_voting_power: str = "1.00 HVOICE"

    def __post_init__(self) -> None:
        home = Path(self.dev_home)
        self.dev_home = home

        if self.accounting is None:
            self.accounting = ContractArtifact.under(
                home / "accounting-contracts" / "build" / "accounting", "accounting"
            )
        if self.dao is None:
            self.dao = ContractArtifact.under(
                home / "develop" / "eosio-contracts" / "build" / "hyphadao", "hyphadao"
            )
        if self.token_home is None:
            self.token_home = home / "token"
        if self.telos_decide is None:
            self.telos_decide = ContractArtifact.under(
                home / "telosnetwork" / "telos-decide" / "build" / "contracts" / "decide", "decide"
            )
        if self.treasury is None:
            self.treasury = ContractArtifact.under(
                home / "hypha" / "treasury-contracts" / "treasury", "treasury"
            )
        if self.monitor is None:
            self.monitor = ContractArtifact.under(home / "hypha" / "monitor" / "monitor", "monitor")
        if self.escrow is None:
            self.escrow = ContractArtifact.under(
                home / "hypha" / "seeds-contracts" / "artifacts", "escrow"
            )

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None, **overrides: Any) -> "EnvironmentConfig":
        """
        Build a config from ``ACCOUNTING_*`` environment variables.

        Args:
            env_path: Optional ``.env`` file loaded first (if present)
            **overrides: Explicit values that win over the environment

        Recognized variables: ``ACCOUNTING_ENDPOINT``,
        ``ACCOUNTING_DEV_HOME``, ``ACCOUNTING_FULL_DAO_STACK``.
        """
        if env_path is not None and env_path.exists():
            load_dotenv(env_path, override=True)

        values: dict[str, Any] = {
            "endpoint": os.environ.get("ACCOUNTING_ENDPOINT", DEFAULT_ENDPOINT),
            "dev_home": Path(os.environ.get("ACCOUNTING_DEV_HOME", DEFAULT_DEV_HOME)),
            "deploy_full_dao_stack": _env_flag("ACCOUNTING_FULL_DAO_STACK"),
        }
        values.update(overrides)
        return cls(**values)
