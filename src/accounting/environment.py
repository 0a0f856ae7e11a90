"""
Test Environment - Provision a multi-contract sandbox on a local node.

Provisioning is an ordered list of named steps run against one
:class:`ProvisioningState`.  Later steps rely on accounts and contracts
created by earlier ones, so the order is fixed.  The first failing step
aborts the run with a :class:`ProvisioningError` naming it; nothing is
rolled back, and the node must be reset before provisioning again
(account names are global).

Base steps create the accounting and DAO host accounts, the bank with its
cross-contract permissions, the token/escrow/voting accounts, and deploy
the accounting contract.  With ``deploy_full_dao_stack`` the DAO, tokens,
settings, periods and Telos Decide voting are set up as well.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Optional, Sequence

from .chain.rpc import ChainApi
from .chain.types import Authority, KeyWeight, PermissionLevel, PermissionLevelWeight
from .config import EnvironmentConfig
from .content import Document
from .contracts import dao, decide, docgraph, system, token
from .keys import DEFAULT_KEY, KeyBag

logger = logging.getLogger(__name__)

ACCOUNTING_ACCOUNT = "accounting"
DAO_ACCOUNT = "dao.hypha"
BANK_ACCOUNT = "bank.hypha"

HUSD_MAX_SUPPLY = "1000000000.00 HUSD"
HYPHA_MAX_SUPPLY = "1000000000.00 HYPHA"
HVOICE_MAX_SUPPLY = "1000000000.00 HVOICE"
SEEDS_MAX_SUPPLY = "1000000000.0000 SEEDS"
TLOS_MAX_SUPPLY = "1000000000.0000 TLOS"
DAO_VOTING_POWER = "1.00 HVOICE"


class ProvisioningError(RuntimeError):
    """A provisioning step failed; ``cause`` is the original error."""

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"Provisioning step '{step}' failed: {cause}")


class MemberMismatchError(AssertionError):
    """The enrollment document names a different member than the one enrolled."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Enrollment document names {actual!r}, expected {expected!r}")


@dataclass
class Member:
    member: str
    doc: Document


@dataclass
class Environment:
    """Snapshot of a provisioned sandbox: account names and tuning."""

    api: Optional[ChainApi] = field(default=None, repr=False, compare=False)

    dao: str = ""
    accounting: str = ""
    husd_token: str = ""
    hypha_token: str = ""
    hvoice_token: str = ""
    seeds_token: str = ""
    bank: str = ""
    seeds_escrow: str = ""
    seeds_exchange: str = ""
    events: str = ""
    telos_decide: str = ""
    system_token: str = ""
    whale: Optional[Member] = None
    root: Optional[Document] = None

    voting_duration_seconds: int = 0
    hypha_deferral_factor: int = 0
    seeds_deferral_factor: int = 0

    num_periods: int = 0
    period_duration: timedelta = timedelta(0)

    members: list[Member] = field(default_factory=list)

    def summary(self) -> dict[str, str]:
        return {
            "DAO": self.dao,
            "Accounting": self.accounting,
            "HUSD Token": self.husd_token,
            "HVOICE Token": self.hvoice_token,
            "HYPHA Token": self.hypha_token,
            "SEEDS Token": self.seeds_token,
            "Bank": self.bank,
            "Escrow": self.seeds_escrow,
            "Exchange": self.seeds_exchange,
            "Telos Decide": self.telos_decide,
            "Whale": self.whale.member if self.whale else "",
            "Voting Duration (s)": str(self.voting_duration_seconds),
            "HYPHA deferral X": str(self.hypha_deferral_factor),
            "SEEDS deferral X": str(self.seeds_deferral_factor),
        }

    def __str__(self) -> str:
        rows = list(self.summary().items())
        key_width = max(len("Variable"), *(len(k) for k, _ in rows))
        value_width = max(len("Value"), *(len(v) for _, v in rows))
        border = f"+-{'-' * key_width}-+-{'-' * value_width}-+"
        lines = [
            border,
            f"| {'Variable'.center(key_width)} | {'Value'.center(value_width)} |",
            border,
        ]
        lines += [f"| {k.ljust(key_width)} | {v.rjust(value_width)} |" for k, v in rows]
        lines.append(border)
        return "\n".join(lines)


@dataclass
class ProvisioningState:
    config: EnvironmentConfig
    env: Environment = field(default_factory=Environment)
    # bank key lives only between the create-bank and grant steps
    bank_key: Optional[str] = None

    @property
    def api(self) -> ChainApi:
        if self.env.api is None:
            raise RuntimeError("No chain client; run the 'connect' step first")
        return self.env.api


@dataclass(frozen=True)
class ProvisioningStep:
    name: str
    run: Callable[[ProvisioningState], None]


# ============ Base steps ============


def _connect(state: ProvisioningState) -> None:
    api = state.env.api or ChainApi(state.config.endpoint)
    key_bag = KeyBag()
    key_bag.import_private_key(DEFAULT_KEY)
    api.set_signer(key_bag)
    state.env.api = api


def _tune(state: ProvisioningState) -> None:
    config, env = state.config, state.env
    env.voting_duration_seconds = config.voting_duration_seconds
    env.seeds_deferral_factor = config.seeds_deferral_factor
    env.hypha_deferral_factor = config.hypha_deferral_factor
    env.period_duration = config.period_duration
    env.num_periods = config.num_periods


def _create_host_accounts(state: ProvisioningState) -> None:
    state.env.accounting = system.create_account(state.api, ACCOUNTING_ACCOUNT, DEFAULT_KEY)
    state.env.dao = system.create_account(state.api, DAO_ACCOUNT, DEFAULT_KEY)


def _create_bank(state: ProvisioningState) -> None:
    state.bank_key, state.env.bank = system.create_account_with_random_key(state.api, BANK_ACCOUNT)


def bank_authority(bank: str, dao_account: str, bank_key: str) -> Authority:
    """Bank key plus code permission for the bank and the DAO, threshold 1."""
    return Authority(
        threshold=1,
        keys=[KeyWeight(bank_key, 1)],
        accounts=[
            PermissionLevelWeight(PermissionLevel(bank, system.CODE_PERMISSION), 1),
            PermissionLevelWeight(PermissionLevel(dao_account, system.CODE_PERMISSION), 1),
        ],
        waits=[],
    )


def _grant_bank_permissions(state: ProvisioningState) -> None:
    env = state.env
    if state.bank_key is None:
        raise RuntimeError("Bank key unknown; the bank account was not created in this run")
    authority = bank_authority(env.bank, env.dao, state.bank_key)
    system.update_auth(state.api, env.bank, "active", "owner", authority, "owner")


def _create_token_accounts(state: ProvisioningState) -> None:
    env, api = state.env, state.api
    _, env.husd_token = system.create_account_with_random_key(api, "husd.hypha")
    _, env.hvoice_token = system.create_account_with_random_key(api, "hvoice.hypha")
    _, env.hypha_token = system.create_account_with_random_key(api, "token.hypha")
    _, env.events = system.create_account_with_random_key(api, "publsh.hypha")
    _, env.seeds_token = system.create_account_with_random_key(api, "token.seeds")
    _, env.seeds_escrow = system.create_account_with_random_key(api, "escrow.seeds")
    _, env.seeds_exchange = system.create_account_with_random_key(api, "tlosto.seeds")
    _, env.telos_decide = system.create_account_with_random_key(api, "telos.decide")


def _deploy_accounting(state: ProvisioningState) -> None:
    logger.info("Deploying Accounting contract to %s", state.env.accounting)
    system.set_contract(state.api, state.env.accounting, state.config.accounting)


# ============ Full DAO stack ============


def _deploy_dao(state: ProvisioningState) -> None:
    logger.info("Deploying DAO contract to %s", state.env.dao)
    system.set_contract(state.api, state.env.dao, state.config.dao)


def _create_root(state: ProvisioningState) -> None:
    dao.create_root(state.api, state.env.dao)
    # createroot also writes the settings document, so the root is the first row
    state.env.root = docgraph.get_first_document(state.api, state.env.dao)


def _deploy_support_contracts(state: ProvisioningState) -> None:
    env, config, api = state.env, state.config, state.api
    logger.info("Deploying Treasury contract to %s", env.bank)
    system.set_contract(api, env.bank, config.treasury)
    logger.info("Deploying Escrow contract to %s", env.seeds_escrow)
    system.set_contract(api, env.seeds_escrow, config.escrow)
    logger.info("Deploying Events contract to %s", env.events)
    system.set_contract(api, env.events, config.monitor)


def _create_tokens(state: ProvisioningState) -> None:
    env, api, token_home = state.env, state.api, state.config.token_home
    system.deploy_and_create_token(api, token_home, env.husd_token, env.bank, HUSD_MAX_SUPPLY)
    system.deploy_and_create_token(api, token_home, env.hypha_token, env.dao, HYPHA_MAX_SUPPLY)
    system.deploy_and_create_token(api, token_home, env.hvoice_token, env.dao, HVOICE_MAX_SUPPLY)
    system.deploy_and_create_token(api, token_home, env.seeds_token, env.dao, SEEDS_MAX_SUPPLY)
    token.issue(api, env.seeds_token, env.dao, SEEDS_MAX_SUPPLY)


def _configure_dao(state: ProvisioningState) -> None:
    env, api = state.env, state.api
    logger.info("Setting configuration options on DAO %s", env.dao)
    dao.set_int_setting(api, env.dao, "voting_duration_sec", env.voting_duration_seconds)
    dao.set_int_setting(api, env.dao, "seeds_deferral_factor_x100", env.seeds_deferral_factor)
    dao.set_int_setting(api, env.dao, "hypha_deferral_factor_x100", env.hypha_deferral_factor)
    dao.set_int_setting(api, env.dao, "paused", 0)

    for key, value in (
        ("hypha_token_contract", env.hypha_token),
        ("hvoice_token_contract", env.hvoice_token),
        ("husd_token_contract", env.husd_token),
        ("seeds_token_contract", env.seeds_token),
        ("seeds_escrow_contract", env.seeds_escrow),
        ("publisher_contract", env.events),
        ("treasury_contract", env.bank),
        ("telos_decide_contract", env.telos_decide),
    ):
        dao.set_name_setting(api, env.dao, key, value)


def _add_periods(state: ProvisioningState) -> None:
    env = state.env
    if env.root is None:
        raise RuntimeError("DAO root document not loaded")
    logger.info("Adding %d periods with duration %s", env.num_periods, env.period_duration)
    dao.add_periods(state.api, env.dao, env.root.hash, env.num_periods, env.period_duration)


def _setup_system_token(state: ProvisioningState) -> None:
    env, api = state.env, state.api
    _, env.system_token = system.create_account_with_random_key(api, "eosio.token")
    system.deploy_and_create_token(api, state.config.token_home, env.system_token, env.dao, TLOS_MAX_SUPPLY)
    token.issue(api, env.system_token, env.dao, TLOS_MAX_SUPPLY)


def _setup_telos_decide(state: ProvisioningState) -> None:
    env, api = state.env, state.api
    logger.info("Deploying/configuring Telos Decide contract %s", env.telos_decide)
    system.set_contract(api, env.telos_decide, state.config.telos_decide)
    decide.init(api, env.telos_decide)
    token.transfer(api, env.system_token, env.dao, env.telos_decide, TLOS_MAX_SUPPLY, "deposit")
    decide.new_treasury(api, env.telos_decide, env.dao)
    decide.reg_voter(api, env.telos_decide, env.dao)
    decide.mint(api, env.telos_decide, env.dao, env.dao, DAO_VOTING_POWER)


def _enroll_members(state: ProvisioningState) -> None:
    env, config, api = state.env, state.config, state.api
    if config.whale_voting_power:
        env.whale = setup_member(api, env.dao, env.telos_decide, "whale", config.whale_voting_power)
    for index in range(1, config.member_count + 1):
        member = setup_member(api, env.dao, env.telos_decide, f"member{index}", config.member_voting_power)
        env.members.append(member)


BASE_STEPS: tuple[ProvisioningStep, ...] = (
    ProvisioningStep("connect", _connect),
    ProvisioningStep("tune", _tune),
    ProvisioningStep("create-host-accounts", _create_host_accounts),
    ProvisioningStep("create-bank", _create_bank),
    ProvisioningStep("grant-bank-permissions", _grant_bank_permissions),
    ProvisioningStep("create-token-accounts", _create_token_accounts),
    ProvisioningStep("deploy-accounting", _deploy_accounting),
)

FULL_DAO_STEPS: tuple[ProvisioningStep, ...] = (
    ProvisioningStep("deploy-dao", _deploy_dao),
    ProvisioningStep("create-root", _create_root),
    ProvisioningStep("deploy-support-contracts", _deploy_support_contracts),
    ProvisioningStep("create-tokens", _create_tokens),
    ProvisioningStep("configure-dao", _configure_dao),
    ProvisioningStep("add-periods", _add_periods),
    ProvisioningStep("setup-system-token", _setup_system_token),
    ProvisioningStep("setup-telos-decide", _setup_telos_decide),
    ProvisioningStep("enroll-members", _enroll_members),
)


def provisioning_steps(config: EnvironmentConfig) -> list[ProvisioningStep]:
    steps = list(BASE_STEPS)
    if config.deploy_full_dao_stack:
        steps += FULL_DAO_STEPS
    return steps


def run_steps(steps: Sequence[ProvisioningStep], state: ProvisioningState) -> Environment:
    """
    Run ``steps`` in order against ``state``.

    Returns:
        The provisioned environment

    Raises:
        ProvisioningError: For the first step that fails
    """
    for index, step in enumerate(steps, start=1):
        logger.info("[%d/%d] %s", index, len(steps), step.name)
        try:
            step.run(state)
        except Exception as exc:
            logger.error("step %s failed: %s", step.name, exc)
            raise ProvisioningError(step.name, exc) from exc
    return state.env


def setup_environment(
    config: Optional[EnvironmentConfig] = None,
    api: Optional[ChainApi] = None,
) -> Environment:
    """
    Provision a fresh environment.

    Args:
        config: Provisioning options (default: from ``ACCOUNTING_*`` env vars)
        api: Client to use instead of one built for ``config.endpoint``

    Returns:
        The environment snapshot
    """
    config = config or EnvironmentConfig.from_env()
    state = ProvisioningState(config=config, env=Environment(api=api))
    return run_steps(provisioning_steps(config), state)


def setup_member(
    api: ChainApi,
    dao_account: str,
    telos_decide: str,
    member_name: str,
    voting_power: str,
) -> Member:
    """
    Create, register and enroll one DAO member.

    Creates the account with the development key, registers it as a voter,
    mints ``voting_power`` to it, applies, enrolls it (the DAO approves)
    and reads back the newest DAO document.

    Raises:
        MemberMismatchError: If that document names another member
    """
    logger.info("Creating and enrolling new member %s with voting power %s", member_name, voting_power)
    member_account = system.create_account(api, member_name, DEFAULT_KEY)

    decide.reg_voter(api, telos_decide, member_account)
    decide.mint(api, telos_decide, dao_account, member_account, voting_power)
    dao.apply(api, dao_account, member_account, "apply to DAO")
    dao.enroll(api, dao_account, dao_account, member_account)

    member_doc = docgraph.get_last_document(api, dao_account)
    enrolled = member_doc.get_content("member")
    if str(enrolled.value) != member_account:
        raise MemberMismatchError(member_account, str(enrolled.value))

    return Member(member=member_account, doc=member_doc)
