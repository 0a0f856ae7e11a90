"""
Accounting CLI

Command-line interface for the accounting contract test harness.

Commands:
  provision       - Provision a fresh test environment on a local node
  add-ledger      - Create a ledger
  create-account  - Create a ledger account
  transact        - Record a transaction
  enroll          - Create and enroll a DAO member
  code-hash       - Show the code hash deployed to an account
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Callable, NoReturn

import click
import httpx

from .actions import add_ledger, create_acct, transact
from .chain.rpc import ChainApi, ChainError, DEFAULT_ENDPOINT
from .config import EnvironmentConfig
from .content import ContentGroup, parse_content_groups
from .environment import ProvisioningError, setup_environment, setup_member
from .keys import KeyBag, load_private_key


# ============ Constants ============

VERSION = "0.1.0"

ENV_FILE = Path(".env")


def _endpoint_option(func: Callable) -> Callable:
    return click.option(
        "--endpoint",
        envvar="ACCOUNTING_ENDPOINT",
        default=DEFAULT_ENDPOINT,
        show_default=True,
        help="Node HTTP endpoint",
    )(func)


def _signed_api(endpoint: str) -> ChainApi:
    key_bag = KeyBag()
    key_bag.import_private_key(load_private_key(ENV_FILE))
    return ChainApi(endpoint, signer=key_bag)


def _parse_content(content_json: str) -> list[ContentGroup]:
    try:
        data = json.loads(content_json)
        if not isinstance(data, list):
            raise ValueError("Content must be a JSON array of content groups")
        return parse_content_groups(data)
    except (json.JSONDecodeError, ValueError, KeyError, TypeError) as exc:
        click.secho(f"ERROR: Invalid content: {exc}", fg="red")
        sys.exit(1)


def _fail(exc: Exception) -> NoReturn:
    click.secho(f"FAILED: {exc}", fg="red")
    sys.exit(1)


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=VERSION, prog_name="accounting")
@click.option("--verbose", "-v", is_flag=True, help="Log provisioning and transaction details")
def cli(verbose: bool) -> None:
    """Accounting contract client and test-environment harness."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ============ Provisioning ============


@cli.command()
@_endpoint_option
@click.option("--dev-home", envvar="ACCOUNTING_DEV_HOME", default="/src", help="Base path of contract builds")
@click.option("--full-dao-stack", is_flag=True, envvar="ACCOUNTING_FULL_DAO_STACK", help="Also deploy DAO, tokens and voting")
def provision(endpoint: str, dev_home: str, full_dao_stack: bool) -> None:
    """Provision a fresh test environment.

    The node must not already hold the environment's accounts.
    """
    config = EnvironmentConfig(
        endpoint=endpoint,
        dev_home=Path(dev_home),
        deploy_full_dao_stack=full_dao_stack,
    )
    try:
        env = setup_environment(config)
    except ProvisioningError as exc:
        _fail(exc)

    click.secho("Environment ready", fg="green")
    click.echo(str(env))


# ============ Accounting actions ============


def _action_command(name: str, submit: Callable, actor_help: str) -> click.Command:
    @click.command(name=name)
    @_endpoint_option
    @click.option("--contract", default="accounting", show_default=True, help="Accounting contract account")
    @click.option("--actor", default="accounting", show_default=True, help=actor_help)
    @click.option("--content", "content_json", required=True, help="Content groups as JSON")
    def command(endpoint: str, contract: str, actor: str, content_json: str) -> None:
        groups = _parse_content(content_json)
        try:
            with _signed_api(endpoint) as api:
                trx_id = submit(api, contract, actor, groups)
        except (ChainError, httpx.HTTPError) as exc:
            _fail(exc)
        click.echo(f"TX: {trx_id}")

    command.help = f"Submit a '{name}' action to the accounting contract."
    return command


cli.add_command(_action_command("add-ledger", add_ledger, "Ledger creator"))
cli.add_command(_action_command("create-account", create_acct, "Account creator"))
cli.add_command(_action_command("transact", transact, "Transaction issuer"))


# ============ DAO membership ============


@cli.command()
@_endpoint_option
@click.argument("member_name")
@click.option("--voting-power", default="1.00 HVOICE", show_default=True, help="HVOICE to mint")
@click.option("--dao", "dao_account", default="dao.hypha", show_default=True, help="DAO contract")
@click.option("--telos-decide", default="telos.decide", show_default=True, help="Telos Decide contract")
def enroll(endpoint: str, member_name: str, voting_power: str, dao_account: str, telos_decide: str) -> None:
    """Create MEMBER_NAME and enroll it in the DAO."""
    try:
        with _signed_api(endpoint) as api:
            member = setup_member(api, dao_account, telos_decide, member_name, voting_power)
    except (ChainError, httpx.HTTPError, LookupError, AssertionError) as exc:
        _fail(exc)
    click.echo(f"Member: {member.member}")
    click.echo(f"Document: {member.doc.hash}")


# ============ Queries ============


@cli.command("code-hash")
@_endpoint_option
@click.argument("account")
def code_hash(endpoint: str, account: str) -> None:
    """Show the hash of the code deployed to ACCOUNT."""
    try:
        with ChainApi(endpoint) as api:
            click.echo(api.get_code_hash(account))
    except (ChainError, httpx.HTTPError) as exc:
        _fail(exc)
