"""
Provisioning tests with the contract helpers replaced by recorders.

Every chain-touching helper the steps call is patched, so these tests
check step order, wiring between steps and failure reporting without
signing anything.  Member setup is also run end to end against the fake
node, packing and signing every action.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from accounting.chain.codec import serialize
from accounting.chain.rpc import ChainApi, ChainRejectedError
from accounting.config import EnvironmentConfig
from accounting.content import ContentGroup, ContentNotFoundError, Document, FlexValue
from accounting.contracts import dao, decide, docgraph, system, token
from accounting.environment import (
    BASE_STEPS,
    FULL_DAO_STEPS,
    Environment,
    Member,
    MemberMismatchError,
    ProvisioningError,
    ProvisioningState,
    ProvisioningStep,
    bank_authority,
    provisioning_steps,
    run_steps,
    setup_environment,
    setup_member,
)
from accounting.keys import DEFAULT_KEY, generate_key

from conftest import FakeNode


def _document(doc_id: int, **values: FlexValue) -> Document:
    return Document(
        id=doc_id,
        hash=f"{doc_id:064x}",
        creator="dao.hypha",
        content_groups=[ContentGroup.of(**values)],
    )


class Recorder:
    """Collects (helper, args) pairs in call order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.created: list[str] = []
        self.enrolled: Optional[str] = None
        self.documents: list[Document] = []
        self.failures: dict[str, Exception] = {}

    def hook(self, name: str, result: Callable[..., Any] = lambda *args: "trx") -> Callable[..., Any]:
        def fake(api: ChainApi, *args: Any) -> Any:
            self.calls.append((name, args))
            if name in self.failures:
                raise self.failures[name]
            return result(*args)
        return fake

    def last_document(self, *args: Any) -> Document:
        member = self.enrolled or self.created[-1]
        doc = _document(99, member=FlexValue.account(member))
        self.documents.append(doc)
        return doc

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def args_of(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call_name, args in self.calls if call_name == name]


@pytest.fixture()
def recorder(monkeypatch: pytest.MonkeyPatch) -> Recorder:
    rec = Recorder()

    def create_account(name: str, private_key: str = DEFAULT_KEY, creator: str = "eosio") -> str:
        rec.created.append(name)
        return name

    def create_account_with_random_key(name: str, creator: str = "eosio") -> tuple[str, str]:
        rec.created.append(name)
        return generate_key()[1], name

    monkeypatch.setattr(system, "create_account", rec.hook("create_account", create_account))
    monkeypatch.setattr(
        system,
        "create_account_with_random_key",
        rec.hook("create_account_with_random_key", create_account_with_random_key),
    )
    monkeypatch.setattr(system, "update_auth", rec.hook("update_auth"))
    monkeypatch.setattr(system, "set_contract", rec.hook("set_contract"))
    monkeypatch.setattr(system, "deploy_and_create_token", rec.hook("deploy_and_create_token"))
    monkeypatch.setattr(token, "issue", rec.hook("token.issue"))
    monkeypatch.setattr(token, "transfer", rec.hook("token.transfer"))
    monkeypatch.setattr(dao, "create_root", rec.hook("dao.create_root"))
    monkeypatch.setattr(dao, "set_int_setting", rec.hook("dao.set_int_setting"))
    monkeypatch.setattr(dao, "set_name_setting", rec.hook("dao.set_name_setting"))
    monkeypatch.setattr(dao, "add_periods", rec.hook("dao.add_periods", lambda *args: []))
    monkeypatch.setattr(dao, "apply", rec.hook("dao.apply"))
    monkeypatch.setattr(dao, "enroll", rec.hook("dao.enroll"))
    monkeypatch.setattr(decide, "init", rec.hook("decide.init"))
    monkeypatch.setattr(decide, "new_treasury", rec.hook("decide.new_treasury"))
    monkeypatch.setattr(decide, "reg_voter", rec.hook("decide.reg_voter"))
    monkeypatch.setattr(decide, "mint", rec.hook("decide.mint"))
    monkeypatch.setattr(
        docgraph, "get_first_document",
        rec.hook("docgraph.get_first_document", lambda *args: _document(1, root_node=FlexValue.text("dao.hypha"))),
    )
    monkeypatch.setattr(
        docgraph, "get_last_document",
        rec.hook("docgraph.get_last_document", rec.last_document),
    )
    return rec


@pytest.fixture()
def config(tmp_path: Path) -> EnvironmentConfig:
    return EnvironmentConfig(endpoint="http://fake-node:8888", dev_home=tmp_path)


class TestBaseProvisioning:
    def test_step_order(self) -> None:
        assert [step.name for step in BASE_STEPS] == [
            "connect",
            "tune",
            "create-host-accounts",
            "create-bank",
            "grant-bank-permissions",
            "create-token-accounts",
            "deploy-accounting",
        ]

    def test_full_stack_flag_adds_steps(self, config: EnvironmentConfig) -> None:
        assert provisioning_steps(config) == list(BASE_STEPS)
        config.deploy_full_dao_stack = True
        assert provisioning_steps(config) == list(BASE_STEPS) + list(FULL_DAO_STEPS)

    def test_environment_populated(self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig) -> None:
        env = setup_environment(config, api=api)

        assert env.accounting == "accounting"
        assert env.dao == "dao.hypha"
        assert env.accounting != env.dao
        assert env.bank == "bank.hypha"
        assert env.telos_decide == "telos.decide"
        assert env.seeds_exchange == "tlosto.seeds"
        assert env.voting_duration_seconds == 2
        assert env.period_duration == timedelta(seconds=6)
        assert env.api is api
        assert len(api.signer.available_keys()) == 1

    def test_accounts_before_permissions_before_deploy(
        self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig
    ) -> None:
        setup_environment(config, api=api)
        names = recorder.names()
        assert names[:4] == [
            "create_account",
            "create_account",
            "create_account_with_random_key",
            "update_auth",
        ]
        assert names[-1] == "set_contract"
        assert recorder.created[:3] == ["accounting", "dao.hypha", "bank.hypha"]

    def test_accounting_contract_deployed_to_accounting(
        self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig
    ) -> None:
        setup_environment(config, api=api)
        (account, artifact), = recorder.args_of("set_contract")
        assert account == "accounting"
        assert artifact == config.accounting

    def test_bank_permission_update(self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig) -> None:
        setup_environment(config, api=api)
        (account, permission, parent, authority, using), = recorder.args_of("update_auth")
        assert (account, permission, parent, using) == ("bank.hypha", "active", "owner", "owner")
        assert authority.threshold == 1
        assert {level.permission.actor for level in authority.accounts} == {"bank.hypha", "dao.hypha"}
        assert {level.permission.permission for level in authority.accounts} == {"eosio.code"}


class TestProvisioningFailures:
    def test_grant_before_bank_exists(self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig) -> None:
        recorder.failures["update_auth"] = ChainRejectedError(3010001, "unknown_key", "account bank.hypha does not exist")
        with pytest.raises(ProvisioningError) as exc_info:
            setup_environment(config, api=api)

        assert exc_info.value.step == "grant-bank-permissions"
        assert isinstance(exc_info.value.cause, ChainRejectedError)
        assert exc_info.value.__cause__ is exc_info.value.cause
        # later steps never ran
        assert "set_contract" not in recorder.names()
        assert "husd.hypha" not in recorder.created

    def test_missing_bank_key(self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig) -> None:
        steps = [step for step in BASE_STEPS if step.name != "create-bank"]
        state = ProvisioningState(config=config, env=Environment(api=api))
        with pytest.raises(ProvisioningError) as exc_info:
            run_steps(steps, state)
        assert exc_info.value.step == "grant-bank-permissions"

    def test_first_failure_stops_run(self, config: EnvironmentConfig) -> None:
        ran: list[str] = []

        def ok(state: ProvisioningState) -> None:
            ran.append("ok")

        def boom(state: ProvisioningState) -> None:
            raise ValueError("boom")

        steps = [ProvisioningStep("a", ok), ProvisioningStep("b", boom), ProvisioningStep("c", ok)]
        with pytest.raises(ProvisioningError, match="'b' failed: boom"):
            run_steps(steps, ProvisioningState(config=config))
        assert ran == ["ok"]

    def test_state_without_client(self, config: EnvironmentConfig) -> None:
        with pytest.raises(RuntimeError, match="connect"):
            ProvisioningState(config=config).api

    def test_second_run_fails_on_existing_account(
        self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig
    ) -> None:
        setup_environment(config, api=api)
        recorder.failures["create_account"] = ChainRejectedError(
            3050003, "eosio_assert_message_exception", "Cannot create account named accounting, as that name is already taken"
        )
        with pytest.raises(ProvisioningError) as exc_info:
            setup_environment(config, api=api)
        assert exc_info.value.step == "create-host-accounts"


class TestFullDaoStack:
    def test_full_provisioning(self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig) -> None:
        config.deploy_full_dao_stack = True
        config.whale_voting_power = "100.00 HVOICE"
        config.member_count = 2
        env = setup_environment(config, api=api)

        assert env.root is not None and env.root.id == 1
        assert env.system_token == "eosio.token"
        assert env.whale == Member("whale", recorder.documents[0])
        assert [m.member for m in env.members] == ["member1", "member2"]

        deployed = [args[0] for args in recorder.args_of("set_contract")]
        assert deployed == ["accounting", "dao.hypha", "bank.hypha", "escrow.seeds", "publsh.hypha", "telos.decide"]

        tokens = [args[1] for args in recorder.args_of("deploy_and_create_token")]
        assert tokens == ["husd.hypha", "token.hypha", "hvoice.hypha", "token.seeds", "eosio.token"]

    def test_settings(self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig) -> None:
        config.deploy_full_dao_stack = True
        setup_environment(config, api=api)

        int_settings = {args[1]: args[2] for args in recorder.args_of("dao.set_int_setting")}
        assert int_settings == {
            "voting_duration_sec": 2,
            "seeds_deferral_factor_x100": 100,
            "hypha_deferral_factor_x100": 25,
            "paused": 0,
        }
        name_settings = {args[1]: args[2] for args in recorder.args_of("dao.set_name_setting")}
        assert name_settings["treasury_contract"] == "bank.hypha"
        assert name_settings["telos_decide_contract"] == "telos.decide"

    def test_periods_hang_off_root(self, api: ChainApi, recorder: Recorder, config: EnvironmentConfig) -> None:
        config.deploy_full_dao_stack = True
        setup_environment(config, api=api)
        (dao_account, root_hash, num_periods, duration), = recorder.args_of("dao.add_periods")
        assert dao_account == "dao.hypha"
        assert root_hash == f"{1:064x}"
        assert num_periods == 10
        assert duration == timedelta(seconds=6)


class TestSetupMember:
    def test_enrolls_member(self, api: ChainApi, recorder: Recorder) -> None:
        member = setup_member(api, "dao.hypha", "telos.decide", "member1", "1.00 HVOICE")

        assert member.member == "member1"
        assert member.doc is recorder.documents[-1]
        assert member.doc.get_content("member").value == "member1"
        assert recorder.names() == [
            "create_account",
            "decide.reg_voter",
            "decide.mint",
            "dao.apply",
            "dao.enroll",
            "docgraph.get_last_document",
        ]
        assert recorder.args_of("decide.mint") == [("telos.decide", "dao.hypha", "member1", "1.00 HVOICE")]
        assert recorder.args_of("dao.enroll") == [("dao.hypha", "dao.hypha", "member1")]

    def test_mismatched_document(self, api: ChainApi, recorder: Recorder) -> None:
        recorder.enrolled = "someoneelse"
        with pytest.raises(MemberMismatchError) as exc_info:
            setup_member(api, "dao.hypha", "telos.decide", "member1", "1.00 HVOICE")
        assert exc_info.value.expected == "member1"
        assert exc_info.value.actual == "someoneelse"
        assert isinstance(exc_info.value, AssertionError)


class TestSetupMemberOnNode:
    @staticmethod
    def _enrollment_row(content: list[dict[str, Any]]) -> dict[str, Any]:
        return {"id": 12, "hash": "ef" * 32, "creator": "dao.hypha", "content_groups": [content]}

    def test_enrolls_member(self, api: ChainApi, node: FakeNode) -> None:
        node.table_rows = [self._enrollment_row([{"label": "member", "value": ["name", "member1"]}])]
        member = setup_member(api, "dao.hypha", "telos.decide", "member1", "1.00 HVOICE")

        assert member.member == "member1"
        assert member.doc.id == 12
        actions = [tx["actions"][0] for tx in node.transactions]
        assert [(a["account"], a["name"]) for a in actions] == [
            ("eosio", "newaccount"),
            ("telos.decide", "regvoter"),
            ("telos.decide", "mint"),
            ("dao.hypha", "apply"),
            ("dao.hypha", "enroll"),
        ]
        assert len(node.pushed) == 5
        regvoter = actions[1]
        assert regvoter["authorization"] == [{"actor": "member1", "permission": "active"}]
        assert regvoter["data"] == (serialize("name", "member1") + b"\x02HVOICE\x00\x00").hex()
        query = node.calls("/v1/chain/get_table_rows")[0]
        assert (query["code"], query["table"], query["reverse"]) == ("dao.hypha", "documents", True)

    def test_mismatched_document(self, api: ChainApi, node: FakeNode) -> None:
        node.table_rows = [self._enrollment_row([{"label": "member", "value": ["name", "someoneelse"]}])]
        with pytest.raises(MemberMismatchError) as exc_info:
            setup_member(api, "dao.hypha", "telos.decide", "member1", "1.00 HVOICE")
        assert exc_info.value.actual == "someoneelse"
        assert len(node.pushed) == 5

    def test_document_without_member(self, api: ChainApi, node: FakeNode) -> None:
        node.table_rows = [self._enrollment_row([{"label": "title", "value": ["string", "root"]}])]
        with pytest.raises(ContentNotFoundError):
            setup_member(api, "dao.hypha", "telos.decide", "member1", "1.00 HVOICE")


class TestBankAuthority:
    def test_bank_authority(self) -> None:
        _, bank_key = generate_key()
        authority = bank_authority("bank.hypha", "dao.hypha", bank_key)
        assert [kw.key for kw in authority.keys] == [bank_key]
        assert [a.permission.actor for a in authority.sorted_accounts()] == ["bank.hypha", "dao.hypha"]


class TestEnvironmentSummary:
    def test_table(self) -> None:
        env = Environment(dao="dao.hypha", accounting="accounting", voting_duration_seconds=2)
        text = str(env)
        lines = text.splitlines()
        assert lines[0].startswith("+-") and lines[0] == lines[2] == lines[-1]
        assert "Variable" in lines[1] and "Value" in lines[1]
        assert any(line.startswith("| DAO ") and "dao.hypha" in line for line in lines)
        assert len({len(line) for line in lines}) == 1
