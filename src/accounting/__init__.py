__all__ = [
    # Content
    "Content",
    "ContentGroup",
    "ContentNotFoundError",
    "Document",
    "FlexValue",
    "ValueKind",
    # Accounting actions
    "CreateAccount",
    "CreateLedger",
    "Transact",
    "add_ledger",
    "create_acct",
    "transact",
    "build_add_ledger_action",
    "build_create_acct_action",
    "build_transact_action",
    # Chain
    "Action",
    "Authority",
    "ChainApi",
    "ChainError",
    "ChainRejectedError",
    "PermissionLevel",
    "exec_trx",
    # Keys
    "DEFAULT_KEY",
    "KeyBag",
    "KeyNotFoundError",
    "generate_key",
    # Environment
    "Environment",
    "EnvironmentConfig",
    "Member",
    "MemberMismatchError",
    "ProvisioningError",
    "setup_environment",
    "setup_member",
]

from .keys import DEFAULT_KEY, KeyBag, KeyNotFoundError, generate_key
from .chain.rpc import ChainApi, ChainError, ChainRejectedError
from .chain.tx import exec_trx
from .chain.types import Action, Authority, PermissionLevel
from .content import Content, ContentGroup, ContentNotFoundError, Document, FlexValue, ValueKind
from .actions import (
    CreateAccount,
    CreateLedger,
    Transact,
    add_ledger,
    build_add_ledger_action,
    build_create_acct_action,
    build_transact_action,
    create_acct,
    transact,
)
from .config import EnvironmentConfig
from .environment import (
    Environment,
    Member,
    MemberMismatchError,
    ProvisioningError,
    setup_environment,
    setup_member,
)
