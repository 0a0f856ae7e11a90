"""
DAO Contract - Root document, settings, periods and membership.

Every action here is authorized by the acting account with its active
permission; settings and root creation are done by the DAO itself.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from ..chain.codec import register_struct
from ..chain.rpc import ChainApi
from ..chain.tx import exec_trx
from ..chain.types import Action, PermissionLevel
from ..content import Document, FlexValue
from .docgraph import get_last_document

logger = logging.getLogger(__name__)


register_struct("dao_createroot", [("notes", "string")])
register_struct("dao_setsetting", [("key", "string"), ("value", "flexvalue")])
register_struct(
    "dao_addperiod",
    [("predecessor", "checksum256"), ("start_time", "time_point"), ("label", "string")],
)
register_struct("dao_apply", [("applicant", "name"), ("content", "string")])
register_struct("dao_enroll", [("enroller", "name"), ("applicant", "name"), ("content", "string")])


def _push(api: ChainApi, dao: str, name: str, actor: str, data: dict[str, Any], data_type: str) -> str:
    action = Action(
        account=dao,
        name=name,
        authorization=[PermissionLevel(actor, "active")],
        data=data,
        data_type=data_type,
    )
    return exec_trx(api, [action])


def create_root(api: ChainApi, dao: str, notes: str = "notes") -> str:
    return _push(api, dao, "createroot", dao, {"notes": notes}, "dao_createroot")


def set_setting(api: ChainApi, dao: str, key: str, value: FlexValue) -> str:
    return _push(api, dao, "setsetting", dao, {"key": key, "value": value}, "dao_setsetting")


def set_int_setting(api: ChainApi, dao: str, key: str, value: int) -> str:
    return set_setting(api, dao, key, FlexValue.integer(value))


def set_name_setting(api: ChainApi, dao: str, key: str, value: str) -> str:
    return set_setting(api, dao, key, FlexValue.account(value))


def add_periods(
    api: ChainApi,
    dao: str,
    root_hash: str,
    num_periods: int,
    period_duration: timedelta,
) -> list[Document]:
    """
    Chain ``num_periods`` period documents after the root.

    Each period's predecessor is the previously created document; the
    first one hangs off the root.  Start times begin now and advance by
    ``period_duration``.

    Returns:
        The period documents, in creation order
    """
    predecessor = root_hash
    start_time = datetime.now(timezone.utc)
    periods = []
    for index in range(num_periods):
        data = {
            "predecessor": predecessor,
            "start_time": start_time,
            "label": f"period #{index + 1}",
        }
        _push(api, dao, "addperiod", dao, data, "dao_addperiod")
        period = get_last_document(api, dao)
        logger.debug("added period %s (%s)", index + 1, period.hash)
        periods.append(period)
        predecessor = period.hash
        start_time += period_duration
    return periods


def apply(api: ChainApi, dao: str, applicant: str, notes: str) -> str:
    return _push(api, dao, "apply", applicant, {"applicant": applicant, "content": notes}, "dao_apply")


def enroll(api: ChainApi, dao: str, enroller: str, applicant: str, notes: str = "enroll in dao") -> str:
    data = {"enroller": enroller, "applicant": applicant, "content": notes}
    return _push(api, dao, "enroll", enroller, data, "dao_enroll")
