"""
tests/test_member_service.py — /member-update & /member-search Logic
=====================================================================
"""

from __future__ import annotations

from datetime import datetime

import pytest
from conftest import FakeGateway
from sqlalchemy import select

from roster.constants import MEMBER_COLUMNS
from roster.database.models import AdminLog
from roster.services.member_service import (
    Caller,
    MemberUpdateRequest,
    UpdateOutcome,
    apply_member_update,
    search_members,
    update_member,
)

TS = "2024-03-01 12:00:00"

ADA = Caller(discord_id="111", username="ada", display_name="Ada L")
BOB = Caller(discord_id="222", username="bob", display_name="Bobby")
MOD = Caller(discord_id="999", username="mod", display_name="Moderator", privileged=True)


@pytest.fixture
def rows():
    return [
        list(MEMBER_COLUMNS),
        ["Ada Lovelace", "Ada L", "ada", "111", "5", "2024-01-01 00:00:00"],
        ["Grace Hopper", "Grace", "grace", "333", "2", "2024-01-01 00:00:00"],
    ]


class TestSelfService:
    def test_new_name_appends_a_row(self, rows):
        result = update_member(rows, BOB, MemberUpdateRequest(name="bob SMITH"), timestamp=TS)
        assert result.outcome is UpdateOutcome.CREATED
        assert rows[-1] == ["Bob Smith", "Bobby", "bob", "222", "0", TS]

    def test_new_row_takes_given_points(self, rows):
        update_member(rows, BOB, MemberUpdateRequest(name="Bob", points=4), timestamp=TS)
        assert rows[-1][4] == "4"

    def test_owner_refreshes_own_row(self, rows):
        caller = Caller(discord_id="111", username="ada_new", display_name="Countess")
        result = update_member(
            rows, caller, MemberUpdateRequest(name="ada lovelace", points=7), timestamp=TS,
        )
        assert result.outcome is UpdateOutcome.UPDATED_SELF
        assert rows[1] == ["Ada Lovelace", "Countess", "ada_new", "111", "7", TS]
        assert result.before == {"points": "5"}
        assert result.after == {"points": "7"}

    def test_other_members_row_is_refused(self, rows):
        before = [list(r) for r in rows]
        result = update_member(rows, BOB, MemberUpdateRequest(name="Grace Hopper"), timestamp=TS)
        assert result.outcome is UpdateOutcome.FORBIDDEN
        assert rows == before

    def test_discord_id_is_ignored_without_role(self, rows):
        result = update_member(
            rows, BOB, MemberUpdateRequest(name="Grace Hopper", points=50, discord_id="333"),
            timestamp=TS,
        )
        assert result.outcome is UpdateOutcome.FORBIDDEN
        assert rows[2][4] == "2"


class TestPrivilegedUpdate:
    def test_updates_row_by_discord_id(self, rows):
        result = update_member(
            rows, MOD, MemberUpdateRequest(name="grace b. hopper", points=10, discord_id="333"),
            timestamp=TS,
        )
        assert result.outcome is UpdateOutcome.UPDATED_OTHER
        assert rows[2][0] == "Grace B. Hopper"
        assert rows[2][4] == "10"
        assert rows[2][5] == TS
        assert result.before == {"name": "Grace Hopper", "points": "2"}

    def test_unknown_discord_id(self, rows):
        result = update_member(
            rows, MOD, MemberUpdateRequest(name="Nobody", discord_id="404"), timestamp=TS,
        )
        assert result.outcome is UpdateOutcome.NOT_FOUND
        assert "404" in result.message(MOD)

    def test_reply_names_the_moderator(self, rows):
        result = update_member(
            rows, MOD, MemberUpdateRequest(name="Grace Hopper", discord_id="333"), timestamp=TS,
        )
        assert result.message(MOD) == "Updated data for member: Grace Hopper, by: Moderator"


class TestSearch:
    def test_all(self, rows):
        assert len(search_members(rows, "ALL")) == 2

    def test_substring_case_insensitive(self, rows):
        found = search_members(rows, "hop")
        assert [r[0] for r in found] == ["Grace Hopper"]

    def test_no_match(self, rows):
        assert search_members(rows, "zzz") == []

    def test_short_rows_are_padded(self):
        found = search_members([list(MEMBER_COLUMNS), ["Ada"]], "all")
        assert found == [["Ada", "", "", "", "", ""]]


class TestApplyAndAudit:
    def test_writes_sheet_and_audits(self, rows, db_engine, db_session):
        gateway = FakeGateway(members=rows)
        result = apply_member_update(
            gateway, db_engine, BOB, MemberUpdateRequest(name="Bob"),
            now=datetime(2024, 3, 1, 12, 0, 0),
        )
        assert result.outcome is UpdateOutcome.CREATED
        assert gateway.member_rows[-1][0] == "Bob"
        assert len(gateway.member_writes) == 1

        entry = db_session.scalars(select(AdminLog)).one()
        assert entry.actor_id == 222
        assert entry.action_type == "member_created"
        assert entry.after_snapshot["Last_Update"] == TS

    def test_refusal_is_audited_but_not_written(self, rows, db_engine, db_session):
        gateway = FakeGateway(members=rows)
        apply_member_update(gateway, db_engine, BOB, MemberUpdateRequest(name="Ada Lovelace"))
        assert gateway.member_writes == []
        entry = db_session.scalars(select(AdminLog)).one()
        assert entry.action_type == "member_forbidden"

    def test_works_without_database(self, rows):
        gateway = FakeGateway(members=rows)
        result = apply_member_update(gateway, None, ADA, MemberUpdateRequest(name="Ada Lovelace"))
        assert result.outcome is UpdateOutcome.UPDATED_SELF
