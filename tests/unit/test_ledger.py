"""Tests for the match ledger (suggest / accept / reject / manual)."""

from __future__ import annotations

import asyncio

import pytest

from tendercalc.config import MatchingConfig
from tendercalc.core.errors import ConflictError, InvalidStateError, NotFoundError
from tendercalc.matching.ledger import MatchLedger, parse_target_status
from tendercalc.matching.resolver import resolve_matches
from tendercalc.models import MatchCandidate, MatchStatus


@pytest.fixture
def ledger(repos):
    return MatchLedger(repos)


class TestRecordSuggestions:
    @pytest.mark.asyncio
    async def test_creates_suggested_matches(self, ledger, repos, project_id):
        created = await ledger.record_suggestions(
            project_id,
            [MatchCandidate(itt_item_id="itt-backfill", response_item_id="resp-bravo-dewater", confidence=0.4)],
        )

        assert len(created) == 1
        match = created[0]
        assert match.status is MatchStatus.SUGGESTED
        assert match.contractor_id == "con-bravo"
        assert await repos.matches.get_by_id(project_id, match.match_id) is not None

    @pytest.mark.asyncio
    async def test_skips_existing_pairs(self, ledger, project_id):
        created = await ledger.record_suggestions(
            project_id,
            [
                MatchCandidate(itt_item_id="itt-site", response_item_id="resp-acme-site", confidence=0.99),
                MatchCandidate(itt_item_id="itt-backfill", response_item_id="resp-bravo-dewater", confidence=0.5),
                MatchCandidate(itt_item_id="itt-backfill", response_item_id="resp-bravo-dewater", confidence=0.6),
            ],
        )

        assert [m.response_item_id for m in created] == ["resp-bravo-dewater"]

    @pytest.mark.asyncio
    async def test_drops_candidates_below_threshold(self, repos, project_id):
        ledger = MatchLedger(repos, MatchingConfig(min_suggestion_confidence=0.5))

        created = await ledger.record_suggestions(
            project_id,
            [MatchCandidate(itt_item_id="itt-backfill", response_item_id="resp-bravo-dewater", confidence=0.3)],
        )

        assert created == []

    @pytest.mark.asyncio
    async def test_unknown_response_item(self, ledger, project_id):
        with pytest.raises(NotFoundError):
            await ledger.record_suggestions(
                project_id,
                [MatchCandidate(itt_item_id="itt-site", response_item_id="missing", confidence=0.5)],
            )


class TestManualMatch:
    @pytest.mark.asyncio
    async def test_manual_match_is_settled_and_effective(self, ledger, repos, project_id):
        # Acme's site response was accepted against itt-site; drag it onto backfill instead
        match = await ledger.create_manual_match(
            project_id, "itt-backfill", "resp-acme-site", comment="moved"
        )

        assert match.status is MatchStatus.MANUAL
        assert match.confidence == 1.0
        assert match.contractor_id == "con-acme"

        visible = resolve_matches(await repos.matches.list_by_project(project_id))
        ids = {m.match_id for m in visible}
        assert match.match_id in ids
        assert "m-acme-site" not in ids
        # the previous backfill pairing for the same cell is superseded too
        assert "m-acme-backfill" not in ids

    @pytest.mark.asyncio
    async def test_manual_match_requires_existing_items(self, ledger, project_id):
        with pytest.raises(NotFoundError):
            await ledger.create_manual_match(project_id, "itt-missing", "resp-acme-site")
        with pytest.raises(NotFoundError):
            await ledger.create_manual_match(project_id, "itt-site", "resp-missing")

    @pytest.mark.asyncio
    async def test_match_scoped_to_project(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.create_manual_match("other-project", "itt-site", "resp-acme-site")


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_accept_suggestion(self, ledger, repos, project_id):
        updated = await ledger.accept(project_id, "m-bravo-excavate", comment="checked")

        assert updated.status is MatchStatus.ACCEPTED
        assert updated.comment == "checked"
        assert updated.version == 1
        stored = await repos.matches.get_by_id(project_id, "m-bravo-excavate")
        assert stored.status is MatchStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_reject_suggestion(self, ledger, project_id):
        updated = await ledger.update_status(project_id, "m-bravo-excavate", "rejected")
        assert updated.status is MatchStatus.REJECTED

    @pytest.mark.asyncio
    async def test_terminal_match_is_left_unchanged(self, ledger, project_id):
        result = await ledger.reject(project_id, "m-acme-site")

        assert result.status is MatchStatus.ACCEPTED
        assert result.version == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["suggested", "manual", "approved", ""])
    async def test_invalid_targets(self, ledger, project_id, status):
        with pytest.raises(InvalidStateError):
            await ledger.update_status(project_id, "m-bravo-excavate", status)

    @pytest.mark.asyncio
    async def test_unknown_match(self, ledger, project_id):
        with pytest.raises(NotFoundError):
            await ledger.accept(project_id, "m-missing")

    @pytest.mark.asyncio
    async def test_concurrent_update_conflicts(self, repos, project_id):
        original = await repos.matches.get_by_id(project_id, "m-bravo-excavate")
        await repos.matches.replace(
            original.model_copy(update={"comment": "first writer"}), expected_version=0
        )

        with pytest.raises(ConflictError):
            await repos.matches.replace(
                original.model_copy(update={"status": MatchStatus.REJECTED}),
                expected_version=0,
            )

    @pytest.mark.asyncio
    async def test_racing_accept_and_reject_settle_once(self, repos, project_id):
        results = await asyncio.gather(
            MatchLedger(repos).accept(project_id, "m-bravo-excavate"),
            MatchLedger(repos).reject(project_id, "m-bravo-excavate"),
            return_exceptions=True,
        )

        stored = await repos.matches.get_by_id(project_id, "m-bravo-excavate")
        assert stored.status in (MatchStatus.ACCEPTED, MatchStatus.REJECTED)
        assert stored.version == 1
        for result in results:
            if isinstance(result, Exception):
                assert isinstance(result, ConflictError)


def test_parse_target_status():
    assert parse_target_status(" Accepted ") is MatchStatus.ACCEPTED
    with pytest.raises(InvalidStateError):
        parse_target_status(MatchStatus.MANUAL)
