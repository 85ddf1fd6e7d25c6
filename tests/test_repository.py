"""
Tests for the Finding Repository
================================

Runs against a temp-file SQLite database.

Author: idwatch Team
Version: 1.0.0
"""

import pytest
from sqlalchemy import select

from idwatch.db.models import DeletionRequestDB, FindingDB, NotificationAlertDB
from idwatch.errors import ConflictError, InvalidTransition, NotFoundError, PersistenceError
from idwatch.findings.repository import FindingRepository
from shared.schemas.findings import (
    BreachFinding,
    DeletionRequestStatus,
    FindingCategory,
    FindingStatus,
)

from fixtures import PROFILE_ID, breach, exposure, impersonation, mention


async def _create(session_factory, finding) -> str:
    async with session_factory() as session:
        finding_id = await FindingRepository(session).create(finding)
        await session.commit()
    return finding_id


# =============================================================================
# Create
# =============================================================================


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_persists_with_status_new(self, session_factory, profile_id):
        finding = breach(85).model_copy(update={"status": FindingStatus.MONITORING})
        finding_id = await _create(session_factory, finding)

        async with session_factory() as session:
            stored = await FindingRepository(session).get(finding_id)

        assert isinstance(stored, BreachFinding)
        assert stored.status == FindingStatus.NEW
        assert stored.version == 1
        assert stored.risk_score == 85
        assert stored.matched_identifiers[0].type == "email"

    @pytest.mark.asyncio
    async def test_each_category_round_trips_its_shape(self, session_factory, profile_id):
        created = [exposure("high"), impersonation("critical"), mention()]
        ids = [await _create(session_factory, f) for f in created]

        async with session_factory() as session:
            repo = FindingRepository(session)
            stored = [await repo.get(i) for i in ids]

        assert [type(s) for s in stored] == [type(c) for c in created]
        assert stored[0].risk_level == "high"
        assert stored[0].confidence_score == 92
        assert stored[1].severity == "critical"

    @pytest.mark.asyncio
    async def test_create_rejects_schema_violation(self, session_factory, profile_id):
        bad = BreachFinding.model_construct(
            **{**breach(50).model_dump(), "matched_identifiers": []}
        )
        async with session_factory() as session:
            with pytest.raises(PersistenceError):
                await FindingRepository(session).create(bad)

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, db_session):
        assert await FindingRepository(db_session).get("f-missing") is None


# =============================================================================
# Queries
# =============================================================================


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_filters(self, session_factory, profile_id):
        await _create(session_factory, breach(75))
        await _create(session_factory, breach(65))
        await _create(session_factory, exposure("critical"))
        await _create(session_factory, breach(90, profile_id="p-other"))

        async with session_factory() as session:
            repo = FindingRepository(session)
            everything = await repo.list_for_profile(PROFILE_ID)
            breaches = await repo.list_for_profile(PROFILE_ID, category=FindingCategory.BREACH)
            high_risk = await repo.list_for_profile(PROFILE_ID, high_risk=True)
            new_only = await repo.list_for_profile(PROFILE_ID, status=FindingStatus.NEW)
            monitoring = await repo.list_for_profile(PROFILE_ID, status=FindingStatus.MONITORING)

        assert len(everything) == 3
        assert len(breaches) == 2
        assert [f.risk_score for f in high_risk] == [75]
        assert len(new_only) == 3
        assert monitoring == []

    @pytest.mark.asyncio
    async def test_statistics(self, session_factory, profile_id):
        first = await _create(session_factory, breach(80))
        await _create(session_factory, breach(20))
        await _create(session_factory, impersonation("low"))

        async with session_factory() as session:
            repo = FindingRepository(session)
            await repo.transition(first, FindingStatus.MONITORING, actor="user-owner")
            await session.commit()
            stats = await repo.statistics(PROFILE_ID)

        assert stats.total == 3
        assert stats.by_status == {"new": 2, "monitoring": 1}
        assert stats.by_category == {"breach": 2, "impersonation": 1}


# =============================================================================
# Transitions
# =============================================================================


class TestTransition:
    @pytest.mark.asyncio
    async def test_allowed_transition_bumps_version(self, session_factory, profile_id):
        finding_id = await _create(session_factory, breach(70))

        async with session_factory() as session:
            updated = await FindingRepository(session).transition(
                finding_id, FindingStatus.MONITORING, actor="user-owner"
            )
            await session.commit()

        assert updated.status == FindingStatus.MONITORING
        assert updated.version == 2

        async with session_factory() as session:
            row = await session.get(FindingDB, finding_id)
        assert row.status_changed_by == "user-owner"

    @pytest.mark.asyncio
    async def test_invalid_transition_leaves_state(self, session_factory, profile_id):
        finding_id = await _create(session_factory, impersonation("high"))

        async with session_factory() as session:
            with pytest.raises(InvalidTransition):
                await FindingRepository(session).transition(
                    finding_id, FindingStatus.REMOVAL_REQUESTED, actor="user-owner"
                )

        async with session_factory() as session:
            stored = await FindingRepository(session).get(finding_id)
        assert stored.status == FindingStatus.NEW
        assert stored.version == 1

    @pytest.mark.asyncio
    async def test_terminal_status_cannot_move(self, session_factory, profile_id):
        finding_id = await _create(session_factory, breach(40))

        async with session_factory() as session:
            repo = FindingRepository(session)
            await repo.transition(finding_id, FindingStatus.IGNORED, actor="u")
            await session.commit()
            with pytest.raises(InvalidTransition):
                await repo.transition(finding_id, FindingStatus.MONITORING, actor="u")

    @pytest.mark.asyncio
    async def test_missing_finding(self, db_session):
        with pytest.raises(NotFoundError):
            await FindingRepository(db_session).transition(
                "f-missing", FindingStatus.MONITORING, actor="u"
            )

    @pytest.mark.asyncio
    async def test_stale_expected_version_conflicts(self, session_factory, profile_id):
        finding_id = await _create(session_factory, breach(70))

        async with session_factory() as session:
            repo = FindingRepository(session)
            await repo.transition(finding_id, FindingStatus.MONITORING, actor="a",
                                  expected_version=1)
            await session.commit()

        async with session_factory() as session:
            with pytest.raises(ConflictError):
                await FindingRepository(session).transition(
                    finding_id, FindingStatus.IGNORED, actor="b", expected_version=1
                )

        async with session_factory() as session:
            stored = await FindingRepository(session).get(finding_id)
        assert stored.status == FindingStatus.MONITORING
        assert stored.version == 2

    @pytest.mark.asyncio
    async def test_concurrent_write_detected(self, session_factory, profile_id):
        """A write landing between read and update is not overwritten."""
        finding_id = await _create(session_factory, breach(70))

        async with session_factory() as session:
            repo = FindingRepository(session)
            original_load = repo._load

            async def load_then_race(fid):
                row = await original_load(fid)
                async with session_factory() as other:
                    await FindingRepository(other).transition(
                        fid, FindingStatus.IGNORED, actor="other"
                    )
                    await other.commit()
                repo._load = original_load
                return row

            repo._load = load_then_race
            with pytest.raises(ConflictError):
                await repo.transition(finding_id, FindingStatus.MONITORING, actor="me")

        async with session_factory() as session:
            stored = await FindingRepository(session).get(finding_id)
        assert stored.status == FindingStatus.IGNORED


# =============================================================================
# Deletion Requests
# =============================================================================


class TestDeletionRequests:
    @pytest.mark.asyncio
    async def test_removal_requested_spawns_pending_request(self, session_factory, profile_id):
        finding_id = await _create(session_factory, exposure("high"))

        async with session_factory() as session:
            repo = FindingRepository(session)
            await repo.transition(finding_id, FindingStatus.REMOVAL_REQUESTED, actor="u")
            await session.commit()
            requests = await repo.list_deletion_requests(PROFILE_ID)

        assert len(requests) == 1
        assert requests[0].finding_id == finding_id
        assert requests[0].status == DeletionRequestStatus.PENDING
        assert requests[0].source_name == "Spokeo"

    @pytest.mark.parametrize("outcome", [FindingStatus.COMPLETED, FindingStatus.FAILED])
    @pytest.mark.asyncio
    async def test_outcome_settles_request(self, session_factory, profile_id, outcome):
        finding_id = await _create(session_factory, breach(90))

        async with session_factory() as session:
            repo = FindingRepository(session)
            await repo.transition(finding_id, FindingStatus.REMOVAL_REQUESTED, actor="u")
            await repo.transition(finding_id, outcome, actor="u")
            await session.commit()
            requests = await repo.list_deletion_requests(PROFILE_ID)

        assert [r.status.value for r in requests] == [outcome.value]

    @pytest.mark.asyncio
    async def test_rollback_discards_both(self, session_factory, profile_id):
        """The status change and its deletion request commit together or not at all."""
        finding_id = await _create(session_factory, breach(90))

        async with session_factory() as session:
            await FindingRepository(session).transition(
                finding_id, FindingStatus.REMOVAL_REQUESTED, actor="u"
            )
            await session.rollback()

        async with session_factory() as session:
            repo = FindingRepository(session)
            stored = await repo.get(finding_id)
            requests = await repo.list_deletion_requests(PROFILE_ID)

        assert stored.status == FindingStatus.NEW
        assert requests == []

    @pytest.mark.asyncio
    async def test_failed_deletion_request_fails_transition(
        self, session_factory, profile_id, monkeypatch
    ):
        finding_id = await _create(session_factory, breach(90))
        async with session_factory() as session:
            session.add(DeletionRequestDB(
                id="d-taken",
                profile_id=PROFILE_ID,
                finding_id=finding_id,
                status=DeletionRequestStatus.COMPLETED.value,
            ))
            await session.commit()

        # Next deletion request collides with the existing primary key
        monkeypatch.setattr("idwatch.db.models.generate_id", lambda prefix: f"{prefix}-taken")

        async with session_factory() as session:
            with pytest.raises(PersistenceError):
                await FindingRepository(session).transition(
                    finding_id, FindingStatus.REMOVAL_REQUESTED, actor="u"
                )

        async with session_factory() as session:
            repo = FindingRepository(session)
            stored = await repo.get(finding_id)
            requests = await repo.list_deletion_requests(PROFILE_ID)

        assert stored.status == FindingStatus.NEW
        assert stored.version == 1
        assert [r.id for r in requests] == ["d-taken"]


# =============================================================================
# Delete
# =============================================================================


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_finding_and_requests(self, session_factory, profile_id):
        finding_id = await _create(session_factory, breach(90))

        async with session_factory() as session:
            repo = FindingRepository(session)
            await repo.transition(finding_id, FindingStatus.REMOVAL_REQUESTED, actor="u")
            session.add(NotificationAlertDB(
                profile_id=PROFILE_ID,
                finding_id=finding_id,
                alert_type="new_breach_detected",
                title="t",
                message="m",
                severity="critical",
                threat_indicators=[],
            ))
            await session.commit()

            assert await repo.delete(finding_id) is True
            await session.commit()

        async with session_factory() as session:
            assert await FindingRepository(session).get(finding_id) is None
            remaining = (await session.execute(select(DeletionRequestDB))).scalars().all()
            alerts = (await session.execute(select(NotificationAlertDB))).scalars().all()

        assert remaining == []
        assert len(alerts) == 1
        assert alerts[0].finding_id is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, db_session):
        assert await FindingRepository(db_session).delete("f-missing") is False
