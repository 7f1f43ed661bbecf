"""Tests for review request reconciliation."""

import pytest

from github_org_mirror.github.sync.reconcile import ReviewRequestReconciler
from github_org_mirror.github.sync.reconcile.review_requests import REMOVAL_REASON
from github_org_mirror.schemas import ReviewRequestNode
from tests.conftest import JAN_10, JAN_15, JAN_20
from tests.factories import make_pull_request, make_repository, make_review_request, make_user
from tests.fixtures.graphql_responses import actor, review_request_node, team

ALICE = actor("U_alice", "alice")
BOB = actor("U_bob", "bob")
CAROL = actor("U_carol", "carol")


def _live(*nodes) -> list[ReviewRequestNode]:
    return [ReviewRequestNode.model_validate(node) for node in nodes]


@pytest.fixture
async def pull_request(db_session):
    """A stored pull request with pending requests for alice and bob."""
    repo = make_repository(db_session)
    pull_request = make_pull_request(db_session, repo)
    make_user(db_session, id="U_alice", login="alice")
    make_user(db_session, id="U_bob", login="bob")
    make_review_request(db_session, pull_request, id="RR_alice", reviewer_id="U_alice")
    make_review_request(db_session, pull_request, id="RR_bob", reviewer_id="U_bob")
    await db_session.flush()
    return pull_request


async def _pending(store, pull_request_id: str):
    pending = await store.list_pending_review_requests_by_pull_request_ids([pull_request_id])
    return pending[pull_request_id]


class TestReviewRequestReconciler:
    """Tests for ReviewRequestReconciler.reconcile."""

    @pytest.mark.asyncio
    async def test_missing_reviewer_is_marked_removed(self, store, pull_request):
        """Pending {alice, bob}, live {alice}: bob's request is removed."""
        reconciler = ReviewRequestReconciler(store)

        result = await reconciler.reconcile(
            pull_request.id,
            _live(review_request_node("RRN_alice", ALICE)),
            await _pending(store, pull_request.id),
            now=JAN_15,
        )

        assert result.added == 0
        assert result.removed == 1

        bob = await store.review_requests.get_by_id("RR_bob")
        assert bob.removed_at == JAN_15
        assert bob.removed_data["reason"] == REMOVAL_REASON
        assert bob.removed_data["requestId"] == "RR_bob"

        remaining = await _pending(store, pull_request.id)
        assert [request.id for request in remaining] == ["RR_alice"]

    @pytest.mark.asyncio
    async def test_existing_pending_request_is_kept(self, store, pull_request):
        """A still-live reviewer keeps its row id and original request time."""
        reconciler = ReviewRequestReconciler(store)

        await reconciler.reconcile(
            pull_request.id,
            _live(review_request_node("RRN_alice", ALICE), review_request_node("RRN_bob", BOB)),
            await _pending(store, pull_request.id),
            now=JAN_15,
        )

        alice = await store.review_requests.get_by_id("RR_alice")
        assert alice.removed_at is None
        assert alice.requested_at.replace(tzinfo=None) == JAN_10.replace(tzinfo=None)
        assert await store.review_requests.get_by_id("RRN_alice") is None

    @pytest.mark.asyncio
    async def test_new_reviewer_is_added(self, store, pull_request):
        reconciler = ReviewRequestReconciler(store)

        result = await reconciler.reconcile(
            pull_request.id,
            _live(
                review_request_node("RRN_alice", ALICE),
                review_request_node("RRN_bob", BOB),
                review_request_node(None, CAROL),
            ),
            await _pending(store, pull_request.id),
            now=JAN_15,
        )

        assert result.added == 1
        assert result.removed == 0

        carol = await store.review_requests.get_by_id(f"{pull_request.id}:U_carol")
        assert carol is not None
        assert carol.reviewer_id == "U_carol"
        assert carol.requested_at == JAN_15
        assert await store.users.get_by_id("U_carol") is not None

    @pytest.mark.asyncio
    async def test_team_requests_are_ignored(self, store, pull_request):
        reconciler = ReviewRequestReconciler(store)

        result = await reconciler.reconcile(
            pull_request.id,
            _live(
                review_request_node("RRN_alice", ALICE),
                review_request_node("RRN_bob", BOB),
                review_request_node("RRN_core", team()),
            ),
            await _pending(store, pull_request.id),
            now=JAN_15,
        )

        assert result.added == 0
        assert result.removed == 0
        assert await store.users.get_by_id("T_core") is None

    @pytest.mark.asyncio
    async def test_empty_live_snapshot_removes_everything(self, store, pull_request):
        reconciler = ReviewRequestReconciler(store)

        result = await reconciler.reconcile(
            pull_request.id, [], await _pending(store, pull_request.id), now=JAN_15
        )

        assert result.removed == 2
        assert await _pending(store, pull_request.id) == []

    @pytest.mark.asyncio
    async def test_second_pass_with_same_snapshot_changes_nothing(self, store, pull_request):
        """Reconciling an unchanged snapshot again removes and adds nothing."""
        reconciler = ReviewRequestReconciler(store)
        live = _live(review_request_node("RRN_alice", ALICE))

        first = await reconciler.reconcile(
            pull_request.id, live, await _pending(store, pull_request.id), now=JAN_15
        )
        second = await reconciler.reconcile(
            pull_request.id, live, await _pending(store, pull_request.id), now=JAN_20
        )

        assert (first.added, first.removed) == (0, 1)
        assert (second.added, second.removed) == (0, 0)

        bob = await store.review_requests.get_by_id("RR_bob")
        assert bob.removed_at == JAN_15
        remaining = await _pending(store, pull_request.id)
        assert [request.id for request in remaining] == ["RR_alice"]

    @pytest.mark.asyncio
    async def test_duplicate_pending_rows_collapse_to_newest(self, store, db_session, pull_request):
        """Two pending rows for one live reviewer leave only the newer one active."""
        make_review_request(
            db_session,
            pull_request,
            id="RR_alice_again",
            reviewer_id="U_alice",
            requested_at=JAN_15,
        )
        await db_session.flush()
        reconciler = ReviewRequestReconciler(store)

        result = await reconciler.reconcile(
            pull_request.id,
            _live(review_request_node("RRN_alice", ALICE), review_request_node("RRN_bob", BOB)),
            await _pending(store, pull_request.id),
            now=JAN_20,
        )

        assert (result.added, result.removed) == (0, 0)
        remaining = await _pending(store, pull_request.id)
        assert sorted(request.id for request in remaining) == ["RR_alice_again", "RR_bob"]

        older = await store.review_requests.get_by_id("RR_alice")
        assert older.removed_at == JAN_15
        assert older.removed_data["supersededBy"] == "RR_alice_again"
