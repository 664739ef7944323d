"""
Tests for per-identity interaction sets: recently viewed, comparison, favorites.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from conftest import bearer, session
from trellis import interactions
from trellis.errors import AuthRequired, InvalidRequest
from trellis.identity import Identity
from trellis.models import Comparison, Favorite, RecentlyViewed


class TestRecentlyViewed:

    def test_record_and_list(self, client, products):
        response = client.post("/api/recently-viewed", json={"productId": 1}, headers=session("s1"))
        assert response.status_code == 201
        body = response.json()
        assert body["productId"] == 1
        assert body["sessionId"] == "s1"
        assert "viewedAt" in body

        listed = client.get("/api/recently-viewed", headers=session("s1")).json()
        assert [entry["productId"] for entry in listed] == [1]

    def test_reviewing_keeps_one_entry_and_moves_it_to_front(self, client, products):
        for product_id in (1, 2, 1):
            client.post("/api/recently-viewed", json={"productId": product_id}, headers=session("s1"))

        listed = client.get("/api/recently-viewed", headers=session("s1")).json()
        assert [entry["productId"] for entry in listed] == [1, 2]

    def test_re_view_refreshes_viewed_at(self, db_session):
        identity = Identity(session_id="s1")
        first_at = datetime(2024, 3, 1, 9, 0, 0)
        second_at = datetime(2024, 3, 1, 9, 5, 30)

        with patch("trellis.interactions.utcnow", return_value=first_at):
            first = interactions.record_view(db_session, identity, 7)
        assert first.viewed_at == first_at

        with patch("trellis.interactions.utcnow", return_value=second_at):
            second = interactions.record_view(db_session, identity, 7)
        assert second.viewed_at == second_at
        assert second.id == first.id
        assert db_session.query(RecentlyViewed).filter(RecentlyViewed.identity_key == "s1").count() == 1

    def test_list_bounded_to_ten_most_recent(self, db_session):
        identity = Identity(session_id="s1")
        base = datetime(2024, 1, 1)
        for product_id in range(1, 13):
            db_session.add(RecentlyViewed(
                identity_key="s1", session_id="s1", product_id=product_id,
                viewed_at=base + timedelta(minutes=product_id),
            ))
        db_session.commit()

        recent = interactions.list_recent(db_session, identity)
        assert [entry.product_id for entry in recent] == list(range(12, 2, -1))

    def test_user_id_takes_precedence_over_session(self, client, products):
        headers = {**bearer("user-1"), **session("s1")}
        client.post("/api/recently-viewed", json={"productId": 3}, headers=headers)

        assert [e["productId"] for e in client.get("/api/recently-viewed", headers=bearer("user-1")).json()] == [3]
        assert client.get("/api/recently-viewed", headers=session("s1")).json() == []

    def test_requires_an_identity(self, client, products):
        response = client.get("/api/recently-viewed")
        assert response.status_code == 400

    def test_invalid_product_id_rejected(self, client, products):
        response = client.post("/api/recently-viewed", json={"productId": 0}, headers=session("s1"))
        assert response.status_code == 400

    def test_service_requires_identity(self, db_session):
        with pytest.raises(InvalidRequest):
            interactions.record_view(db_session, Identity(), 1)


class TestComparison:

    def test_more_than_three_rejected(self, client, products):
        response = client.post("/api/comparison", json={"productIds": [1, 2, 3, 4]}, headers=session("s1"))
        assert response.status_code == 400
        assert "max 3" in response.json()["detail"]

    def test_set_three_products(self, client, products):
        response = client.post("/api/comparison", json={"productIds": [1, 2, 3]}, headers=session("s1"))
        assert response.status_code == 200
        assert response.json()["productIds"] == [1, 2, 3]

        current = client.get("/api/comparison", headers=session("s1")).json()
        assert current["productIds"] == [1, 2, 3]

    def test_replace_changes_row_id(self, client, products):
        first = client.post("/api/comparison", json={"productIds": [1, 2]}, headers=session("s1")).json()
        second = client.post("/api/comparison", json={"productIds": [3]}, headers=session("s1")).json()

        assert second["id"] != first["id"]
        assert second["productIds"] == [3]
        assert client.get("/api/comparison", headers=session("s1")).json()["productIds"] == [3]

    def test_rejected_replace_keeps_prior_set(self, client, products):
        client.post("/api/comparison", json={"productIds": [1, 2]}, headers=session("s1"))
        client.post("/api/comparison", json={"productIds": [1, 2, 3, 4]}, headers=session("s1"))
        assert client.get("/api/comparison", headers=session("s1")).json()["productIds"] == [1, 2]

    def test_empty_when_none_saved(self, client, products):
        response = client.get("/api/comparison", headers=session("fresh"))
        assert response.status_code == 200
        assert response.json() == {"productIds": []}

    def test_one_row_per_identity(self, db_session):
        identity = Identity(session_id="s1")
        for ids in ([1], [1, 2], [2, 3]):
            interactions.set_comparison(db_session, identity, ids)
        assert db_session.query(Comparison).count() == 1


class TestFavorites:

    def test_anonymous_add_rejected(self, client, products):
        response = client.post("/api/favorites", json={"productId": 1}, headers=session("s1"))
        assert response.status_code == 401

    def test_anonymous_list_rejected(self, client, products):
        assert client.get("/api/favorites").status_code == 401

    def test_add_is_idempotent(self, client, products):
        first = client.post("/api/favorites", json={"productId": 1}, headers=bearer("user-1"))
        second = client.post("/api/favorites", json={"productId": 1}, headers=bearer("user-1"))

        assert first.status_code == 201
        assert second.status_code == 201
        assert second.json()["id"] == first.json()["id"]

        listed = client.get("/api/favorites", headers=bearer("user-1")).json()
        assert [f["productId"] for f in listed] == [1]

    def test_remove(self, client, products):
        client.post("/api/favorites", json={"productId": 2}, headers=bearer("user-1"))

        response = client.delete("/api/favorites/2", headers=bearer("user-1"))
        assert response.status_code == 200
        assert response.json() == {"message": "Removed from favorites"}
        assert client.get("/api/favorites", headers=bearer("user-1")).json() == []

    def test_unknown_product_is_not_found(self, client, products):
        response = client.post("/api/favorites", json={"productId": 999}, headers=bearer("user-1"))
        assert response.status_code == 404
        assert response.json()["detail"] == "Product not found"
        assert client.get("/api/favorites", headers=bearer("user-1")).json() == []

    def test_out_of_range_product_id_rejected(self, client, products):
        response = client.post("/api/favorites", json={"productId": 10**20}, headers=bearer("user-1"))
        assert response.status_code == 400

    def test_remove_not_favorited_is_not_found(self, client, products):
        response = client.delete("/api/favorites/2", headers=bearer("user-1"))
        assert response.status_code == 404

    def test_favorites_are_per_user(self, db_session, products):
        interactions.add_favorite(db_session, Identity(user_id="a"), 1)
        interactions.add_favorite(db_session, Identity(user_id="b"), 1)
        interactions.add_favorite(db_session, Identity(user_id="a"), 1)

        assert db_session.query(Favorite).count() == 2
        assert [f.product_id for f in interactions.list_favorites(db_session, Identity(user_id="b"))] == [1]

    def test_service_requires_user(self, db_session):
        with pytest.raises(AuthRequired):
            interactions.add_favorite(db_session, Identity(session_id="s1"), 1)
