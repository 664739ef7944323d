"""
Tests for the AI augmentation layer.

Provider calls go through the FakeProvider from conftest; its ``fail`` flag
simulates an unavailable provider. None of these features may turn a
provider failure into an error response.
"""

import json

import pytest

from conftest import admin, session
from trellis.ai import content, embeddings, recommendations, support
from trellis.ai.content import COMPARE_FALLBACK
from trellis.errors import InvalidRequest, NotFound
from trellis.identity import Identity
from trellis.models import ChatMessage, ProductEmbedding, SEOMeta


class TestEmbeddings:

    def test_backfill_embeds_missing_products_once(self, db_session, products, provider):
        assert embeddings.backfill_embeddings(db_session, provider) == 4
        assert db_session.query(ProductEmbedding).count() == 4
        assert embeddings.backfill_embeddings(db_session, provider) == 0
        assert len(provider.embed_calls) == 4

    def test_product_text(self, products):
        assert embeddings.product_text(products[1]) == "Wireless Earbuds Compact wireless audio earbuds"

    def test_save_overwrites_in_place(self, db_session, products):
        embeddings.save_embedding(db_session, 1, [1.0, 0.0])
        embeddings.save_embedding(db_session, 1, [0.0, 1.0])
        rows = db_session.query(ProductEmbedding).all()
        assert len(rows) == 1
        assert rows[0].embedding == [0.0, 1.0]

    def test_ensure_uses_cache(self, db_session, products, provider):
        embeddings.ensure_embedding(db_session, provider, products[0])
        embeddings.ensure_embedding(db_session, provider, products[0])
        assert len(provider.embed_calls) == 1


class TestRecommendations:

    def test_most_similar_first_excluding_target(self, client, products):
        response = client.get("/api/recommendations/1")
        assert response.status_code == 200
        ids = [p["id"] for p in response.json()]
        assert ids[0] == 2
        assert 1 not in ids
        assert sorted(ids) == [2, 3, 4]

    def test_backfills_products_without_embeddings(self, db_session, products, provider):
        embeddings.save_embedding(db_session, 1, provider.embed(embeddings.product_text(products[0])))
        result = recommendations.recommend(db_session, provider, 1)
        assert [p.id for p in result][0] == 2
        assert db_session.query(ProductEmbedding).count() == 4

    def test_limited_to_five(self, db_session, products, provider):
        from trellis.models import Product
        for i in range(6):
            db_session.add(Product(name=f"Wireless thing {i}", description="wireless audio", price=1,
                                   category="Electronics", image="x.jpg"))
        db_session.commit()
        assert len(recommendations.recommend(db_session, provider, 1)) == 5

    def test_unknown_product_not_found(self, client, products):
        assert client.get("/api/recommendations/999").status_code == 404

    def test_provider_failure_returns_empty(self, client, products, provider):
        provider.fail = True
        response = client.get("/api/recommendations/1")
        assert response.status_code == 200
        assert response.json() == []

    def test_partial_coverage_when_backfill_fails(self, db_session, products, provider):
        embeddings.save_embedding(db_session, 1, provider.embed(embeddings.product_text(products[0])))
        embeddings.save_embedding(db_session, 3, provider.embed(embeddings.product_text(products[2])))
        provider.fail = True
        result = recommendations.recommend(db_session, provider, 1)
        assert [p.id for p in result] == [3]


class TestSemanticSearch:

    def test_ranked_matches_above_threshold(self, client, products):
        response = client.get("/api/search", params={"query": "wireless audio"})
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [2, 1]

    def test_other_query(self, client, products):
        response = client.get("/api/search", params={"query": "office lamp"})
        assert [p["id"] for p in response.json()] == [4, 3]

    def test_no_match(self, client, products):
        assert client.get("/api/search", params={"query": "bicycle"}).json() == []

    @pytest.mark.parametrize("params", [{}, {"query": ""}, {"query": "   "}])
    def test_empty_query_rejected(self, client, products, params):
        response = client.get("/api/search", params=params)
        assert response.status_code == 400
        assert response.json()["detail"] == "Search query required"

    def test_provider_failure_returns_empty(self, client, products, provider):
        provider.fail = True
        response = client.get("/api/search", params={"query": "wireless"})
        assert response.status_code == 200
        assert response.json() == []

    def test_service_rejects_empty(self, db_session, provider):
        with pytest.raises(InvalidRequest):
            recommendations.semantic_search(db_session, provider, "")


class TestCompare:

    def test_comparison_text(self, client, products, provider):
        provider.replies.append("The headphones suit long sessions; the earbuds suit travel.")
        response = client.post("/api/compare", json={"productIds": [1, 2]})
        assert response.status_code == 200
        assert response.json() == {"comparison": "The headphones suit long sessions; the earbuds suit travel."}

        call = provider.complete_calls[0]
        assert call["max_tokens"] == 800
        prompt = call["messages"][-1]["content"]
        assert "Wireless Headphones" in prompt
        assert "$149.99" in prompt

    @pytest.mark.parametrize("ids", [[1], [1, 2, 3, 4], []])
    def test_wrong_number_of_ids(self, client, products, ids):
        response = client.post("/api/compare", json={"productIds": ids})
        assert response.status_code == 400
        assert response.json()["detail"] == "Please provide 2-3 product IDs to compare"

    def test_missing_product(self, client, products):
        response = client.post("/api/compare", json={"productIds": [1, 999]})
        assert response.status_code == 404
        assert response.json()["detail"] == "One or more products not found"

    def test_provider_failure_returns_fallback(self, client, products, provider):
        provider.fail = True
        response = client.post("/api/compare", json={"productIds": [1, 2, 3]})
        assert response.status_code == 200
        assert response.json() == {"comparison": COMPARE_FALLBACK}

    def test_not_cached(self, db_session, products, provider):
        content.compare_products(db_session, provider, [1, 2])
        content.compare_products(db_session, provider, [1, 2])
        assert len(provider.complete_calls) == 2

    def test_service_validates_count(self, db_session, provider):
        with pytest.raises(InvalidRequest):
            content.compare_products(db_session, provider, [1])


class TestSupportChat:

    def test_reply_and_history(self, client, products, provider):
        provider.replies.append("We ship in 3-5 business days.")
        response = client.post("/api/support", json={"message": "How long is shipping?"}, headers=session("s1"))
        assert response.status_code == 200
        assert response.json() == {"response": "We ship in 3-5 business days."}

        history = client.get("/api/support/history", headers=session("s1")).json()
        assert [(m["role"], m["content"]) for m in history] == [
            ("user", "How long is shipping?"),
            ("assistant", "We ship in 3-5 business days."),
        ]

    def test_system_prompt_carries_knowledge_base(self, db_session, provider, store_config):
        support.chat(db_session, provider, Identity(session_id="s1"), "Hi")
        system = provider.complete_calls[0]["messages"][0]
        assert system["role"] == "system"
        assert "30-day return policy" in system["content"]
        assert provider.complete_calls[0]["max_tokens"] == store_config.chat_max_tokens

    def test_context_is_last_ten_messages(self, db_session, provider):
        identity = Identity(session_id="s1")
        for i in range(6):
            support.chat(db_session, provider, identity, f"question {i}")

        messages = provider.complete_calls[-1]["messages"]
        assert len(messages) == 11
        assert messages[-1] == {"role": "user", "content": "question 5"}
        assert messages[1] == {"role": "assistant", "content": provider.default_reply}

    def test_provider_failure_uses_fallback(self, client, products, provider, store_config):
        provider.fail = True
        response = client.post("/api/support", json={"message": "Hello?"}, headers=session("s1"))
        assert response.status_code == 200
        assert response.json() == {"response": store_config.support_fallback_message}

        history = client.get("/api/support/history", headers=session("s1")).json()
        assert history[-1]["content"] == store_config.support_fallback_message

    def test_history_is_per_identity(self, db_session, provider):
        support.chat(db_session, provider, Identity(session_id="a"), "from a")
        support.chat(db_session, provider, Identity(session_id="b"), "from b")
        assert [m.content for m in support.history(db_session, Identity(session_id="a"))][0] == "from a"
        assert db_session.query(ChatMessage).count() == 4

    def test_requires_identity(self, client, products):
        response = client.post("/api/support", json={"message": "Hi"})
        assert response.status_code == 400

    def test_blank_message_rejected(self, client, products):
        response = client.post("/api/support", json={"message": "   "}, headers=session("s1"))
        assert response.status_code == 400


class TestSEOMeta:

    def test_generate_and_cache(self, client, products, provider):
        provider.replies.append(json.dumps({
            "metaTitle": "Wireless Headphones | Trellis",
            "metaDescription": "Noise cancelling wireless headphones.",
        }))
        response = client.post("/api/seo/generate/1")
        assert response.status_code == 200
        assert response.json()["metaTitle"] == "Wireless Headphones | Trellis"
        assert response.json()["generatedBy"] == "fake"
        assert provider.complete_calls[0]["json_mode"] is True

        again = client.post("/api/seo/generate/1")
        assert again.json()["metaTitle"] == "Wireless Headphones | Trellis"
        assert len(provider.complete_calls) == 1

        stored = client.get("/api/seo/1")
        assert stored.status_code == 200
        assert stored.json()["metaDescription"] == "Noise cancelling wireless headphones."

    def test_long_values_truncated(self, db_session, products, provider):
        provider.replies.append(json.dumps({"metaTitle": "T" * 90, "metaDescription": "D" * 300}))
        meta = content.generate_seo_meta(db_session, provider, 1)
        assert len(meta.meta_title) == 60
        assert len(meta.meta_description) == 155

    def test_provider_failure_fallback_not_persisted(self, client, products, provider):
        provider.fail = True
        response = client.post("/api/seo/generate/1")
        assert response.status_code == 200
        assert response.json()["metaTitle"] == "Wireless Headphones"
        assert response.json()["metaDescription"] == "Noise cancelling wireless audio headphones"
        stored = client.get("/api/seo/1")
        assert stored.status_code == 200
        assert stored.json() is None

    def test_malformed_json_falls_back(self, db_session, products, provider):
        provider.replies.append("not json at all")
        meta = content.generate_seo_meta(db_session, provider, 2)
        assert meta.id is None
        assert meta.meta_title == "Wireless Earbuds"
        assert db_session.query(SEOMeta).count() == 0

    def test_unknown_product(self, client, products):
        assert client.post("/api/seo/generate/999").status_code == 404

    def test_get_missing_meta_is_null(self, client, products):
        response = client.get("/api/seo/2")
        assert response.status_code == 200
        assert response.json() is None

    def test_service_unknown_product(self, db_session, provider):
        with pytest.raises(NotFound):
            content.generate_seo_meta(db_session, provider, 1)


class TestDerivedDataInvalidation:

    def test_renaming_product_drops_embedding_and_seo(self, client, db_session, products, provider):
        provider.replies.append(json.dumps({"metaTitle": "t", "metaDescription": "d"}))
        client.post("/api/seo/generate/1")
        client.get("/api/recommendations/1")
        assert db_session.query(ProductEmbedding).filter(ProductEmbedding.product_id == 1).count() == 1

        response = client.put("/api/products/1", json={"name": "Studio Headphones"}, headers=admin())
        assert response.status_code == 200

        assert db_session.query(ProductEmbedding).filter(ProductEmbedding.product_id == 1).count() == 0
        assert db_session.query(SEOMeta).filter(SEOMeta.product_id == 1).count() == 0

    def test_price_change_keeps_derived_data(self, client, db_session, products, provider):
        client.get("/api/recommendations/1")
        client.put("/api/products/1", json={"price": 99.0}, headers=admin())
        assert db_session.query(ProductEmbedding).filter(ProductEmbedding.product_id == 1).count() == 1
