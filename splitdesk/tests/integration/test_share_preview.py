"""
tests/integration/test_share_preview.py — Integration tests for the share
draft endpoints.

Endpoints covered:
  POST /api/v1/shares/preview          → 200 (always, for a well-formed body)
  POST /api/v1/shares/divide-equally   → 200

Also verifies the app-wide behaviours every endpoint shares: amounts as
strings in JSON, the 400 error envelope, JSON 404s and dev CORS headers.
"""

from __future__ import annotations

PREVIEW = "/api/v1/shares/preview"
DIVIDE = "/api/v1/shares/divide-equally"


def _codes(body: dict) -> list[str]:
    return [v["code"] for v in body["data"]["violations"]]


class TestPreview:

    def test_equal_split_of_ten(self, post_json, share):
        status, body = post_json(PREVIEW, {
            "amount": 10,
            "paid_by_id": "a",
            "member_count": 3,
            "shares": [share("a", "EQUAL"), share("b", "EQUAL"), share("c", "EQUAL")],
        })

        assert status == 200
        data = body["data"]
        assert [s["amount"] for s in data["shares"]] == ["3.330", "3.330", "3.340"]
        assert data["total"] == "10.00"
        assert data["resolved_total"] == "10.00"
        assert data["remainder"] == "10.00"
        assert data["can_submit"] is True
        assert data["violations"] == []
        assert body["warnings"] == []

    def test_fixed_and_percentages(self, post_json, share):
        status, body = post_json(PREVIEW, {
            "amount": "100.00",
            "paid_by_id": "a",
            "shares": [
                share("a", "FIXED", "20"),
                share("b", "PERCENTAGE", 50),
                share("c", "PERCENTAGE", 50),
            ],
        })

        assert status == 200
        data = body["data"]
        assert data["fixed_total"] == "20.00"
        assert data["remainder"] == "80.00"
        assert [s["amount"] for s in data["shares"]] == ["20.00", "40.00", "40.00"]
        assert data["can_submit"] is True

    def test_thirds_of_ten_reconcile(self, post_json, share):
        _, body = post_json(PREVIEW, {
            "amount": 10,
            "paid_by_id": "a",
            "shares": [
                share("a", "PERCENTAGE", "33.33"),
                share("b", "PERCENTAGE", "33.33"),
                share("c", "PERCENTAGE", "33.34"),
            ],
        })

        data = body["data"]
        assert [s["amount"] for s in data["shares"]] == ["3.33", "3.33", "3.34"]
        assert data["resolved_total"] == "10.00"
        assert data["checks"]["percent_ok"] is True

    def test_blocked_draft_is_still_200(self, post_json, share):
        status, body = post_json(PREVIEW, {
            "amount": 100,
            "paid_by_id": "a",
            "shares": [share("a", "PERCENTAGE", 100), share("b", "EQUAL")],
        })

        assert status == 200
        assert body["data"]["can_submit"] is False
        assert body["data"]["checks"]["equal_allowed"] is False
        assert "EQUAL_WITH_PERCENTAGE" in _codes(body)

    def test_fixed_over_total(self, post_json, share):
        _, body = post_json(PREVIEW, {
            "amount": 50,
            "paid_by_id": "a",
            "shares": [share("a", "FIXED", 60)],
        })

        assert body["data"]["checks"]["fixed_ok"] is False
        assert _codes(body)[0] == "FIXED_EXCEEDS_TOTAL"
        assert body["data"]["violations"][0]["message"] == "Fixed amounts exceed the expense total."

    def test_duplicate_members_reported(self, post_json, share):
        _, body = post_json(PREVIEW, {
            "amount": 30,
            "paid_by_id": "a",
            "shares": [share("a", "FIXED", 10), share("a", "FIXED", 20)],
        })

        assert body["data"]["checks"]["has_duplicates"] is True
        assert _codes(body) == ["DUPLICATE_MEMBER"]
        assert len(body["data"]["shares"]) == 1

    def test_no_payer(self, post_json, share):
        _, body = post_json(PREVIEW, {"amount": 10, "shares": [share("a", "EQUAL")]})

        assert body["data"]["checks"]["payer_selected"] is False
        assert _codes(body) == ["PAYER_MISSING"]

    def test_member_limit(self, post_json, share):
        _, body = post_json(PREVIEW, {
            "amount": 10,
            "paid_by_id": "a",
            "member_count": 1,
            "shares": [share("a", "EQUAL"), share("b", "EQUAL")],
        })

        assert _codes(body) == ["TOO_MANY_PARTICIPANTS"]


class TestPreviewValidation:

    def test_unknown_share_type(self, post_json, share):
        status, body = post_json(PREVIEW, {"amount": 10, "shares": [share("a", "HALF")]})

        assert status == 400
        assert body["error"]["code"] == "INVALID_SHARE_TYPE"
        assert body["error"]["field"] == "shares.0.type"

    def test_missing_amount(self, post_json):
        status, body = post_json(PREVIEW, {"shares": []})

        assert status == 400
        assert body["error"]["code"] == "MISSING_FIELD"
        assert body["error"]["field"] == "amount"

    def test_negative_total(self, post_json):
        status, body = post_json(PREVIEW, {"amount": -1})

        assert status == 400
        assert body["error"]["code"] == "INVALID_AMOUNT"
        assert body["error"]["message"] == "Amounts must be between 0 and 1000000000000000."

    def test_oversized_total_rejected(self, post_json, share):
        status, body = post_json(PREVIEW, {
            "amount": "1e30",
            "paid_by_id": "a",
            "shares": [share("a", "EQUAL")],
        })

        assert status == 400
        assert body["error"]["code"] == "INVALID_AMOUNT"
        assert body["error"]["field"] == "amount"

    def test_oversized_share_amount(self, post_json, share):
        status, body = post_json(PREVIEW, {
            "amount": 10,
            "shares": [share("a", "FIXED", "1e30")],
        })

        assert status == 400
        assert body["error"]["code"] == "INVALID_AMOUNT"
        assert body["error"]["field"] == "shares.0.amount"

    def test_largest_accepted_total(self, post_json, share):
        status, body = post_json(PREVIEW, {
            "amount": "1000000000000000",
            "paid_by_id": "a",
            "shares": [share("a", "EQUAL"), share("b", "EQUAL")],
        })

        assert status == 200
        assert body["data"]["resolved_total"] == "1000000000000000.00"

    def test_percentage_over_100(self, post_json, share):
        status, body = post_json(PREVIEW, {
            "amount": 10,
            "shares": [share("a", "PERCENTAGE", 150)],
        })

        assert status == 400
        assert body["error"]["code"] == "INVALID_PERCENTAGE"
        assert body["error"]["field"] == "shares.0.amount"

    def test_malformed_json(self, client):
        resp = client.post(PREVIEW, data="{not json", content_type="application/json")

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_FIELD"


class TestDivideEqually:

    def test_without_payer(self, post_json):
        status, body = post_json(DIVIDE, {
            "member_ids": ["a", "b", "c"],
            "paid_by_id": "a",
            "include_payer": False,
        })

        assert status == 200
        assert body["data"]["shares"] == [
            {"user_id": "b", "amount": "0", "type": "EQUAL"},
            {"user_id": "c", "amount": "0", "type": "EQUAL"},
        ]
        assert body["warnings"] == []

    def test_with_payer(self, post_json):
        _, body = post_json(DIVIDE, {"member_ids": ["a", "b"], "paid_by_id": "a"})
        assert [s["user_id"] for s in body["data"]["shares"]] == ["a", "b"]

    def test_capped_at_member_count(self, post_json):
        status, body = post_json(DIVIDE, {"member_ids": ["a", "b", "c"], "member_count": 2})

        assert status == 200
        assert [s["user_id"] for s in body["data"]["shares"]] == ["a", "b"]

    def test_refused_next_to_percentages(self, post_json, share):
        _, body = post_json(DIVIDE, {
            "member_ids": ["a", "b"],
            "shares": [share("a", "PERCENTAGE", 100)],
        })

        assert body["data"]["shares"] == [{"user_id": "a", "amount": "100", "type": "PERCENTAGE"}]
        assert body["warnings"] == ["EQUAL_WITH_PERCENTAGE"]


class TestAppBehaviour:

    def test_unknown_route_is_json_404(self, client):
        resp = client.get("/api/v1/nope")

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "NOT_FOUND"

    def test_wrong_method_is_json_405(self, client):
        resp = client.get(PREVIEW)

        assert resp.status_code == 405
        assert resp.get_json()["error"]["code"] == "METHOD_NOT_ALLOWED"

    def test_cors_headers_in_testing(self, client):
        resp = client.post(
            PREVIEW,
            json={"amount": 1},
            headers={"Origin": "http://localhost:3000"},
        )

        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
        assert "Authorization" in resp.headers["Access-Control-Allow-Headers"]
