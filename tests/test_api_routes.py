"""
tests/test_api_routes.py — FastAPI Route Integration Tests
============================================================

These tests verify:
- Auth guards (missing/invalid token, role checks, suspension)
- Role and profile are resolved server-side from the users dataset
- The application → acceptance → messaging flow over HTTP
"""

from __future__ import annotations

import jwt
import pytest

from bazaar.api.deps import JWT_ALGORITHM, JWT_SECRET, issue_token
from bazaar.database.models import UserRole
from bazaar.engine.records import UserProfile
from bazaar.services import directory_service


def _auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {issue_token(user_id)}"}


# ===========================================================================
# Health endpoint
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# Auth guards
# ===========================================================================
class TestAuthGuards:
    def test_missing_token(self, client, people):
        assert client.get("/api/stats/me").status_code == 401

    def test_invalid_token(self, client, people):
        resp = client.get("/api/stats/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_token_signed_with_other_secret(self, client, people):
        forged = jwt.encode({"sub": "admin-1"}, "z" * 48, algorithm=JWT_ALGORITHM)
        resp = client.get("/api/stats/me", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401

    def test_unknown_user(self, client, people):
        assert client.get("/api/stats/me", headers=_auth("ghost")).status_code == 401

    def test_claimed_role_in_token_is_ignored(self, client, people):
        token = jwt.encode({"sub": "vol-1", "role": "admin"}, JWT_SECRET, algorithm=JWT_ALGORITHM)
        resp = client.post(
            "/api/admin/points",
            json={"user_id": "vol-1", "amount": 100},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 403

    def test_suspended_user_forbidden(self, client, store, people):
        directory_service.upsert_user(store, UserProfile(
            id="vol-1", name="Vera Volunteer", role=UserRole.VOLUNTEER, is_suspended=True,
        ))
        assert client.get("/api/stats/me", headers=_auth("vol-1")).status_code == 403

    @pytest.mark.parametrize("endpoint", ["/api/admin/points", "/api/admin/badges", "/api/admin/hours"])
    def test_admin_endpoints_reject_volunteers(self, client, people, endpoint):
        payload = {"user_id": "vol-1", "amount": 1, "badge_name": "X", "hours": 1}
        resp = client.post(endpoint, json=payload, headers=_auth("vol-1"))
        assert resp.status_code == 403

    def test_volunteer_cannot_accept(self, client, people):
        resp = client.post("/api/applications/app-x/accept", json={"volunteer_id": "vol-1"}, headers=_auth("vol-1"))
        assert resp.status_code == 403


# ===========================================================================
# Gamification
# ===========================================================================
class TestGamificationRoutes:
    def test_admin_awards_and_leaderboard(self, client, people):
        admin = _auth("admin-1")
        assert client.post("/api/admin/points", json={"user_id": "vol-1", "amount": 30}, headers=admin).json()["success"]
        assert client.post("/api/admin/points", json={"user_id": "vol-2", "amount": 50}, headers=admin).json()["success"]
        resp = client.post("/api/admin/hours", json={"user_id": "vol-1", "hours": 11}, headers=admin)
        assert resp.json()["stats"]["badges"] == ["10 Hour Hero"]

        board = client.get("/api/leaderboard", params={"limit": 1}).json()["leaderboard"]
        assert board == [{"user_id": "vol-2", "user_name": "Victor Volunteer", "points": 50}]

    def test_non_finite_hours_rejected(self, client, people):
        resp = client.post(
            "/api/admin/hours",
            content='{"user_id": "vol-1", "hours": NaN}',
            headers={**_auth("admin-1"), "Content-Type": "application/json"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": False, "message": "Hours must be a finite number."}
        stats = client.get("/api/stats/me", headers=_auth("vol-1")).json()["stats"]
        assert stats["hours"] == 0

    def test_my_stats_and_log(self, client, people):
        client.post("/api/admin/badges", json={"user_id": "vol-1", "badge_name": "Early Bird"}, headers=_auth("admin-1"))
        stats = client.get("/api/stats/me", headers=_auth("vol-1")).json()["stats"]
        assert stats["badges"] == ["Early Bird"]
        log = client.get("/api/gamification/log/me", headers=_auth("vol-1")).json()["log"]
        assert [e["type"] for e in log] == ["badge"]


# ===========================================================================
# Application → acceptance → messaging
# ===========================================================================
class TestApplicationFlow:
    def _apply(self, client) -> str:
        resp = client.post(
            "/api/applications",
            json={"opportunity_id": "opp-1", "opportunity_title": "Beach Cleanup"},
            headers=_auth("vol-1"),
        )
        body = resp.json()
        assert body["success"] is True
        assert body["application"]["applicant_email"] == "vera@example.org"
        return body["application"]["id"]

    def test_duplicate_over_http(self, client, people):
        self._apply(client)
        again = client.post(
            "/api/applications",
            json={"opportunity_id": "opp-1", "opportunity_title": "Beach Cleanup"},
            headers=_auth("vol-1"),
        ).json()
        assert again["success"] is False
        assert "already applied" in again["message"]

    def test_accept_then_message(self, client, people):
        app_id = self._apply(client)
        org = _auth("org-1")
        vol = _auth("vol-1")

        listed = client.get("/api/applications", headers=org).json()["applications"]
        assert [a["id"] for a in listed] == [app_id]

        accepted = client.post(f"/api/applications/{app_id}/accept", json={"volunteer_id": "vol-1"}, headers=org).json()
        assert accepted["success"] is True
        convo_id = accepted["conversation_id"]

        assert client.get("/api/conversations/unread", headers=vol).json()["unread"] == 1
        inbox = client.get("/api/conversations", headers=vol).json()["conversations"]
        assert inbox[0]["id"] == convo_id
        assert inbox[0]["unread_count"] == 1

        details = client.get(f"/api/conversations/{convo_id}", headers=vol).json()
        assert details["success"] is True
        assert len(details["messages"]) == 1
        assert client.get("/api/conversations/unread", headers=vol).json()["unread"] == 0

        sent = client.post(f"/api/conversations/{convo_id}/messages", json={"text": "See you there"}, headers=vol).json()
        assert sent["success"] is True

        notes = client.get("/api/notifications", headers=vol).json()["notifications"]
        assert any(n["link"] == f"/dashboard/messages/{convo_id}" for n in notes)

    def test_other_volunteer_cannot_open_conversation(self, client, people):
        app_id = self._apply(client)
        convo_id = client.post(
            f"/api/applications/{app_id}/accept", json={"volunteer_id": "vol-1"}, headers=_auth("org-1"),
        ).json()["conversation_id"]
        resp = client.get(f"/api/conversations/{convo_id}", headers=_auth("vol-2")).json()
        assert resp["success"] is False
        assert "Access denied" in resp["message"]

    def test_performance_validation(self, client, people):
        app_id = self._apply(client)
        resp = client.post(
            f"/api/applications/{app_id}/performance",
            json={"attendance": "present", "org_rating": 9},
            headers=_auth("org-1"),
        )
        assert resp.status_code == 422


# ===========================================================================
# Notifications
# ===========================================================================
class TestNotificationRoutes:
    def test_read_all(self, client, people):
        client.post(
            "/api/applications",
            json={"opportunity_id": "opp-1", "opportunity_title": "Beach Cleanup"},
            headers=_auth("vol-1"),
        )
        org = _auth("org-1")
        [note] = client.get("/api/notifications", headers=org).json()["notifications"]
        assert note["is_read"] is False

        assert client.post(f"/api/notifications/{note['id']}/read", headers=org).json()["success"] is True
        assert client.get("/api/notifications", headers=org).json()["notifications"] == []
        everything = client.get("/api/notifications", params={"include_read": True}, headers=org).json()
        assert len(everything["notifications"]) == 1
        assert client.post("/api/notifications/read-all", headers=org).json()["count"] == 0
