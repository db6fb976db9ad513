"""
tests/test_actions.py — Caller-Facing Result Wrapping
======================================================
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from bazaar.database.models import UserRole
from bazaar.errors import PersistenceError
from bazaar.services import actions, gamification_service


class TestResultShape:
    def test_success_is_flattened(self, store):
        result = actions.add_points(store, "u1", 10, "x")
        data = result.to_dict()
        assert data["success"] is True
        assert data["stats"]["points"] == 10

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_points_report_nothing_added(self, store, amount):
        result = actions.add_points(store, "u1", amount, "x")
        assert result.success is True
        assert result.message == "No points added."
        assert result.data["stats"]["points"] == 0

    def test_positive_points_report_amount(self, store):
        assert actions.add_points(store, "u1", 10, "x").message == "Awarded 10 points."

    def test_domain_error_becomes_failure(self, store):
        result = actions.send_message(store, "missing", "u1", "hi")
        assert result.success is False
        assert result.message == "Conversation not found."

    def test_persistence_error_uses_generic_message(self, store, caplog):
        with patch.object(gamification_service, "get_user_stats", side_effect=PersistenceError("db gone")):
            result = actions.get_user_stats(store, "u1")
        assert result.to_dict() == {"success": False, "message": "Failed to load stats."}
        assert "persistence failure" in caplog.text


class TestApplicationActions:
    APP = {"opportunity_id": "opp-1", "opportunity_title": "Beach Cleanup", "applicant_email": "v@x.org"}

    def test_duplicate_message(self, store, people):
        assert actions.submit_application(store, dict(self.APP), "vol-1", "Vera").success
        again = actions.submit_application(store, dict(self.APP), "vol-1", "Vera")
        assert again.success is False
        assert "already applied" in again.message

    def test_accept_reports_conversation_id(self, store, people):
        app_id = actions.submit_application(store, dict(self.APP), "vol-1", "Vera").data["application"]["id"]
        result = actions.accept_application(store, app_id, "vol-1", "org-1", "Helping Hands").to_dict()
        assert result["success"] is True
        assert result["conversation_id"]
        assert result["updated_app"]["status"] == "accepted"
        assert result["failed_steps"] == []

    def test_partial_failure_still_succeeds(self, store, people):
        app_id = actions.submit_application(store, dict(self.APP), "vol-1", "Vera").data["application"]["id"]
        with patch.object(gamification_service, "add_points", side_effect=PersistenceError("x")):
            result = actions.accept_application(store, app_id, "vol-1", "org-1", "Helping Hands")
        assert result.success is True
        assert "acceptance_points" in result.message


class TestNotificationActions:
    def test_list_defaults_to_unread(self, store):
        first = actions.create_notification(store, "u1", "one").data["notification"]
        actions.create_notification(store, "u1", "two")
        actions.mark_notification_read(store, first["id"], "u1")

        assert [n["message"] for n in actions.list_notifications(store, "u1").data["notifications"]] == ["two"]
        assert len(actions.list_notifications(store, "u1", include_read=True).data["notifications"]) == 2

    def test_mark_read_not_found(self, store):
        assert actions.mark_notification_read(store, "nope", "u1").success is False

    def test_conversation_listing_for_admin_is_empty(self, store):
        result = actions.get_conversations_for_user(store, "admin-1", UserRole.ADMIN)
        assert result.to_dict() == {"success": True, "message": "", "conversations": []}
