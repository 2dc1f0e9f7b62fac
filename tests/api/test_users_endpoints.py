"""
Integration tests for User API endpoints.

Tests profile edits, public profiles and administrative overrides.
"""

import pytest
from unittest.mock import patch

from clubhub.errors import NotFoundError


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestProfileEndpoints:
    """Tests for profile endpoints (mocked services)."""

    @pytest.mark.api
    def test_update_profile_passes_only_sent_fields(self, authenticated_client, mock_services, api_account):
        mock_services.accounts.update_profile.return_value = api_account

        with patch("api.deps.get_services", return_value=mock_services):
            response = authenticated_client.put(
                "/api/v1/users/profile",
                json={"bio": "Robots.", "role": "super_admin"}
            )

        assert response.status_code == 200
        mock_services.accounts.update_profile.assert_called_once_with(
            "test-user-id-123", {"bio": "Robots."}
        )

    @pytest.mark.api
    def test_update_profile_requires_token(self, api_client, mock_services):
        with patch("api.deps.get_services", return_value=mock_services):
            response = api_client.put("/api/v1/users/profile", json={"bio": "hi"})

        assert response.status_code == 401

    @pytest.mark.api
    def test_get_unknown_user(self, authenticated_client, mock_services):
        mock_services.accounts.get_account.side_effect = NotFoundError("User not found")

        with patch("api.deps.get_services", return_value=mock_services):
            response = authenticated_client.get("/api/v1/users/missing")

        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"

    @pytest.mark.api
    def test_status_requires_super_admin(self, authenticated_client, mock_services):
        with patch("api.deps.get_services", return_value=mock_services):
            response = authenticated_client.patch(
                "/api/v1/users/other-id/status",
                json={"is_active": False}
            )

        assert response.status_code == 403
        mock_services.accounts.admin_update.assert_not_called()


class TestUserFlows:
    """Tests against real services."""

    @pytest.mark.api
    def test_profile_update_and_picture(self, api_client, live_services, make_account, jwt_handler):
        alice = make_account("alice@cs.iitr.ac.in", "20231234")
        token = jwt_handler.create_access_token(alice.user_id)

        with patch("api.deps.get_services", return_value=live_services):
            response = api_client.put(
                "/api/v1/users/profile",
                json={"full_name": "Alice S", "email": "evil@cs.iitr.ac.in", "skills": ["python"]},
                headers=bearer(token)
            )
            assert response.status_code == 200
            user = response.json()["user"]
            assert user["full_name"] == "Alice S"
            assert user["email"] == "alice@cs.iitr.ac.in"
            assert user["skills"] == ["python"]

            response = api_client.post(
                "/api/v1/users/profile-picture",
                json={"profile_picture": "https://cdn.example.com/a.png"},
                headers=bearer(token)
            )
            assert response.json()["user"]["profile_picture"] == "https://cdn.example.com/a.png"

            response = api_client.put(
                "/api/v1/users/profile",
                json={"phone": "123"},
                headers=bearer(token)
            )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "phone"

    @pytest.mark.api
    def test_admin_deactivation_cuts_off_tokens(self, api_client, live_services, make_account, jwt_handler):
        admin = make_account("root@admin.iitr.ac.in", "20230001", role="super_admin")
        alice = make_account("alice@cs.iitr.ac.in", "20231234")
        admin_token = jwt_handler.create_access_token(admin.user_id, role="super_admin")
        alice_token = jwt_handler.create_access_token(alice.user_id)

        with patch("api.deps.get_services", return_value=live_services):
            response = api_client.patch(
                f"/api/v1/users/{alice.user_id}/status",
                json={"is_active": False},
                headers=bearer(admin_token)
            )
            assert response.status_code == 200
            assert response.json()["user"]["is_active"] is False

            response = api_client.get("/api/v1/auth/profile", headers=bearer(alice_token))

        assert response.status_code == 403
        assert response.json()["code"] == "account_deactivated"

    @pytest.mark.api
    def test_public_profile_hides_secrets(self, api_client, live_services, make_account, jwt_handler):
        alice = make_account("alice@cs.iitr.ac.in", "20231234")
        bob = make_account("bob@ee.iitr.ac.in", "20230002", verified=False)
        token = jwt_handler.create_access_token(alice.user_id)

        with patch("api.deps.get_services", return_value=live_services):
            live_services.context.otp.issue(bob.user_id)
            response = api_client.get(f"/api/v1/users/{bob.user_id}", headers=bearer(token))

        assert response.status_code == 200
        user = response.json()["user"]
        for key in ("password_hash", "otp_code", "otp_expires_at"):
            assert key not in user
