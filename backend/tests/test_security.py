"""Security tests: auth bypass and header handling."""
from webapp_auth.config import settings


class TestAuthBypass:
    def test_x_tg_user_id_without_initdata_is_rejected(self, client):
        """A bare user id header is not trusted while dev auth is off."""
        resp = client.get("/v1/users/me", headers={"X-TG-USER-ID": "12345"})
        assert resp.status_code == 401

    def test_no_auth_header_is_rejected(self, client):
        resp = client.get("/v1/users/me")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Unauthorized"

    def test_bearer_authorization_is_not_init_data(self, client):
        resp = client.get("/v1/users/me", headers={"Authorization": "Bearer abc"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Unauthorized"

    def test_init_data_without_bot_token_is_server_error(self, client):
        original = settings.bot_token
        settings.bot_token = None
        try:
            resp = client.get("/v1/users/me", headers={"X-Telegram-Init-Data": "auth_date=1&user=x&hash=y"})
            assert resp.status_code == 500
        finally:
            settings.bot_token = original

    def test_health_endpoint_is_public(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
