import json

from webapp_auth.config import settings
from webapp_auth.telegram_auth import sign_init_data


def _build_init_data(*, bot_token: str, user_payload: dict) -> str:
    return sign_init_data(
        {
            "query_id": "AAE_TEST_QUERY",
            "user": json.dumps(user_payload, separators=(",", ":")),
        },
        bot_token,
    )


def test_users_me_via_init_data_header(client, bot_token):
    init_data = _build_init_data(
        bot_token=bot_token,
        user_payload={"id": 424242, "first_name": "Mihail", "last_name": "Borodin", "language_code": "ru"},
    )
    response = client.get("/v1/users/me", headers={"X-Telegram-Init-Data": init_data})
    assert response.status_code == 200
    me = response.json()
    assert me["tg_user_id"] == 424242
    assert me["validated_via_telegram"] is True
    assert me["first_name"] == "Mihail"
    assert me["username"] is None
    assert me["language_code"] == "ru"


def test_users_me_via_tma_authorization(client, bot_token):
    init_data = _build_init_data(bot_token=bot_token, user_payload={"id": 5, "username": "five"})
    response = client.get("/v1/users/me", headers={"Authorization": f"tma {init_data}"})
    assert response.status_code == 200
    assert response.json()["username"] == "five"


def test_users_me_rejects_forged_init_data(client):
    init_data = _build_init_data(bot_token="654321:OTHER", user_payload={"id": 5})
    response = client.get("/v1/users/me", headers={"X-Telegram-Init-Data": init_data})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid Telegram initData: invalid hash"


def test_users_me_rejects_bad_user_payload(client, bot_token):
    init_data = sign_init_data({"user": "{invalid-json}"}, bot_token)
    response = client.get("/v1/users/me", headers={"X-Telegram-Init-Data": init_data})
    assert response.status_code == 401
    assert response.json()["detail"].startswith("Invalid Telegram initData: json decode failed")


def test_users_me_dev_auth(dev_client):
    response = dev_client.get("/v1/users/me", headers={"X-TG-USER-ID": "900"})
    assert response.status_code == 200
    me = response.json()
    assert me["tg_user_id"] == 900
    assert me["validated_via_telegram"] is False
    assert me["first_name"] is None


def test_users_me_requires_init_data_when_configured(dev_client):
    original = settings.require_telegram_init_data
    settings.require_telegram_init_data = True
    try:
        response = dev_client.get("/v1/users/me", headers={"X-TG-USER-ID": "900"})
        assert response.status_code == 401
        assert response.json()["detail"] == "X-Telegram-Init-Data header is required"
    finally:
        settings.require_telegram_init_data = original
