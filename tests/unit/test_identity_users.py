"""Tests for student user operations against the Management API."""
from unittest.mock import MagicMock

import pytest

from classroom.core.identity.exceptions import (
    IdentityProviderAPIError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from classroom.core.identity.users import PAGE_SIZE, UserService

JOHNDOE_ID = "auth0|58dd72d0b2e87002695249b6"
JOHNDOE_PATH = "/api/v2/users/auth0%7C58dd72d0b2e87002695249b6"


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    return resp


def _api_error(status):
    return IdentityProviderAPIError(status, "error", "https://idp.test/api/v2/users")


@pytest.fixture()
def http():
    return MagicMock()


@pytest.fixture()
def users(http):
    return UserService(http, connection="Username-Password-Authentication", email_domain="students.invalid")


def test_get_oauth_token_delegates_to_client(users, http):
    http.get_oauth_token.return_value = "tok"
    assert users.get_oauth_token() == "tok"


def test_create_user_posts_student_payload(users, http):
    http.post.return_value = _response({"user_id": "auth0|new", "username": "abc-123"})

    user = users.create_user("single", "abc-123", "Pa55wordXyz")

    assert user["user_id"] == "auth0|new"
    http.post.assert_called_once_with(
        "/api/v2/users",
        json={
            "connection": "Username-Password-Authentication",
            "email": "abc-123@students.invalid",
            "username": "abc-123",
            "password": "Pa55wordXyz",
            "verify_email": False,
            "email_verified": True,
            "app_metadata": {"role": "student", "tenant": "single"},
        },
    )


def test_create_user_conflict_maps_to_already_exists(users, http):
    http.post.side_effect = _api_error(409)

    with pytest.raises(UserAlreadyExistsError):
        users.create_user("single", "johndoe", "Pa55wordXyz")


def test_create_user_other_errors_propagate(users, http):
    http.post.side_effect = _api_error(400)

    with pytest.raises(IdentityProviderAPIError) as exc:
        users.create_user("single", "johndoe", "weak")
    assert exc.value.status_code == 400


def test_get_user_quotes_provider_id(users, http):
    http.get.return_value = _response({"user_id": JOHNDOE_ID, "username": "johndoe"})

    user = users.get_user(JOHNDOE_ID)

    assert user["username"] == "johndoe"
    http.get.assert_called_once_with(
        JOHNDOE_PATH, params={"fields": "user_id,username,app_metadata"}
    )


def test_get_user_not_found(users, http):
    http.get.side_effect = _api_error(404)

    with pytest.raises(UserNotFoundError):
        users.get_user(JOHNDOE_ID)


def test_get_user_server_error_propagates(users, http):
    http.get.side_effect = _api_error(503)

    with pytest.raises(IdentityProviderAPIError):
        users.get_user(JOHNDOE_ID)


def test_delete_user(users, http):
    users.delete_user(JOHNDOE_ID)
    http.delete.assert_called_once_with(JOHNDOE_PATH)


def test_delete_user_not_found(users, http):
    http.delete.side_effect = _api_error(404)

    with pytest.raises(UserNotFoundError):
        users.delete_user(JOHNDOE_ID)


def test_modify_user_password_names_connection(users, http):
    http.patch.return_value = _response({"user_id": JOHNDOE_ID, "username": "johndoe"})

    users.modify_user(JOHNDOE_ID, {"password": "N3wPasswordAb"})

    http.patch.assert_called_once_with(
        JOHNDOE_PATH,
        json={"password": "N3wPasswordAb", "connection": "Username-Password-Authentication"},
    )


def test_modify_user_without_password_leaves_body_alone(users, http):
    http.patch.return_value = _response({})

    users.modify_user(JOHNDOE_ID, {"blocked": True})

    http.patch.assert_called_once_with(JOHNDOE_PATH, json={"blocked": True})


def test_modify_user_not_found(users, http):
    http.patch.side_effect = _api_error(404)

    with pytest.raises(UserNotFoundError):
        users.modify_user(JOHNDOE_ID, {"password": "x"})


def test_get_users_filters_by_class(users, http):
    http.get.return_value = _response([{"user_id": JOHNDOE_ID, "username": "johndoe"}])

    result = users.get_users("single")

    assert result == [{"user_id": JOHNDOE_ID, "username": "johndoe"}]
    params = http.get.call_args.kwargs["params"]
    assert params["q"] == 'app_metadata.tenant:"single" AND app_metadata.role:"student"'
    assert params["page"] == 0
    assert params["per_page"] == PAGE_SIZE


def test_get_users_follows_pages(users, http):
    full_page = [{"user_id": f"auth0|{i}"} for i in range(PAGE_SIZE)]
    last_page = [{"user_id": "auth0|last"}]
    http.get.side_effect = [_response(full_page), _response(last_page)]

    result = users.get_users("single")

    assert len(result) == PAGE_SIZE + 1
    pages = [call.kwargs["params"]["page"] for call in http.get.call_args_list]
    assert pages == [0, 1]


def test_get_users_empty_class(users, http):
    http.get.return_value = _response([])
    assert users.get_users("single") == []


def test_get_users_escapes_quotes_in_class_id(users, http):
    http.get.return_value = _response([])

    users.get_users('a"b')

    assert 'app_metadata.tenant:"a\\"b"' in http.get.call_args.kwargs["params"]["q"]


def test_get_user_counts(users, http):
    http.get.return_value = _response({"users": [], "total": 8, "start": 0, "limit": 1})

    assert users.get_user_counts("single") == {"total": 8}
    params = http.get.call_args.kwargs["params"]
    assert params["include_totals"] == "true"
    assert params["per_page"] == 1
