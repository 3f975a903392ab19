from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from src.app.domain.errors import AuthenticationError, UnavailableError
from src.app.infra.auth.supabase_provider import SupabaseIdentityProvider, user_to_identity


def _user(uid: str = "u1", **meta) -> MagicMock:
    user = MagicMock()
    user.id = uid
    user.email = f"{uid}@example.com"
    user.user_metadata = meta
    return user


class TestUserToIdentity:
    def test_reads_metadata(self) -> None:
        identity = user_to_identity(_user(full_name="Ana Lima", avatar_url="https://img/a.png"))

        assert identity.uid == "u1"
        assert identity.email == "u1@example.com"
        assert identity.display_name == "Ana Lima"
        assert identity.photo_url == "https://img/a.png"

    def test_missing_metadata(self) -> None:
        identity = user_to_identity(_user())
        assert identity.display_name is None
        assert identity.photo_url is None


class TestSupabaseIdentityProvider:
    def test_sign_up_sends_display_name(self) -> None:
        client = MagicMock()
        client.auth.sign_up.return_value = MagicMock(user=_user())

        identity = SupabaseIdentityProvider(client).sign_up("u1@example.com", "secret", "Ana")

        payload = client.auth.sign_up.call_args[0][0]
        assert payload["options"]["data"] == {"display_name": "Ana"}
        assert identity.display_name == "Ana"

    def test_rejected_credentials(self) -> None:
        client = MagicMock()
        client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")

        with pytest.raises(AuthenticationError):
            SupabaseIdentityProvider(client).sign_in("u1@example.com", "bad")

    def test_transport_failure(self) -> None:
        client = MagicMock()
        client.auth.get_user.side_effect = httpx.ConnectError("reset")

        with pytest.raises(UnavailableError):
            SupabaseIdentityProvider(client).verify_token("tok")

    def test_verify_token_without_user(self) -> None:
        client = MagicMock()
        client.auth.get_user.return_value = MagicMock(user=None)

        with pytest.raises(AuthenticationError):
            SupabaseIdentityProvider(client).verify_token("tok")

    def test_unsupported_provider(self) -> None:
        with pytest.raises(AuthenticationError):
            SupabaseIdentityProvider(MagicMock()).sign_in_with_provider("myspace", "tok")

    def test_subscribe_fires_immediately_and_unsubscribes(self) -> None:
        client = MagicMock()
        client.auth.get_session.return_value = MagicMock(user=_user("u7"))
        seen = []

        unsubscribe = SupabaseIdentityProvider(client).subscribe(seen.append)

        assert [identity.uid for identity in seen] == ["u7"]
        assert unsubscribe is client.auth.on_auth_state_change.return_value.unsubscribe

        on_change = client.auth.on_auth_state_change.call_args[0][0]
        on_change("SIGNED_OUT", None)
        assert seen[-1] is None

    def test_access_token(self) -> None:
        client = MagicMock()
        client.auth.get_session.return_value = MagicMock(access_token="jwt")
        assert SupabaseIdentityProvider(client).access_token == "jwt"

        client.auth.get_session.return_value = None
        assert SupabaseIdentityProvider(client).access_token is None

    def test_sign_out_with_token_revokes_that_session(self) -> None:
        client = MagicMock()

        SupabaseIdentityProvider(client).sign_out("jwt-owner")

        client.auth.admin.sign_out.assert_called_once_with("jwt-owner")
        client.auth.sign_out.assert_not_called()

    def test_sign_out_without_token_ends_own_session(self) -> None:
        client = MagicMock()

        SupabaseIdentityProvider(client).sign_out()

        client.auth.sign_out.assert_called_once_with()
        client.auth.admin.sign_out.assert_not_called()
