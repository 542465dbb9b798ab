import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from mission_tracker import auth
from mission_tracker.auth import (
    AuthStateNotifier,
    FirebaseAuthClient,
    InMemoryAuthClient,
)
from mission_shared.types import AuthUser


class AuthAdapterTests(unittest.TestCase):
    def setUp(self):
        self.client = InMemoryAuthClient()
        self.user = AuthUser(uid="alice", display_name="Alice", email="a@example.com")
        self.client.add_user("token-alice", self.user)
        self.expires = timedelta(days=5)

    def test_sign_in_returns_user_and_cookie(self):
        user, cookie = auth.sign_in(self.client, "token-alice", self.expires)
        self.assertEqual(user, self.user)
        self.assertEqual(auth.resolve_user(self.client, session_cookie=cookie), self.user)

    def test_sign_in_failures_return_none(self):
        with self.assertLogs("mission_tracker.auth", level="ERROR"):
            self.assertIsNone(auth.sign_in(self.client, "bad", self.expires))
        with self.assertLogs("mission_tracker.auth", level="ERROR"):
            self.assertIsNone(auth.sign_in(None, "token-alice", self.expires))

    def test_sign_out_revokes_session(self):
        _, cookie = auth.sign_in(self.client, "token-alice", self.expires)
        self.assertTrue(auth.sign_out(self.client, self.user))
        self.assertIsNone(auth.resolve_user(self.client, session_cookie=cookie))

    def test_sign_out_without_session(self):
        self.assertFalse(auth.sign_out(self.client, None))
        self.assertFalse(auth.sign_out(None, self.user))

    def test_sign_out_error_is_swallowed(self):
        client = MagicMock()
        client.revoke_refresh_tokens.side_effect = RuntimeError("network down")
        with self.assertLogs("mission_tracker.auth", level="ERROR"):
            self.assertFalse(auth.sign_out(client, self.user))

    def test_resolve_user_falls_back_to_bearer_token(self):
        resolved = auth.resolve_user(
            self.client, session_cookie="stale", bearer_token="token-alice"
        )
        self.assertEqual(resolved, self.user)

    def test_resolve_user_without_credentials(self):
        self.assertIsNone(auth.resolve_user(self.client))
        self.assertIsNone(auth.resolve_user(None, bearer_token="token-alice"))

    def test_user_label(self):
        self.assertEqual(self.user.label, "Alice")
        self.assertEqual(AuthUser(uid="u1", email="e@x").label, "e@x")
        self.assertEqual(AuthUser(uid="u1").label, "u1")


class AuthStateNotifierTests(unittest.TestCase):
    def test_subscribe_and_unsubscribe(self):
        notifier = AuthStateNotifier()
        events = []
        unsubscribe = notifier.subscribe(events.append)

        user = AuthUser(uid="alice")
        notifier.publish(user)
        unsubscribe()
        notifier.publish(None)

        self.assertEqual(events, [user])
        # Unsubscribing twice is harmless.
        unsubscribe()

    def test_failing_listener_does_not_block_others(self):
        notifier = AuthStateNotifier()
        events = []

        def broken(_user):
            raise RuntimeError("boom")

        notifier.subscribe(broken)
        notifier.subscribe(events.append)
        with self.assertLogs("mission_tracker.auth", level="ERROR"):
            notifier.publish(None)
        self.assertEqual(events, [None])


class FirebaseAuthClientTests(unittest.TestCase):
    @patch("mission_tracker.auth.firebase_auth")
    def test_forwards_to_firebase_admin(self, mock_auth):
        app = MagicMock()
        client = FirebaseAuthClient(app)
        mock_auth.verify_id_token.return_value = {
            "uid": "alice",
            "name": "Alice",
            "email": "a@example.com",
        }
        mock_auth.verify_session_cookie.return_value = {"uid": "alice"}
        mock_auth.create_session_cookie.return_value = "cookie"

        self.assertEqual(
            client.verify_id_token("tok"),
            AuthUser(uid="alice", display_name="Alice", email="a@example.com"),
        )
        mock_auth.verify_id_token.assert_called_once_with("tok", app=app)

        self.assertEqual(client.create_session_cookie("tok", timedelta(days=1)), "cookie")
        mock_auth.create_session_cookie.assert_called_once_with(
            "tok", expires_in=timedelta(days=1), app=app
        )

        self.assertEqual(client.verify_session_cookie("cookie"), AuthUser(uid="alice"))
        mock_auth.verify_session_cookie.assert_called_once_with(
            "cookie", check_revoked=True, app=app
        )

        client.revoke_refresh_tokens("alice")
        mock_auth.revoke_refresh_tokens.assert_called_once_with("alice", app=app)


if __name__ == "__main__":
    unittest.main()
