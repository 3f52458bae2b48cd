import unittest
from datetime import datetime, timedelta, timezone

from reviewhub.core.security import create_session_token, decode_session_token
from tests.base import make_settings


class TestSessionToken(unittest.TestCase):

    def setUp(self):
        self.settings = make_settings()

    def test_create_and_decode(self):
        token = create_session_token(self.settings, "u1", name="Alice", email="a@example.com", access_token="ptok")

        payload = decode_session_token(self.settings, token)

        self.assertEqual(payload["sub"], "u1")
        self.assertEqual(payload["name"], "Alice")
        self.assertEqual(payload["access_token"], "ptok")
        expires = datetime.fromtimestamp(payload["exp"], timezone.utc)
        expected = datetime.now(timezone.utc) + timedelta(seconds=self.settings.SESSION_MAX_AGE)
        self.assertLess(abs((expires - expected).total_seconds()), 60)

    def test_expired_token(self):
        token = create_session_token(self.settings, "u1", expires_delta=timedelta(seconds=-1))
        self.assertIsNone(decode_session_token(self.settings, token))

    def test_wrong_key(self):
        token = create_session_token(make_settings(SECRET_KEY="other"), "u1")
        self.assertIsNone(decode_session_token(self.settings, token))

    def test_garbage(self):
        self.assertIsNone(decode_session_token(self.settings, "this.is.not.a.valid.token"))


if __name__ == "__main__":
    unittest.main()
