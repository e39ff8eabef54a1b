"""
Altegio Onboarding — Altegio Client and Credential Store Tests

HTTP is served by httpx.MockTransport; no network access.
"""

import json
import os
import shutil
import stat
import sys
import tempfile
import unittest

import httpx

_base = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _base)

from onboarding.errors import PlatformApiError, PlatformAuthError
from providers.altegio import AltegioClient
from providers.credentials import CredentialStore


class _Recorder:
    """MockTransport handler that records requests and replies from a script."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def _ok(data, status=200):
    return httpx.Response(status, json={"success": True, "data": data})


class ClientTestCase(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.credentials = CredentialStore(self.tmpdir)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _client(self, responses, user_token="user-tok"):
        self.recorder = _Recorder(responses)
        return AltegioClient(
            api_base="https://api.example.com/api/v1",
            partner_token="partner-tok",
            user_token=user_token,
            credentials=self.credentials,
            transport=httpx.MockTransport(self.recorder),
        )


class TestHeaders(ClientTestCase):

    def test_partner_and_user_tokens(self):
        client = self._client([_ok({"id": 1})])
        client.create_staff(123, {"name": "Alice"})
        req = self.recorder.requests[0]
        self.assertEqual(req.headers["Authorization"], "Bearer partner-tok, User user-tok")
        self.assertEqual(req.headers["Accept"], "application/vnd.api.v2+json")

    def test_partner_only_before_login(self):
        client = self._client([_ok({"user_token": "new-tok", "id": 55})], user_token=None)
        client.login("owner@example.com", "secret")
        self.assertEqual(self.recorder.requests[0].headers["Authorization"], "Bearer partner-tok")


class TestWrites(ClientTestCase):

    def test_endpoints(self):
        client = self._client([_ok({"id": i}) for i in range(5)] + [_ok({}), _ok({})])
        client.create_staff(7, {"name": "A"})
        client.create_service_category(7, {"title": "Hair"})
        client.create_service(7, {"title": "Cut"})
        client.create_client(7, {"name": "John"})
        client.create_booking(7, {"staff_id": 1})
        client.delete_staff(7, 3)
        client.delete_booking(7, 9)
        seen = [(r.method, r.url.path) for r in self.recorder.requests]
        self.assertEqual(seen, [
            ("POST", "/api/v1/company/7/staff/quick"),
            ("POST", "/api/v1/service_categories/7"),
            ("POST", "/api/v1/services/7"),
            ("POST", "/api/v1/clients/7"),
            ("POST", "/api/v1/records/7"),
            ("DELETE", "/api/v1/staff/7/3"),
            ("DELETE", "/api/v1/record/7/9"),
        ])

    def test_payload_sent_as_json(self):
        client = self._client([_ok({"id": 1, "name": "Alice"})])
        created = client.create_staff(7, {"name": "Alice", "specialization": "Stylist"})
        self.assertEqual(created["id"], 1)
        body = json.loads(self.recorder.requests[0].content)
        self.assertEqual(body, {"name": "Alice", "specialization": "Stylist"})

    def test_http_error(self):
        client = self._client([httpx.Response(500, text="server exploded")])
        with self.assertRaises(PlatformApiError) as ctx:
            client.create_staff(7, {"name": "A"})
        self.assertEqual(str(ctx.exception), "Failed to create staff: HTTP 500 - server exploded")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertTrue(ctx.exception.retryable)

    def test_invalid_envelope(self):
        client = self._client([httpx.Response(200, json={"success": False, "data": None})])
        with self.assertRaises(PlatformApiError) as ctx:
            client.create_service(7, {"title": "Cut"})
        self.assertEqual(str(ctx.exception), "Failed to create service: Invalid response")

    def test_write_requires_user_token(self):
        client = self._client([], user_token=None)
        with self.assertRaises(PlatformAuthError) as ctx:
            client.create_client(7, {"name": "John"})
        self.assertEqual(str(ctx.exception), "Not authenticated. Use login() first.")
        self.assertEqual(self.recorder.requests, [])

    def test_transport_error_wrapped(self):
        def boom(request):
            raise httpx.ConnectError("connection refused")

        client = AltegioClient(
            partner_token="p", user_token="u",
            transport=httpx.MockTransport(boom),
        )
        with self.assertRaises(PlatformApiError) as ctx:
            client.create_booking(7, {})
        self.assertIn("Failed to create booking", str(ctx.exception))


class TestLogin(ClientTestCase):

    def test_login_saves_token(self):
        client = self._client([_ok({"user_token": "new-tok", "id": 55})], user_token=None)
        self.assertFalse(client.is_authenticated())
        token = client.login("owner@example.com", "secret")

        self.assertEqual(token, "new-tok")
        self.assertTrue(client.is_authenticated())
        body = json.loads(self.recorder.requests[0].content)
        self.assertEqual(body, {"login": "owner@example.com", "password": "secret"})
        self.assertEqual(self.recorder.requests[0].url.path, "/api/v1/auth")
        self.assertEqual(self.credentials.load()["user_token"], "new-tok")
        self.assertEqual(self.credentials.load()["user_id"], 55)

    def test_saved_token_reused(self):
        self.credentials.save({"user_token": "saved-tok"})
        client = self._client([_ok({"id": 1})], user_token=None)
        self.assertTrue(client.is_authenticated())
        client.create_staff(1, {"name": "A"})
        self.assertIn("User saved-tok", self.recorder.requests[0].headers["Authorization"])

    def test_login_rejected(self):
        client = self._client([httpx.Response(200, json={"success": False, "meta": {"message": "Wrong password"}})],
                              user_token=None)
        with self.assertRaises(PlatformAuthError) as ctx:
            client.login("owner@example.com", "bad")
        self.assertEqual(str(ctx.exception), "Wrong password")
        self.assertFalse(client.is_authenticated())

    def test_login_http_error(self):
        client = self._client([httpx.Response(401, text="Unauthorized")], user_token=None)
        with self.assertRaises(PlatformApiError):
            client.login("owner@example.com", "bad")

    def test_logout_clears(self):
        self.credentials.save({"user_token": "saved-tok"})
        client = self._client([], user_token=None)
        client.logout()
        self.assertFalse(client.is_authenticated())
        self.assertFalse(self.credentials.exists())


class TestCredentialStore(ClientTestCase):

    def test_missing_returns_none(self):
        self.assertIsNone(self.credentials.load())

    def test_file_permissions(self):
        self.credentials.save({"user_token": "t"})
        mode = stat.S_IMODE(os.stat(self.credentials.path).st_mode)
        self.assertEqual(mode, 0o600)
        self.assertFalse(os.path.exists(str(self.credentials.path) + ".tmp"))

    def test_corrupt_file_returns_none(self):
        with open(self.credentials.path, "w") as f:
            f.write("not json")
        self.assertIsNone(self.credentials.load())

    def test_clear_missing_is_noop(self):
        self.credentials.clear()
        self.assertFalse(self.credentials.exists())


if __name__ == "__main__":
    unittest.main()
