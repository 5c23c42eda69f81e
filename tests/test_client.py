"""
Tests for client dispatch with a synchronous in-memory transport.
Covers header/URL assembly, error delivery and caller-driven retries.
"""

import json
import unittest
from dataclasses import dataclass
from typing import Dict, Optional

from simple_networking.config_models import ClientConfig
from simple_networking.core.errors import ClientError, InvalidResponse, InvalidURL, TransportFailure
from simple_networking.core.models import ContentType, TransportResponse
from simple_networking.http.client import Client
from simple_networking.http.request import Request
from simple_networking.utils.auth import basic_auth_value


@dataclass
class SentCall:
    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[bytes]


def ok(body=None, status=200):
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode()
    return body, TransportResponse(status_code=status), None


class FakeTransport:
    """Completes every send immediately with the next queued outcome; the last one repeats."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [ok()]
        self.calls = []
        self.closed = False

    def send(self, method, url, headers, body, on_complete):
        self.calls.append(SentCall(method, url, headers, body))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        on_complete(*outcome)

    def close(self):
        self.closed = True


class TestClientConstruction(unittest.TestCase):

    def test_defaults(self):
        client = Client("https://example.org", transport=FakeTransport())
        self.assertEqual(client.max_retries, 3)
        self.assertEqual(dict(client.default_headers), {})
        self.assertEqual(repr(client), "Client<base_url: 'https://example.org'>")

    def test_max_retries_is_read_only(self):
        client = Client("https://example.org", max_retries=1, transport=FakeTransport())
        with self.assertRaises(AttributeError):
            client.max_retries = 5

    def test_authenticate_sets_default_header(self):
        client = Client("https://example.org", default_headers={"Authorization": "old"}, transport=FakeTransport())
        client.authenticate("test-user", "test-password")
        self.assertEqual(client.default_headers["authorization"], basic_auth_value("test-user", "test-password"))

    def test_from_config_keeps_first_default_header(self):
        config = ClientConfig(
            base_url="https://example.org",
            default_headers={"user-agent": "custom/1.0", "X-Team": "core"},
            max_retries=5,
        )
        client = Client.from_config(config, transport=FakeTransport())
        self.assertEqual(client.max_retries, 5)
        self.assertEqual(client.default_headers["User-Agent"], "custom/1.0")
        self.assertEqual(client.default_headers["X-Team"], "core")

    def test_from_config_adds_user_agent(self):
        client = Client.from_config(ClientConfig(base_url="https://example.org"), transport=FakeTransport())
        self.assertTrue(client.default_headers["User-Agent"].startswith("simple-networking/"))

    def test_context_manager_closes_transport(self):
        transport = FakeTransport()
        with Client("https://example.org", transport=transport):
            pass
        self.assertTrue(transport.closed)


class TestCallAssembly(unittest.TestCase):

    def setUp(self):
        self.transport = FakeTransport()
        self.client = Client("https://example.org", default_headers={"A": "1", "B": "client"}, transport=self.transport)

    def test_get_url_with_query(self):
        self.client.get("/get", query_params={"param": "value"}, builder=lambda r: r)
        self.assertEqual(len(self.transport.calls), 1)
        self.assertEqual(self.transport.calls[0].method, "GET")
        self.assertEqual(self.transport.calls[0].url, "https://example.org/get?param=value")

    def test_request_header_wins_over_client_default(self):
        self.client.get("/headers", headers={"A": "2"}, builder=lambda r: r)
        headers = self.transport.calls[0].headers
        self.assertEqual(headers["A"], "2")
        self.assertEqual(headers["B"], "client")

    def test_derived_accept_wins_over_client_default(self):
        self.client.default_headers["Accept"] = "text/html"
        self.client.get("/headers", builder=lambda r: r)
        self.assertEqual(self.transport.calls[0].headers["Accept"], "application/json")

    def test_default_headers_are_sent(self):
        self.client.default_headers["Header1"] = "Value1"
        self.client.default_headers["Header2"] = "Value2"
        self.client.get("/headers", builder=lambda r: r)
        headers = self.transport.calls[0].headers
        self.assertEqual(headers["Header1"], "Value1")
        self.assertEqual(headers["Header2"], "Value2")

    def test_post_sends_json_body(self):
        self.client.post("/post", query_params={"queryParam": "value"}, builder=lambda r: r.body_json({"bodyKey": "bodyValue"}))
        call = self.transport.calls[0]
        self.assertEqual(call.method, "POST")
        self.assertEqual(call.url, "https://example.org/post?queryParam=value")
        self.assertEqual(json.loads(call.body), {"bodyKey": "bodyValue"})
        self.assertEqual(call.headers["Content-Type"], "application/json")

    def test_builder_without_dispatch(self):
        request = self.client.get("/get")
        self.assertIsInstance(request, Request)
        self.assertEqual(self.transport.calls, [])

    def test_builder_result_is_dispatched(self):
        replacement = Request.delete("/other")
        returned = self.client.put("/put", builder=lambda r: replacement)
        self.assertIs(returned, replacement)
        self.assertEqual(self.transport.calls[0].method, "DELETE")
        self.assertEqual(self.transport.calls[0].url, "https://example.org/other")

    def test_headers_are_snapshotted_at_dispatch(self):
        self.client.get("/a", builder=lambda r: r)
        self.client.default_headers["A"] = "changed"
        self.assertEqual(self.transport.calls[0].headers["A"], "1")


class TestErrorDelivery(unittest.TestCase):

    def setUp(self):
        self.errors = []
        self.status_calls = []

    def _track(self, request):
        return (
            request.on_status(200, lambda req, res: self.status_calls.append(res) or True)
            .on_status(500, lambda req, res: self.status_calls.append(res) or True)
            .on_error(lambda err, res: self.errors.append((err, res)))
        )

    def test_invalid_url_skips_transport(self):
        transport = FakeTransport()
        client = Client("not a url", transport=transport)
        client.get("/get", builder=self._track)
        self.assertEqual(transport.calls, [])
        self.assertEqual(len(self.errors), 1)
        self.assertIsInstance(self.errors[0][0], InvalidURL)
        self.assertIsNone(self.errors[0][1])

    def test_malformed_host_or_port_skips_transport(self):
        for base in ("https://example.org:abc", "https://exa mple.org", "https://example.org:99999"):
            with self.subTest(base=base):
                self.errors = []
                transport = FakeTransport()
                Client(base, transport=transport).get("/get", builder=self._track)
                self.assertEqual(transport.calls, [])
                self.assertEqual(len(self.errors), 1)
                self.assertIsInstance(self.errors[0][0], InvalidURL)

    def test_transport_error_is_networking_error(self):
        cause = ConnectionError("boom")
        client = Client("https://example.org", transport=FakeTransport((None, None, cause)))
        client.get("/get", builder=self._track)
        self.assertEqual(self.errors, [(TransportFailure(cause), None)])
        self.assertIs(self.errors[0][0].cause, cause)
        self.assertEqual(self.status_calls, [])

    def test_missing_response_is_invalid_response(self):
        client = Client("https://example.org", transport=FakeTransport((b"x", None, None)))
        client.get("/get", builder=self._track)
        self.assertEqual(self.errors, [(InvalidResponse(), None)])

    def test_client_error_with_response(self):
        client = Client("https://example.org", transport=FakeTransport(ok(status=404)))
        plain = []
        client.get("/status/404", builder=lambda r: self._track(r).on_error(lambda err: plain.append(err)))
        self.assertEqual(plain, [ClientError(404)])
        err, res = self.errors[0]
        self.assertEqual(err, ClientError(404))
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.error, ClientError(404))

    def test_success_with_wrong_body_is_invalid_response(self):
        client = Client("https://example.org", transport=FakeTransport(ok(b"not json")))
        successes = []
        client.get("/html", builder=lambda r: self._track(r).on_success(successes.append))
        self.assertEqual(successes, [])
        self.assertEqual(len(self.status_calls), 1)
        err, res = self.errors[0]
        self.assertEqual(err, InvalidResponse())
        self.assertEqual(res.status_code, 200)

    def test_status_override_continue_still_reports_error(self):
        client = Client("https://example.org", transport=FakeTransport(ok(status=499)))
        handled = []
        client.get(
            "/status/499",
            builder=lambda r: r.on_status(499, lambda req, res: handled.append(True) or True).on_error(
                lambda err: self.errors.append(err)
            ),
        )
        self.assertEqual(handled, [True])
        self.assertEqual(self.errors, [ClientError(499)])


class TestRetry(unittest.TestCase):
    """Caller-driven retries from status overrides."""

    def test_reauthenticate_and_retry_on_401(self):
        transport = FakeTransport(ok(status=401), ok({"authenticated": True}))
        client = Client("https://example.org", transport=transport)
        errors, responses = [], []

        def on_unauthorized(req, res):
            client.authenticate("test-user", "test-password")
            req.retry(client)
            return False

        request = client.get(
            "/basic-auth/test-user/test-password",
            builder=lambda r: r.on_status(401, on_unauthorized).on_error(errors.append).on_success(responses.append),
        )

        self.assertEqual(len(transport.calls), 2)
        self.assertNotIn("Authorization", transport.calls[0].headers)
        self.assertEqual(transport.calls[1].headers["Authorization"], basic_auth_value("test-user", "test-password"))
        self.assertEqual(errors, [])
        self.assertEqual(len(responses), 1)
        self.assertTrue(responses[0].json["authenticated"])
        self.assertEqual(request.retries, 1)

    def test_retry_budget_is_enforced(self):
        transport = FakeTransport(ok(status=503))
        client = Client("https://example.org", max_retries=2, transport=transport)
        errors = []
        request = client.get(
            "/flaky",
            builder=lambda r: r.on_status(503, lambda req, res: req.retry(client)).on_error(errors.append),
        )
        self.assertEqual(len(transport.calls), 3)
        self.assertEqual(request.retries, 2)
        self.assertEqual(errors, [])

        request.retry(client)
        self.assertEqual(len(transport.calls), 3)
        self.assertEqual(request.retries, 2)

    def test_zero_budget_never_retries(self):
        transport = FakeTransport(ok(status=500))
        client = Client("https://example.org", max_retries=0, transport=transport)
        request = client.get("/a", builder=lambda r: r)
        request.retry(client)
        self.assertEqual(len(transport.calls), 1)
        self.assertEqual(request.retries, 0)

    def test_errors_are_not_retried_automatically(self):
        transport = FakeTransport(ok(status=500), (None, None, TimeoutError("slow")))
        client = Client("https://example.org", transport=transport)
        errors = []
        client.get("/a", builder=lambda r: r.on_error(errors.append))
        self.assertEqual(len(transport.calls), 1)
        self.assertEqual(len(errors), 1)

    def test_handlers_survive_retry(self):
        transport = FakeTransport(ok(status=500), ok(status=500), ok({"ok": True}))
        client = Client("https://example.org", transport=transport)
        seen = []
        client.get(
            "/a",
            builder=lambda r: r.on_status(500, lambda req, res: seen.append(req.retries) or req.retry(client))
            .on_success(lambda res: seen.append("success")),
        )
        self.assertEqual(seen, [0, 1, "success"])

    def test_execute_on_request(self):
        transport = FakeTransport(ok({"x": 1}))
        client = Client("https://example.org", transport=transport)
        responses = []
        Request.get("/json").accept(ContentType.JSON).on_success(responses.append).execute(client)
        self.assertEqual(responses[0].json, {"x": 1})


if __name__ == "__main__":
    unittest.main()
