"""
Health endpoints and request id / timing middleware.
"""

import json
from unittest.mock import patch

from django.db import DatabaseError
from django.test import Client, TestCase


class HealthEndpointsTest(TestCase):
    def setUp(self):
        self.client = Client()

    def test_healthz_returns_ok(self):
        response = self.client.get("/healthz")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content)["status"], "ok")

    def test_readyz_returns_ok_when_healthy(self):
        response = self.client.get("/readyz")
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)
        self.assertEqual(data["status"], "ok")
        self.assertTrue(data["db"])
        self.assertTrue(data["cache"])

    def test_readyz_reports_database_outage(self):
        with patch("apps.observability.views.health.connection.cursor", side_effect=DatabaseError("down")):
            response = self.client.get("/readyz")
        self.assertEqual(response.status_code, 503)
        self.assertFalse(json.loads(response.content)["db"])


class RequestIdMiddlewareTest(TestCase):
    def setUp(self):
        self.client = Client()

    def test_request_id_added_to_response(self):
        response = self.client.get("/healthz")
        self.assertIn("X-Request-Id", response)
        self.assertEqual(len(response["X-Request-Id"]), 36)

    def test_incoming_request_id_is_echoed(self):
        response = self.client.get("/healthz", HTTP_X_REQUEST_ID="abc-123")
        self.assertEqual(response["X-Request-Id"], "abc-123")

    def test_timing_header_added(self):
        response = self.client.get("/healthz")
        self.assertGreaterEqual(int(response["X-Response-Time-ms"]), 0)

    def test_unknown_path_returns_json_404(self):
        response = self.client.get("/does-not-exist/")
        self.assertEqual(response.status_code, 404)
        body = json.loads(response.content)
        self.assertFalse(body["success"])
