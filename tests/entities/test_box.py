# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for BoxEndpoint and the license expiry computation."""

from datetime import datetime, timedelta, timezone

import pytest

from lenses_client.entities.box import with_license_expiry
from lenses_client.errors import CredentialsMissingError, LensesError
from lenses_client.lenses_base import LensesBase

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _expiry(delta: timedelta) -> int:
    return int((NOW + delta).timestamp() * 1000)


class TestLicenseExpiry:
    """Only the largest unit of the remaining time is kept."""

    def test_days(self):
        result = with_license_expiry({"expiry": _expiry(timedelta(days=10, hours=5))}, now=NOW)
        assert (result["daysToExpire"], result["monthsToExpire"], result["yearsToExpire"]) == (10, 0, 0)

    def test_months_zero_days(self):
        result = with_license_expiry({"expiry": _expiry(timedelta(days=75))}, now=NOW)
        assert (result["daysToExpire"], result["monthsToExpire"], result["yearsToExpire"]) == (0, 2, 0)

    def test_years_zero_months_and_days(self):
        result = with_license_expiry({"expiry": _expiry(timedelta(days=800))}, now=NOW)
        assert (result["daysToExpire"], result["monthsToExpire"], result["yearsToExpire"]) == (0, 0, 2)

    def test_expires_at_and_original_fields(self):
        license = {"expiry": _expiry(timedelta(days=1)), "maxMessages": 10}
        result = with_license_expiry(license, now=NOW)
        assert result["expiresAt"] == "2025-01-02T00:00:00+00:00"
        assert result["maxMessages"] == 10
        assert "expiresAt" not in license

    def test_expired(self):
        result = with_license_expiry({"expiry": _expiry(-timedelta(days=3))}, now=NOW)
        assert result["daysToExpire"] == -3


class TestBoxEndpoint:
    """Tests for the box calls."""

    async def test_license(self, lenses, box):
        box.route("GET", "/api/license", json_body={"expiry": 0, "clientId": "c"})
        result = await lenses.endpoint("box").license()
        assert result["clientId"] == "c"
        assert result["expiresAt"] == "1970-01-01T00:00:00+00:00"

    async def test_config(self, lenses, box):
        box.route("GET", "/api/config", json_body={"lenses.version": "5.0"})
        assert await lenses.endpoint("box").config() == {"lenses.version": "5.0"}
        assert box.last.headers["Accept"] == "application/json, text/plain"

    async def test_config_entry_and_mode(self, lenses, box):
        box.route("GET", "/api/config", json_body={"lenses.sql.execution.mode": "IN_PROC"})
        endpoint = lenses.endpoint("box")
        assert await endpoint.config_entry("lenses.sql.execution.mode") == "IN_PROC"
        assert await endpoint.execution_mode() == "IN_PROC"

    async def test_connect_clusters(self, lenses, box):
        clusters = [{"name": "dev", "url": "http://connect:8083"}]
        box.route("GET", "/api/config", json_body={"lenses.connect.clusters": clusters})
        assert await lenses.endpoint("box").connect_clusters() == clusters

    async def test_whoami_fetches_user(self, lenses, box):
        box.route(
            "GET",
            "/api/auth",
            json_body={"user": "admin", "roles": ["Admin"], "schemaRegistryDelete": True},
        )
        result = await lenses.endpoint("box").whoami()
        assert result == {"user": "admin", "roles": ["Admin"], "schemaRegistryDelete": True}

    async def test_whoami_uses_known_user(self, lenses, box):
        lenses.client.user.name = "known"
        result = await lenses.endpoint("box").whoami()
        assert result["user"] == "known"
        assert box.requests == []

    async def test_logout(self, lenses, box):
        box.route("GET", "/api/logout", status=200)
        assert await lenses.endpoint("box").logout() == {"ok": True}
        assert lenses.client.config.token == ""

    async def test_not_connected(self, box):
        base = LensesBase()
        with pytest.raises(LensesError, match="not connected"):
            await base.endpoint("box").config()

    async def test_unauthorized(self, lenses, box):
        box.route("GET", "/api/license", status=401)
        with pytest.raises(CredentialsMissingError):
            await lenses.endpoint("box").license()
