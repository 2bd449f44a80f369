# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for SchemasEndpoint and schema version validation."""

import pytest

from lenses_client.client import CONTENT_TYPE_SCHEMA_JSON
from lenses_client.entities.schemas import check_schema_version
from lenses_client.errors import RequiredError

SUBJECTS = "/api/proxy-sr/subjects"


@pytest.fixture
def schemas(lenses):
    return lenses.endpoint("schemas")


class TestCheckSchemaVersion:
    """Tests for check_schema_version."""

    @pytest.mark.parametrize("version", ["latest", 1, 2**31 - 1])
    def test_valid(self, version):
        check_schema_version(version)

    @pytest.mark.parametrize("version", [0, -1, 2**31])
    def test_invalid_int(self, version):
        with pytest.raises(ValueError, match="integer is not a valid value"):
            check_schema_version(version)

    def test_invalid_string(self):
        with pytest.raises(ValueError, match='string is not a valid value'):
            check_schema_version("first")


class TestSubjects:
    """Tests for subjects and versions."""

    async def test_subjects_use_schema_accept(self, schemas, box):
        box.route("GET", SUBJECTS, json_body=["payments-value"])
        assert await schemas.subjects() == ["payments-value"]
        assert box.last.headers["Accept"] == CONTENT_TYPE_SCHEMA_JSON

    async def test_versions(self, schemas, box):
        box.route("GET", f"{SUBJECTS}/payments-value/versions", json_body=[1, 2])
        assert await schemas.versions("payments-value") == [1, 2]

    async def test_versions_requires_subject(self, schemas):
        with pytest.raises(RequiredError, match="subject"):
            await schemas.versions("")

    async def test_delete_subject(self, schemas, box):
        box.route("DELETE", f"{SUBJECTS}/payments-value", json_body=[1, 2])
        assert await schemas.delete_subject("payments-value") == [1, 2]

    async def test_get_by_id(self, schemas, box):
        box.route("GET", "/api/proxy-sr/schemas/ids/7", json_body={"schema": '"string"'})
        assert await schemas.get_by_id(7) == '"string"'

    async def test_latest_and_at_version(self, schemas, box):
        box.route("GET", f"{SUBJECTS}/s/versions/latest", json_body={"version": 3})
        box.route("GET", f"{SUBJECTS}/s/versions/2", json_body={"version": 2})
        assert (await schemas.latest("s"))["version"] == 3
        assert (await schemas.at_version("s", 2))["version"] == 2

    async def test_at_version_invalid(self, schemas, box):
        with pytest.raises(ValueError):
            await schemas.at_version("s", 0)
        assert box.requests == []


class TestRegisterAndDelete:
    """Tests for registering and deleting schema versions."""

    async def test_register(self, schemas, box):
        box.route("POST", f"{SUBJECTS}/s/versions", json_body={"id": 12})
        assert await schemas.register("s", '{"type": "string"}') == 12
        assert box.last.headers["Content-Type"] == CONTENT_TYPE_SCHEMA_JSON
        assert box.last_json() == {"schema": '{"type": "string"}'}

    async def test_register_requires_schema(self, schemas):
        with pytest.raises(RequiredError, match="avroSchema"):
            await schemas.register("s", "")

    async def test_delete_version(self, schemas, box):
        box.route("DELETE", f"{SUBJECTS}/s/versions/2", json_body=2)
        assert await schemas.delete_version("s", 2) == 2
        assert box.last.headers["Content-Type"] == CONTENT_TYPE_SCHEMA_JSON

    async def test_delete_latest(self, schemas, box):
        box.route("DELETE", f"{SUBJECTS}/s/versions/latest", json_body=5)
        assert await schemas.delete_latest("s") == 5


class TestCompatibility:
    """Tests for global and subject compatibility levels."""

    async def test_global(self, schemas, box):
        box.route("GET", "/api/proxy-sr/config", json_body={"compatibilityLevel": "BACKWARD"})
        assert await schemas.compatibility() == "BACKWARD"

    async def test_subject(self, schemas, box):
        box.route("GET", "/api/proxy-sr/config/s", json_body={"compatibilityLevel": "FULL"})
        assert await schemas.compatibility("s") == "FULL"

    async def test_set(self, schemas, box):
        box.route("PUT", "/api/proxy-sr/config/s", json_body={"compatibility": "FORWARD"})
        result = await schemas.set_compatibility("forward", subject="s")
        assert result == {"ok": True, "compatibility": "FORWARD", "subject": "s"}
        assert box.last_json() == {"compatibility": "FORWARD"}

    async def test_set_invalid_level(self, schemas):
        with pytest.raises(ValueError, match="invalid compatibility level"):
            await schemas.set_compatibility("SOMETIMES")
