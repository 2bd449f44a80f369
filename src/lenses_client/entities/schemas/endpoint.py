# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Schemas endpoint: Schema Registry API proxied by the Lenses box.

Every call asks for ``application/vnd.schemaregistry.v1+json``.

Example:
    CLI commands auto-generated::

        lenses-cli schemas subjects
        lenses-cli schemas latest payments-value
        lenses-cli schemas register payments-value '{"type": "string"}'
        lenses-cli schemas set-compatibility BACKWARD --subject payments-value
"""

from __future__ import annotations

import logging
from typing import Any

from ...client import CONTENT_TYPE_SCHEMA_JSON, schema_api_option
from ...errors import RequiredError
from ...interface.endpoint_base import BaseEndpoint

logger = logging.getLogger(__name__)

SUBJECTS_PATH = "api/proxy-sr/subjects"
SCHEMA_BY_ID_PATH = "api/proxy-sr/schemas/ids"
COMPATIBILITY_PATH = "/api/proxy-sr/config"

LATEST_VERSION = "latest"
MAX_VERSION = 2**31 - 1

COMPATIBILITY_LEVELS = (
    "NONE",
    "FULL",
    "FORWARD",
    "BACKWARD",
    "FULL_TRANSITIVE",
    "FORWARD_TRANSITIVE",
    "BACKWARD_TRANSITIVE",
)


def check_schema_version(version: int | str) -> None:
    """Validate a schema version: ``"latest"`` or an int in [1, 2^31-1].

    Raises:
        ValueError: For any other value.
    """
    if isinstance(version, str):
        if version != LATEST_VERSION:
            raise ValueError(
                f'client: {version} string is not a valid value for the versionID input parameter [versionID == "latest"]'
            )
        return
    if version <= 0 or version > MAX_VERSION:
        raise ValueError(
            f"client: {version} integer is not a valid value for the versionID input parameter "
            "[ versionID > 0 && versionID <= 2^31-1]"
        )


def _check_level(level: str) -> str:
    level = level.upper()
    if level not in COMPATIBILITY_LEVELS:
        raise ValueError(
            f"client: invalid compatibility level '{level}', valid levels are: {', '.join(COMPATIBILITY_LEVELS)}"
        )
    return level


def _require_subject(subject: str) -> None:
    if not subject:
        raise RequiredError("subject")


class SchemasEndpoint(BaseEndpoint):
    """Schema Registry: subjects, schema versions, compatibility levels."""

    name = "schemas"

    async def _read(self, method: str, path: str, content_type: str = "", send: Any = None) -> Any:
        return await self.client.read_json(method, path, content_type, send, schema_api_option)

    async def subjects(self) -> list[str]:
        """List the registered subjects."""
        return await self._read("GET", SUBJECTS_PATH) or []

    async def versions(self, subject: str) -> list[int]:
        """List the versions registered under a subject."""
        _require_subject(subject)
        return await self._read("GET", f"{SUBJECTS_PATH}/{subject}/versions") or []

    async def delete_subject(self, subject: str) -> list[int]:
        """Delete a subject and return the deleted versions."""
        _require_subject(subject)
        return await self._read("DELETE", f"{SUBJECTS_PATH}/{subject}") or []

    async def get_by_id(self, id: int) -> str:
        """Show the schema registered with a global id."""
        data = await self._read("GET", f"{SCHEMA_BY_ID_PATH}/{id}") or {}
        return data.get("schema", "")

    async def _at_version(self, subject: str, version: int | str) -> dict:
        _require_subject(subject)
        check_schema_version(version)
        return await self._read("GET", f"{SUBJECTS_PATH}/{subject}/versions/{version}")

    async def latest(self, subject: str) -> dict:
        """Show the latest schema of a subject."""
        return await self._at_version(subject, LATEST_VERSION)

    async def at_version(self, subject: str, version: int) -> dict:
        """Show the schema of a subject at a version."""
        return await self._at_version(subject, version)

    async def register(self, subject: str, avro_schema: str) -> int:
        """Register a schema under a subject.

        Args:
            subject: Subject name, e.g. "payments-value".
            avro_schema: Avro schema as a JSON string.

        Returns:
            The global id of the schema.
        """
        _require_subject(subject)
        if not avro_schema:
            raise RequiredError("avroSchema")
        data = await self._read(
            "POST", f"{SUBJECTS_PATH}/{subject}/versions", CONTENT_TYPE_SCHEMA_JSON, {"schema": avro_schema}
        ) or {}
        logger.debug("Registered schema for %s with id %s", subject, data.get("id"))
        return int(data.get("id", 0))

    async def _delete_version(self, subject: str, version: int | str) -> int:
        _require_subject(subject)
        check_schema_version(version)
        result = await self._read(
            "DELETE", f"{SUBJECTS_PATH}/{subject}/versions/{version}", CONTENT_TYPE_SCHEMA_JSON
        )
        return int(result or 0)

    async def delete_version(self, subject: str, version: int) -> int:
        """Delete a version of a subject and return it."""
        return await self._delete_version(subject, version)

    async def delete_latest(self, subject: str) -> int:
        """Delete the latest version of a subject and return it."""
        return await self._delete_version(subject, LATEST_VERSION)

    async def compatibility(self, subject: str = "") -> str:
        """Show the compatibility level, global or of a subject."""
        path = f"{COMPATIBILITY_PATH}/{subject}" if subject else COMPATIBILITY_PATH
        data = await self._read("GET", path) or {}
        return data.get("compatibilityLevel", "")

    async def set_compatibility(self, level: str, subject: str = "") -> dict:
        """Set the compatibility level, global or of a subject.

        Args:
            level: NONE, FULL, FORWARD, BACKWARD or one of the *_TRANSITIVE.
            subject: Subject to configure, empty for the global level.
        """
        level = _check_level(level)
        path = f"{COMPATIBILITY_PATH}/{subject}" if subject else COMPATIBILITY_PATH
        await self.client.do(
            "PUT", path, CONTENT_TYPE_SCHEMA_JSON, {"compatibility": level}, schema_api_option
        )
        return {"ok": True, "compatibility": level, "subject": subject or "global"}


__all__ = ["COMPATIBILITY_LEVELS", "SchemasEndpoint", "check_schema_version"]
