# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the exception hierarchy."""

import pytest

from lenses_client.errors import (
    AuthenticationError,
    ConfigError,
    CredentialsMissingError,
    LensesError,
    LiveError,
    RequiredError,
    ResourceError,
    SecretsError,
    StreamError,
)


class TestHierarchy:
    """Every library error derives from LensesError."""

    @pytest.mark.parametrize(
        "error_class",
        [AuthenticationError, ConfigError, CredentialsMissingError, LiveError, SecretsError, StreamError],
    )
    def test_subclasses(self, error_class):
        assert issubclass(error_class, LensesError)

    def test_required_error_is_value_error(self):
        """RequiredError can be caught as ValueError too."""
        error = RequiredError("topicName")
        assert isinstance(error, ValueError)
        assert isinstance(error, LensesError)
        assert str(error) == "client: topicName is required"
        assert error.field == "topicName"

    def test_required_error_custom_message(self):
        assert str(RequiredError("sql", "client: sql is empty")) == "client: sql is empty"

    def test_credentials_missing_default_message(self):
        assert str(CredentialsMissingError()) == "credentials missing or invalid"


class TestResourceError:
    """Tests for ResourceError formatting."""

    def test_message_lowercases_first_letter_and_drops_period(self):
        error = ResourceError(404, "GET", "http://lenses:3030/api/topics/x", "Topic not found.")
        assert str(error) == "topic not found"
        assert error.body == "Topic not found."

    def test_acronym_is_kept(self):
        """Two upper-case leading letters are not lowercased."""
        error = ResourceError(400, "GET", "http://lenses:3030/api/sql", "SQL is invalid!")
        assert str(error) == "SQL is invalid"

    def test_single_character_body(self):
        assert str(ResourceError(500, "GET", "/x", "E")) == "e"

    def test_code_and_uri(self):
        error = ResourceError(409, "POST", "http://lenses:3030/api/sql/data?sql=SELECT+%2A", "conflict")
        assert error.code == 409
        assert error.uri == "http://lenses:3030/api/sql/data?sql=SELECT *"

    def test_detail(self):
        error = ResourceError(500, "DELETE", "http://lenses:3030/api/topics/t", "boom")
        assert error.detail == (
            "client: [DELETE: http://lenses:3030/api/topics/t] failed with status code [500]:\n[boom]"
        )
