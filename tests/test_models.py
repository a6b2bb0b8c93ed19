"""Tests for consent request parsing and scope translation."""

import pytest

from consent.errors import ValidationError
from consent.models import ConsentRequest, ConsentView, split_scopes


class TestConsentRequest:
    def test_scopes_translation(self):
        request = ConsentRequest.from_params("abc", "code", "email,phone,address")

        assert request.scopes == ("email", "phone", "address")
        assert request.provider_scope == "email phone address"
        assert request.scope_param == "email,phone,address"

    @pytest.mark.parametrize("client_id,response_type,scopes,missing", [
        (None, "code", "email", "client_id"),
        ("abc", "", "email", "response_type"),
        ("abc", "code", None, "scopes"),
        ("  ", "code", "email", "client_id"),
    ])
    def test_missing_fields(self, client_id, response_type, scopes, missing):
        with pytest.raises(ValidationError) as exc_info:
            ConsentRequest.from_params(client_id, response_type, scopes)
        assert missing in exc_info.value.message
        assert exc_info.value.status_code == 400

    def test_rejects_other_response_types(self):
        with pytest.raises(ValidationError, match="token"):
            ConsentRequest.from_params("abc", "token", "email")

    def test_rejects_scopes_with_only_separators(self):
        with pytest.raises(ValidationError, match="at least one scope"):
            ConsentRequest.from_params("abc", "code", " , ,")

    def test_consent_uri_is_encoded(self):
        request = ConsentRequest.from_params("a b&c", "code", "email,phone")
        assert request.consent_uri() == "/consent?client_id=a+b%26c&response_type=code&scopes=email%2Cphone"


def test_split_scopes_drops_blanks_and_duplicates():
    assert split_scopes(" email, ,phone,email ,address") == ["email", "phone", "address"]


def test_consent_view_scope_param():
    view = ConsentView("App", "abc", "code", ["email", "phone"])
    assert view.scope_param == "email,phone"
