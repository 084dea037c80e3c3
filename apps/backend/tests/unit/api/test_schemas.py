"""
Name: HTTP Schema Tests

Responsibilities:
  - Email: formato validado por EmailStr y guardado en minúsculas
  - Strings obligatorios recortados y no vacíos
"""

import pytest
from bizops.interfaces.api.http.schemas.clients import CreateClientReq, UpdateClientReq
from pydantic import ValidationError

pytestmark = pytest.mark.unit


def _client(**overrides):
    payload = {"company_name": "Acme", "contact_person": "Ana", "email": "ana@acme.com"}
    payload.update(overrides)
    return CreateClientReq(**payload)


def test_email_is_trimmed_and_lowercased():
    assert _client(email="  Maria@Example.COM ").email == "maria@example.com"


@pytest.mark.parametrize(
    "email",
    ["a@.b.c", "a@b..c", "a@b.c.", "x@-.-", "sin-arroba", "a@b", "a b@acme.com"],
)
def test_malformed_email_is_rejected(email):
    with pytest.raises(ValidationError) as exc_info:
        _client(email=email)

    assert exc_info.value.errors()[0]["loc"] == ("email",)


def test_update_accepts_missing_email_but_validates_a_sent_one():
    assert UpdateClientReq().changes() == {}

    with pytest.raises(ValidationError):
        UpdateClientReq(email="a@b..c")


def test_blank_required_string_is_rejected():
    with pytest.raises(ValidationError):
        _client(company_name="   ")
