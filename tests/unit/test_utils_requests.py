import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from marketplace.errors import InvalidArgument
from marketplace.utils.requests import parse_amount, read_json, require_str, optional_str


@pytest.mark.parametrize("value, expected", [
    (1600, 1600),
    (1600.0, 1600),
    ("1600", 1600),
    (" 42 ", 42),
    (0, 0),
])
def test_parse_amount_accepts_integer_cents(value, expected):
    assert parse_amount(value, "amount") == expected


@pytest.mark.parametrize("value", [True, 12.5, "12.5", "abc", [], {}])
def test_parse_amount_rejects_non_integers(value):
    with pytest.raises(InvalidArgument):
        parse_amount(value, "amount")


def test_parse_amount_rejects_negative():
    with pytest.raises(InvalidArgument) as exc:
        parse_amount(-1, "taxAmount")
    assert "taxAmount" in exc.value.message


def test_parse_amount_default_when_absent():
    assert parse_amount(None, "shippingAmount") == 0
    assert parse_amount("", "shippingAmount") == 0
    assert parse_amount(None, "amount", default=None) is None


def test_require_and_optional_str():
    body = {"userId": "  u1 ", "email": "", "n": 3}
    assert require_str(body, "userId") == "u1"
    with pytest.raises(InvalidArgument) as exc:
        require_str(body, "email", "Missing userId or email")
    assert exc.value.message == "Missing userId or email"
    assert optional_str(body, "email") is None
    assert optional_str(body, "n") == "3"
    assert optional_str(body, "absent") is None


def _echo_app():
    app = FastAPI()

    @app.post("/echo")
    async def echo(request: Request):
        try:
            return {"body": await read_json(request)}
        except InvalidArgument as e:
            return {"error": e.message}

    return app


def test_read_json_empty_body_is_empty_object():
    client = TestClient(_echo_app())
    assert client.post("/echo").json() == {"body": {}}


def test_read_json_rejects_invalid_and_non_object():
    client = TestClient(_echo_app())
    r1 = client.post("/echo", content=b"{not json", headers={"Content-Type": "application/json"})
    r2 = client.post("/echo", json=[1, 2])
    assert r1.json() == {"error": "Invalid JSON body"}
    assert r2.json() == {"error": "JSON body must be an object"}
