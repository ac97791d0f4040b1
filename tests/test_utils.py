import pytest
from bson import ObjectId
from jose import JWTError

from dealdesk.config.env import Settings
from dealdesk.utils.errors import ValidationError
from dealdesk.utils.guards import is_admin, parse_object_id
from dealdesk.utils.hash import hash_password, verify_password
from dealdesk.utils.jwt import create_access_token, decode_token


def test_hash_and_verify():
    hashed = hash_password("longenough1")

    assert hashed != "longenough1"
    assert verify_password("longenough1", hashed)
    assert not verify_password("longenough2", hashed)


def test_hash_rejects_over_72_bytes():
    with pytest.raises(ValueError):
        hash_password("é" * 40)


def test_verify_tolerates_bad_hash():
    assert verify_password("whatever", "not-a-bcrypt-hash") is False


def test_token_round_trip_claims():
    settings = Settings(jwt_secret="k", access_token_minutes=5)

    claims = decode_token(create_access_token({"sub": "abc", "role": "user"}, settings), settings)

    assert claims["sub"] == "abc"
    assert claims["role"] == "user"
    assert claims["exp"] - claims["iat"] == 300


def test_token_requires_secret():
    with pytest.raises(RuntimeError):
        create_access_token({"sub": "abc"}, Settings(jwt_secret="  "))


def test_decode_rejects_token_signed_with_other_key():
    token = create_access_token({"sub": "abc"}, Settings(jwt_secret="k"))

    with pytest.raises(JWTError):
        decode_token(token, Settings(jwt_secret="not-k"))


def test_parse_object_id():
    oid = ObjectId()

    assert parse_object_id(str(oid)) == str(oid)
    with pytest.raises(ValidationError) as exc:
        parse_object_id("123", "deal_id")
    assert exc.value.status_code == 400
    assert exc.value.message == "Invalid deal_id"


def test_is_admin():
    assert is_admin({"role": "admin"})
    assert not is_admin({"role": "user"})
    assert not is_admin({})
