from gradebook.utils.security import create_token, decode_token, hash_password, verify_password


def test_hash_is_salted() -> None:
    first = hash_password("password123")
    second = hash_password("password123")

    assert first != second
    assert verify_password("password123", first)
    assert verify_password("password123", second)
    assert not verify_password("password124", first)


def test_verify_rejects_malformed_hashes() -> None:
    assert not verify_password("password123", "")
    assert not verify_password("password123", "password123")
    assert not verify_password("password123", "md5$1$abc$def")
    assert not verify_password("password123", "pbkdf2_sha256$x$!!$!!")


def test_token_round_trip() -> None:
    payload = decode_token(create_token("abc", "teacher"))

    assert payload["sub"] == "abc"
    assert payload["role"] == "teacher"
    assert payload["ver"] == 0
    assert decode_token(create_token("abc", "teacher", 3))["ver"] == 3


def test_tampered_token_is_rejected() -> None:
    token = create_token("abc", "teacher")
    payload_b64, signature = token.split(".")

    assert decode_token(f"{payload_b64}x.{signature}") is None
    assert decode_token("not-a-token") is None
