"""Tests for secret generation, HOTP/TOTP codes and verification."""

from __future__ import annotations

import base64
from concurrent.futures import ThreadPoolExecutor
import re
import threading

import pytest

from otpcore import otp_core
from otpcore.errors import InvalidArgument, InvalidSecretEncoding, RandomSourceUnavailable

RFC4226_SECRET = base64.b32encode(b"12345678901234567890").decode()
RFC4226_CODES = [
    "755224", "287082", "359152", "969429", "338314",
    "254676", "287922", "162583", "399871", "520489",
]

RFC6238_SECRETS = {
    "SHA1": base64.b32encode(b"12345678901234567890").decode(),
    "SHA256": base64.b32encode(b"12345678901234567890123456789012").decode(),
    "SHA512": base64.b32encode(
        b"1234567890123456789012345678901234567890123456789012345678901234"
    ).decode(),
}
RFC6238_CODES = [
    (59, {"SHA1": "94287082", "SHA256": "46119246", "SHA512": "90693936"}),
    (1111111109, {"SHA1": "07081804", "SHA256": "68084774", "SHA512": "25091201"}),
    (1234567890, {"SHA1": "89005924", "SHA256": "91819424", "SHA512": "93441116"}),
    (20000000000, {"SHA1": "65353130", "SHA256": "77737706", "SHA512": "47863826"}),
]

SECRETS = ["JBSWY3DPEHPK3PXP", "I3VFM3JKMNDJCDH5BMBEEQAW6KJ6NOE3", RFC4226_SECRET]


@pytest.mark.parametrize("counter,expected", list(enumerate(RFC4226_CODES)))
def test_hotp_rfc4226_vectors(counter, expected):
    assert otp_core.hotp(RFC4226_SECRET, counter) == expected


@pytest.mark.parametrize("timestamp,codes", RFC6238_CODES)
@pytest.mark.parametrize("algorithm", ["SHA1", "SHA256", "SHA512"])
def test_totp_rfc6238_vectors(timestamp, codes, algorithm):
    time_slice = otp_core.current_time_slice(timestamp)
    code = otp_core.totp(RFC6238_SECRETS[algorithm], time_slice, digits=8, algorithm=algorithm)
    assert code == codes[algorithm]


def test_hotp_known_secret():
    codes = [otp_core.hotp("JBSWY3DPEHPK3PXP", c) for c in range(3)]
    assert codes == ["282760", "996554", "602287"]


def test_hotp_is_deterministic():
    for secret in SECRETS:
        assert otp_core.hotp(secret, 42) == otp_core.hotp(secret, 42)


def test_hotp_codes_differ_across_counters():
    codes = {otp_core.hotp("JBSWY3DPEHPK3PXP", c) for c in range(200)}
    # 200 draws from 10^6 values; a handful of collisions at most
    assert len(codes) >= 195


def test_hotp_is_zero_padded():
    for c in range(50):
        code = otp_core.hotp(RFC4226_SECRET, c)
        assert len(code) == 6
        assert code.isdigit()


def test_secret_decoding_is_lenient_on_case_spaces_and_padding():
    expected = otp_core.hotp("JBSWY3DPEHPK3PXP", 7)
    assert otp_core.hotp("jbswy3dpehpk3pxp", 7) == expected
    assert otp_core.hotp("JBSW Y3DP EHPK 3PXP", 7) == expected
    assert otp_core.decode_secret("MZXW6===") == b"foo"
    assert otp_core.decode_secret("MZXW6") == b"foo"


@pytest.mark.parametrize("bad", ["", "   ", "JBSWY3DP!", "A", "01890189", "JBSWY3DPEHPK3PXÉ", "ＪBSWY3DP", 12345])
def test_invalid_secret_encoding(bad):
    with pytest.raises(InvalidSecretEncoding):
        otp_core.totp(bad, 1)


def test_hotp_rejects_bad_arguments():
    with pytest.raises(InvalidArgument):
        otp_core.hotp("JBSWY3DPEHPK3PXP", -1)
    with pytest.raises(InvalidArgument):
        otp_core.hotp("JBSWY3DPEHPK3PXP", 2 ** 64)
    with pytest.raises(InvalidArgument):
        otp_core.hotp("JBSWY3DPEHPK3PXP", 1, digits=4)
    with pytest.raises(InvalidArgument):
        otp_core.hotp("JBSWY3DPEHPK3PXP", 1, algorithm="MD5")


def test_totp_defaults_to_current_time(monkeypatch):
    monkeypatch.setattr(otp_core.time, "time", lambda: 1523610659.4)
    assert otp_core.current_time_slice() == 1523610659 // 30
    assert otp_core.totp("JBSWY3DPEHPK3PXP") == otp_core.hotp("JBSWY3DPEHPK3PXP", 1523610659 // 30)
    assert otp_core.seconds_remaining() == 30 - 1523610659 % 30


# --- secret generation ---

@pytest.mark.parametrize("n", [1, 5, 10, 16, 20, 32, 64])
def test_generate_secret_length_and_alphabet(n):
    secret = otp_core.generate_base32_secret(n)
    assert re.fullmatch(r"[A-Z2-7]+", secret)
    assert "=" not in secret
    assert len(otp_core.decode_secret(secret)) == n


def test_generate_secret_default_is_32_bytes():
    assert len(otp_core.decode_secret(otp_core.generate_base32_secret())) == 32


def test_generate_secret_is_random():
    assert len({otp_core.generate_base32_secret() for _ in range(20)}) == 20


@pytest.mark.parametrize("n", [0, -1, 2.5, True])
def test_generate_secret_rejects_bad_length(n):
    with pytest.raises(InvalidArgument):
        otp_core.generate_base32_secret(n)


def test_generate_secret_random_source_failure(monkeypatch):
    def boom(n):
        raise OSError("no entropy")

    monkeypatch.setattr(otp_core.os, "urandom", boom)
    with pytest.raises(RandomSourceUnavailable):
        otp_core.generate_base32_secret(16)


def test_random_source_is_shared():
    assert otp_core.get_random_source() is otp_core.get_random_source()


def test_random_source_under_concurrency(monkeypatch):
    monkeypatch.setattr(otp_core, "_random_source", None)
    barrier = threading.Barrier(8)

    def worker(_):
        barrier.wait()
        return otp_core.get_random_source(), otp_core.generate_base32_secret(16)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(worker, range(8)))
    assert len({id(source) for source, _ in results}) == 1
    assert len({secret for _, secret in results}) == 8


# --- verification ---

@pytest.mark.parametrize("secret", SECRETS)
@pytest.mark.parametrize("t", [0, 1, 50787021, 2 ** 40])
def test_verify_exact_slice(secret, t):
    assert otp_core.verify_code(secret, otp_core.hotp(secret, t), 0, t)


@pytest.mark.parametrize("secret", SECRETS)
@pytest.mark.parametrize("d", [0, 1, 2, 3])
def test_verify_rejects_code_outside_window(secret, d):
    t = 50787021
    assert not otp_core.verify_code(secret, otp_core.hotp(secret, t + d + 1), d, t)
    assert not otp_core.verify_code(secret, otp_core.hotp(secret, t - d - 1), d, t)


def test_verify_accepts_previous_slice_only_with_discrepancy():
    secret = "JBSWY3DPEHPK3PXP"
    t = 50787021
    previous = otp_core.hotp(secret, t - 1)
    assert otp_core.verify_code(secret, previous, 1, t)
    assert not otp_core.verify_code(secret, previous, 0, t)


def test_verify_published_vector():
    assert otp_core.verify_code("I3VFM3JKMNDJCDH5BMBEEQAW6KJ6NOE3", "224124", 3, 1523610659 // 30)


def test_verify_window_is_clamped_at_zero():
    secret = "JBSWY3DPEHPK3PXP"
    assert otp_core.verify_code(secret, otp_core.hotp(secret, 0), 2, 1)


@pytest.mark.parametrize("code", ["", "12345", "1234567", "abcdef", "12 456", None, 123456])
def test_verify_malformed_code_is_mismatch(code):
    assert otp_core.verify_code("JBSWY3DPEHPK3PXP", code, 1, 100) is False


def test_verify_malformed_secret_raises():
    with pytest.raises(InvalidSecretEncoding):
        otp_core.verify_code("not base32!", "123456", 0, 1)


def test_verify_negative_discrepancy_raises():
    with pytest.raises(InvalidArgument):
        otp_core.verify_code("JBSWY3DPEHPK3PXP", "123456", -1, 1)


# --- provisioning URI ---

def test_uri_shape():
    uri = otp_core.format_otpauth_uri("JBSWY3DPEHPK3PXP", "alice@example.com", "My Service")
    assert uri == (
        "otpauth://totp/My%20Service:alice@example.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=My%20Service"
    )


def test_uri_percent_encodes_reserved_characters():
    uri = otp_core.format_otpauth_uri("JBSWY3DPEHPK3PXP", "a:b/c?d", "A&B")
    assert uri.startswith("otpauth://totp/A%26B:a%3Ab%2Fc%3Fd?")
    assert uri.endswith("&issuer=A%26B")


def test_uri_non_default_parameters_and_hotp():
    uri = otp_core.format_otpauth_uri(
        "JBSWY3DPEHPK3PXP", "bob", "Acme", algorithm="sha256", digits=8, period=60
    )
    assert uri.endswith("&algorithm=SHA256&digits=8&period=60")
    hotp_uri = otp_core.format_otpauth_uri("JBSWY3DPEHPK3PXP", "bob", "Acme", kind="hotp", counter=5)
    assert hotp_uri.startswith("otpauth://hotp/Acme:bob?")
    assert hotp_uri.endswith("&counter=5")


def test_uri_without_issuer():
    assert otp_core.format_otpauth_uri("JBSWY3DPEHPK3PXP", "bob", "") == (
        "otpauth://totp/bob?secret=JBSWY3DPEHPK3PXP"
    )


def test_uri_requires_account():
    with pytest.raises(InvalidArgument):
        otp_core.format_otpauth_uri("JBSWY3DPEHPK3PXP", "", "Acme")


@pytest.mark.parametrize("account,issuer", [
    (123, "Acme"),
    ("bob", None),
    ("\ud800", "Acme"),
    ("bob", "Ac\udfffme"),
], ids=["int-account", "none-issuer", "surrogate-account", "surrogate-issuer"])
def test_uri_rejects_non_text_labels(account, issuer):
    with pytest.raises(InvalidArgument):
        otp_core.format_otpauth_uri("JBSWY3DPEHPK3PXP", account, issuer)


def test_uri_unicode_labels():
    uri = otp_core.format_otpauth_uri("JBSWY3DPEHPK3PXP", "né", "Ünï")
    assert uri.startswith("otpauth://totp/%C3%9Cn%C3%AF:n%C3%A9?")


def test_uri_rejects_bad_secret():
    with pytest.raises(InvalidSecretEncoding):
        otp_core.format_otpauth_uri("!!!", "bob", "Acme")
