"""Tests for the command-line wrapper."""

from __future__ import annotations

from otpcore import otp_cli, otp_core

SECRET = "JBSWY3DPEHPK3PXP"


def test_secret(capsys):
    assert otp_cli.main(["secret", "--length", "20"]) == 0
    secret = capsys.readouterr().out.strip()
    assert len(otp_core.decode_secret(secret)) == 20


def test_hotp(capsys):
    assert otp_cli.main(["hotp", "--secret", SECRET, "--counter", "1"]) == 0
    assert capsys.readouterr().out.strip().endswith(otp_core.hotp(SECRET, 1))


def test_code_at_time_slice(capsys):
    otp_cli.main(["code", "--secret", SECRET, "--time-slice", "7"])
    assert otp_core.hotp(SECRET, 7) in capsys.readouterr().out


def test_verify_exit_status(capsys):
    code = otp_core.hotp(SECRET, 100)
    assert otp_cli.main(["verify", "--secret", SECRET, "--code", code, "--time-slice", "101", "--discrepancy", "1"]) == 0
    assert "VALID" in capsys.readouterr().out
    assert otp_cli.main(["verify", "--secret", SECRET, "--code", code, "--time-slice", "101"]) == 1
    assert "INVALID" in capsys.readouterr().out


def test_bad_secret_exit_status(capsys):
    assert otp_cli.main(["hotp", "--secret", "!!", "--counter", "1"]) == 1
    assert "base32" in capsys.readouterr().err


def test_uri(capsys):
    otp_cli.main(["uri", "--secret", SECRET, "--account", "alice", "--issuer", "Acme"])
    assert capsys.readouterr().out.strip() == "otpauth://totp/Acme:alice?secret=JBSWY3DPEHPK3PXP&issuer=Acme"


def test_qr_to_file(tmp_path, capsys):
    out = tmp_path / "qr.svg"
    assert otp_cli.main(["qr", "--secret", SECRET, "--account", "alice", "--level", "Q", "-o", str(out)]) == 0
    assert out.read_text(encoding="utf-8").startswith("<?xml")
    assert "-Q" in capsys.readouterr().out
