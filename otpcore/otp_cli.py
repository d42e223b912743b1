#!/usr/bin/env python3
"""
otp_cli.py — CLI wrapper cho otpcore.

Cung cấp các subcommand:
- secret : sinh Base32 secret mới
- code   : in mã TOTP hiện tại (hoặc tại --time-slice)
- hotp   : sinh mã HOTP cho một counter
- verify : xác minh mã TOTP
- uri    : in otpauth:// URI
- qr     : xuất QR (SVG) của otpauth URI

eg..:
    otpcore secret --length 20
    otpcore code --secret JBSWY3DPEHPK3PXP
    otpcore verify --secret JBSWY3DPEHPK3PXP --code 123456 --discrepancy 1
    otpcore qr --secret JBSWY3DPEHPK3PXP --account alice@example --issuer MyService -o qr.svg
"""

import argparse
import logging
import sys

from otpcore import otp_core
from otpcore.errors import OTPError
from otpcore.qr import ErrorCorrectionLevel, encode, rasterize

logger = logging.getLogger("otpcore.cli")


# --- CLI command handlers ---
def cmd_secret(args):
    print(otp_core.generate_base32_secret(args.length))


def cmd_code(args):
    time_slice = args.time_slice
    if time_slice is None:
        time_slice = otp_core.current_time_slice()
    code = otp_core.totp(args.secret, time_slice, args.digits, args.algorithm)
    if args.time_slice is None:
        print(f"TOTP ({args.digits}d): {code}  (valid ~{otp_core.seconds_remaining():2d}s)")
    else:
        print(f"TOTP ({args.digits}d, time_slice={time_slice}): {code}")


def cmd_hotp(args):
    code = otp_core.hotp(args.secret, args.counter, args.digits, args.algorithm)
    print(f"HOTP({args.digits}d, counter={args.counter}): {code}")


def cmd_verify(args):
    ok = otp_core.verify_code(
        args.secret,
        args.code,
        discrepancy=args.discrepancy,
        time_slice=args.time_slice,
        digits=args.digits,
        algorithm=args.algorithm,
    )
    if ok:
        print("[+] TOTP code is VALID")
        return 0
    print("[-] TOTP code is INVALID")
    return 1


def cmd_uri(args):
    print(otp_core.format_otpauth_uri(args.secret, args.account, args.issuer))


def cmd_qr(args):
    uri = otp_core.format_otpauth_uri(args.secret, args.account, args.issuer)
    matrix = encode(uri, ErrorCorrectionLevel.from_letter(args.level))
    logger.debug("encoded %d-character URI as version %d, mask %d", len(uri), matrix.version, matrix.mask)
    svg = rasterize(matrix, args.width, args.height)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(svg)
        print(f"[*] QR code (version {matrix.version}-{matrix.level.letter}) written to {args.output}")
    else:
        print(svg)


def cmd_help(args):
    print("'otpcore -h' for help.")


# --- Argparse builder ---
def _add_common(p: argparse.ArgumentParser, digits: bool = True) -> None:
    p.add_argument("--verbose", action="store_true", help="Verbose output")
    if digits:
        p.add_argument("--digits", type=int, default=otp_core.DEFAULT_DIGITS, help="Number of OTP digits")
        p.add_argument("--algorithm", default=otp_core.DEFAULT_ALGORITHM, choices=["SHA1", "SHA256", "SHA512"])


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="TOTP/HOTP codes, otpauth URIs and QR enrollment codes")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_help, verbose=False)

    ps = sub.add_parser("secret", help="Generate a Base32 secret")
    ps.add_argument("--length", type=int, default=otp_core.SECRET_BYTES, help="Secret length in bytes")
    _add_common(ps, digits=False)
    ps.set_defaults(func=cmd_secret)

    pc = sub.add_parser("code", help="Print the TOTP code")
    pc.add_argument("--secret", required=True)
    pc.add_argument("--time-slice", type=int, help="Counter (unix time // 30); default now")
    _add_common(pc)
    pc.set_defaults(func=cmd_code)

    ph = sub.add_parser("hotp", help="Generate HOTP code for a specific counter")
    ph.add_argument("--secret", required=True)
    ph.add_argument("--counter", type=int, required=True)
    _add_common(ph)
    ph.set_defaults(func=cmd_hotp)

    pv = sub.add_parser("verify", help="Verify a TOTP code")
    pv.add_argument("--secret", required=True)
    pv.add_argument("--code", required=True, help="OTP code to verify")
    pv.add_argument("--discrepancy", type=int, default=0, help="Allowed +/- step window")
    pv.add_argument("--time-slice", type=int, help="Reference counter; default now")
    _add_common(pv)
    pv.set_defaults(func=cmd_verify)

    pu = sub.add_parser("uri", help="Print the otpauth URI")
    pu.add_argument("--secret", required=True)
    pu.add_argument("--account", required=True, help="Account label for otpauth URI")
    pu.add_argument("--issuer", default="otp-tool", help="Issuer label for otpauth URI")
    _add_common(pu, digits=False)
    pu.set_defaults(func=cmd_uri)

    pq = sub.add_parser("qr", help="Render the otpauth URI as an SVG QR code")
    pq.add_argument("--secret", required=True)
    pq.add_argument("--account", required=True)
    pq.add_argument("--issuer", default="otp-tool")
    pq.add_argument("--width", type=int, default=200)
    pq.add_argument("--height", type=int, default=200)
    pq.add_argument("--level", default="M", choices=["L", "M", "Q", "H"], help="Error correction level")
    pq.add_argument("-o", "--output", help="Write SVG to this file instead of stdout")
    _add_common(pq, digits=False)
    pq.set_defaults(func=cmd_qr)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    try:
        return args.func(args) or 0
    except OTPError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
