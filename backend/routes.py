"""
OTP BACKEND API ROUTES - FLASK BLUEPRINT

Các API endpoints bọc quanh otpcore. Backend không lưu secret: caller gửi
secret trong mỗi request và tự chịu trách nhiệm lưu trữ.

CÁCH SỬ DỤNG:
- Server chạy tại: http://localhost:5000
- Tất cả endpoints nhận JSON body (POST) và có prefix /api

VÍ DỤ:
curl -X POST http://localhost:5000/api/secret -H "Content-Type: application/json" -d "{}"
curl -X POST http://localhost:5000/api/code -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP"}'
"""

from flask import Blueprint, Response, current_app, jsonify, request

from otpcore import otp_core
from otpcore.errors import (
    CapacityExceeded,
    InvalidArgument,
    OTPError,
    RandomSourceUnavailable,
)
from otpcore.qr import ErrorCorrectionLevel, chart_url, encode, rasterize

otp_bp = Blueprint('otp', __name__, url_prefix='/api')


@otp_bp.errorhandler(OTPError)
def handle_otp_error(e):
    if isinstance(e, RandomSourceUnavailable):
        status = 503
    elif isinstance(e, CapacityExceeded):
        status = 413
    else:
        status = 400
    current_app.logger.warning("%s: %s", type(e).__name__, e)
    return jsonify({"success": False, "error": str(e), "kind": type(e).__name__}), status


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidArgument("request body must be a JSON object")
    return data


def _int_param(data: dict, key: str, default=None):
    value = data.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"'{key}' must be an integer")
    return value


def _require(data: dict, *keys):
    missing = [k for k in keys if not data.get(k)]
    if missing:
        raise InvalidArgument(f"missing required field(s): {', '.join(missing)}")
    return [data[k] for k in keys]


def _size_param(data: dict, key: str, default: int) -> int:
    value = _int_param(data, key, default)
    if value is None or value == 0:
        return default
    if value < 0:
        raise InvalidArgument(f"'{key}' must not be negative")
    return value


def _qr_params(data: dict):
    cfg = current_app.config
    width = _size_param(data, 'width', cfg["DEFAULT_QR_WIDTH"])
    height = _size_param(data, 'height', cfg["DEFAULT_QR_HEIGHT"])
    try:
        level = ErrorCorrectionLevel.from_letter(str(data.get('level', cfg["DEFAULT_QR_LEVEL"])))
    except ValueError as e:
        raise InvalidArgument(str(e)) from e
    return width, height, level


@otp_bp.route('/secret', methods=['POST'])
def create_secret():
    """
    TẠO SECRET KEY

      curl -X POST http://localhost:5000/api/secret -H "Content-Type: application/json" -d '{"length": 20}'

    Output:
      {"secret": "...", "success": true}
    """
    data = _json_body()
    length = _int_param(data, 'length', otp_core.SECRET_BYTES)
    secret = otp_core.generate_base32_secret(length)
    current_app.logger.info("Generated %d-byte secret", length)
    return jsonify({"secret": secret, "success": True})


@otp_bp.route('/code', methods=['POST'])
def get_code():
    """
    LẤY MÃ TOTP

      curl -X POST http://localhost:5000/api/code -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP"}'

    Input:
      {"secret": "...", "time_slice": 50787021}   # time_slice tùy chọn, mặc định: hiện tại
    """
    data = _json_body()
    secret, = _require(data, 'secret')
    time_slice = _int_param(data, 'time_slice')
    if time_slice is None:
        code = otp_core.totp(secret, otp_core.current_time_slice())
        return jsonify({"code": code, "remaining": otp_core.seconds_remaining()})
    return jsonify({"code": otp_core.totp(secret, time_slice)})


@otp_bp.route('/hotp', methods=['POST'])
def get_hotp():
    """
    LẤY MÃ HOTP (HMAC-based OTP)

      curl -X POST http://localhost:5000/api/hotp -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP", "counter": 1}'
    """
    data = _json_body()
    secret, = _require(data, 'secret')
    counter = _int_param(data, 'counter')
    if counter is None:
        raise InvalidArgument("Counter is required")
    return jsonify({"code": otp_core.hotp(secret, counter)})


@otp_bp.route('/verify', methods=['POST'])
def verify_code():
    """
    XÁC MINH MÃ TOTP

      curl -X POST http://localhost:5000/api/verify -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP", "code": "123456", "discrepancy": 1}'

    Output:
      {"valid": true}  hoặc  {"valid": false}
      Secret hỏng -> 400 (khác với "sai mã").
    """
    data = _json_body()
    secret, code = _require(data, 'secret', 'code')
    discrepancy = _int_param(data, 'discrepancy', 0)
    if discrepancy > current_app.config["MAX_DISCREPANCY"]:
        raise InvalidArgument(f"discrepancy must not exceed {current_app.config['MAX_DISCREPANCY']}")
    valid = otp_core.verify_code(secret, str(code), discrepancy, _int_param(data, 'time_slice'))
    return jsonify({"valid": valid})


@otp_bp.route('/uri', methods=['POST'])
def get_otpauth_uri():
    """
    LẤY URI ĐỂ TẠO QR CODE CHO AUTHENTICATOR APPS

      curl -X POST http://localhost:5000/api/uri -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP", "account": "user@gmail.com", "issuer": "MyApp"}'
    """
    data = _json_body()
    secret, account = _require(data, 'secret', 'account')
    issuer = data.get('issuer', current_app.config["DEFAULT_ISSUER"])
    return jsonify({"uri": otp_core.format_otpauth_uri(secret, account, issuer)})


@otp_bp.route('/qr_code', methods=['POST'])
def qr_code():
    """
    QR CODE (SVG) CHO OTPAUTH URI

      curl -X POST http://localhost:5000/api/qr_code -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP", "account": "alice", "issuer": "MyApp", "level": "Q"}' -o qr.svg
    """
    data = _json_body()
    secret, account = _require(data, 'secret', 'account')
    issuer = data.get('issuer', current_app.config["DEFAULT_ISSUER"])
    width, height, level = _qr_params(data)
    matrix = encode(otp_core.format_otpauth_uri(secret, account, issuer), level)
    return Response(rasterize(matrix, width, height), mimetype='image/svg+xml')


@otp_bp.route('/qr_code_url', methods=['POST'])
def qr_code_url():
    """
    URL ẢNH QR (chart service) CHO OTPAUTH URI

      curl -X POST http://localhost:5000/api/qr_code_url -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP", "account": "alice", "issuer": "MyApp"}'
    """
    data = _json_body()
    secret, account = _require(data, 'secret', 'account')
    issuer = data.get('issuer', current_app.config["DEFAULT_ISSUER"])
    width, height, level = _qr_params(data)
    uri = otp_core.format_otpauth_uri(secret, account, issuer)
    # raise CapacityExceeded sớm nếu URI không vừa ở level này
    encode(uri, level)
    return jsonify({"url": chart_url(uri, width, height, level, current_app.config["CHART_API_URL"])})
