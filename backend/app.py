"""
FLASK APP MAIN ENTRY POINT - OTP BACKEND SERVER
==================================================

File chính để khởi chạy OTP Backend API Server: tạo Flask app, nạp cấu hình,
bật CORS và đăng ký blueprint API.

CÁC TÍNH NĂNG CHÍNH
- Flask app factory (create_app) + instance `app` cho `flask --app backend.app run`
- CORS enabled cho frontend integration
- Trang chủ liệt kê các API endpoints
"""
import logging

from flask import Flask, jsonify
from flask_cors import CORS

from backend.config import Config
from backend.routes import otp_bp


def create_app(overrides=None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    # OTP_MAX_DISCREPANCY=1 -> app.config["MAX_DISCREPANCY"] = 1
    app.config.from_prefixed_env("OTP")
    if overrides:
        app.config.update(overrides)

    # BẬT CORS: cho phép frontend chạy ở domain/port khác gọi API
    CORS(app, origins=app.config["CORS_ORIGINS"])

    app.register_blueprint(otp_bp)

    @app.route('/', methods=['GET'])
    def index():
        """TRANG CHỦ - danh sách endpoints"""
        return jsonify({
            "service": "otpcore backend",
            "endpoints": sorted(
                str(rule) for rule in app.url_map.iter_rules() if str(rule).startswith("/api/")
            ),
        })

    if not app.debug:
        app.logger.setLevel(logging.INFO)
    return app


app = create_app()


# KHỞI CHẠY SERVER
# Chỉ chạy khi file được execute trực tiếp (không phải import)
if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
