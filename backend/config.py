"""
CẤU HÌNH BACKEND

Giá trị mặc định nằm trong class Config; có thể override bằng biến môi trường
có prefix OTP_ (Flask app.config.from_prefixed_env), ví dụ:

    OTP_MAX_DISCREPANCY=1 OTP_DEFAULT_QR_LEVEL=Q flask --app backend.app run
"""

from otpcore.qr import render


class Config:
    # Cửa sổ sai lệch tối đa cho /api/verify (số chu kỳ 30s)
    MAX_DISCREPANCY = 2

    # QR mặc định
    DEFAULT_QR_WIDTH = 200
    DEFAULT_QR_HEIGHT = 200
    DEFAULT_QR_LEVEL = "M"

    # Issuer mặc định khi request không gửi "issuer"
    DEFAULT_ISSUER = "otp-tool"

    # CORS
    CORS_ORIGINS = "*"

    # Chart service cho /api/qr_code_url (endpoint QR của Google đã ngừng hoạt động,
    # nên override bằng OTP_CHART_API_URL nếu cần URL dùng được)
    CHART_API_URL = render.CHART_API_URL
