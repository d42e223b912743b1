"""
BACKEND PACKAGE

HTTP surface (Flask) cho otpcore: sinh secret, tính / xác minh mã,
otpauth URI và QR code.
"""

from .app import app, create_app

__all__ = ['app', 'create_app']
