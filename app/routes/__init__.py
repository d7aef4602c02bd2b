"""
Routes package
Flask-smorest blueprints
"""

from app.routes.doctor import doctor_blueprint
from app.routes.admin import admin_blueprint
from app.routes.base import base_blueprint

__all__ = [
    'doctor_blueprint',
    'admin_blueprint',
    'base_blueprint'
]
