from flask_sqlalchemy import SQLAlchemy
from flask_smorest import Api
from flask_apscheduler import APScheduler

db = SQLAlchemy()

api = Api()

scheduler = APScheduler()

identity_provider = None
