from datetime import datetime

from flask_smorest import Blueprint

base_blueprint = Blueprint(
    'base',
    __name__,
    url_prefix='/',
    description='Service status endpoint'
)

@base_blueprint.route('', methods = ['GET'])
def base_endpoint():
    return{
        "status": "ok",
        "service": "annam-hms",
        "time": datetime.now().isoformat()
    }
