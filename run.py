import os
from dotenv import load_dotenv
from app import create_app

# load .env
load_dotenv()

config_name = os.getenv('FLASK_ENV', 'development')

app = create_app(config_name)

if __name__ == '__main__':
    # use a WSGI server (gunicorn etc.) in production
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=(config_name == 'development')
    )
