import logging

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_cors import CORS
from config import Config

db = SQLAlchemy()
jwt = JWTManager()
migrate = Migrate()

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    CORS(app)
    from app.routes.visitors import visitors_bp
    from app.routes.access_records import bp as access_records_bp

    app.register_blueprint(visitors_bp, url_prefix='/api/visitantes')
    app.register_blueprint(access_records_bp, url_prefix='/api/entradas-salidas')

    _register_error_handlers(app)

    for rule in app.url_map.iter_rules():
        logger.debug("Ruta cargada: %s", rule)

    return app


def _register_error_handlers(app):
    from app.services.exceptions import AccessControlError

    @app.errorhandler(AccessControlError)
    def handle_access_control_error(error):
        if error.status_code >= 500:
            logger.error("Error interno: %s", error.message)
        return jsonify(success=False, msg=error.message), error.status_code
