import logging

from app import create_app, db
from app.models import PersonRole, PersonRoleEnum

logger = logging.getLogger(__name__)

app = create_app()

with app.app_context():

    for role_name in [role.value for role in PersonRoleEnum]:
        if not PersonRole.query.filter_by(nombre=role_name).first():
            db.session.add(PersonRole(nombre=role_name))
            logger.info("Rol '%s' creado.", role_name)

    db.session.commit()
    logger.info("Todos los roles del Enum están actualizados.")
