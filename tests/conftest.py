from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from app import create_app, db
from app.models import Person, PersonRole, PersonRoleEnum, PersonStatusEnum
from app.services.visitor_access_service import VisitorAccessService
from config import TestConfig


class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        for role in PersonRoleEnum:
            db.session.add(PersonRole(nombre=role.value))
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    token = create_access_token(identity="1", additional_claims={"role": "guarda"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 13, 0, 0))


@pytest.fixture
def service(app, clock):
    return VisitorAccessService.from_config(app.config, clock=clock)


@pytest.fixture
def make_person(app):
    def _make(documento="123", nombres="Ana", role=PersonRoleEnum.VISITANTE,
              estado=PersonStatusEnum.ACTIVO):
        person = Person(
            documento=documento,
            nombres=nombres,
            apellidos="Pérez",
            estado=estado.value,
            role=PersonRole.query.filter_by(nombre=role.value).first()
        )
        db.session.add(person)
        db.session.commit()
        return person
    return _make
