# app/services/store.py
"""Acceso a la BD para credenciales de visitantes y registros de entrada/salida.

Cada escritura hace su propio commit; no hay transacción que agrupe varias
llamadas. Los errores de SQLAlchemy se devuelven como ``StoreError`` tras
hacer rollback de la sesión.
"""
import logging
from functools import wraps

from sqlalchemy import exists, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import aliased

from app import db
from app.models import (AccessKindEnum, AccessRecord, Person, PersonRole,
                        PersonRoleEnum, PersonStatusEnum)
from app.services.exceptions import StoreError

logger = logging.getLogger(__name__)


def _store_operation(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Error de base de datos en %s", fn.__name__)
            raise StoreError(f"Error de base de datos: {exc.__class__.__name__}") from exc
    return wrapper


def _visitor_query():
    return Person.query.join(PersonRole, Person.role_id == PersonRole.id).filter(
        PersonRole.nombre == PersonRoleEnum.VISITANTE.value
    )


# ---------------------------------------------------------------------------
# Credenciales
# ---------------------------------------------------------------------------

@_store_operation
def find_visitor_by_id(person_id):
    return _visitor_query().filter(Person.id == person_id).first()


@_store_operation
def find_visitor_by_id_active(person_id):
    return _visitor_query().filter(
        Person.id == person_id,
        Person.estado == PersonStatusEnum.ACTIVO.value
    ).first()


@_store_operation
def find_visitor_by_document(documento):
    return _visitor_query().filter(Person.documento == documento).first()


@_store_operation
def find_visitor_by_credential_code(code):
    return _visitor_query().filter(Person.codigo_qr == code).first()


@_store_operation
def update_visitor_credential(person_id, code, expiry):
    person = db.session.get(Person, person_id)
    person.codigo_qr = code
    person.fecha_expiracion = expiry
    db.session.commit()
    return person


@_store_operation
def update_visitor_expiry(person_id, expiry):
    person = db.session.get(Person, person_id)
    person.fecha_expiracion = expiry
    db.session.commit()
    return person


@_store_operation
def list_visitors(estado=None):
    query = _visitor_query()
    if estado:
        query = query.filter(Person.estado == estado)
    return query.order_by(Person.created_at.desc(), Person.id.desc()).all()


@_store_operation
def get_or_create_role(nombre):
    role = PersonRole.query.filter_by(nombre=nombre).first()
    if not role:
        logger.warning("Rol %s no existe. Creándolo automáticamente", nombre)
        role = PersonRole(nombre=nombre)
        db.session.add(role)
        db.session.commit()
    return role


@_store_operation
def save_person(person):
    db.session.add(person)
    db.session.commit()
    return person


# ---------------------------------------------------------------------------
# Registros de entrada/salida
# ---------------------------------------------------------------------------

def _ledger_order():
    return (func.coalesce(AccessRecord.fecha_entrada, AccessRecord.fecha_salida).desc(),
            AccessRecord.id.desc())


@_store_operation
def find_most_recent_ledger_entry(person_id):
    return AccessRecord.query.filter(
        AccessRecord.person_id == person_id
    ).order_by(*_ledger_order()).first()


@_store_operation
def find_open_entrance_for_person(person_id):
    # Una ENTRADA queda cerrada por cualquier SALIDA posterior de la persona
    later_exit = aliased(AccessRecord)
    closed = exists().where(
        later_exit.person_id == AccessRecord.person_id,
        later_exit.tipo == AccessKindEnum.SALIDA.value,
        later_exit.id > AccessRecord.id
    )
    return AccessRecord.query.filter(
        AccessRecord.person_id == person_id,
        AccessRecord.tipo == AccessKindEnum.ENTRADA.value,
        AccessRecord.fecha_salida.is_(None),
        ~closed
    ).order_by(AccessRecord.fecha_entrada.desc(), AccessRecord.id.desc()).first()


@_store_operation
def insert_ledger_entry(person_id, kind, entrance_ts=None, exit_ts=None,
                        location=None, credential_code=None, automatic=False):
    record = AccessRecord(
        person_id=person_id,
        tipo=kind,
        fecha_entrada=entrance_ts,
        fecha_salida=exit_ts,
        ubicacion=location,
        codigo_qr=credential_code,
        automatica=automatic
    )
    db.session.add(record)
    db.session.commit()
    return record


@_store_operation
def list_person_records(person_id, limit=None):
    query = AccessRecord.query.filter(
        AccessRecord.person_id == person_id
    ).order_by(*_ledger_order())
    if limit:
        query = query.limit(limit)
    return query.all()


@_store_operation
def list_access_records(start=None, end=None, tipo=None, person_id=None, limit=100):
    """Registros cuya entrada o salida cae en [start, end), más recientes primero."""
    query = AccessRecord.query
    if start is not None and end is not None:
        query = query.filter(or_(
            (AccessRecord.fecha_entrada >= start) & (AccessRecord.fecha_entrada < end),
            (AccessRecord.fecha_salida >= start) & (AccessRecord.fecha_salida < end)
        ))
    if tipo:
        query = query.filter(AccessRecord.tipo == tipo)
    if person_id:
        query = query.filter(AccessRecord.person_id == person_id)
    query = query.order_by(*_ledger_order())
    if limit:
        query = query.limit(limit)
    return query.all()
