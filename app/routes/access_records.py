# app/routes/access_records.py
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from app.models import AccessKindEnum
from app.services import store
from app.services.exceptions import BadRequestError
from app.utils.helpers import (format_local, format_timestamp, local_date_bounds,
                               local_day_bounds, parse_date, utcnow)

bp = Blueprint('access_records', __name__)


def _serialize_record(record):
    tz_name = current_app.config.get('TIMEZONE', 'America/Bogota')
    person = record.person
    data = record.as_dict()
    data.update({
        'timestamp': format_timestamp(record.fecha_entrada or record.fecha_salida),
        'local_time': format_local(record.fecha_salida or record.fecha_entrada, tz_name),
        'nombres': person.nombres if person else None,
        'apellidos': person.apellidos if person else None,
        'documento': person.documento if person else None
    })
    return data


@bp.route('', methods=['GET'])
@jwt_required()
def list_records():
    fecha = request.args.get('fecha')
    tipo = request.args.get('tipo')
    persona_id = request.args.get('persona_id', type=int)
    limit = request.args.get('limit', 100, type=int)

    if limit is None or limit < 0:
        raise BadRequestError('limit debe ser un entero no negativo')
    if tipo and tipo not in [k.value for k in AccessKindEnum]:
        raise BadRequestError('Tipo debe ser ENTRADA o SALIDA')

    start = end = None
    if fecha:
        try:
            day = parse_date(fecha)
        except ValueError:
            raise BadRequestError('Formato de fecha inválido. Use YYYY-MM-DD')
        start, end = local_date_bounds(day, current_app.config.get('TIMEZONE', 'America/Bogota'))

    records = store.list_access_records(start=start, end=end, tipo=tipo,
                                        person_id=persona_id, limit=limit)
    return jsonify(success=True, data=[_serialize_record(r) for r in records]), 200


@bp.route('/hoy', methods=['GET'])
@jwt_required()
def today_records():
    start, end = local_day_bounds(utcnow(), current_app.config.get('TIMEZONE', 'America/Bogota'))
    records = store.list_access_records(start=start, end=end, limit=None)
    return jsonify(success=True, data=[_serialize_record(r) for r in records]), 200
