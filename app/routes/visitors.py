# app/routes/visitors.py
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from app.services import store
from app.services.exceptions import NotFoundError
from app.services.visitor_access_service import VisitorAccessService
from app.utils.helpers import format_local, format_timestamp

visitors_bp = Blueprint('visitors', __name__)


def _service():
    return VisitorAccessService.from_config(current_app.config)


def _tz():
    return current_app.config.get('TIMEZONE', 'America/Bogota')


def _serialize_visitor(person):
    data = person.as_dict()
    data['fechaExpiracionLocal'] = format_local(person.fecha_expiracion, _tz())
    return data


def _serialize_record(record):
    data = record.as_dict()
    data['timestamp'] = format_timestamp(record.fecha_entrada or record.fecha_salida)
    return data


def _serialize_validation(result):
    person = result.get('person')
    payload = {
        'success': True,
        'valido': result['valid'],
        'reason': result['reason'],
        'mensaje': result['message']
    }

    if result['reason'] == 'valid':
        payload['data'] = {
            'visitanteId': person.id,
            'qrId': person.id,
            'nombre': person.nombres,
            'apellido': person.apellidos,
            'documento': person.documento,
            'tipoDocumento': person.tipo_documento,
            'fechaExpiracion': format_timestamp(result['expiry']),
            'horasRestantes': result['remaining_hours']
        }
    elif result['reason'] == 'expired':
        payload['data'] = {
            'fechaExpiracion': format_timestamp(result['detected_at']),
            'fechaExpiracionOriginal': format_timestamp(result['original_expiry']),
            'salidaRegistrada': result['exit_recorded'],
            'fechaSalida': format_timestamp(result['exit_at']),
            'fechaEntrada': format_timestamp(result['entrance_at']),
            'visitante': {
                'nombre': person.nombres,
                'apellido': person.apellidos,
                'documento': person.documento
            }
        }
    elif result['reason'] == 'inactive':
        payload['estado'] = result['status']

    return payload


@visitors_bp.route('', methods=['GET'])
@jwt_required()
def list_visitors():
    estado = request.args.get('estado')
    visitors = store.list_visitors(estado=estado)
    return jsonify(success=True, data=[_serialize_visitor(v) for v in visitors]), 200


@visitors_bp.route('/documento/<documento>', methods=['GET'])
@jwt_required()
def get_visitor_by_document(documento):
    person = store.find_visitor_by_document(documento)
    if not person:
        raise NotFoundError('Visitante no encontrado')
    return jsonify(success=True, data=_serialize_visitor(person)), 200


@visitors_bp.route('/<int:visitor_id>', methods=['GET'])
@jwt_required()
def get_visitor(visitor_id):
    person = store.find_visitor_by_id(visitor_id)
    if not person:
        raise NotFoundError('Visitante no encontrado')
    return jsonify(success=True, data=_serialize_visitor(person)), 200


@visitors_bp.route('', methods=['POST'])
@jwt_required()
def register_visitor():
    data = request.get_json(silent=True) or {}
    result = _service().register_visitor(data)
    credential = result['credential']

    if result['created']:
        mensaje = (f"Visitante registrado exitosamente. QR válido por {credential['validity_text']}. "
                   "ENTRADA automática registrada.")
        status = 201
    else:
        mensaje = 'Visitante actualizado y QR regenerado'
        status = 200

    return jsonify(success=True, data=_serialize_visitor(result['person']), mensaje=mensaje), status


@visitors_bp.route('/<int:visitor_id>', methods=['PUT'])
@jwt_required()
def update_visitor(visitor_id):
    data = request.get_json(silent=True) or {}
    person = _service().update_visitor(visitor_id, data)
    return jsonify(success=True, data=_serialize_visitor(person)), 200


@visitors_bp.route('/<int:visitor_id>', methods=['DELETE'])
@jwt_required()
def delete_visitor(visitor_id):
    _service().deactivate_visitor(visitor_id)
    return jsonify(success=True, msg='Visitante desactivado correctamente'), 200


@visitors_bp.route('/<int:visitor_id>/generar-qr', methods=['POST'])
@jwt_required()
def generate_qr(visitor_id):
    data = request.get_json(silent=True) or {}
    service = _service()
    credential = service.issue_credential(
        visitor_id,
        data.get('horasValidez', service.default_hours),
        data.get('minutosValidez', 0)
    )
    return jsonify(
        success=True,
        data=_serialize_visitor(credential['person']),
        mensaje=f"QR generado válido por {credential['validity_text']}"
    ), 201


@visitors_bp.route('/<int:visitor_id>/qr', methods=['GET'])
@jwt_required()
def get_visitor_qr(visitor_id):
    person = store.find_visitor_by_id(visitor_id)
    if not person:
        raise NotFoundError('Visitante no encontrado')
    return jsonify(success=True, data={
        'id': person.id,
        'codigoQR': person.codigo_qr,
        'fechaGeneracion': format_timestamp(person.created_at),
        'fechaExpiracion': format_timestamp(person.fecha_expiracion),
        'estado': person.estado
    }), 200


@visitors_bp.route('/validar-qr', methods=['POST'])
@jwt_required()
def validate_qr():
    data = request.get_json(silent=True) or {}
    result = _service().validate_credential(data.get('codigoQR'))
    return jsonify(_serialize_validation(result)), 200


@visitors_bp.route('/registrar-acceso', methods=['POST'])
@jwt_required()
def register_access():
    data = request.get_json(silent=True) or {}
    credential_ref = data.get('codigoQR') or data.get('qrId')
    result = _service().record_access(
        data.get('visitanteId'),
        credential_ref=str(credential_ref) if credential_ref is not None else None,
        location=data.get('ubicacion')
    )
    kind = result['kind']
    return jsonify(
        success=True,
        mensaje=f"{kind} registrada exitosamente",
        tipoRegistrado=kind,
        data=_serialize_record(result['entry'])
    ), 201


@visitors_bp.route('/<int:visitor_id>/accesos', methods=['GET'])
@jwt_required()
def visitor_access_history(visitor_id):
    records = store.list_person_records(visitor_id)
    return jsonify(success=True, data=[_serialize_record(r) for r in records]), 200


@visitors_bp.route('/<int:visitor_id>/estado', methods=['GET'])
@jwt_required()
def visitor_presence(visitor_id):
    result = _service().presence(visitor_id)
    last_entry = result['last_entry']
    return jsonify(success=True, data={
        'estado': result['estado'],
        'ultimoRegistro': _serialize_record(last_entry) if last_entry else None
    }), 200
