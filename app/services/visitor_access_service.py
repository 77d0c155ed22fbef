# app/services/visitor_access_service.py
import logging
from datetime import timedelta

import pytz

from app.models import AccessKindEnum, Person, PersonRoleEnum, PersonStatusEnum
from app.services import store
from app.services.exceptions import AccessStateError, BadRequestError, NotFoundError
from app.utils.helpers import (coerce_non_negative_int, format_local,
                               round_half_up, utcnow, validity_text)

logger = logging.getLogger(__name__)

ENTRADA = AccessKindEnum.ENTRADA.value
SALIDA = AccessKindEnum.SALIDA.value


def infer_access_kind(last_entry):
    """ENTRADA o SALIDA según el último registro de la persona."""
    if last_entry is None:
        return ENTRADA
    if last_entry.tipo == ENTRADA:
        return SALIDA
    if last_entry.tipo == SALIDA:
        return ENTRADA
    logger.warning("Tipo de registro desconocido %r (id=%s). Se asume ENTRADA",
                   last_entry.tipo, last_entry.id)
    return ENTRADA


_DEFAULT_HOURS = object()


def _require_id(value, field):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise BadRequestError(f"{field} es requerido")
    if isinstance(value, bool):
        raise BadRequestError(f"{field} inválido")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequestError(f"{field} inválido")


class VisitorAccessService:
    """Credenciales QR temporales y registro de entradas/salidas de visitantes.

    ``clock`` devuelve el instante actual en UTC sin tzinfo; por defecto
    ``utcnow``.
    """

    def __init__(self, clock=None, code_prefix='VISITOR', default_hours=24,
                 default_location='Principal', strict_exit=False,
                 tz_name='America/Bogota'):
        self.clock = clock or utcnow
        self.code_prefix = code_prefix
        self.default_hours = default_hours
        self.default_location = default_location
        self.strict_exit = strict_exit
        self.tz_name = tz_name

    @classmethod
    def from_config(cls, config, clock=None):
        return cls(
            clock=clock,
            code_prefix=config.get('QR_CODE_PREFIX', 'VISITOR'),
            default_hours=config.get('DEFAULT_QR_HOURS', 24),
            default_location=config.get('DEFAULT_ACCESS_LOCATION', 'Principal'),
            strict_exit=config.get('STRICT_EXIT_REQUIRES_ENTRANCE', False),
            tz_name=config.get('TIMEZONE', 'America/Bogota')
        )

    def build_code(self, documento, issued_at):
        epoch_ms = int(pytz.UTC.localize(issued_at).timestamp() * 1000)
        return f"{self.code_prefix}_{documento}_{epoch_ms}"

    # ------------------------------------------------------------------
    # Emisión
    # ------------------------------------------------------------------

    def issue_credential(self, visitor_id, hours=_DEFAULT_HOURS, minutes=0):
        visitor_id = _require_id(visitor_id, 'visitanteId')
        # Solo la ausencia usa el valor por defecto; None vale 0 horas
        if hours is _DEFAULT_HOURS:
            hours = self.default_hours

        person = store.find_visitor_by_id_active(visitor_id)
        if not person:
            raise NotFoundError('Visitante no encontrado o inactivo')

        hours = coerce_non_negative_int(hours)
        minutes = coerce_non_negative_int(minutes)

        now = self.clock()
        code = self.build_code(person.documento, now)
        try:
            expiry = now + timedelta(hours=hours, minutes=minutes)
        except OverflowError:
            raise BadRequestError('Tiempo de validez fuera de rango')

        person = store.update_visitor_credential(person.id, code, expiry)

        logger.info("QR generado para visitante %s (%s). Código: %s. Expira: %s",
                    person.nombres, person.documento, code,
                    format_local(expiry, self.tz_name))

        return {
            "code": code,
            "expiry": expiry,
            "person": person,
            "validity_text": validity_text(hours, minutes)
        }

    # ------------------------------------------------------------------
    # Validación
    # ------------------------------------------------------------------

    def validate_credential(self, code):
        if not isinstance(code, str) or not code.strip():
            raise BadRequestError('Código QR es requerido')

        person = store.find_visitor_by_credential_code(code)
        if not person:
            logger.info("QR no encontrado: %s", code)
            return {
                "valid": False,
                "reason": "not_found",
                "message": "Código QR no encontrado"
            }

        now = self.clock()
        expiry = person.fecha_expiracion

        if expiry is None or expiry <= now:
            return self._expire_credential(person, now)

        if not person.is_active:
            logger.info("Visitante %s con estado %s", person.id, person.estado)
            return {
                "valid": False,
                "reason": "inactive",
                "status": person.estado,
                "message": f"Visitante en estado: {person.estado}"
            }

        remaining = round_half_up((expiry - now).total_seconds() / 3600)
        return {
            "valid": True,
            "reason": "valid",
            "message": "Código QR válido",
            "person": person,
            "expiry": expiry,
            "remaining_hours": remaining
        }

    def _expire_credential(self, person, now):
        original_expiry = person.fecha_expiracion
        logger.info("QR expirado para visitante %s (expiró: %s)",
                    person.id, format_local(original_expiry, self.tz_name))

        open_entrance = store.find_open_entrance_for_person(person.id)
        entrance_at = None
        exit_recorded = False
        if open_entrance:
            entrance_at = open_entrance.fecha_entrada
            store.insert_ledger_entry(
                person.id, SALIDA,
                entrance_ts=entrance_at,
                exit_ts=now,
                location=open_entrance.ubicacion,
                credential_code=person.codigo_qr,
                automatic=True
            )
            exit_recorded = True
            logger.info("Salida automática registrada para visitante %s (entrada: %s)",
                        person.id, format_local(entrance_at, self.tz_name))

        # La nueva fecha evita que otra validación repita la salida automática
        person = store.update_visitor_expiry(person.id, now)

        if exit_recorded:
            message = 'Código QR expirado. Salida registrada automáticamente'
        else:
            message = 'Código QR expirado'

        return {
            "valid": False,
            "reason": "expired",
            "message": message,
            "detected_at": now,
            "original_expiry": original_expiry,
            "exit_recorded": exit_recorded,
            "exit_at": now if exit_recorded else None,
            "entrance_at": entrance_at,
            "person": person
        }

    # ------------------------------------------------------------------
    # Registro de accesos
    # ------------------------------------------------------------------

    def record_access(self, visitor_id, credential_ref=None, location=None):
        visitor_id = _require_id(visitor_id, 'visitanteId')

        person = store.find_visitor_by_id(visitor_id)
        if not person:
            raise NotFoundError('Visitante no encontrado')

        last_entry = store.find_most_recent_ledger_entry(person.id)
        kind = infer_access_kind(last_entry)
        now = self.clock()
        location = location or self.default_location

        if kind == ENTRADA:
            entry = store.insert_ledger_entry(
                person.id, ENTRADA,
                entrance_ts=now,
                location=location,
                credential_code=credential_ref
            )
        else:
            open_entrance = store.find_open_entrance_for_person(person.id)
            if open_entrance:
                entrance_at = open_entrance.fecha_entrada
            elif self.strict_exit:
                raise AccessStateError('No hay una entrada abierta para registrar la salida')
            else:
                logger.warning("SALIDA sin entrada abierta para visitante %s; "
                               "se usa la hora actual como entrada", person.id)
                entrance_at = now
            entry = store.insert_ledger_entry(
                person.id, SALIDA,
                entrance_ts=entrance_at,
                exit_ts=now,
                location=location,
                credential_code=credential_ref
            )

        logger.info("%s registrada para visitante %s en %s", kind, person.id, location)
        return {"kind": kind, "entry": entry, "person": person}

    # ------------------------------------------------------------------
    # Administración de visitantes
    # ------------------------------------------------------------------

    def register_visitor(self, data):
        nombre = data.get('nombre')
        documento = data.get('documento')
        if not nombre or not documento:
            raise BadRequestError('Nombre y documento son requeridos')

        hours = data.get('horasValidez', self.default_hours)
        minutes = data.get('minutosValidez', 0)

        role = store.get_or_create_role(PersonRoleEnum.VISITANTE.value)
        existing = store.find_visitor_by_document(documento)

        if existing:
            existing.nombres = nombre
            existing.apellidos = data.get('apellido') or None
            existing.tipo_documento = data.get('tipoDocumento', 'CC')
            existing.zona = data.get('zona') or None
            existing.estado = PersonStatusEnum.ACTIVO.value
            store.save_person(existing)
            credential = self.issue_credential(existing.id, hours, minutes)
            return {"person": credential["person"], "created": False,
                    "credential": credential, "access": None}

        person = store.save_person(Person(
            nombres=nombre,
            apellidos=data.get('apellido') or None,
            documento=documento,
            tipo_documento=data.get('tipoDocumento', 'CC'),
            zona=data.get('zona') or None,
            estado=PersonStatusEnum.ACTIVO.value,
            role=role
        ))
        credential = self.issue_credential(person.id, hours, minutes)
        access = self.record_access(person.id, credential_ref=credential["code"])
        logger.info("Visitante registrado: %s (%s) con ENTRADA automática", nombre, documento)

        return {"person": credential["person"], "created": True,
                "credential": credential, "access": access}

    def update_visitor(self, visitor_id, data):
        person = store.find_visitor_by_id(visitor_id)
        if not person:
            raise NotFoundError('Visitante no encontrado')

        estado = data.get('estado')
        if estado is not None and estado not in [s.value for s in PersonStatusEnum]:
            raise BadRequestError(f"Estado inválido: {estado}")

        person.nombres = data.get('nombre', person.nombres)
        person.apellidos = data.get('apellido', person.apellidos)
        person.tipo_documento = data.get('tipo_documento', person.tipo_documento)
        person.zona = data.get('zona', person.zona)
        person.estado = estado or person.estado
        return store.save_person(person)

    def deactivate_visitor(self, visitor_id):
        person = store.find_visitor_by_id(visitor_id)
        if not person:
            raise NotFoundError('Visitante no encontrado')
        person.estado = PersonStatusEnum.INACTIVO.value
        return store.save_person(person)

    def presence(self, visitor_id):
        person = store.find_visitor_by_id(visitor_id)
        if not person:
            raise NotFoundError('Visitante no encontrado')
        last_entry = store.find_most_recent_ledger_entry(person.id)
        inside = last_entry is not None and last_entry.tipo == ENTRADA
        return {"estado": "DENTRO" if inside else "FUERA", "last_entry": last_entry}
