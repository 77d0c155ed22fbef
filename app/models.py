import enum
from datetime import datetime

from sqlalchemy import Index

from app import db


class PersonRoleEnum(enum.Enum):
    VISITANTE = "VISITANTE"
    APRENDIZ = "APRENDIZ"
    INSTRUCTOR = "INSTRUCTOR"
    FUNCIONARIO = "FUNCIONARIO"


class PersonStatusEnum(enum.Enum):
    ACTIVO = "ACTIVO"
    INACTIVO = "INACTIVO"


class AccessKindEnum(enum.Enum):
    ENTRADA = "ENTRADA"
    SALIDA = "SALIDA"


class PersonRole(db.Model):
    __tablename__ = 'roles_personas'
    id = db.Column(db.Integer, primary_key=True)
    nombre = db.Column(db.String(50), unique=True, nullable=False)


class Person(db.Model):
    __tablename__ = 'personas'
    id = db.Column(db.Integer, primary_key=True)
    tipo_documento = db.Column(db.String(10), default='CC')
    documento = db.Column(db.String(30), nullable=False, index=True)
    nombres = db.Column(db.String(100), nullable=False)
    apellidos = db.Column(db.String(100))
    role_id = db.Column(db.Integer, db.ForeignKey('roles_personas.id'))
    role = db.relationship('PersonRole', backref='personas')
    estado = db.Column(db.String(20), nullable=False, default=PersonStatusEnum.ACTIVO.value)
    codigo_qr = db.Column(db.String(120), index=True)
    fecha_expiracion = db.Column(db.DateTime)
    zona = db.Column(db.String(100))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    @property
    def role_name(self):
        return self.role.nombre if self.role else None

    @property
    def is_visitor(self):
        return self.role_name == PersonRoleEnum.VISITANTE.value

    @property
    def is_active(self):
        return self.estado == PersonStatusEnum.ACTIVO.value

    def as_dict(self):
        return {
            "id": self.id,
            "nombre": self.nombres,
            "apellido": self.apellidos,
            "documento": self.documento,
            "tipo_documento": self.tipo_documento,
            "rol": self.role_name,
            "estado": self.estado,
            "codigoQR": self.codigo_qr,
            "fechaExpiracion": self.fecha_expiracion.isoformat() if self.fecha_expiracion else None,
            "zona": self.zona
        }


class AccessRecord(db.Model):
    __tablename__ = 'registros_entrada_salida'
    id = db.Column(db.Integer, primary_key=True)
    person_id = db.Column(db.Integer, db.ForeignKey('personas.id'), nullable=False, index=True)
    # Texto libre: registros heredados pueden traer otros valores
    tipo = db.Column(db.String(20), nullable=False)
    fecha_entrada = db.Column(db.DateTime, nullable=True)
    fecha_salida = db.Column(db.DateTime, nullable=True)
    ubicacion = db.Column(db.String(80))
    codigo_qr = db.Column(db.String(120))
    automatica = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    person = db.relationship('Person', backref='registros')

    def as_dict(self):
        return {
            "id": self.id,
            "personaId": self.person_id,
            "tipo": self.tipo,
            "fecha_entrada": self.fecha_entrada.isoformat() if self.fecha_entrada else None,
            "fecha_salida": self.fecha_salida.isoformat() if self.fecha_salida else None,
            "ubicacion": self.ubicacion,
            "codigoQR": self.codigo_qr,
            "automatica": self.automatica
        }


Index('ix_registro_persona_entrada', AccessRecord.person_id, AccessRecord.fecha_entrada)
