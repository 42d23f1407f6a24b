"""
Patient persistence operations.

Views validate and sanitise payloads through the serializers and hand
the cleaned data to the functions below.  Every function either returns
the affected model instance, returns ``None`` when the patient does not
exist, or raises :class:`~clinica.exceptions.AppError` for domain
failures.  Database errors propagate to the caller.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

from django.db import IntegrityError, transaction

from clinica.exceptions import AppError, Status
from clinica.models import Address, Appointment, Patient
from clinica.services.cpf import is_valid_cpf
from clinica.services.health_plans import map_plans
from clinica.services.passwords import encrypt_password

logger = logging.getLogger(__name__)

PATIENT_NOT_FOUND = 'Paciente não encontrado!'
INVALID_CPF = 'CPF Inválido!'
DUPLICATE_CPF = 'Já existe um paciente com esse CPF!'

NAME_QUERY_MIN = 2
NAME_QUERY_MAX = 80
_NAME_QUERY_DISALLOWED = re.compile(r'[^a-zA-ZÀ-ú\s]')


def clean_name_query(values: list[str]) -> str:
    """Validate the ``userInput`` query values of a name search.

    ``values`` is the list of values the parameter was given.  Anything
    other than exactly one non-empty string is rejected, then every
    character that is not a letter (accented letters included) or
    whitespace is removed.
    """
    if not values or not values[0]:
        raise AppError('Nenhum usuário fornecido', Status.BAD_REQUEST)
    if len(values) != 1 or not isinstance(values[0], str):
        raise AppError('Não foi fornecido uma string', Status.BAD_REQUEST)
    cleaned = _NAME_QUERY_DISALLOWED.sub('', values[0]).strip()
    if len(cleaned) < NAME_QUERY_MIN:
        raise AppError('String fornecida é muito curta', Status.BAD_REQUEST)
    if len(cleaned) > NAME_QUERY_MAX:
        raise AppError('String fornecida é muito longa', Status.BAD_REQUEST)
    return cleaned


def search_patients_by_name(name: str) -> list[Patient]:
    return list(Patient.objects.select_related('image').filter(name=name))


def list_patients(*, active_only: bool = False):
    qs = Patient.objects.select_related('image', 'address')
    if active_only:
        qs = qs.filter(is_active=True)
    return qs


def get_patient(patient_id) -> Optional[Patient]:
    return Patient.objects.select_related('address', 'image').filter(id=patient_id).first()


def _resolve_plans(has_health_plan: bool, plans: list) -> list[str]:
    if has_health_plan and plans:
        return map_plans(plans)
    return []


def _ensure_valid_cpf(cpf: str) -> None:
    if not is_valid_cpf(cpf):
        raise AppError(INVALID_CPF, Status.BAD_REQUEST)


def create_patient(data: dict[str, Any]) -> Patient:
    """Create a patient, and its address when one is given, atomically."""
    cpf = data['cpf']
    _ensure_valid_cpf(cpf)
    if Patient.objects.filter(cpf=cpf).exists():
        logger.warning('patient creation rejected: duplicate cpf')
        raise AppError(DUPLICATE_CPF, Status.CONFLICT)

    plans = _resolve_plans(data['possuiPlanoSaude'], data['planosSaude'])
    address_data = data.get('endereco')

    try:
        with transaction.atomic():
            address = Address.objects.create(**address_data) if address_data else None
            patient = Patient.objects.create(
                cpf=cpf,
                name=data['nome'],
                email=data['email'],
                password=encrypt_password(data['senha']),
                is_active=data['estaAtivo'],
                phone=data['telefone'],
                has_health_plan=data['possuiPlanoSaude'],
                health_plans=plans,
                image_url=data['imagemUrl'],
                image=data['imagem'],
                history=data['historico'],
                address=address,
            )
    except IntegrityError:
        # lost a race against a concurrent insert of the same cpf
        if Patient.objects.filter(cpf=cpf).exists():
            raise AppError(DUPLICATE_CPF, Status.CONFLICT)
        raise
    logger.info('patient created id=%s address=%s', patient.id, address is not None)
    return patient


def list_patient_appointments(patient_id):
    if not Patient.objects.filter(id=patient_id).exists():
        raise AppError(PATIENT_NOT_FOUND, Status.NOT_FOUND)
    return Appointment.objects.select_related('specialist').filter(patient_id=patient_id)


def update_patient(patient_id, data: dict[str, Any]) -> Optional[Patient]:
    """Replace every writable field of a patient.

    The CPF checksum is checked before the lookup, so an invalid CPF is
    reported even for an unknown id.
    """
    cpf = data['cpf']
    _ensure_valid_cpf(cpf)
    plans = _resolve_plans(data['possuiPlanoSaude'], data['planosSaude'])

    patient = get_patient(patient_id)
    if patient is None:
        return None
    if Patient.objects.filter(cpf=cpf).exclude(id=patient.id).exists():
        logger.warning('patient update rejected: cpf owned by another patient id=%s', patient.id)
        raise AppError(DUPLICATE_CPF, Status.CONFLICT)

    patient.cpf = cpf
    patient.name = data['nome']
    patient.email = data['email']
    patient.is_active = data['estaAtivo']
    patient.phone = data['telefone']
    patient.has_health_plan = data['possuiPlanoSaude']
    patient.health_plans = plans
    patient.image_url = data['imagemUrl']
    patient.image = data['imagem']
    patient.history = data['historico']
    if data.get('senha'):
        patient.password = encrypt_password(data['senha'])
    patient.save()
    logger.info('patient updated id=%s', patient.id)
    return patient


def update_patient_address(patient_id, data: dict[str, Any]) -> Optional[Patient]:
    """Create the patient's address or overwrite the existing one."""
    with transaction.atomic():
        patient = Patient.objects.select_for_update().filter(id=patient_id).first()
        if patient is None:
            return None
        address = patient.address
        if address is None:
            patient.address = Address.objects.create(**data)
        else:
            for field, value in data.items():
                setattr(address, field, value)
            address.save()
        patient.save()
    logger.info('patient address updated id=%s', patient.id)
    return get_patient(patient.id)


def deactivate_patient(patient_id) -> Optional[Patient]:
    """Mark a patient inactive.  The record itself is kept."""
    patient = Patient.objects.filter(id=patient_id).first()
    if patient is None:
        return None
    patient.is_active = False
    patient.save(update_fields=['is_active', 'updated_at'])
    logger.info('patient deactivated id=%s', patient.id)
    return patient
