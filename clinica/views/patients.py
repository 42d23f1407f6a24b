"""
Patient management views.

These endpoints register patients, look them up, replace their data,
maintain their postal address, list their appointments and deactivate
them.  Every handler answers exactly once: failures return (or raise)
immediately and the remaining logic is skipped.

Endpoints implemented:

* ``GET /paciente/pesquisa?userInput=`` – exact name search.
* ``GET /paciente`` / ``POST /paciente`` – list all / create.
* ``GET|PUT|DELETE /paciente/<id>`` – read / replace / deactivate.
* ``PATCH /paciente/<id>/endereco`` – create or update the address.
* ``GET /paciente/<id>/consultas`` – appointments of the patient.
"""
from __future__ import annotations

import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.decorators import api_view, throttle_classes
from rest_framework.response import Response

from clinica.exceptions import INTERNAL_ERROR_MESSAGE
from clinica.serializers.appointment import PatientAppointmentSerializer
from clinica.serializers.patient import (
    AddressSerializer,
    PatientSearchSerializer,
    PatientSerializer,
    PatientUpdateSerializer,
    PatientWriteSerializer,
)
from clinica.services import patients as patient_service
from clinica.throttling import WriteScopedRateThrottle

logger = logging.getLogger(__name__)


def _not_found() -> Response:
    return Response(patient_service.PATIENT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)


@api_view(['GET'])
def search_patients(request):
    """Search patients by exact name.

    ``userInput`` is cleaned down to letters and whitespace and must be
    between 2 and 80 characters long; otherwise a 400 is returned and
    the database is not queried.  Contact data, history and address are
    left out of the results.
    """
    name = patient_service.clean_name_query(request.query_params.getlist('userInput'))
    try:
        found = patient_service.search_patients_by_name(name)
    except DatabaseError:
        logger.exception('patient search failed')
        return Response({'message': INTERNAL_ERROR_MESSAGE}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    if not found:
        return _not_found()
    return Response(PatientSearchSerializer(found, many=True).data)


@api_view(['GET', 'POST'])
@throttle_classes([WriteScopedRateThrottle])
def patients(request):
    """List every patient (``GET``) or register a new one (``POST``).

    ``GET`` accepts ``ativos=true`` to leave deactivated patients out.
    ``POST`` answers 202 with the public view of the created patient;
    ``senha`` and ``cpf`` are never echoed back.
    """
    if request.method == 'GET':
        active_only = str(request.query_params.get('ativos') or '').lower() in ('1', 'true', 'yes')
        qs = patient_service.list_patients(active_only=active_only)
        return Response(PatientSerializer(qs, many=True).data)

    data = PatientWriteSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    try:
        patient = patient_service.create_patient(data.validated_data)
    except DatabaseError:
        logger.exception('patient creation failed')
        return Response({'message': 'Paciente não foi criado'}, status=status.HTTP_502_BAD_GATEWAY)
    return Response(PatientSerializer(patient).data, status=status.HTTP_202_ACCEPTED)


patients.cls.throttle_scope = 'patient_write'


@api_view(['GET', 'PUT', 'DELETE'])
@throttle_classes([WriteScopedRateThrottle])
def patient_detail(request, pk):
    """Read, fully replace or deactivate one patient.

    ``DELETE`` only flips ``estaAtivo`` to ``false``; the patient stays
    retrievable afterwards.
    """
    if request.method == 'GET':
        patient = patient_service.get_patient(pk)
        if patient is None:
            return _not_found()
        return Response(PatientSerializer(patient).data)

    if request.method == 'DELETE':
        patient = patient_service.deactivate_patient(pk)
        if patient is None:
            return _not_found()
        return Response({'message': 'Paciente desativado!'})

    data = PatientUpdateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    try:
        patient = patient_service.update_patient(pk, data.validated_data)
    except DatabaseError:
        logger.exception('patient update failed id=%s', pk)
        return Response('Paciente não foi atualizado!', status=status.HTTP_502_BAD_GATEWAY)
    if patient is None:
        return _not_found()
    return Response(PatientSerializer(patient).data)


patient_detail.cls.throttle_scope = 'patient_write'


@api_view(['PATCH'])
def patient_address(request, pk):
    """Create the patient's address, or overwrite the existing one."""
    data = AddressSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    patient = patient_service.update_patient_address(pk, data.validated_data)
    if patient is None:
        return _not_found()
    return Response(PatientSerializer(patient).data)


@api_view(['GET'])
def patient_appointments(request, pk):
    appointments = patient_service.list_patient_appointments(pk)
    return Response(PatientAppointmentSerializer(appointments, many=True).data)
