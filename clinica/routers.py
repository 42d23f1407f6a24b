"""
URL mappings for the patient API.

Paths keep the front-end's naming (``/paciente``) and deliberately omit
trailing slashes.  ``pesquisa`` is registered before the ``<uuid>``
routes so a search is never taken for an id lookup.
"""
from django.urls import path, include

from .views import health
from .views.patients import (
    search_patients,
    patients,
    patient_detail,
    patient_address,
    patient_appointments,
)


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Patients
    path('paciente/pesquisa', search_patients, name='patient-search'),
    path('paciente', patients, name='patients'),
    path('paciente/<uuid:pk>', patient_detail, name='patient-detail'),
    path('paciente/<uuid:pk>/endereco', patient_address, name='patient-address'),
    path('paciente/<uuid:pk>/consultas', patient_appointments, name='patient-appointments'),
]
