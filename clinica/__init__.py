"""Patient management application for the VollMed backend.

This package contains the models, serializers, services, views and
route registrations behind the ``/paciente`` API.
"""
