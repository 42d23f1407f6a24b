"""
Database models for the VollMed patient service.

These models capture patients, their postal address, the specialists
they book with, their appointments and uploaded profile images.  Field
names are English on the Python side; the JSON names expected by the
front-end (``nome``, ``estaAtivo``, ``planosSaude`` ...) are mapped in
the serializers.
"""
from __future__ import annotations

import uuid

from django.db import models


class Image(models.Model):
    """An uploaded image referenced by a patient profile."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    url = models.URLField(max_length=500)
    title = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.title or self.url


class Address(models.Model):
    """Postal address owned by exactly one patient."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cep = models.CharField(max_length=9)
    street = models.CharField(max_length=255)
    state = models.CharField(max_length=2)
    number = models.PositiveIntegerField(null=True, blank=True)
    complement = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:
        return f"{self.street}, {self.number} - {self.state} ({self.cep})"


class Patient(models.Model):
    """A patient registered in the clinic.

    ``cpf`` holds the eleven digits of the Brazilian taxpayer id and is
    unique.  ``password`` only ever stores a Django password hash.
    ``is_active`` is the single flag separating active from deactivated
    patients; deactivation never removes the row.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cpf = models.CharField(max_length=11, unique=True)
    name = models.CharField(max_length=100, db_index=True)
    email = models.EmailField(max_length=254)
    password = models.CharField(max_length=128)
    is_active = models.BooleanField(default=True, db_index=True)
    phone = models.CharField(max_length=20, blank=True)
    has_health_plan = models.BooleanField(default=False)
    # Canonical plan names, e.g. ["Unimed", "Amil"]
    health_plans = models.JSONField(default=list, blank=True)
    image_url = models.URLField(max_length=500, blank=True)
    image = models.ForeignKey(
        Image, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients'
    )
    history = models.TextField(blank=True)
    address = models.OneToOneField(
        Address, null=True, blank=True, on_delete=models.SET_NULL, related_name='patient'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.name} ({'ativo' if self.is_active else 'inativo'})"


class Specialist(models.Model):
    """A doctor appointments are booked with."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    crm = models.CharField(max_length=20, unique=True)
    specialty = models.CharField(max_length=100)
    email = models.EmailField(max_length=254, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.specialty})"


class Appointment(models.Model):
    """An appointment between a patient and a specialist.

    ``reminders`` is a free-form list the front-end fills with reminder
    entries when ``wants_reminder`` is set.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    date = models.DateTimeField(db_index=True)
    wants_reminder = models.BooleanField(default=False)
    reminders = models.JSONField(default=list, blank=True)
    specialist = models.ForeignKey(
        Specialist, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments'
    )
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')

    class Meta:
        ordering = ['date']

    def __str__(self) -> str:
        return f"{self.patient_id} @ {self.date:%Y-%m-%d %H:%M}"
