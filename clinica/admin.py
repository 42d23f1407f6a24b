"""
Django admin registrations for the clinica models.

Registering the models lets staff inspect patients, addresses and
appointments through ``/admin/`` during development.  The password
hash is shown read-only; it is only ever set through the API.
"""

from django.contrib import admin

from .models import (
    Address,
    Appointment,
    Image,
    Patient,
    Specialist,
)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'is_active', 'has_health_plan', 'created_at')
    list_filter = ('is_active', 'has_health_plan')
    search_fields = ('name', 'email', 'cpf', 'phone')
    readonly_fields = ('password', 'created_at', 'updated_at')


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ('cep', 'street', 'number', 'state')
    list_filter = ('state',)
    search_fields = ('cep', 'street')


@admin.register(Specialist)
class SpecialistAdmin(admin.ModelAdmin):
    list_display = ('name', 'crm', 'specialty', 'is_active')
    list_filter = ('specialty', 'is_active')
    search_fields = ('name', 'crm')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('date', 'patient', 'specialist', 'wants_reminder')
    list_filter = ('wants_reminder', 'specialist')
    search_fields = ('patient__name', 'specialist__name')


@admin.register(Image)
class ImageAdmin(admin.ModelAdmin):
    list_display = ('title', 'url', 'created_at')
    search_fields = ('title', 'url')
