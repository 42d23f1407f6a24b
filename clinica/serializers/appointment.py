from rest_framework import serializers

from clinica.models import Appointment, Specialist


class SpecialistSummarySerializer(serializers.ModelSerializer):
    nome = serializers.CharField(source='name')
    especialidade = serializers.CharField(source='specialty')

    class Meta:
        model = Specialist
        fields = ['id', 'nome', 'especialidade']


class PatientAppointmentSerializer(serializers.ModelSerializer):
    """Appointment as listed for its own patient, without the patient back-reference."""
    data = serializers.DateTimeField(source='date')
    desejaLembrete = serializers.BooleanField(source='wants_reminder')
    lembretes = serializers.JSONField(source='reminders')
    especialista = SpecialistSummarySerializer(source='specialist', allow_null=True)

    class Meta:
        model = Appointment
        fields = ['id', 'data', 'desejaLembrete', 'lembretes', 'especialista']
