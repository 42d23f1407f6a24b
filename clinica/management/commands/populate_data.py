"""
Management command to populate the database with demo data.
"""
import random
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from clinica.models import Address, Appointment, Patient, Specialist
from clinica.services.cpf import complete_cpf
from clinica.services.health_plans import HealthPlan
from clinica.services.passwords import encrypt_password


class Command(BaseCommand):
    help = 'Populate database with demo specialists, patients and appointments'

    def add_arguments(self, parser):
        parser.add_argument('--patients', type=int, default=10, help='number of patients to create')
        parser.add_argument('--seed', type=int, default=None, help='random seed for reproducible data')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        self.stdout.write('Criando dados de demonstração...')

        with transaction.atomic():
            specialists = self.create_specialists()
            patients = self.create_patients(rng, options['patients'])
            self.create_appointments(rng, patients, specialists)

        self.stdout.write(self.style.SUCCESS('Dados de demonstração criados!'))

    def create_specialists(self):
        specialists_data = [
            {'crm': '123456-SP', 'name': 'Dra. Helena Costa', 'specialty': 'Cardiologia', 'email': 'helena@vollmed.com'},
            {'crm': '234567-SP', 'name': 'Dr. Marcos Lima', 'specialty': 'Ortopedia', 'email': 'marcos@vollmed.com'},
            {'crm': '345678-RJ', 'name': 'Dra. Paula Mendes', 'specialty': 'Dermatologia', 'email': 'paula@vollmed.com'},
            {'crm': '456789-MG', 'name': 'Dr. Rafael Souza', 'specialty': 'Pediatria', 'email': 'rafael@vollmed.com'},
        ]
        specialists = []
        for data in specialists_data:
            specialist, created = Specialist.objects.get_or_create(crm=data['crm'], defaults=data)
            specialists.append(specialist)
            self.stdout.write(f'Especialista: {specialist.name}{"" if created else " (existente)"}')
        return specialists

    def create_patients(self, rng, count):
        first_names = ['Ana', 'Bruno', 'Carla', 'Diego', 'Elisa', 'Fábio', 'Gabriela', 'Hugo', 'Íris', 'João']
        last_names = ['Silva', 'Santos', 'Oliveira', 'Souza', 'Pereira', 'Almeida', 'Ferreira', 'Gomes']
        states = ['SP', 'RJ', 'MG', 'BA', 'PR', 'RS']
        plans = [plan.value for plan in HealthPlan]

        patients = []
        for _ in range(count):
            cpf = complete_cpf(''.join(str(rng.randint(0, 9)) for _ in range(9)))
            if Patient.objects.filter(cpf=cpf).exists():
                continue
            name = f'{rng.choice(first_names)} {rng.choice(last_names)}'
            has_plan = rng.random() < 0.6
            address = Address.objects.create(
                cep=f'{rng.randint(10000, 99999)}{rng.randint(0, 999):03d}',
                street=f'Rua {rng.choice(last_names)}',
                state=rng.choice(states),
                number=rng.randint(1, 2000),
            )
            patient = Patient.objects.create(
                cpf=cpf,
                name=name,
                email=f'{name.split()[0].lower()}.{cpf[:4]}@exemplo.com',
                password=encrypt_password('123456'),
                phone=f'119{rng.randint(10000000, 99999999)}',
                has_health_plan=has_plan,
                health_plans=rng.sample(plans, k=rng.randint(1, 2)) if has_plan else [],
                address=address,
            )
            patients.append(patient)
            self.stdout.write(f'Paciente: {patient.name}')
        return patients

    def create_appointments(self, rng, patients, specialists):
        now = timezone.now()
        for patient in patients:
            for _ in range(rng.randint(0, 3)):
                wants_reminder = rng.random() < 0.5
                date = now + timedelta(days=rng.randint(1, 60), hours=rng.randint(8, 17))
                Appointment.objects.create(
                    patient=patient,
                    specialist=rng.choice(specialists),
                    date=date,
                    wants_reminder=wants_reminder,
                    reminders=[{'mensagem': 'Lembrete de consulta', 'data': (date - timedelta(days=1)).isoformat()}]
                    if wants_reminder else [],
                )
        self.stdout.write(f'Consultas criadas: {Appointment.objects.filter(patient__in=patients).count()}')
