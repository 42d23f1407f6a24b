"""
Integration tests for the patient API.

These tests exercise every ``/paciente`` endpoint through Django REST
Framework's APIClient within the APITestCase base class: creation and
its validation pipeline, lookups, name search, full replacement,
address maintenance, appointment listing and deactivation.

To run the tests:

```
pytest -q clinica/tests
```
"""
import uuid
from datetime import timedelta
from unittest.mock import patch

from django.core.cache import cache
from django.db import DatabaseError
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import Address, Appointment, Patient, Specialist
from ..services.passwords import encrypt_password, verify_password
from ..throttling import WriteScopedRateThrottle


NEW_PATIENT = {
    "cpf": "11144477735",
    "nome": "Ana Silva",
    "email": "ana@x.com",
    "senha": "s3nha",
    "estaAtivo": True,
}


class PatientAPITests(APITestCase):
    def setUp(self) -> None:
        """Create one registered patient with a specialist and an appointment."""
        self.specialist = Specialist.objects.create(
            name="Dra. Helena Costa", crm="123456-SP", specialty="Cardiologia"
        )
        self.patient = Patient.objects.create(
            cpf="52998224725",
            name="Maria Souza",
            email="maria@x.com",
            password=encrypt_password("segredo"),
            phone="11999990000",
            history="Alergia a dipirona",
        )
        self.appointment = Appointment.objects.create(
            patient=self.patient,
            specialist=self.specialist,
            date=timezone.now() + timedelta(days=3),
            wants_reminder=True,
            reminders=[{"mensagem": "Consulta amanhã"}],
        )

    def detail_url(self, pk) -> str:
        return f"/paciente/{pk}"

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def test_create_patient_hides_password_and_cpf(self):
        response = self.client.post("/paciente", NEW_PATIENT, format="json")
        self.assertEqual(response.status_code, status.HTTP_202_ACCEPTED)
        self.assertNotIn("senha", response.data)
        self.assertNotIn("cpf", response.data)
        self.assertEqual(response.data["nome"], "Ana Silva")
        self.assertTrue(response.data["estaAtivo"])

        stored = Patient.objects.get(cpf="11144477735")
        self.assertNotEqual(stored.password, "s3nha")
        self.assertTrue(verify_password("s3nha", stored.password))

    def test_created_patient_round_trips_through_get(self):
        payload = {
            **NEW_PATIENT,
            "telefone": "11988887777",
            "possuiPlanoSaude": True,
            "planosSaude": [1, 3],
            "historico": "Hipertensão",
            "endereco": {
                "cep": "01001-000",
                "rua": "Praça da Sé",
                "estado": "sp",
                "numero": 100,
                "complemento": "lado ímpar",
            },
        }
        created = self.client.post("/paciente", payload, format="json")
        self.assertEqual(created.status_code, status.HTTP_202_ACCEPTED)
        self.assertEqual(created.data["planosSaude"], ["Unimed", "Amil"])
        self.assertEqual(created.data["endereco"]["cep"], "01001000")
        self.assertEqual(created.data["endereco"]["estado"], "SP")

        fetched = self.client.get(self.detail_url(created.data["id"]))
        self.assertEqual(fetched.status_code, status.HTTP_200_OK)
        self.assertEqual(fetched.data, created.data)

    def test_create_rejects_invalid_cpf_before_persisting(self):
        before = Patient.objects.count()
        response = self.client.post("/paciente", {**NEW_PATIENT, "cpf": "11144477736"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "CPF Inválido!")
        self.assertEqual(Patient.objects.count(), before)

    def test_create_rejects_duplicate_cpf(self):
        before = Patient.objects.count()
        response = self.client.post(
            "/paciente", {**NEW_PATIENT, "cpf": "529.982.247-25"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["message"], "Já existe um paciente com esse CPF!")
        self.assertEqual(Patient.objects.count(), before)

    def test_create_schema_violation_is_400(self):
        payload = {k: v for k, v in NEW_PATIENT.items() if k != "email"}
        response = self.client.post("/paciente", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", response.data["message"])
        self.assertIn("email", response.data["errors"])

    def test_create_strips_markup_from_text_fields(self):
        payload = {**NEW_PATIENT, "nome": "<b>Ana</b> Silva", "historico": "<script>x</script>asma"}
        response = self.client.post("/paciente", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_202_ACCEPTED)
        self.assertEqual(response.data["nome"], "Ana Silva")
        self.assertNotIn("<script>", response.data["historico"])

    def test_create_keeps_plain_text_special_characters(self):
        payload = {
            **NEW_PATIENT,
            "historico": "pressão < 12 & estável",
            "endereco": {"cep": "01001000", "rua": "Rua A & B", "estado": "SP"},
        }
        created = self.client.post("/paciente", payload, format="json")
        self.assertEqual(created.status_code, status.HTTP_202_ACCEPTED)
        self.assertEqual(created.data["historico"], "pressão < 12 & estável")
        self.assertEqual(created.data["endereco"]["rua"], "Rua A & B")

        fetched = self.client.get(self.detail_url(created.data["id"]))
        self.assertEqual(fetched.data["historico"], "pressão < 12 & estável")
        self.assertEqual(fetched.data["endereco"]["rua"], "Rua A & B")

    def test_create_unknown_plan_code_is_400(self):
        payload = {**NEW_PATIENT, "possuiPlanoSaude": True, "planosSaude": [42]}
        response = self.client.post("/paciente", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Patient.objects.filter(cpf=NEW_PATIENT["cpf"]).exists())

    def test_create_database_failure_is_502_without_details(self):
        with patch("clinica.services.patients.create_patient", side_effect=DatabaseError("disk I/O error")):
            response = self.client.post("/paciente", NEW_PATIENT, format="json")
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data, {"message": "Paciente não foi criado"})

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def test_list_all_patients(self):
        response = self.client.get("/paciente")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertNotIn("senha", response.data[0])
        self.assertNotIn("cpf", response.data[0])

    def test_list_is_empty_list_without_patients(self):
        Patient.objects.all().delete()
        response = self.client.get("/paciente")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_list_can_leave_out_inactive_patients(self):
        Patient.objects.filter(id=self.patient.id).update(is_active=False)
        self.assertEqual(len(self.client.get("/paciente").data), 1)
        self.assertEqual(self.client.get("/paciente?ativos=true").data, [])

    def test_get_patient_by_id(self):
        response = self.client.get(self.detail_url(self.patient.id))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["nome"], "Maria Souza")
        self.assertEqual(response.data["telefone"], "11999990000")
        self.assertIsNone(response.data["endereco"])
        self.assertNotIn("senha", response.data)

    def test_get_unknown_patient_is_404(self):
        response = self.client.get(self.detail_url(uuid.uuid4()))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, "Paciente não encontrado!")

    def test_unexpected_error_is_500_without_details(self):
        with patch("clinica.services.patients.get_patient", side_effect=RuntimeError("secret")):
            response = self.client.get(self.detail_url(self.patient.id))
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {"message": "Erro interno do servidor"})

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def test_search_by_exact_name_hides_private_fields(self):
        response = self.client.get("/paciente/pesquisa", {"userInput": "Maria Souza"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        result = response.data[0]
        self.assertEqual(result["nome"], "Maria Souza")
        for hidden in ("cpf", "senha", "telefone", "historico", "endereco"):
            self.assertNotIn(hidden, result)

    def test_search_cleans_disallowed_characters(self):
        response = self.client.get("/paciente/pesquisa", {"userInput": "Maria Souza;--123"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]["id"], str(self.patient.id))

    def test_search_without_match_is_404(self):
        response = self.client.get("/paciente/pesquisa", {"userInput": "Joana Prado"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, "Paciente não encontrado!")

    def test_search_database_failure_is_500_without_details(self):
        with patch("clinica.services.patients.search_patients_by_name", side_effect=DatabaseError("locked")):
            response = self.client.get("/paciente/pesquisa", {"userInput": "Maria Souza"})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {"message": "Erro interno do servidor"})

    def test_search_rejects_bad_input_without_querying(self):
        cases = [
            ({}, "Nenhum usuário fornecido"),
            ({"userInput": ""}, "Nenhum usuário fornecido"),
            ({"userInput": ["Ana", "Bia"]}, "Não foi fornecido uma string"),
            ({"userInput": "a1!"}, "String fornecida é muito curta"),
            ({"userInput": "x" * 81}, "String fornecida é muito longa"),
        ]
        with patch("clinica.services.patients.search_patients_by_name") as search:
            for params, message in cases:
                with self.subTest(params=params):
                    response = self.client.get("/paciente/pesquisa", params)
                    self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                    self.assertEqual(response.data["message"], message)
            search.assert_not_called()

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------
    def test_list_patient_appointments(self):
        response = self.client.get(f"/paciente/{self.patient.id}/consultas")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        item = response.data[0]
        self.assertEqual(set(item), {"id", "data", "desejaLembrete", "lembretes", "especialista"})
        self.assertTrue(item["desejaLembrete"])
        self.assertEqual(item["lembretes"], [{"mensagem": "Consulta amanhã"}])
        self.assertEqual(item["especialista"]["nome"], "Dra. Helena Costa")

    def test_list_appointments_of_unknown_patient_is_404(self):
        response = self.client.get(f"/paciente/{uuid.uuid4()}/consultas")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"message": "Paciente não encontrado!"})

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------
    def test_update_replaces_every_field(self):
        payload = {
            "cpf": "52998224725",
            "nome": "Maria Souza Lima",
            "email": "maria.lima@x.com",
            "estaAtivo": True,
            "possuiPlanoSaude": True,
            "planosSaude": [0],
        }
        response = self.client.put(self.detail_url(self.patient.id), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["nome"], "Maria Souza Lima")
        self.assertEqual(response.data["planosSaude"], ["Sulamerica"])
        # omitted optional fields are reset
        self.assertEqual(response.data["telefone"], "")
        self.assertEqual(response.data["historico"], "")

        self.patient.refresh_from_db()
        self.assertEqual(self.patient.email, "maria.lima@x.com")
        self.assertTrue(verify_password("segredo", self.patient.password))

    def test_update_rehashes_password_when_sent(self):
        payload = {"cpf": "52998224725", "nome": "Maria Souza", "email": "maria@x.com", "senha": "nova-senha"}
        response = self.client.put(self.detail_url(self.patient.id), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.patient.refresh_from_db()
        self.assertTrue(verify_password("nova-senha", self.patient.password))

    def test_update_checks_cpf_before_lookup(self):
        payload = {"cpf": "12345678900", "nome": "Fulano", "email": "f@x.com"}
        response = self.client.put(self.detail_url(uuid.uuid4()), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "CPF Inválido!")

    def test_update_unknown_patient_is_404(self):
        payload = {"cpf": "12345678909", "nome": "Fulano", "email": "f@x.com"}
        response = self.client.put(self.detail_url(uuid.uuid4()), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, "Paciente não encontrado!")

    def test_update_database_failure_is_502(self):
        payload = {"cpf": "52998224725", "nome": "Maria Souza", "email": "maria@x.com"}
        with patch("clinica.services.patients.update_patient", side_effect=DatabaseError("disk I/O error")):
            response = self.client.put(self.detail_url(self.patient.id), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data, "Paciente não foi atualizado!")

    def test_update_cannot_take_another_patients_cpf(self):
        other = Patient.objects.create(
            cpf="12345678909", name="Outro", email="o@x.com", password=encrypt_password("x")
        )
        payload = {"cpf": "52998224725", "nome": "Outro", "email": "o@x.com"}
        response = self.client.put(self.detail_url(other.id), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        other.refresh_from_db()
        self.assertEqual(other.cpf, "12345678909")

    # ------------------------------------------------------------------
    # Address
    # ------------------------------------------------------------------
    def test_address_update_creates_address(self):
        body = {"cep": "20040-020", "rua": "Av. Rio Branco", "estado": "RJ", "numero": 1}
        response = self.client.patch(f"/paciente/{self.patient.id}/endereco", body, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["endereco"]["rua"], "Av. Rio Branco")
        self.patient.refresh_from_db()
        self.assertIsNotNone(self.patient.address_id)

    def test_address_update_is_idempotent(self):
        body = {"cep": "20040020", "rua": "Av. Rio Branco", "estado": "RJ", "numero": 1, "complemento": "sala 2"}
        first = self.client.patch(f"/paciente/{self.patient.id}/endereco", body, format="json")
        second = self.client.patch(f"/paciente/{self.patient.id}/endereco", body, format="json")
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data["endereco"], second.data["endereco"])
        self.assertEqual(Address.objects.count(), 1)

    def test_address_update_mutates_existing_address(self):
        address = Address.objects.create(cep="01001000", street="Praça da Sé", state="SP", number=10)
        self.patient.address = address
        self.patient.save()
        body = {"cep": "01310100", "rua": "Av. Paulista", "estado": "SP", "numero": 1578}
        response = self.client.patch(f"/paciente/{self.patient.id}/endereco", body, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        address.refresh_from_db()
        self.assertEqual(address.street, "Av. Paulista")
        self.assertEqual(address.number, 1578)
        self.assertEqual(response.data["endereco"]["id"], str(address.id))

    def test_address_update_validates_body(self):
        body = {"cep": "abc", "rua": "Rua A", "estado": "SP"}
        response = self.client.patch(f"/paciente/{self.patient.id}/endereco", body, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("cep", response.data["errors"])

    def test_address_update_unknown_patient_is_404(self):
        body = {"cep": "20040020", "rua": "Av. Rio Branco", "estado": "RJ"}
        response = self.client.patch(f"/paciente/{uuid.uuid4()}/endereco", body, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(Address.objects.count(), 0)

    # ------------------------------------------------------------------
    # Deactivation
    # ------------------------------------------------------------------
    def test_deactivate_keeps_patient_retrievable(self):
        response = self.client.delete(self.detail_url(self.patient.id))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"message": "Paciente desativado!"})

        fetched = self.client.get(self.detail_url(self.patient.id))
        self.assertEqual(fetched.status_code, status.HTTP_200_OK)
        self.assertFalse(fetched.data["estaAtivo"])
        self.assertTrue(Appointment.objects.filter(patient=self.patient).exists())

    def test_deactivate_unknown_patient_is_404(self):
        response = self.client.delete(self.detail_url(uuid.uuid4()))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, "Paciente não encontrado!")


class HealthCheckTests(APITestCase):
    def test_healthz_reports_database(self):
        response = self.client.get("/healthz")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"ok": True, "db": True})


class PatientThrottleTests(APITestCase):
    def setUp(self) -> None:
        cache.clear()
        self.addCleanup(cache.clear)
        rates = patch.object(WriteScopedRateThrottle, "THROTTLE_RATES", {"patient_write": "2/min"})
        rates.start()
        self.addCleanup(rates.stop)

    def test_reads_are_not_counted(self):
        for _ in range(4):
            self.assertEqual(self.client.get("/paciente").status_code, status.HTTP_200_OK)

    def test_writes_over_the_rate_are_429(self):
        cpfs = ["11144477735", "52998224725", "12345678909"]
        codes = [
            self.client.post("/paciente", {**NEW_PATIENT, "cpf": cpf}, format="json").status_code
            for cpf in cpfs
        ]
        self.assertEqual(codes[:2], [status.HTTP_202_ACCEPTED, status.HTTP_202_ACCEPTED])
        self.assertEqual(codes[2], status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(self.client.get("/paciente").status_code, status.HTTP_200_OK)
