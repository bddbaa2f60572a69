"""Tests for request validation rules on appointment payloads"""
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from vetclinic.domain.appointments.schemas import AppointmentCreate, StatusChangeRequest
from vetclinic.shared.validators import validate_time_hhmm


def payload(**overrides):
    data = {
        "idCliente": 1,
        "idMascota": 2,
        "idServicio": 3,
        "fecha": (date.today() + timedelta(days=1)).isoformat(),
        "hora": "09:30",
    }
    data.update(overrides)
    return data


class TestTimeFormat:
    @pytest.mark.parametrize("value", ["24:00", "9:60", "12:5", "noon", "", "12:30:00"])
    def test_invalid_times_rejected(self, value):
        with pytest.raises(ValueError):
            validate_time_hhmm(value)

    @pytest.mark.parametrize(
        "value,expected", [("09:30", "09:30"), ("9:30", "09:30"), ("00:00", "00:00"), ("23:59", "23:59")]
    )
    def test_valid_times_normalized(self, value, expected):
        assert validate_time_hhmm(value) == expected


class TestAppointmentCreateSchema:
    def test_valid_payload(self):
        data = AppointmentCreate(**payload())

        assert data.hora == "09:30"
        assert data.usuarioIdUser is None
        assert data.tratamientosAnteriores is None

    def test_today_is_accepted(self):
        data = AppointmentCreate(**payload(fecha=date.today().isoformat()))

        assert data.fecha == date.today()

    def test_past_date_rejected(self):
        yesterday = (date.today() - timedelta(days=1)).isoformat()

        with pytest.raises(ValidationError, match="earlier than today"):
            AppointmentCreate(**payload(fecha=yesterday))

    def test_invalid_calendar_date_rejected(self):
        with pytest.raises(ValidationError):
            AppointmentCreate(**payload(fecha="2030-02-30"))

    @pytest.mark.parametrize("hora", ["24:00", "9:60"])
    def test_invalid_hours_rejected(self, hora):
        with pytest.raises(ValidationError, match="HH:MM"):
            AppointmentCreate(**payload(hora=hora))

    @pytest.mark.parametrize("field", ["idCliente", "idMascota", "idServicio", "usuarioIdUser"])
    def test_ids_must_be_positive(self, field):
        with pytest.raises(ValidationError, match="positive integer"):
            AppointmentCreate(**payload(**{field: 0}))

    @pytest.mark.parametrize(
        "field,limit",
        [("motivo", 255), ("sintomas", 500), ("diagnosticoPrevio", 300), ("notasAdicionales", 500)],
    )
    def test_text_length_limits(self, field, limit):
        AppointmentCreate(**payload(**{field: "x" * limit}))

        with pytest.raises(ValidationError, match=f"cannot exceed {limit}"):
            AppointmentCreate(**payload(**{field: "x" * (limit + 1)}))

    def test_treatments_must_be_a_list(self):
        with pytest.raises(ValidationError, match="must be a list"):
            AppointmentCreate(**payload(tratamientosAnteriores="Omeprazol"))


class TestStatusChangeSchema:
    @pytest.mark.parametrize("estado", ["scheduled", "confirmed", "cancelled", "completed", "no-show"])
    def test_known_statuses_accepted(self, estado):
        assert StatusChangeRequest(estado=estado).estado == estado

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError, match="estado must be one of"):
            StatusChangeRequest(estado="programada")


class TestValidationResponses:
    """The HTTP layer reports one message per failing field with status 400"""

    def test_error_messages_per_field(self, api_client, appointment_payload):
        yesterday = (date.today() - timedelta(days=1)).isoformat()

        response = api_client.post(
            "/crear", json=appointment_payload(fecha=yesterday, hora="24:00", motivo="x" * 256)
        )

        assert response.status_code == 400
        errors = {e["field"]: e["message"] for e in response.json()["errors"]}
        assert errors["fecha"] == "Date cannot be earlier than today"
        assert errors["hora"] == "Time must use a valid 24-hour HH:MM format"
        assert errors["motivo"] == "motivo cannot exceed 255 characters"

    def test_missing_field_message(self, api_client, appointment_payload):
        payload = appointment_payload()
        del payload["idServicio"]

        response = api_client.post("/crear", json=payload)

        assert response.json()["errors"] == [{"field": "idServicio", "message": "idServicio is required"}]

    def test_accepts_valid_time(self, api_client, appointment_payload):
        response = api_client.post("/crear", json=appointment_payload(hora="09:30"))

        assert response.status_code == 201
