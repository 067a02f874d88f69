import pytest
from fastapi.testclient import TestClient

from backend.main import app
from backend.routes.common import get_db


@pytest.fixture
def client(booking_sessionmaker):
    """A TestClient whose requests share the in-memory test database."""

    def override_get_db():
        db = booking_sessionmaker()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health_endpoint(client) -> None:
    response = client.get('/api/health')

    assert response.status_code == 200
    assert response.json()['status'] == 'OK'


def test_booking_flow_over_http(client, make_doctor, make_patient, next_monday) -> None:
    doctor = make_doctor()
    patient = make_patient()
    day = next_monday.isoformat()

    slots = client.get('/api/appointments/slots/available', params={'doctor_id': doctor.id, 'date': day})
    assert slots.status_code == 200
    assert [slot['time'] for slot in slots.json()] == ['09:00', '09:30', '10:00', '10:30']

    booked = client.post(
        '/api/appointments',
        json={'patient_id': patient.id, 'doctor_id': doctor.id, 'date': day, 'time': '09:30', 'notes': 'checkup'},
    )
    assert booked.status_code == 201
    appointment = booked.json()['appointment']
    assert appointment['status'] == 'held'
    assert appointment['doctor_name'] == 'Dr. Gregory House'
    assert appointment['patient_email'] == 'john.smith@email.com'

    again = client.post(
        '/api/appointments',
        json={'patient_id': patient.id, 'doctor_id': doctor.id, 'date': day, 'time': '09:30'},
    )
    assert again.status_code == 400
    assert again.json() == {'detail': 'Selected time slot is not available.'}

    free_slots = client.get('/api/appointments/slots/available', params={'doctor_id': doctor.id, 'date': day})
    assert [slot['time'] for slot in free_slots.json()] == ['09:00', '10:00', '10:30']

    all_slots = client.get(
        '/api/appointments/slots/available',
        params={'doctor_id': doctor.id, 'date': day, 'include_booked': 'true'},
    )
    assert [slot['status'] for slot in all_slots.json()] == ['free', 'held', 'free', 'free']

    moved = client.post(f'/api/appointments/{appointment["id"]}/reschedule', json={'time': '10:30'})
    assert moved.status_code == 200
    new_id = moved.json()['appointment_id']

    fetched = client.get(f'/api/appointments/{new_id}')
    assert fetched.json()['time'] == '10:30'
    assert fetched.json()['notes'] == 'checkup'

    cancelled = client.patch(f'/api/appointments/{new_id}/cancel')
    assert cancelled.status_code == 200

    cancelled_again = client.patch(f'/api/appointments/{new_id}/cancel')
    assert cancelled_again.status_code == 400
    assert cancelled_again.json() == {'detail': 'Only booked appointments can be cancelled.'}


def test_reschedule_via_put(client, make_doctor, make_patient, next_monday) -> None:
    doctor = make_doctor()
    patient = make_patient()
    day = next_monday.isoformat()
    client.get('/api/appointments/slots/available', params={'doctor_id': doctor.id, 'date': day})
    booked = client.post(
        '/api/appointments',
        json={'patient_id': patient.id, 'doctor_id': doctor.id, 'date': day, 'time': '09:00'},
    ).json()['appointment']

    response = client.put(f'/api/appointments/{booked["id"]}', json={'time': '10:00'})

    assert response.status_code == 200
    assert response.json()['message'] == 'Appointment rescheduled successfully'


def test_slots_endpoint_error_mapping(client, next_monday) -> None:
    missing = client.get('/api/appointments/slots/available')
    unknown = client.get('/api/appointments/slots/available', params={'doctor_id': 7, 'date': next_monday.isoformat()})

    assert missing.status_code == 400
    assert unknown.status_code == 404


def test_booking_rejects_missing_fields(client, next_monday) -> None:
    response = client.post(
        '/api/appointments',
        json={'doctor_id': 1, 'date': next_monday.isoformat(), 'time': '09:00'},
    )

    assert response.status_code == 400
    assert response.json() == {'detail': 'Missing required fields: patient_id, doctor_id, date, time'}


def test_create_and_fetch_patient_over_http(client) -> None:
    created = client.post('/api/patients', json={'name': 'Jane Doe', 'email': 'Jane@Example.com'})

    assert created.status_code == 201
    patient_id = created.json()['patient']['id']
    fetched = client.get(f'/api/patients/{patient_id}')
    assert fetched.json()['email'] == 'jane@example.com'
