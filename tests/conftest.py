"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- In-memory SQLite session shared by the app and the test
- In-memory async Redis double behind the detail store
- Encrypted reference data (client, pet, service, staff)
"""
import os
from datetime import date, timedelta

import pytest
from cryptography.fernet import Fernet

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("FIELD_ENCRYPTION_KEY", Fernet.generate_key().decode())

from fastapi.testclient import TestClient  # noqa: E402
from redis.exceptions import ConnectionError as RedisConnectionError  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from vetclinic.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from vetclinic.document_store import AppointmentDetailStore, get_detail_store  # noqa: E402
from vetclinic.encryption import FieldCipher, get_field_cipher  # noqa: E402
from vetclinic.main import app  # noqa: E402
from vetclinic.models import Client, Pet, Service, User  # noqa: E402


class FakeRedis:
    """Minimal async stand-in for redis.asyncio.Redis (get/set/delete/ping)"""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, key):
        if self.fail_reads:
            raise RedisConnectionError("Redis unavailable")
        return self.data.get(key)

    async def set(self, key, value):
        if self.fail_writes:
            raise RedisConnectionError("Redis unavailable")
        self.data[key] = value
        return True

    async def delete(self, *keys):
        if self.fail_writes:
            raise RedisConnectionError("Redis unavailable")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def ping(self):
        return True


# ============================================================================
# Stores
# ============================================================================


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Session for arranging data and asserting on the relational store"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def failing_commit(monkeypatch):
    """Returns a switch that makes every later Session.commit raise"""

    def switch_on():
        def commit(self):
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(Session, "commit", commit)

    return switch_on


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def detail_store(fake_redis):
    return AppointmentDetailStore(fake_redis, key_prefix="test:detail:")


@pytest.fixture
def cipher():
    return FieldCipher(Fernet.generate_key().decode())


# ============================================================================
# API Client
# ============================================================================


@pytest.fixture
def api_client(session_factory, detail_store, cipher):
    """TestClient wired to the in-memory stores"""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_detail_store] = lambda: detail_store
    app.dependency_overrides[get_field_cipher] = lambda: cipher

    yield TestClient(app)

    app.dependency_overrides.clear()


# ============================================================================
# Reference data
# ============================================================================


@pytest.fixture
def reference_data(db_session, cipher):
    """One encrypted client with a pet, a service and a veterinarian"""
    client = Client(name=cipher.encrypt("María Pérez"), id_number=cipher.encrypt("1712345678"))
    db_session.add(client)
    db_session.flush()

    pet = Pet(client_id=client.id, name=cipher.encrypt("Luna"), species=cipher.encrypt("Canino"))
    service = Service(name=cipher.encrypt("Consulta general"), price=25.0)
    vet = User(name=cipher.encrypt("Dra. Ana Torres"), email="ana@example.com")
    db_session.add_all([pet, service, vet])
    db_session.commit()

    return {
        "client_id": client.id,
        "pet_id": pet.id,
        "service_id": service.id,
        "vet_id": vet.id,
    }


def tomorrow() -> str:
    return (date.today() + timedelta(days=1)).isoformat()


@pytest.fixture
def appointment_payload(reference_data):
    """Builds a valid creation payload; keyword arguments override fields"""

    def build(**overrides):
        payload = {
            "idCliente": reference_data["client_id"],
            "idMascota": reference_data["pet_id"],
            "idServicio": reference_data["service_id"],
            "fecha": tomorrow(),
            "hora": "09:30",
        }
        payload.update(overrides)
        return payload

    return build


@pytest.fixture
def create_appointment(api_client, appointment_payload):
    """Create an appointment through the API and return its id"""

    def create(**overrides):
        response = api_client.post("/crear", json=appointment_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["idCita"]

    return create
