"""
Insert demo reference data (clients, pets, services, staff)
Sensitive display columns are encrypted with FIELD_ENCRYPTION_KEY
Usage: python seed_demo.py
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from vetclinic.database import Base, SessionLocal, engine
from vetclinic.encryption import field_cipher
from vetclinic.models import Client, Pet, Service, User

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)

CLIENTS = [
    {"name": "María Pérez", "id_number": "1712345678", "email": "maria@example.com", "pets": [("Luna", "Canino", "Labrador")]},
    {"name": "Carlos Andrade", "id_number": "0923456789", "email": "carlos@example.com", "pets": [("Michi", "Felino", "Siamés"), ("Rocky", "Canino", "Bulldog")]},
]

SERVICES = [("Consulta general", 25.0, 30), ("Vacunación", 15.0, 15), ("Desparasitación", 12.5, 15)]

STAFF = [("Dra. Ana Torres", "ana.torres@example.com"), ("Dr. Luis Vega", "luis.vega@example.com")]


def seed():
    """Create tables and insert reference rows"""
    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()
    try:
        if db.query(Client).count():
            logger.info("Reference data already present, nothing to do")
            return

        for entry in CLIENTS:
            client = Client(
                name=field_cipher.encrypt(entry["name"]),
                id_number=field_cipher.encrypt(entry["id_number"]),
                email=entry["email"],
            )
            db.add(client)
            db.flush()
            for pet_name, species, breed in entry["pets"]:
                db.add(
                    Pet(
                        client_id=client.id,
                        name=field_cipher.encrypt(pet_name),
                        species=field_cipher.encrypt(species),
                        breed=breed,
                    )
                )

        for name, price, minutes in SERVICES:
            db.add(Service(name=field_cipher.encrypt(name), price=price, duration_minutes=minutes))

        for name, email in STAFF:
            db.add(User(name=field_cipher.encrypt(name), email=email))

        db.commit()
        logger.info(f"✅ Seeded {len(CLIENTS)} clients, {len(SERVICES)} services, {len(STAFF)} staff")
    finally:
        db.close()


if __name__ == "__main__":
    try:
        seed()
    except Exception as e:
        logger.error(f"❌ Seeding failed: {e}")
        sys.exit(1)
