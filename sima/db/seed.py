# sima/db/seed.py
import argparse
import asyncio
import logging
import random

from faker import Faker
from tqdm import tqdm

from sima.core.config import get_settings
from sima.core.logging_config import configure_logging
from sima.core.security import PasswordHasher
from sima.db.session import close_db_pool, connect_db_pool, get_pool
from sima.repositories.persona_repo import PersonaRepository
from sima.repositories.registro_repo import RegistroRepository
from sima.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

fake = Faker("es_AR")

BOOTSTRAP_ADMIN = {
    "usuario": "admin",
    "nombre": "Administrador",
    "apellido": "Sistema",
    "email": None,
    "rol": "admin",
    "activo": True,
}
BOOTSTRAP_PASSWORD = "admin123"

COMISARIAS = [f"Comisaría {n}ª" for n in range(1, 13)]
TIPOS_DELITO = ["Robo", "Hurto", "Estafa", "Lesiones", "Amenazas", "Daños", "Usurpación"]
ESTADOS = ["En trámite", "Archivada", "Elevada a juicio", "Sobreseída"]


async def ensure_admin(conn, hasher: PasswordHasher) -> int:
    """Create the bootstrap admin once; an existing row is left untouched."""
    repo = UserRepository(conn)
    existing = await repo.get_by_username(BOOTSTRAP_ADMIN["usuario"])
    if existing:
        logger.info("Admin user already present (id=%s)", existing["id"])
        return existing["id"]
    password_hash = await hasher.hash(BOOTSTRAP_PASSWORD)
    admin_id = await repo.create(BOOTSTRAP_ADMIN, password_hash, None)
    logger.info("Admin user created (id=%s)", admin_id)
    return admin_id


async def seed_sample_data(conn, admin_id: int, num_personas: int, max_registros: int) -> None:
    personas = PersonaRepository(conn)
    registros = RegistroRepository(conn)

    for _ in tqdm(range(num_personas), desc="Generating personas"):
        dni = str(fake.unique.random_int(min=10_000_000, max=49_999_999))
        persona_id = await personas.insert({
            "nombre": fake.first_name(),
            "apellido": fake.last_name(),
            "dni": dni,
            "fecha_nacimiento": fake.date_of_birth(minimum_age=18, maximum_age=80),
            "nacionalidad": "Argentina",
            "direccion": fake.street_address(),
            "telefono": f"+54 9 11 {random.randint(1000, 9999)}-{random.randint(1000, 9999)}",
            "email": fake.unique.email(),
            "observaciones": fake.sentence(nb_words=8),
            "comisaria": random.choice(COMISARIAS),
            "fotos_adicionales": [],
        }, admin_id)

        for _ in range(random.randint(0, max_registros)):
            await registros.insert({
                "persona_id": persona_id,
                "tipo_delito": random.choice(TIPOS_DELITO),
                "lugar": fake.city(),
                "estado": random.choice(ESTADOS),
                "juzgado": f"Juzgado N° {random.randint(1, 30)}",
                "detalle": fake.paragraph(nb_sentences=2),
            }, admin_id)


async def seed(num_personas: int = 0, max_registros: int = 3):
    settings = get_settings()
    configure_logging(settings)
    await connect_db_pool(settings)
    pool = await get_pool()

    try:
        async with pool.acquire() as conn:
            admin_id = await ensure_admin(conn, PasswordHasher(rounds=settings.BCRYPT_ROUNDS))
            if num_personas > 0:
                async with conn.transaction():
                    await seed_sample_data(conn, admin_id, num_personas, max_registros)
                logger.info("Seeded %d personas", num_personas)
    finally:
        await close_db_pool()


def main():
    parser = argparse.ArgumentParser(description="Bootstrap the admin user and optional sample data.")
    parser.add_argument("--personas", type=int, default=0, help="number of fake personas to create")
    parser.add_argument("--max-registros", type=int, default=3, help="max registros per persona")
    args = parser.parse_args()
    asyncio.run(seed(args.personas, args.max_registros))


if __name__ == "__main__":
    main()
