"""Seed the database with demo clients, personnel, a project and a few orders."""

import asyncio

from app.db.engine import async_session_factory, create_tables
from app.db import crud
from app.models import Person, User
from app.schemas import ProjectCreate, WorkOrderCreate
from app.services.auth import AuthContext, hash_password
from app.services.projects import create_project
from app.services.work_orders import create_order

DEMO_PASSWORD = "demo123"


async def _person(db, full_name, national_id, email, role):
    person = Person(full_name=full_name, national_id=national_id, email=email, role=role)
    db.add(person)
    await db.flush()
    db.add(User(id=person.id, email=email, display_name=full_name,
                password_hash=hash_password(DEMO_PASSWORD), role=role))
    await db.commit()
    return person


async def seed():
    await create_tables()

    async with async_session_factory() as db:
        if await crud.get_user_by_email(db, "admin@icsa.cl"):
            print("Demo data already exists, skipping seed.")
            return

        admin = await _person(db, "Administrador ICSA", "11.111.111-1", "admin@icsa.cl", "admin")
        tech = await _person(db, "Juan Pérez", "12.345.678-5", "jperez@icsa.cl", "technician")
        print(f"Created admin {admin.email} and technician {tech.email} (password: {DEMO_PASSWORD})")

        client = await crud.create_client(
            db,
            display_name="Edificio Los Álamos",
            legal_name="Comunidad Edificio Los Álamos",
            national_id="10.000.013-K",
            address="Av. Providencia 1234, Santiago",
            email="administracion@losalamos.cl",
        )
        print(f"Created client: {client.display_name} (id: {client.id})")

        auth = AuthContext(user_id=admin.id, role="admin", email=admin.email, display_name=admin.full_name)
        project = await create_project(db, ProjectCreate(
            name="Cableado estructurado torre A",
            client_id=client.id,
            team=[{"id": tech.id, "name": tech.full_name}],
        ), auth)
        print(f"Created project: {project.name} (id: {project.id})")

        for description in ("Instalación de 12 puntos de red piso 3", "Certificación de enlaces piso 4"):
            order = await create_order(db, WorkOrderCreate(
                client_id=client.id,
                project_id=project.id,
                floor="3",
                description=description,
                technician_id=tech.id,
                team=[{"id": tech.id, "name": tech.full_name}],
            ), auth)
            print(f"Created work order #{order.folio}")

    print("\nSeed complete. Start the server with: uvicorn app.main:app --reload")


if __name__ == "__main__":
    asyncio.run(seed())
