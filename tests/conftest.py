"""
Configuración compartida para tests pytest
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models.admin_user import AdminUser
from app.models.template import Template
from app.services.auth import get_current_admin

from tests.factories import make_registro


# Base de datos en memoria para tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Crear base de datos de test y limpiarla después"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def override_get_db(db):
    """Override de get_db para tests"""
    def _get_db():
        try:
            yield db
        finally:
            pass
    return _get_db


@pytest.fixture
def client(override_get_db):
    """Cliente HTTP con la base de test"""
    from app.main import app

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db):
    admin = AdminUser(
        id=1,
        name="admin",
        email="admin@example.com",
        hashed_password="hashed",
        is_active=True,
        is_super_admin=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def admin_client(client, admin_user):
    """Cliente con un administrador autenticado"""
    from app.main import app

    app.dependency_overrides[get_current_admin] = lambda: admin_user
    return client


@pytest.fixture
def sample_template(db):
    """Evento de prueba"""
    template = Template(id=1, name="Graduación 2026", data=[])
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@pytest.fixture
def other_template(db):
    template = Template(id=2, name="Graduación Nocturna", data=[])
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@pytest.fixture
def docente(db, sample_template):
    """Docente registrado en el evento"""
    return make_registro(db, "María Gómez", "docente", sample_template.id, codigo_acceso="DOC123")


@pytest.fixture
def invitado(db, sample_template):
    """Invitado registrado en el evento"""
    return make_registro(db, "Juan Lopez", "invitado", sample_template.id, codigo_acceso="INV123")


@pytest.fixture
def estudiante(db, sample_template):
    return make_registro(db, "Pedro Ruiz", "estudiante", sample_template.id, codigo_acceso="EST123")
