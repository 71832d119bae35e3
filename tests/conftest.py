import io
import os
import shutil
import tempfile

# La configuración se lee al importar el paquete: el entorno va primero
_TMP_ROOT = tempfile.mkdtemp(prefix="university-api-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_ROOT, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_ROOT, "uploads")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DEBUG"] = "true"
os.environ["PUBLIC_BASE_URL"] = ""
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import Headers, UploadFile

from university_api.database import SessionLocal, create_tables, drop_tables
from university_api.models import Direccion, Directivo, Personal, SuperUser
from university_api.services.auth import auth_service
from university_api.utils.storage import blob_store

PASSWORD = "Secreta123!"


@pytest.fixture(autouse=True)
def schema():
    create_tables()
    blob_store.ensure_directories()
    yield
    drop_tables()
    shutil.rmtree(blob_store.root, ignore_errors=True)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from university_api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_direccion(db):
    def _make(nombre="Dirección Académica"):
        direccion = Direccion(nombre=nombre)
        db.add(direccion)
        db.commit()
        db.refresh(direccion)
        return direccion
    return _make


@pytest.fixture
def make_superuser(db):
    def _make(username="admin", email="admin@utmat.edu.mx", password=PASSWORD):
        user = SuperUser(
            username=username,
            email=email,
            hashed_password=auth_service.get_password_hash(password),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_directivo(db, make_direccion):
    def _make(nombre="Laura Méndez", email="laura.mendez@utmat.edu.mx", password=PASSWORD,
              cargo="Directora", direccion=None):
        direccion = direccion or make_direccion(f"Dirección de {nombre}")
        directivo = Directivo(
            nombre_completo=nombre,
            cargo=cargo,
            direccion_id=direccion.id,
            email=email,
            hashed_password=auth_service.get_password_hash(password),
        )
        db.add(directivo)
        db.commit()
        db.refresh(directivo)
        return directivo
    return _make


@pytest.fixture
def make_personal(db, make_direccion):
    def _make(nombre="Carlos Ruiz", email="carlos.ruiz@utmat.edu.mx", password=PASSWORD,
              puesto="Analista", direccion=None, foto_perfil=None):
        direccion = direccion or make_direccion(f"Dirección de {nombre}")
        persona = Personal(
            nombre_completo=nombre,
            puesto=puesto,
            direccion_id=direccion.id,
            email=email,
            hashed_password=auth_service.get_password_hash(password),
            foto_perfil=foto_perfil,
        )
        db.add(persona)
        db.commit()
        db.refresh(persona)
        return persona
    return _make


@pytest.fixture
def make_upload():
    """UploadFile en memoria, como lo entrega FastAPI a los servicios"""
    def _make(filename="evidencia.pdf", content=b"%PDF-1.4 contenido", content_type="application/pdf"):
        return UploadFile(
            file=io.BytesIO(content),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )
    return _make
