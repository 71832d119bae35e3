import pytest

from university_api.exceptions import UnauthorizedError
from university_api.models import ActorRole
from university_api.services.actors import ActorRef
from university_api.services.auth import auth_service

API = "/api/university"


def test_resolve_superuser_first(db, make_superuser):
    make_superuser(email="rectoria@utmat.edu.mx", password="clave-super")

    actor, role = auth_service.resolve(db, "rectoria@utmat.edu.mx", "clave-super")

    assert role == ActorRole.SUPERADMIN
    assert actor.email == "rectoria@utmat.edu.mx"


def test_resolve_falls_through_only_when_email_missing(db, make_directivo, make_personal):
    make_directivo(email="directora@utmat.edu.mx", password="clave-dir")
    make_personal(email="analista@utmat.edu.mx", password="clave-per")

    _, role = auth_service.resolve(db, "directora@utmat.edu.mx", "clave-dir")
    assert role == ActorRole.DIRECTIVO

    _, role = auth_service.resolve(db, "analista@utmat.edu.mx", "clave-per")
    assert role == ActorRole.PERSONAL


def test_wrong_password_is_terminal_across_tables(db, make_superuser, make_directivo):
    # El mismo email existe en dos tablas con contraseñas distintas
    make_superuser(email="compartido@utmat.edu.mx", password="clave-super")
    make_directivo(email="compartido@utmat.edu.mx", password="clave-dir")

    with pytest.raises(UnauthorizedError) as exc_info:
        auth_service.resolve(db, "compartido@utmat.edu.mx", "clave-dir")
    assert exc_info.value.status_code == 401


def test_unknown_email_and_wrong_password_share_message(db, make_personal):
    make_personal(email="analista@utmat.edu.mx", password="clave-per")

    with pytest.raises(UnauthorizedError) as unknown:
        auth_service.resolve(db, "nadie@utmat.edu.mx", "clave-per")
    with pytest.raises(UnauthorizedError) as wrong:
        auth_service.resolve(db, "analista@utmat.edu.mx", "otra")

    assert unknown.value.detail == wrong.value.detail == "Credenciales inválidas"


def test_token_carries_tagged_reference(make_directivo):
    directivo = make_directivo()
    tokens = auth_service.create_actor_tokens(directivo, ActorRole.DIRECTIVO)

    assert auth_service.verify_token(tokens["access_token"]) == ActorRef(directivo.id, ActorRole.DIRECTIVO)
    with pytest.raises(UnauthorizedError):
        auth_service.verify_token(tokens["refresh_token"])


def test_create_superuser_and_duplicate(client):
    payload = {"username": "admin", "email": "admin@utmat.edu.mx", "password": "Secreta123!"}

    response = client.post(f"{API}/create-superuser", json=payload)
    assert response.status_code == 201
    assert response.json()["success"] is True

    response = client.post(f"{API}/create-superuser", json=payload)
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["error"] == "El usuario o email ya existe"


def test_login_is_superuser_only(client, make_superuser, make_personal):
    make_superuser(email="admin@utmat.edu.mx", password="clave-super")
    make_personal(email="analista@utmat.edu.mx", password="clave-per")

    ok = client.post(f"{API}/login", json={"email": "admin@utmat.edu.mx", "password": "clave-super"})
    assert ok.status_code == 200
    assert ok.json()["user"]["username"] == "admin"
    assert ok.json()["access_token"]

    denied = client.post(f"{API}/login", json={"email": "analista@utmat.edu.mx", "password": "clave-per"})
    assert denied.status_code == 401
    assert denied.json()["error"] == "Credenciales inválidas"


def test_login_requires_email_and_password(client):
    response = client.post(f"{API}/login-general", json={"email": "admin@utmat.edu.mx"})

    assert response.status_code == 400
    assert response.json()["error"] == "Email y contraseña son requeridos"


def test_login_general_returns_profile(client, make_personal):
    persona = make_personal(email="analista@utmat.edu.mx", password="clave-per")

    response = client.post(
        f"{API}/login-general", json={"email": "analista@utmat.edu.mx", "password": "clave-per"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["userType"] == "personal"
    assert body["user"]["id"] == persona.id
    assert body["user"]["nombre"] == "Carlos Ruiz"
    assert body["user"]["puesto"] == "Analista"
    assert body["user"]["direccion_nombre"] == "Dirección de Carlos Ruiz"


def test_me_and_refresh(client, make_directivo):
    make_directivo(email="directora@utmat.edu.mx", password="clave-dir")
    login = client.post(
        f"{API}/login-general", json={"email": "directora@utmat.edu.mx", "password": "clave-dir"}
    ).json()

    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {login['access_token']}"})
    assert me.status_code == 200
    assert me.json()["userType"] == "directivo"
    assert me.json()["user"]["cargo"] == "Directora"

    refreshed = client.post(f"{API}/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert refreshed.status_code == 200
    assert auth_service.verify_token(refreshed.json()["access_token"]).role == ActorRole.DIRECTIVO


def test_me_without_token(client):
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 401
