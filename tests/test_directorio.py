from university_api.services.auth import auth_service

API = "/api/university"


def test_health_and_root(client):
    health = client.get("/health").json()
    root = client.get("/").json()

    assert health["status"] == "healthy"
    assert health["database"] == "connected"
    assert root["api"] == API


def test_connection_check(client):
    assert client.get(f"{API}/test").json()["dbTest"] == 2


def test_direcciones(client):
    created = client.post(f"{API}/direcciones", json={"nombre": "Dirección Académica"})
    duplicate = client.post(f"{API}/direcciones", json={"nombre": "Dirección Académica"})
    blank = client.post(f"{API}/direcciones", json={"nombre": "  "})

    assert created.status_code == 201
    assert duplicate.json()["error"] == "Esta dirección ya existe"
    assert blank.json()["error"] == "El nombre es requerido"
    assert [d["nombre"] for d in client.get(f"{API}/direcciones").json()["data"]] == ["Dirección Académica"]


def test_directivo_crud(client, db, make_direccion):
    direccion = make_direccion()
    payload = {
        "nombre_completo": "Laura Méndez",
        "cargo": "Directora",
        "direccion_id": direccion.id,
        "email": "laura@utmat.edu.mx",
        "password": "clave-dir",
    }

    created = client.post(f"{API}/directivos", json=payload)
    assert created.status_code == 201
    directivo_id = created.json()["directivoId"]

    assert client.post(f"{API}/directivos", json=payload).json()["error"] == "El email ya está registrado"

    update = {**payload, "cargo": "Directora General"}
    del update["password"]
    assert client.put(f"{API}/directivos/{directivo_id}", json=update).status_code == 200

    listed = client.get(f"{API}/directivos").json()["data"]
    assert listed[0]["cargo"] == "Directora General"
    assert listed[0]["direccion_nombre"] == "Dirección Académica"

    # La contraseña se conserva cuando no se envía
    login = client.post(f"{API}/login-general", json={"email": "laura@utmat.edu.mx", "password": "clave-dir"})
    assert login.status_code == 200

    assert client.delete(f"{API}/directivos/{directivo_id}").status_code == 200
    assert client.delete(f"{API}/directivos/{directivo_id}").json()["error"] == "Directivo no encontrado"


def test_directivo_requires_existing_direccion(client):
    response = client.post(f"{API}/directivos", json={
        "nombre_completo": "Laura Méndez",
        "cargo": "Directora",
        "direccion_id": 999,
        "email": "laura@utmat.edu.mx",
        "password": "clave-dir",
    })

    assert response.status_code == 400
    assert response.json()["error"] == "Dirección no encontrada"


def test_estadisticas(client, make_superuser, make_directivo, make_personal):
    admin = make_superuser()
    make_directivo()
    make_personal()
    client.post(f"{API}/comunicados", json={
        "titulo": "Aviso", "contenido": "Texto", "publicado_por_id": admin.id,
    })

    data = client.get(f"{API}/estadisticas").json()["data"]

    assert data == {"usuarios": 1, "direcciones": 2, "directivos": 1, "personal": 1, "comunicados": 1}


def test_superusers_listing(client, make_superuser):
    make_superuser()
    make_superuser(username="soporte", email="soporte@utmat.edu.mx")

    users = client.get(f"{API}/superusers").json()["data"]

    assert {u["username"] for u in users} == {"admin", "soporte"}
    assert all("hashed_password" not in u for u in users)
    assert auth_service.verify_password("Secreta123!", "no-es-un-hash") is False
