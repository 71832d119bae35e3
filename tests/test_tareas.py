import asyncio
import json
from datetime import date, datetime

import pytest

from university_api.exceptions import ValidationError
from university_api.models import Tarea, TareaArchivo, TareaAsignacion, TareaHistorial
from university_api.services.auth import auth_service
from university_api.services.tareas import TareaService, calcular_progreso
from university_api.utils.storage import blob_store

API = "/api/university"


@pytest.fixture
def admin(make_superuser):
    return make_superuser()


@pytest.fixture
def equipo(make_personal, make_direccion):
    direccion = make_direccion("Dirección de Planeación")
    return [
        make_personal(nombre="Ana Torres", email="ana@utmat.edu.mx", direccion=direccion),
        make_personal(nombre="Beto Lara", email="beto@utmat.edu.mx", direccion=direccion),
        make_personal(nombre="Ceci Ochoa", email="ceci@utmat.edu.mx", direccion=direccion),
    ]


def _asignaciones(personas):
    return json.dumps([{"usuario_id": p.id, "usuario_tipo": "personal"} for p in personas])


def crear_tarea(client, creador, personas, titulo="Informe trimestral", fecha="2026-05-01", files=None):
    data = {
        "titulo": titulo,
        "descripcion": "Entregar en PDF",
        "fecha_entrega": fecha,
        "creado_por_id": str(creador.id),
        "creado_por_tipo": "superadmin",
        "asignaciones": _asignaciones(personas),
    }
    return client.post(f"{API}/tareas", data=data, files=files)


def asignacion_de(client, tarea_id, persona):
    detalle = client.get(f"{API}/tareas/{tarea_id}").json()["data"]
    return next(a["id"] for a in detalle["asignaciones"] if a["usuario_id"] == persona.id)


def test_calcular_progreso_rounds_half_up():
    assert calcular_progreso(0, 0) == 0
    assert calcular_progreso(1, 3) == 33
    assert calcular_progreso(2, 3) == 67
    assert calcular_progreso(1, 8) == 13
    assert calcular_progreso(4, 4) == 100


def test_create_task_assigns_everyone_pending(client, db, admin, equipo):
    response = crear_tarea(
        client, admin, equipo,
        files=[("archivos", ("guia.pdf", b"%PDF-1.4 guia", "application/pdf"))],
    )

    assert response.status_code == 201
    body = response.json()
    assert body["asignaciones"] == 3
    assert body["archivos"] == 1

    tarea_id = body["tareaId"]
    estados = [a.estado for a in db.query(TareaAsignacion).filter_by(tarea_id=tarea_id)]
    assert estados == ["pendiente"] * 3

    historial = db.query(TareaHistorial).filter_by(tarea_id=tarea_id).all()
    assert [h.accion for h in historial] == ["creada"]
    assert historial[0].usuario_tipo == "superadmin"
    assert historial[0].usuario_id == admin.id

    archivo = db.query(TareaArchivo).filter_by(tarea_id=tarea_id).one()
    assert archivo.nombre_original == "guia.pdf"
    assert archivo.nombre_archivo.startswith("tarea-")
    assert blob_store.list("tareas") == [archivo.nombre_archivo]


@pytest.mark.parametrize("asignaciones, mensaje", [
    ("no es json", "Formato de asignaciones inválido"),
    ('[{"usuario_tipo": "personal"}]', "Formato de asignaciones inválido"),
    ("[]", "Debe asignar al menos un usuario"),
])
def test_create_task_rejects_bad_assignments(client, db, admin, asignaciones, mensaje):
    response = client.post(
        f"{API}/tareas",
        data={
            "titulo": "Informe",
            "fecha_entrega": "2026-05-01",
            "creado_por_id": str(admin.id),
            "asignaciones": asignaciones,
        },
        files=[("archivos", ("guia.pdf", b"%PDF-1.4", "application/pdf"))],
    )

    assert response.status_code == 400
    assert response.json()["error"] == mensaje
    assert db.query(Tarea).count() == 0
    assert blob_store.list("tareas") == []


def test_create_task_requires_existing_assignee(client, db, admin):
    response = client.post(
        f"{API}/tareas",
        data={
            "titulo": "Informe",
            "fecha_entrega": "2026-05-01",
            "creado_por_id": str(admin.id),
            "asignaciones": json.dumps([{"usuario_id": 999, "usuario_tipo": "personal"}]),
        },
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Usuario personal con ID 999 no encontrado"
    assert db.query(Tarea).count() == 0


def test_create_task_requires_fields(client, admin, equipo):
    response = client.post(
        f"{API}/tareas",
        data={"titulo": "Informe", "asignaciones": _asignaciones(equipo)},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Todos los campos son requeridos"


def test_failed_insert_discards_stored_files(db, admin, equipo, make_upload, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("fallo al registrar historial")

    monkeypatch.setattr(TareaService, "_log", _boom)
    service = TareaService(db)

    with pytest.raises(RuntimeError):
        asyncio.run(service.create_task(
            titulo="Informe",
            descripcion=None,
            fecha_entrega="2026-05-01",
            creado_por_id=admin.id,
            creado_por_tipo="superadmin",
            asignaciones=_asignaciones(equipo),
            archivos=[make_upload("a.pdf"), make_upload("b.pdf")],
        ))

    assert blob_store.list("tareas") == []
    assert db.query(Tarea).count() == 0
    assert db.query(TareaAsignacion).count() == 0


def test_progress_follows_completions(client, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo).json()["tareaId"]

    tarea = client.get(f"{API}/tareas").json()["data"][0]
    assert tarea["total_asignaciones"] == 3
    assert tarea["pendientes"] == 3
    assert tarea["completadas"] == 0
    assert tarea["progreso"] == 0

    for persona in equipo[:2]:
        response = client.post(
            f"{API}/tareas/completar/{asignacion_de(client, tarea_id, persona)}",
            data={"comentarios": "Entregado"},
        )
        assert response.status_code == 200

    tarea = client.get(f"{API}/tareas").json()["data"][0]
    assert tarea["completadas"] == 2
    assert tarea["progreso"] == 67
    assert [a["estado"] for a in tarea["asignaciones"]] == ["completada", "completada", "pendiente"]


def test_complete_requires_comment_or_file(client, db, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo[:1]).json()["tareaId"]
    asignacion_id = asignacion_de(client, tarea_id, equipo[0])

    response = client.post(f"{API}/tareas/completar/{asignacion_id}", data={"comentarios": "   "})

    assert response.status_code == 400
    assert response.json()["error"] == "Debes agregar una descripción o un archivo para completar la tarea"
    assert db.query(TareaHistorial).filter_by(tarea_id=tarea_id).count() == 1
    assert db.query(TareaArchivo).count() == 0
    assert db.get(TareaAsignacion, asignacion_id).estado == "pendiente"


def test_complete_with_files_only(client, db, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo[:1]).json()["tareaId"]
    asignacion_id = asignacion_de(client, tarea_id, equipo[0])

    response = client.post(
        f"{API}/tareas/completar/{asignacion_id}",
        files=[
            ("archivos", ("evidencia.pdf", b"%PDF-1.4 a", "application/pdf")),
            ("archivos", ("foto.jpg", b"\xff\xd8\xff", "image/jpeg")),
        ],
    )

    assert response.status_code == 200
    assert response.json()["message"] == "¡Felicidades! Tarea completada exitosamente"
    assert response.json()["data"] == {"tarea": "Informe trimestral", "comentarios": None, "archivos": 2}

    ultimo = (
        db.query(TareaHistorial)
        .filter_by(tarea_id=tarea_id, accion="completada")
        .one()
    )
    assert ultimo.descripcion == "Tarea completada y 2 archivo(s)"
    assert ultimo.usuario_id == equipo[0].id
    assert ultimo.usuario_tipo == "personal"
    assert db.query(TareaArchivo).filter_by(tarea_id=tarea_id).count() == 2


def test_complete_twice_overwrites_comment(client, db, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo[:1]).json()["tareaId"]
    asignacion_id = asignacion_de(client, tarea_id, equipo[0])

    client.post(f"{API}/tareas/completar/{asignacion_id}", data={"comentarios": "Primera versión"})
    response = client.post(f"{API}/tareas/completar/{asignacion_id}", data={"comentarios": "Versión final"})

    assert response.status_code == 200
    asignacion = db.get(TareaAsignacion, asignacion_id)
    assert asignacion.estado == "completada"
    assert asignacion.comentarios == "Versión final"
    assert asignacion.fecha_completado is not None


def test_start_assignment(client, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo[:1]).json()["tareaId"]
    asignacion_id = asignacion_de(client, tarea_id, equipo[0])

    first = client.post(f"{API}/tareas/iniciar/{asignacion_id}")
    again = client.post(f"{API}/tareas/iniciar/{asignacion_id}")
    assert first.json()["data"]["estado"] == "en_progreso"
    assert again.json()["data"]["estado"] == "en_progreso"

    historial = client.get(f"{API}/tareas/{tarea_id}").json()["data"]["historial"]
    assert [h["accion"] for h in historial].count("en_progreso") == 1

    client.post(f"{API}/tareas/completar/{asignacion_id}", data={"comentarios": "Listo"})
    response = client.post(f"{API}/tareas/iniciar/{asignacion_id}")
    assert response.status_code == 400
    assert response.json()["error"] == "La tarea ya fue completada"


def test_update_assignment_state_needs_actor(client, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo[:1]).json()["tareaId"]
    asignacion_id = asignacion_de(client, tarea_id, equipo[0])

    response = client.put(f"{API}/tareas/asignacion/{asignacion_id}", json={"estado": "completada"})

    assert response.status_code == 400
    assert response.json()["error"] == "Se requiere el usuario que realiza la actualización"


def test_update_assignment_state_from_token_or_body(client, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo[:1]).json()["tareaId"]
    asignacion_id = asignacion_de(client, tarea_id, equipo[0])
    token = auth_service.create_actor_tokens(admin, admin.role)["access_token"]

    response = client.put(
        f"{API}/tareas/asignacion/{asignacion_id}",
        json={"estado": "completada", "comentarios": "Revisado"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200

    # Se permite volver a abrir una asignación completada
    response = client.put(
        f"{API}/tareas/asignacion/{asignacion_id}",
        json={"estado": "pendiente", "usuario_id": admin.id, "usuario_tipo": "superadmin"},
    )
    assert response.status_code == 200

    detalle = client.get(f"{API}/tareas/{tarea_id}").json()["data"]
    assert detalle["asignaciones"][0]["estado"] == "pendiente"
    assert detalle["asignaciones"][0]["fecha_completado"] is None
    actualizaciones = [h for h in detalle["historial"] if h["accion"] == "actualizacion"]
    assert len(actualizaciones) == 2
    assert {h["usuario_nombre"] for h in actualizaciones} == {"admin"}
    assert "Estado de asignación actualizado a: pendiente" in {h["descripcion"] for h in actualizaciones}


def test_update_assignment_state_rejects_unknown_state(client, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo[:1]).json()["tareaId"]
    asignacion_id = asignacion_de(client, tarea_id, equipo[0])

    response = client.put(
        f"{API}/tareas/asignacion/{asignacion_id}",
        json={"estado": "archivada", "usuario_id": admin.id, "usuario_tipo": "superadmin"},
    )
    assert response.status_code == 400


def test_assignee_view_lists_open_first(db, admin, equipo):
    persona = equipo[0]
    service = TareaService(db)

    def crear(titulo, fecha):
        return asyncio.run(service.create_task(
            titulo=titulo,
            descripcion=None,
            fecha_entrega=fecha,
            creado_por_id=admin.id,
            creado_por_tipo="superadmin",
            asignaciones=_asignaciones([persona]),
        ))["tareaId"]

    vencida = crear("Cerrada", "2026-03-01")
    futura = crear("Lejana", "2026-05-01")
    proxima = crear("Próxima", "2026-04-01")

    def asignacion(tarea_id):
        return db.query(TareaAsignacion).filter_by(tarea_id=tarea_id).one().id

    asyncio.run(service.complete_assignment(asignacion(vencida), "Hecho"))
    service.start_assignment(asignacion(proxima))

    tareas = service.list_tasks_for_assignee(persona.id, "personal", hoy=date(2026, 3, 31))

    assert [t["titulo"] for t in tareas] == ["Próxima", "Lejana", "Cerrada"]
    assert [t["asignacion_estado"] for t in tareas] == ["en_progreso", "pendiente", "completada"]
    assert [t["dias_restantes"] for t in tareas] == [1, 31, -30]
    assert tareas[0]["creado_por_nombre"] == "admin"
    assert service.count_pending(persona.id) == 2
    assert futura in {t["id"] for t in tareas}


def test_assignee_endpoints(client, admin, equipo):
    crear_tarea(client, admin, equipo[:1])

    listado = client.get(f"{API}/tareas/personal/{equipo[0].id}")
    conteo = client.get(f"{API}/tareas/personal/{equipo[0].id}/conteo")
    ajeno = client.get(f"{API}/tareas/personal/{equipo[1].id}/conteo")

    assert len(listado.json()["data"]) == 1
    assert conteo.json()["data"] == {"pendientes": 1}
    assert ajeno.json()["data"] == {"pendientes": 0}


def test_edit_task_replaces_assignments(client, db, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo[:2]).json()["tareaId"]

    response = client.put(
        f"{API}/tareas/{tarea_id}",
        data={
            "titulo": "Informe anual",
            "fecha_entrega": "2026-06-15",
            "asignaciones": _asignaciones(equipo[2:]),
        },
    )

    assert response.status_code == 200
    assert response.json()["asignaciones"] == 1
    detalle = client.get(f"{API}/tareas/{tarea_id}").json()["data"]
    assert detalle["titulo"] == "Informe anual"
    assert detalle["fecha_entrega"] == "2026-06-15"
    assert [a["usuario_id"] for a in detalle["asignaciones"]] == [equipo[2].id]
    assert [h["accion"] for h in detalle["historial"]] == ["creada"]


def test_edit_task_validation(client, admin, equipo):
    tarea_id = crear_tarea(client, admin, equipo[:1]).json()["tareaId"]

    missing = client.put(f"{API}/tareas/999", data={"titulo": "X", "fecha_entrega": "2026-06-15"})
    blank = client.put(f"{API}/tareas/{tarea_id}", data={"titulo": " ", "fecha_entrega": "2026-06-15"})

    assert missing.status_code == 404
    assert blank.status_code == 400
    assert blank.json()["error"] == "Título y fecha de entrega son requeridos"


def test_delete_task_removes_rows_and_files(client, db, admin, equipo):
    tarea_id = crear_tarea(
        client, admin, equipo,
        files=[
            ("archivos", ("a.pdf", b"%PDF-1.4 a", "application/pdf")),
            ("archivos", ("b.pdf", b"%PDF-1.4 b", "application/pdf")),
        ],
    ).json()["tareaId"]
    assert len(blob_store.list("tareas")) == 2

    response = client.delete(f"{API}/tareas/{tarea_id}")

    assert response.status_code == 200
    assert response.json()["archivosEliminados"] == 2
    assert response.json()["titulo"] == "Informe trimestral"
    assert blob_store.list("tareas") == []
    assert db.query(Tarea).count() == 0
    assert db.query(TareaAsignacion).count() == 0
    assert db.query(TareaHistorial).count() == 0


def test_delete_missing_task_leaves_files(client, admin, equipo):
    crear_tarea(
        client, admin, equipo[:1],
        files=[("archivos", ("a.pdf", b"%PDF-1.4 a", "application/pdf"))],
    )

    response = client.delete(f"{API}/tareas/999")

    assert response.status_code == 404
    assert response.json()["error"] == "Tarea no encontrada"
    assert len(blob_store.list("tareas")) == 1


def test_delete_attachment(client, db, admin, equipo):
    tarea_id = crear_tarea(
        client, admin, equipo[:1],
        files=[("archivos", ("a.pdf", b"%PDF-1.4 a", "application/pdf"))],
    ).json()["tareaId"]
    archivo = db.query(TareaArchivo).filter_by(tarea_id=tarea_id).one()

    served = client.get(f"{API}/tareas/archivo/{archivo.nombre_archivo}")
    assert served.status_code == 200
    assert served.content == b"%PDF-1.4 a"

    response = client.delete(f"{API}/tareas/archivo/{archivo.id}")
    assert response.status_code == 200
    assert response.json()["nombre_original"] == "a.pdf"
    assert blob_store.list("tareas") == []
    assert client.get(f"{API}/tareas/archivo/{archivo.nombre_archivo}").status_code == 404


def test_available_assignees(client, equipo):
    response = client.get(f"{API}/tareas/usuarios-disponibles")

    assert response.json()["metadata"]["total"] == 3
    assert [u["nombre"] for u in response.json()["data"]] == ["Ana Torres", "Beto Lara", "Ceci Ochoa"]


def test_unknown_assignee_type_is_rejected(db):
    with pytest.raises(ValidationError):
        TareaService(db).count_pending(1, "superadmin")


def test_list_all_orders_by_due_date_then_newest(client, db, admin, equipo):
    primera = crear_tarea(client, admin, equipo[:1], titulo="Mayo antigua", fecha="2026-05-01").json()["tareaId"]
    crear_tarea(client, admin, equipo[:1], titulo="Abril", fecha="2026-04-01")
    segunda = crear_tarea(client, admin, equipo[:1], titulo="Mayo reciente", fecha="2026-05-01").json()["tareaId"]
    crear_tarea(client, admin, equipo[:1], titulo="Junio", fecha="2026-06-01")

    # La fecha de creación decide el empate, no el id
    db.get(Tarea, primera).fecha_creacion = datetime(2026, 1, 2, 9, 0)
    db.get(Tarea, segunda).fecha_creacion = datetime(2026, 1, 1, 9, 0)
    db.commit()

    titulos = [t["titulo"] for t in client.get(f"{API}/tareas").json()["data"]]

    assert titulos == ["Abril", "Mayo antigua", "Mayo reciente", "Junio"]


def test_assignee_view_orders_closed_by_due_date(db, admin, equipo):
    persona = equipo[0]
    service = TareaService(db)

    def crear_y_completar(titulo, fecha):
        tarea_id = asyncio.run(service.create_task(
            titulo=titulo,
            descripcion=None,
            fecha_entrega=fecha,
            creado_por_id=admin.id,
            creado_por_tipo="superadmin",
            asignaciones=_asignaciones([persona]),
        ))["tareaId"]
        asignacion_id = db.query(TareaAsignacion).filter_by(tarea_id=tarea_id).one().id
        asyncio.run(service.complete_assignment(asignacion_id, "Hecho"))

    crear_y_completar("Cerrada tarde", "2026-03-20")
    crear_y_completar("Cerrada pronto", "2026-02-10")
    asyncio.run(service.create_task(
        titulo="Abierta",
        descripcion=None,
        fecha_entrega="2026-12-01",
        creado_por_id=admin.id,
        creado_por_tipo="superadmin",
        asignaciones=_asignaciones([persona]),
    ))

    tareas = service.list_tasks_for_assignee(persona.id, "personal", hoy=date(2026, 3, 1))

    assert [t["titulo"] for t in tareas] == ["Abierta", "Cerrada pronto", "Cerrada tarde"]


@pytest.mark.parametrize("body, campo", [
    ({"estado": "completada", "usuario_id": 1}, "usuario_tipo"),
    ({"estado": "completada", "usuario_tipo": "superadmin"}, "usuario_id"),
])
def test_update_assignment_state_rejects_partial_actor(client, admin, equipo, body, campo):
    tarea_id = crear_tarea(client, admin, equipo[:1]).json()["tareaId"]
    asignacion_id = asignacion_de(client, tarea_id, equipo[0])
    token = auth_service.create_actor_tokens(admin, admin.role)["access_token"]

    # El token no reemplaza a un actor incompleto en el cuerpo
    response = client.put(
        f"{API}/tareas/asignacion/{asignacion_id}",
        json=body,
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 400
    assert f"'{campo}' es requerido" in response.json()["error"]
    detalle = client.get(f"{API}/tareas/{tarea_id}").json()["data"]
    assert detalle["asignaciones"][0]["estado"] == "pendiente"
