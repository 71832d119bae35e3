"""
Resolución de referencias polimórficas a actores.

Un actor se identifica por el par (id, rol); cada rol vive en una tabla
distinta con su propio espacio de claves, por lo que la base de datos no
puede validar la referencia. Todas las búsquedas pasan por la tabla
``ACTOR_MODELS``.
"""
from collections import defaultdict
from typing import Dict, Iterable, NamedTuple, Optional, Union

from sqlalchemy.orm import Session, joinedload

from university_api.models.actor import ActorRole, Directivo, Personal, SuperUser

Actor = Union[SuperUser, Directivo, Personal]

ACTOR_MODELS = {
    ActorRole.SUPERADMIN: SuperUser,
    ActorRole.DIRECTIVO: Directivo,
    ActorRole.PERSONAL: Personal,
}


class ActorRef(NamedTuple):
    id: int
    role: ActorRole

    @classmethod
    def of(cls, actor_id, role) -> "ActorRef":
        return cls(int(actor_id), ActorRole(role))


def _query(db: Session, role: ActorRole):
    model = ACTOR_MODELS[role]
    query = db.query(model)
    if hasattr(model, "direccion"):
        query = query.options(joinedload(model.direccion))
    return query


class ActorDirectory:
    """Búsquedas de actores por referencia etiquetada"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, ref: ActorRef) -> Optional[Actor]:
        model = ACTOR_MODELS[ref.role]
        return _query(self.db, ref.role).filter(model.id == ref.id).first()

    def exists(self, ref: ActorRef) -> bool:
        model = ACTOR_MODELS[ref.role]
        return self.db.query(model.id).filter(model.id == ref.id).first() is not None

    def find_by_email(self, role: ActorRole, email: str) -> Optional[Actor]:
        model = ACTOR_MODELS[role]
        return _query(self.db, role).filter(model.email == email).first()

    def display_name(self, ref: ActorRef) -> Optional[str]:
        actor = self.get(ref)
        return actor.nombre if actor else None

    def resolve_many(self, refs: Iterable[ActorRef]) -> Dict[ActorRef, Actor]:
        """Carga varios actores con una consulta por rol"""
        ids_by_role = defaultdict(set)
        for ref in refs:
            ids_by_role[ref.role].add(ref.id)

        resolved: Dict[ActorRef, Actor] = {}
        for role, ids in ids_by_role.items():
            model = ACTOR_MODELS[role]
            for actor in _query(self.db, role).filter(model.id.in_(ids)).all():
                resolved[ActorRef(actor.id, role)] = actor
        return resolved
