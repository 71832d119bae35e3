#!/usr/bin/env python3
"""
Script para crear el primer super usuario del sistema

Uso:
    python create_superuser.py

Requiere DATABASE_URL y que las tablas existan (alembic upgrade head).
"""

import sys
import os
from getpass import getpass

# Agregar el directorio raíz al path para importar los módulos de la app
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy import or_
from sqlalchemy.orm import Session
from university_api.database import engine
from university_api.models.actor import SuperUser
from university_api.services.auth import auth_service


def create_superuser():
    """
    Crear un super usuario interactivamente
    """
    print("=" * 50)
    print("CREADOR DE SUPER USUARIO")
    print("=" * 50)
    print()

    username = input("Usuario: ").strip()
    email = input("Email: ").strip()
    if not username or not email:
        print("❌ Usuario y email son obligatorios")
        return False

    while True:
        password = getpass("Contraseña: ")
        if len(password) < 8:
            print("❌ La contraseña debe tener al menos 8 caracteres")
            continue
        if password != getpass("Confirmar contraseña: "):
            print("❌ Las contraseñas no coinciden")
            continue
        break

    db = Session(engine)

    try:
        existing = db.query(SuperUser).filter(
            or_(SuperUser.username == username, SuperUser.email == email)
        ).first()
        if existing:
            print(f"⚠️  Ya existe un super usuario con ese usuario o email (ID: {existing.id})")
            return False

        super_user = SuperUser(
            username=username,
            email=email,
            hashed_password=auth_service.get_password_hash(password),
        )
        db.add(super_user)
        db.commit()
        db.refresh(super_user)

        print()
        print("✅ Super usuario creado exitosamente!")
        print(f"  ID: {super_user.id}")
        print(f"  Usuario: {super_user.username}")
        print(f"  Email: {super_user.email}")
        print()
        return True

    except Exception as e:
        db.rollback()
        print(f"❌ Error al crear el usuario: {str(e)}")
        return False

    finally:
        db.close()


def main():
    try:
        sys.exit(0 if create_superuser() else 1)
    except KeyboardInterrupt:
        print("\n\n⚠️  Proceso cancelado por el usuario")
        sys.exit(1)


if __name__ == "__main__":
    main()
