import os
from dotenv import load_dotenv

# Cargar variables de entorno según el entorno
# En producción: Variables del sistema o .env.production
# En desarrollo: .env
env_file = '.env.production' if os.path.exists('.env.production') else '.env'
# load_dotenv no sobrescribe variables ya existentes en el sistema
load_dotenv(env_file, override=False)

MB = 1024 * 1024


class Settings:
    def __init__(self):
        # Configuración de la aplicación
        self.app_name = os.getenv("APP_NAME", "University Admin API")
        self.app_version = os.getenv("APP_VERSION", "1.0.0")

        # Configuración de base de datos
        self.database_url = os.getenv("DATABASE_URL")
        if not self.database_url:
            raise ValueError("DATABASE_URL environment variable is required")
        self.auto_create_tables = os.getenv("AUTO_CREATE_TABLES", "false").lower() == "true"

        # Configuración de debug
        self.debug = os.getenv("DEBUG", "false").lower() == "true"

        # Configuración de CORS
        self.allowed_origins = os.getenv("ALLOWED_ORIGINS", "*").split(",")

        # URL pública usada para construir enlaces de descarga
        self.public_base_url = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")
        self.api_prefix = "/api/university"

        # Configuración de directorios
        self.upload_dir = os.getenv("UPLOAD_DIR", "uploads")
        self.default_avatar_path = os.getenv(
            "DEFAULT_AVATAR_PATH",
            os.path.join(os.path.dirname(__file__), "static", "default-avatar.png"),
        )

        # Límites de archivos subidos
        self.max_activity_image_size = int(os.getenv("MAX_ACTIVITY_IMAGE_SIZE", 5 * MB))
        self.max_activity_images = int(os.getenv("MAX_ACTIVITY_IMAGES", 5))
        self.max_personal_photo_size = int(os.getenv("MAX_PERSONAL_PHOTO_SIZE", 2 * MB))
        self.max_task_file_size = int(os.getenv("MAX_TASK_FILE_SIZE", 10 * MB))
        self.max_task_files = int(os.getenv("MAX_TASK_FILES", 5))
        self.max_logo_size = int(os.getenv("MAX_LOGO_SIZE", 5 * MB))

        # Configuración de seguridad
        self.secret_key = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
        self.algorithm = os.getenv("ALGORITHM", "HS256")
        self.access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 120))
        self.refresh_token_expire_days = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", 30))
        self.bcrypt_rounds = int(os.getenv("BCRYPT_ROUNDS", 10))

        # Configuración de logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    def public_url(self, path: str) -> str:
        """
        Construye la URL pública de un recurso a partir de una ruta relativa.

        Args:
            path: Ruta absoluta dentro del servidor ('/uploads/tareas/x.pdf')

        Returns:
            str: URL con el prefijo PUBLIC_BASE_URL si está configurado
        """
        return f"{self.public_base_url}{path}"


settings = Settings()
