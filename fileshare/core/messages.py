"""User-facing messages (the product UI is in Spanish)."""

FILE_NOT_FOUND = "Archivo no encontrado"
FILE_NOT_AVAILABLE = "Archivo no encontrado o no disponible"
NOT_FOUND = "Recurso no encontrado"
INVALID_REQUEST = "Solicitud no válida"
INTERNAL_ERROR = "Error interno del servidor"
DOWNLOAD_LINK_ERROR = "Error generando enlace de descarga"
LIMIT_CHECK_FAILED = "Error verificando límites de descarga, procediendo..."
FILENAME_REQUIRED = "Se requiere un nombre de archivo"
FILE_TOO_LARGE = "El archivo supera el tamaño máximo de {max_mb} MB"
UPLOAD_FAILED = "Error al subir el archivo. Inténtalo de nuevo."


def limit_reached(max_attempts: int) -> str:
    return (
        f"Has alcanzado el límite de {max_attempts} descargas por día para este archivo. "
        "Inténtalo mañana."
    )


def download_started(remaining: int) -> str:
    return f"Descarga iniciada. Te quedan {remaining} descargas para este archivo."
