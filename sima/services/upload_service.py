import logging
import secrets
import time
from pathlib import Path

import aiofiles
from fastapi import UploadFile

from sima.core.config import Settings
from sima.core.exceptions import ValidationException

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


class UploadService:
    """Write-once photo store on local disk, keyed by generated file names."""

    def __init__(self, settings: Settings):
        self.directory = Path(settings.UPLOAD_DIR).resolve()
        self.max_size = settings.UPLOAD_MAX_SIZE
        self.max_files = settings.UPLOAD_MAX_FILES
        self.allowed_extensions = settings.allowed_extensions

    @staticmethod
    def _new_name(ext: str) -> str:
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{ext}"

    def _extension(self, upload: UploadFile) -> str:
        ext = Path(upload.filename or "").suffix.lower()
        if ext not in self.allowed_extensions:
            raise ValidationException(
                "Tipo de archivo no permitido",
                details=[{"field": "fotos", "message": f"Extensiones permitidas: {', '.join(sorted(self.allowed_extensions))}"}],
            )
        return ext

    async def save_all(self, files: list[UploadFile]) -> list[str]:
        """Validate every file first, then store them; returns references in upload order."""
        files = [f for f in files or [] if f is not None and f.filename]
        if not files:
            return []
        if len(files) > self.max_files:
            raise ValidationException(f"Se permiten como máximo {self.max_files} archivos")

        staged: list[tuple[str, bytes]] = []
        for upload in files:
            ext = self._extension(upload)
            content = await upload.read(self.max_size + 1)
            if not content:
                raise ValidationException("Archivo vacío")
            if len(content) > self.max_size:
                raise ValidationException(
                    f"El archivo supera el tamaño máximo de {self.max_size // (1024 * 1024)}MB"
                )
            staged.append((ext, content))

        self.directory.mkdir(parents=True, exist_ok=True)
        return [await self._write(ext, content) for ext, content in staged]

    async def _write(self, ext: str, content: bytes) -> str:
        while True:
            name = self._new_name(ext)
            try:
                async with aiofiles.open(self.directory / name, "xb") as fh:
                    await fh.write(content)
            except FileExistsError:
                continue
            logger.debug("Stored upload %s (%d bytes)", name, len(content))
            return f"{PUBLIC_PREFIX}/{name}"
