"""
Almacenamiento SQLite del último listado de emisores.

Una sola conexión por instancia, creada al primer uso y reutilizada hasta
`close()`. La recarga reemplaza todas las filas dentro de una transacción.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

import aiosqlite

from scraper.errors import StoreError
from scraper.models import CSV_COLUMNS, EmisorRecord, StoredEmisor

logger = logging.getLogger(__name__)

TABLE_NAME = "dgii_data"

CREATE_TABLE_SQL = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        orden TEXT,
        rnc TEXT,
        razon_social TEXT,
        nombre_comercial TEXT,
        fecha_autorizacion TEXT,
        fecha_limite TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
"""

INSERT_SQL = f"""
    INSERT INTO {TABLE_NAME} ({", ".join(CSV_COLUMNS)})
    VALUES ({", ".join("?" for _ in CSV_COLUMNS)})
"""

MAX_SEARCH_RESULTS = 100


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


class DatabaseService:
    """Acceso asíncrono a la tabla de emisores."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self._db: Optional[aiosqlite.Connection] = None

    async def init(self) -> aiosqlite.Connection:
        """Abre la conexión si no existe; si ya existe la reutiliza."""
        if self._db is not None:
            return self._db

        try:
            if str(self.db_path) != ":memory:":
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            db = await aiosqlite.connect(str(self.db_path))
            db.row_factory = aiosqlite.Row
            # LOWER() de SQLite solo convierte ASCII (Ñ, Á, É...)
            await db.create_function("py_lower", 1, _unicode_lower, deterministic=True)
            await db.execute("PRAGMA journal_mode = WAL;")
            await db.execute("PRAGMA synchronous = NORMAL;")
        except (aiosqlite.Error, OSError) as e:
            raise StoreError(f"Error al conectar a la base de datos {self.db_path}: {e}") from e

        self._db = db
        logger.info(f"✓ Conectado a la base de datos SQLite ({self.db_path})")
        return db

    async def ensure_schema(self) -> None:
        """Crea la tabla si no existe. Nunca elimina datos."""
        db = await self.init()
        try:
            await db.execute(CREATE_TABLE_SQL)
            await db.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Error creando la tabla {TABLE_NAME}: {e}") from e
        logger.info("✓ Tabla creada o verificada exitosamente")

    async def replace_all(self, records: Iterable[EmisorRecord]) -> int:
        """
        Reemplaza todas las filas por `records` en una sola transacción.

        Returns:
            Número de filas insertadas

        Raises:
            StoreError: Si algo falla (la tabla queda como estaba)
        """
        db = await self.init()
        rows = [record.as_row() for record in records]
        try:
            await db.execute(f"DELETE FROM {TABLE_NAME}")
            await db.executemany(INSERT_SQL, rows)
            await db.commit()
        except aiosqlite.Error as e:
            await db.rollback()
            raise StoreError(f"Error guardando registros en {TABLE_NAME}: {e}") from e

        logger.info(f"✓ {len(rows)} registros guardados en SQLite")
        return len(rows)

    async def count(self) -> int:
        row = await self._fetch_one(f"SELECT COUNT(*) AS count FROM {TABLE_NAME}")
        return row["count"] if row else 0

    async def get_page(self, limit: int, offset: int) -> List[StoredEmisor]:
        """Página ordenada por razón social. Los límites los valida quien llama."""
        return await self._fetch_all(
            f"SELECT * FROM {TABLE_NAME} ORDER BY razon_social LIMIT ? OFFSET ?",
            (limit, offset),
        )

    async def get_latest(self, limit: int = 10) -> List[StoredEmisor]:
        """Últimos registros insertados."""
        return await self._fetch_all(
            f"SELECT * FROM {TABLE_NAME} ORDER BY created_at DESC, id DESC LIMIT ?",
            (limit,),
        )

    async def get_by_rnc(self, rnc: str) -> Optional[StoredEmisor]:
        """Coincidencia exacta por RNC (el RNC no es único en la tabla)."""
        row = await self._fetch_one(
            f"SELECT * FROM {TABLE_NAME} WHERE rnc = ? ORDER BY id LIMIT 1", (rnc,)
        )
        return self._to_model(row) if row else None

    async def search(self, term: str, max_results: int = MAX_SEARCH_RESULTS) -> List[StoredEmisor]:
        """Subcadena sin distinguir mayúsculas en razón social o nombre comercial."""
        pattern = f"%{_escape_like(term.lower())}%"
        return await self._fetch_all(
            f"""
            SELECT * FROM {TABLE_NAME}
            WHERE py_lower(razon_social) LIKE ? ESCAPE '\\'
               OR py_lower(nombre_comercial) LIKE ? ESCAPE '\\'
            LIMIT ?
            """,
            (pattern, pattern, min(max_results, MAX_SEARCH_RESULTS)),
        )

    async def close(self) -> None:
        if self._db is None:
            return
        try:
            await self._db.close()
            logger.info("🔒 Conexión a base de datos cerrada")
        except aiosqlite.Error as e:
            logger.error(f"❌ Error cerrando la base de datos: {e}")
        finally:
            self._db = None

    async def _fetch_all(self, sql: str, params: tuple = ()) -> List[StoredEmisor]:
        db = await self.init()
        try:
            async with db.execute(sql, params) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Error consultando {TABLE_NAME}: {e}") from e
        return [self._to_model(row) for row in rows]

    async def _fetch_one(self, sql: str, params: tuple = ()) -> Optional[aiosqlite.Row]:
        db = await self.init()
        try:
            async with db.execute(sql, params) as cursor:
                return await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"Error consultando {TABLE_NAME}: {e}") from e

    @staticmethod
    def _to_model(row: aiosqlite.Row) -> StoredEmisor:
        data = {key: row[key] for key in row.keys()}
        for column in CSV_COLUMNS:
            if data.get(column) is None:
                data[column] = ""
        return StoredEmisor(**data)
