import asyncio
import json
import os
import tempfile
from typing import Dict, List

from constants import MAX_SEED, MIN_SEED, WORLDS_FILE
from errors import PersistenceError, ValidationError, WorldNotFoundError
from logging_config import get_logger

logger = get_logger(__name__)


def validate_world(name, seed) -> None:
    if not isinstance(name, str) or not name:
        raise ValidationError("World name must be a non-empty string")
    # bool is an int subclass; JSON true/false is not a seed
    if isinstance(seed, bool) or not isinstance(seed, int) or not MIN_SEED <= seed <= MAX_SEED:
        raise ValidationError(f"Seed must be an integer between {MIN_SEED} and {MAX_SEED}")


class WorldRegistry:
    """Persisted world name -> seed mapping backed by a single JSON file.

    The file is the only durable copy. Every operation reloads it, and every
    mutation rewrites it in full. Mutations hold ``_write_lock`` across the
    whole load-modify-store sequence so concurrent writers cannot lose each
    other's updates at the file I/O suspension points.
    """

    def __init__(self, path: str = WORLDS_FILE):
        self.path = path
        self._write_lock = asyncio.Lock()
        logger.info(f"Initializing WorldRegistry backed by {self.path}")

    def _read_file(self) -> Dict[str, int]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = fh.read()
        except FileNotFoundError:
            logger.debug(f"Registry file {self.path} not found, starting empty")
            return {}
        except OSError as e:
            logger.error(f"Error reading registry file {self.path}: {e}", exc_info=True)
            return {}

        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as e:
            # Treated as empty; the next write replaces the corrupt file
            logger.error(f"Registry file {self.path} is corrupt, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Registry file {self.path} does not hold a JSON object, treating as empty")
            return {}

        worlds = {}
        for name, seed in data.items():
            if isinstance(seed, bool) or not isinstance(seed, int):
                logger.warning(f"Skipping world {name!r} with non-integer seed {seed!r}")
                continue
            worlds[name] = seed
        return worlds

    def _write_file(self, worlds: Dict[str, int]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".worlds-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(worlds, fh, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error saving registry file {self.path}: {e}", exc_info=True)
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError("Failed to save world registry") from e
        logger.debug(f"Wrote {len(worlds)} worlds to {self.path}")

    async def _load(self) -> Dict[str, int]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_file)

    async def _save(self, worlds: Dict[str, int]) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_file, worlds)

    async def register(self, name: str, seed: int) -> None:
        """Insert or replace ``name -> seed``. Last write wins."""
        validate_world(name, seed)
        async with self._write_lock:
            worlds = await self._load()
            worlds[name] = seed
            await self._save(worlds)
        logger.info(f"Registered world {name!r} with seed {seed}")

    async def get_seed(self, name: str) -> int:
        if not isinstance(name, str) or not name:
            raise WorldNotFoundError(name)
        worlds = await self._load()
        if name not in worlds:
            logger.debug(f"World {name!r} not found")
            raise WorldNotFoundError(name)
        return worlds[name]

    async def list(self) -> List[dict]:
        worlds = await self._load()
        return [{"name": name, "seed": seed} for name, seed in worlds.items()]

    async def delete(self, name: str) -> bool:
        """Remove ``name``; returns False, without touching the file, if it was absent."""
        if not isinstance(name, str) or not name:
            return False
        async with self._write_lock:
            worlds = await self._load()
            if name not in worlds:
                logger.debug(f"Delete ignored, world {name!r} not registered")
                return False
            del worlds[name]
            await self._save(worlds)
        logger.info(f"Deleted world {name!r}")
        return True

    async def count(self) -> int:
        return len(await self._load())
