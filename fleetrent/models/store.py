"""
Persistence collaborators for the rental core.

The core only sees the load/save contract; how the records are encoded is
this module's business. ``PickleRepository`` keeps the whole catalog in one
pickle file written through an atomic replace, ``MemoryRepository`` keeps it
in process (tests, throwaway sessions).
"""
import logging
import os
import pickle
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

# ---- Paths ----
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_DATA_PATH = BASE_DIR / "data.pkl"


class MemoryRepository:
    """In-process repository; ``save_count`` lets tests assert write-through."""

    def __init__(self, vehicles=None, rentals=None, tickets=None):
        self.vehicles = list(vehicles or [])
        self.rentals = list(rentals or [])
        self.tickets = list(tickets or [])
        self.save_count = 0

    def load_vehicles(self):
        return list(self.vehicles)

    def load_rentals(self):
        return list(self.rentals)

    def load_tickets(self):
        return list(self.tickets)

    def save_vehicles(self, vehicles):
        self.vehicles = list(vehicles)
        self.save_count += 1

    def save_rentals(self, rentals):
        self.rentals = list(rentals)
        self.save_count += 1

    def save_tickets(self, tickets):
        self.tickets = list(tickets)
        self.save_count += 1


class PickleRepository:
    """File-backed repository: one payload dict with vehicles, rentals and tickets."""

    def __init__(self, path: str | os.PathLike | None = None):
        self.path = str(path or DEFAULT_DATA_PATH)
        self._data: dict[str, list] = {"vehicles": [], "rentals": [], "tickets": []}
        self._rw = threading.RLock()

        logger.info("Using data file %s", self.path)
        self._load()

    # ---------- Persistence ----------
    def _load(self):
        """Load data from the pickle file, or start empty if unavailable or invalid."""
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "rb") as f:
                data = pickle.load(f)
        except (OSError, pickle.UnpicklingError, EOFError, AttributeError, ImportError) as e:
            logger.warning("Load of %s failed (%s); starting empty.", self.path, e)
            return

        if isinstance(data, dict):
            for key in self._data:
                self._data[key] = list(data.get(key) or [])
            logger.info(
                "Loaded: vehicles=%d, rentals=%d, tickets=%d",
                len(self._data["vehicles"]), len(self._data["rentals"]), len(self._data["tickets"]),
            )
        else:
            # Incompatible data format: back up the old file and start empty
            bak = self.path + ".bak"
            try:
                os.replace(self.path, bak)
                logger.warning("Incompatible store (%s); backed up to %s. Starting empty.",
                               type(data).__name__, bak)
            except OSError as e:
                logger.error("Backup of %s failed: %s", self.path, e)

    def _dump(self):
        """Write the in-memory data to the pickle file safely (atomic replace)."""
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "wb") as f:
            pickle.dump(self._data, f, protocol=pickle.HIGHEST_PROTOCOL)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

    def _save(self, key: str, items):
        with self._rw:
            self._data[key] = list(items)
            self._dump()

    # ---------- Contract ----------
    def load_vehicles(self):
        return list(self._data["vehicles"])

    def load_rentals(self):
        return list(self._data["rentals"])

    def load_tickets(self):
        return list(self._data["tickets"])

    def save_vehicles(self, vehicles):
        self._save("vehicles", vehicles)

    def save_rentals(self, rentals):
        self._save("rentals", rentals)

    def save_tickets(self, tickets):
        self._save("tickets", tickets)
