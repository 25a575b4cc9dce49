import json
import logging
import os
import sqlite3
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from typing import Any, List, Optional

from hahalab.cloud import CloudStore
from hahalab.config import default_db_path
from hahalab.models import CalendarSettings, Child, ContentItem, ScheduleItem

# Speicher-Schlüssel (identisch lokal und in der Cloud)
KEY_SCHEDULES = 'haha-lab-schedules'
KEY_CHILDREN = 'haha-lab-children'
KEY_SETTINGS = 'haha-lab-settings'
KEY_CONTENTS = 'haha-lab-contents'
ALL_KEYS = (KEY_SCHEDULES, KEY_CHILDREN, KEY_SETTINGS, KEY_CONTENTS)


class Database:
    """
    Storage-Adapter: lokaler SQLite-Key-Value-Speicher, optional mit
    Cloud-Replikation. Schreiben ist optimistisch: lokal sofort, Cloud im
    Hintergrund ohne Rückmeldung (last write wins).
    """

    def __init__(self, db_path: str = None, cloud: Optional[CloudStore] = None):
        try:
            self.db_path = db_path or default_db_path()
            if self.db_path != ':memory:':
                os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
            # check_same_thread=False: QThread-Worker (Backup/Restore) teilen die Verbindung
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self._ensure_tables()
        except Exception as e:
            logging.error(f"Database connection error: {e}")
            raise
        self.cloud = cloud
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='hahalab-sync')
        self._pending = []

    def _ensure_tables(self):
        cur = self.conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS kv_store (
          key TEXT PRIMARY KEY,
          value TEXT NOT NULL,
          updated_at TEXT NOT NULL
        )""")
        self.conn.commit()

    @property
    def is_connected(self) -> bool:
        return self.cloud is not None

    # Key-Value-Grundoperationen
    def get_value(self, key: str, default: Any = None) -> Any:
        cur = self.conn.cursor()
        cur.execute("SELECT value FROM kv_store WHERE key=?", (key,))
        row = cur.fetchone()
        if row is None:
            return default
        try:
            return json.loads(row['value'])
        except ValueError as e:
            logging.warning(f"Ungültige Daten unter {key}, verwende Standardwert: {e}")
            return default

    def set_value(self, key: str, value: Any):
        cur = self.conn.cursor()
        cur.execute(
            "REPLACE INTO kv_store (key, value, updated_at) VALUES (?,?,?)",
            (key, json.dumps(value, ensure_ascii=False), datetime.now().isoformat(timespec='seconds'))
        )
        self.conn.commit()

    def _load(self, key: str, default: Any, local_only: bool = False) -> Any:
        # Cloud-Stand hat Vorrang und wird lokal gespiegelt
        if self.cloud is not None and not local_only:
            remote = self.cloud.fetch(key)
            if remote is not None:
                self.set_value(key, remote)
                return remote
        return self.get_value(key, default)

    def _save(self, key: str, value: Any):
        self.set_value(key, value)
        self._replicate(key, value)

    def _replicate(self, key: str, value: Any):
        if self.cloud is None:
            return
        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(self._executor.submit(self.cloud.push, key, value))

    def flush(self, timeout: float = None):
        """Wartet auf ausstehende Cloud-Replikationen."""
        wait(self._pending, timeout=timeout)
        self._pending = [f for f in self._pending if not f.done()]

    # Termine
    def load_schedules(self, local_only: bool = False) -> List[ScheduleItem]:
        out = []
        for raw in self._load(KEY_SCHEDULES, [], local_only):
            try:
                out.append(ScheduleItem.from_dict(raw))
            except (KeyError, ValueError, TypeError) as e:
                logging.error(f"Ungültiger Termin übersprungen: {raw!r} ({e})")
        return out

    def save_schedules(self, schedules: List[ScheduleItem]):
        self._save(KEY_SCHEDULES, [s.to_dict() for s in schedules])

    # Kinder
    def load_children(self, local_only: bool = False) -> List[Child]:
        out = []
        for raw in self._load(KEY_CHILDREN, [], local_only):
            try:
                out.append(Child.from_dict(raw))
            except (KeyError, ValueError, TypeError) as e:
                logging.error(f"Ungültiger Kind-Eintrag übersprungen: {raw!r} ({e})")
        return out

    def save_children(self, children: List[Child]):
        self._save(KEY_CHILDREN, [c.to_dict() for c in children])

    # Einstellungen
    def load_settings(self, local_only: bool = False) -> CalendarSettings:
        return CalendarSettings.from_dict(self._load(KEY_SETTINGS, {}, local_only) or {})

    def save_settings(self, settings: CalendarSettings):
        self._save(KEY_SETTINGS, settings.to_dict())

    # Inhalte (Katalog)
    def load_contents(self, local_only: bool = False) -> List[ContentItem]:
        out = []
        for raw in self._load(KEY_CONTENTS, [], local_only):
            try:
                out.append(ContentItem.from_dict(raw))
            except (KeyError, ValueError, TypeError) as e:
                logging.error(f"Ungültiger Inhalt übersprungen: {raw!r} ({e})")
        return out

    def save_contents(self, contents: List[ContentItem]):
        self._save(KEY_CONTENTS, [c.to_dict() for c in contents])

    # Cloud-Abgleich
    def push_all_to_cloud(self) -> bool:
        if self.cloud is None:
            return False
        ok = True
        for key in ALL_KEYS:
            value = self.get_value(key)
            if value is not None:
                ok = self.cloud.push(key, value) and ok
        logging.info("[HahaLab] Cloud-Synchronisierung abgeschlossen." if ok else
                     "[HahaLab] Cloud-Synchronisierung unvollständig.")
        return ok

    def pull_all_from_cloud(self) -> int:
        if self.cloud is None:
            return 0
        pulled = 0
        for key in ALL_KEYS:
            remote = self.cloud.fetch(key)
            if remote is not None:
                self.set_value(key, remote)
                pulled += 1
        return pulled

    # Export/Import
    def export_to_sql(self, filename: str):
        """Dump aller Tabellen als SQL-Statements"""
        with open(filename, 'w', encoding='utf-8') as f:
            for line in self.conn.iterdump():
                f.write(f"{line}\n")

    def import_from_sql(self, filename: str):
        """
        Vorhandene Tabelle löschen, Dump einlesen und ausführen.
        Danach wird der wiederhergestellte Stand in die Cloud geschoben,
        sonst überschreibt der nächste Ladevorgang ihn mit dem alten Cloud-Stand.
        """
        with open(filename, 'r', encoding='utf-8') as f:
            script = f.read()
        cur = self.conn.cursor()
        cur.execute("DROP TABLE IF EXISTS kv_store")
        self.conn.commit()
        self.conn.executescript(script)
        self._ensure_tables()
        if self.cloud is not None:
            for key in ALL_KEYS:
                value = self.get_value(key)
                if value is not None:
                    self._replicate(key, value)
            self.flush()
            logging.info("[HahaLab] Wiederhergestellter Stand an die Cloud übertragen.")

    def close(self):
        """Schließe die Datenbankverbindung sauber"""
        self._executor.shutdown(wait=True)
        if self.conn:
            self.conn.close()
            self.conn = None
