"""
Replikation der Key-Value-Daten in eine Supabase-Tabelle (best effort).

Erwartete Tabelle (legt der Nutzer in Supabase an):

    haha_data(key text primary key, value jsonb)

Jeder Schreibvorgang ist ein Upsert auf `key`, der letzte gewinnt. Fehler
werden geloggt und verworfen, die lokale SQLite-Kopie bleibt für die
laufende Sitzung maßgeblich.
"""

import logging
from typing import Any, Optional

import requests

TABLE = 'haha_data'
TIMEOUT = 10


class CloudStore:
    def __init__(self, url: str, key: str, session: Optional[requests.Session] = None):
        self.url = url.rstrip('/')
        self.key = key
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg: Optional[dict]) -> Optional['CloudStore']:
        """CloudStore aus {'url', 'key', 'enabled'}; None, wenn nicht aktiviert."""
        if not cfg or not cfg.get('enabled') or not cfg.get('url') or not cfg.get('key'):
            return None
        return cls(cfg['url'], cfg['key'])

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/{TABLE}"

    def _headers(self, **extra) -> dict:
        headers = {
            'apikey': self.key,
            'Authorization': f"Bearer {self.key}",
            'Content-Type': 'application/json',
        }
        headers.update(extra)
        return headers

    def push(self, key: str, value: Any) -> bool:
        try:
            resp = self.session.post(
                self.endpoint,
                params={'on_conflict': 'key'},
                json={'key': key, 'value': value},
                headers=self._headers(Prefer='resolution=merge-duplicates'),
                timeout=TIMEOUT,
            )
            resp.raise_for_status()
            return True
        except requests.RequestException as e:
            logging.error(f"Cloud save failed for {key}: {e}")
            return False

    def fetch(self, key: str) -> Optional[Any]:
        try:
            resp = self.session.get(
                self.endpoint,
                params={'key': f"eq.{key}", 'select': 'value'},
                headers=self._headers(),
                timeout=TIMEOUT,
            )
            resp.raise_for_status()
            rows = resp.json()
        except (requests.RequestException, ValueError) as e:
            logging.error(f"Cloud fetch failed for {key}: {e}")
            return None
        if not rows:
            return None
        return rows[0].get('value')
