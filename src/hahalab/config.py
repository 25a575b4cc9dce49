import copy
import json
import logging
import os

ENV_URL = 'HAHALAB_SUPABASE_URL'
ENV_KEY = 'HAHALAB_SUPABASE_KEY'

DEFAULT_CONFIG = {
    'cloud': {
        'url': '',
        'key': '',
        'enabled': False,
    }
}


def _base_dir():
    base = os.path.join(os.path.expanduser('~'), '.hahalab')
    os.makedirs(base, exist_ok=True)
    return base


def _config_path():
    return os.path.join(_base_dir(), 'hahalab_config.json')


def default_db_path():
    return os.path.join(_base_dir(), 'hahalab.db')


def load_config(path=None):
    path = path or _config_path()
    if not os.path.exists(path):
        return copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logging.warning(f"Konfiguration {path} nicht lesbar, verwende Standardwerte: {e}")
        return copy.deepcopy(DEFAULT_CONFIG)


def save_config(cfg: dict, path=None):
    path = path or _config_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(cfg, f, ensure_ascii=False, indent=2)


def load_cloud_config(path=None):
    """Umgebungsvariablen haben Vorrang vor der Konfigurationsdatei."""
    url = os.environ.get(ENV_URL)
    key = os.environ.get(ENV_KEY)
    if url and key:
        return {'url': url, 'key': key, 'enabled': True}
    return load_config(path).get('cloud') or copy.deepcopy(DEFAULT_CONFIG['cloud'])
