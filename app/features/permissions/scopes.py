"""
Permission scope catalogue, read from config/data/permission_scopes.yml.
"""
from functools import lru_cache
from pathlib import Path
import yaml

from app.core import config


@lru_cache(maxsize=None)
def load_permission_scopes(path: Path | None = None) -> tuple[str, ...]:
    path = path or config.PERMISSION_SCOPES_PATH
    with open(path, encoding="utf-8") as f:
        scopes = yaml.safe_load(f) or []
    if not isinstance(scopes, list) or not all(isinstance(s, str) for s in scopes):
        raise ValueError(f"{path} must contain a list of scope names")
    return tuple(scopes)


def scopes_with_prefix(prefix: str, path: Path | None = None) -> list[str]:
    """Scopes whose name starts with ``prefix`` (e.g. "company")."""
    return [scope for scope in load_permission_scopes(path) if scope.startswith(prefix)]
