"""Client configuration for platestore."""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from pathlib import Path
from typing import Any

from platestore._constants import API_URL, DEFAULT_BRANCH, RECORDS_DIR
from platestore.exceptions import PlateConfigError

_logger = logging.getLogger(__name__)

#: Location of the persisted local configuration file.
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "platestore" / "config.json"

# Keys written to the persisted configuration file.
_PERSISTED_FIELDS: tuple[str, ...] = ("owner", "repo", "branch", "token")


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Target coordinates and credential for the record store.

    Parameters
    ----------
    owner : str
        Repository owner (user or organisation).
    repo : str
        Repository name.
    branch : str
        Branch the records live on.  Defaults to ``"main"``.
    token : str or None
        Personal access token with write access to the repository.
        Anonymous access only works for reads against public repositories.
    api_url : str
        Base URL of the REST API.
    records_dir : str
        Directory holding one ``<PLATE>.json`` file per record.
    """

    owner: str
    repo: str
    branch: str = DEFAULT_BRANCH
    token: str | None = None
    api_url: str = API_URL
    records_dir: str = RECORDS_DIR

    def __post_init__(self) -> None:
        if not self.branch.strip():
            object.__setattr__(self, "branch", DEFAULT_BRANCH)

    def check(self) -> None:
        """Raise :class:`PlateConfigError` when the target is incomplete."""
        missing = [name for name in ("owner", "repo") if not getattr(self, name).strip()]
        if missing:
            raise PlateConfigError(f"Missing config: {', '.join(missing)}. Save repo owner/name/token first.")

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``PLATESTORE_OWNER``, ``PLATESTORE_REPO`` and the optional
        ``PLATESTORE_*`` variables.  Explicit keyword arguments override
        environment values.
        """
        env = os.environ
        _ENV_CONFIG_MAP = {
            "PLATESTORE_OWNER": "owner",
            "PLATESTORE_REPO": "repo",
            "PLATESTORE_BRANCH": "branch",
            "PLATESTORE_TOKEN": "token",
            "PLATESTORE_API_URL": "api_url",
            "PLATESTORE_RECORDS_DIR": "records_dir",
        }
        config_kwargs: dict[str, Any] = {"owner": "", "repo": ""}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        config_kwargs.update(overrides)
        return cls(**config_kwargs)


def config_path() -> Path:
    """Return the persisted config location, honouring ``PLATESTORE_CONFIG``."""
    override = os.environ.get("PLATESTORE_CONFIG")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> StoreConfig | None:
    """Load the persisted configuration.

    Returns ``None`` when the file does not exist or cannot be parsed.
    """
    target = path or config_path()
    try:
        raw = target.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError:
        _logger.warning("Could not read config file %s", target, exc_info=True)
        return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        _logger.warning("Ignoring unreadable config file %s", target)
        return None
    if not isinstance(data, dict):
        _logger.warning("Ignoring config file %s: expected a JSON object", target)
        return None

    values = {key: data[key] for key in _PERSISTED_FIELDS if isinstance(data.get(key), str)}
    values.setdefault("owner", "")
    values.setdefault("repo", "")
    if not values.get("token"):
        values.pop("token", None)
    return StoreConfig(**values)


def save_config(config: StoreConfig, path: Path | None = None) -> Path:
    """Persist owner/repo/branch/token so later runs can reuse them."""
    target = path or config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "owner": config.owner.strip(),
        "repo": config.repo.strip(),
        "branch": config.branch.strip() or DEFAULT_BRANCH,
        "token": (config.token or "").strip(),
    }
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    # The file holds a credential.
    target.chmod(0o600)
    _logger.debug("Saved config to %s", target)
    return target
