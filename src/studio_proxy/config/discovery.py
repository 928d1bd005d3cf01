from pathlib import Path

import platformdirs


CONFIG_FILE_NAMES: tuple[str, ...] = (".studio_proxy.toml", "studio_proxy.toml")


def get_studio_proxy_config_dir() -> Path:
    """Get the per-user configuration directory for the studio proxy."""
    return Path(platformdirs.user_config_dir("studio-proxy"))


def find_toml_config_file() -> Path | None:
    """Find the TOML configuration file for studio_proxy.

    Searches in the following order:
    1. .studio_proxy.toml / studio_proxy.toml in current directory
    2. config.toml in the user config directory (platform-specific)
    """
    candidates = [Path(name).resolve() for name in CONFIG_FILE_NAMES]
    candidates.append(get_studio_proxy_config_dir() / "config.toml")

    for candidate in candidates:
        if candidate.exists() and candidate.is_file():
            return candidate

    return None
