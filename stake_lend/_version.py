from importlib import metadata
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib

DISTRIBUTION_NAME = "solana-stake-lend-sdk"


def _get_version() -> str:
    current_file = Path(__file__)
    pyproject_path = current_file.parent.parent / "pyproject.toml"

    try:
        with open(pyproject_path, "rb") as f:
            pyproject_data = tomllib.load(f)
        return str(pyproject_data["project"]["version"])
    except FileNotFoundError:
        # Installed as a regular wheel, pyproject.toml is not shipped
        return metadata.version(DISTRIBUTION_NAME)
    except (KeyError, tomllib.TOMLDecodeError) as e:
        raise ValueError("Failed to read version from pyproject.toml") from e


SDK_VERSION = _get_version()
