import os
import shutil
import subprocess
from collections import namedtuple
from functools import lru_cache
from pathlib import Path
from typing import Sequence

import tomli as toml

from rbindgen import logging as rbindgen_logging

logger = rbindgen_logging.get_logger(__name__)

CONFIG_ENV_VAR = "RBINDGEN_CONFIG"
CONFIG_FILE_NAME = "rbindgen.toml"

ProcessResult = namedtuple("ProcessResult", ["stdout", "stderr", "returncode"])


######## Configuration ########
def _merge_configs(config, default_config):
    """Overlay ``config`` on ``default_config``; tables merge recursively."""
    merged = dict(default_config)
    for key, value in config.items():
        default = default_config.get(key)
        if key not in default_config:
            merged[key] = value
        elif isinstance(value, dict) and isinstance(default, dict):
            merged[key] = _merge_configs(value, default)
        elif isinstance(value, dict) or isinstance(default, dict):
            raise TypeError(f"Type mismatch for key '{key}': "
                            f"config has {type(value)}, default_config has {type(default)}")
        else:
            merged[key] = value
    return merged


def _read_toml(path: Path) -> dict:
    with open(path, "rb") as f:
        return toml.load(f)


def load_default_config():
    """Load the bundled default configuration from packaged resources."""
    candidate = Path(__file__).resolve().parent / "_resources" / "rbindgen.default.toml"
    if not candidate.is_file():
        raise FileNotFoundError(f"Could not load {candidate}")
    return _read_toml(candidate)


def _user_config_path(config_file=None) -> Path | None:
    if config_file:
        path = Path(config_file).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"Could not find config file {path}")
        return path

    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        path = Path(from_env).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR}={from_env} does not point to a readable file")
        return path

    path = Path.cwd() / CONFIG_FILE_NAME
    return path if path.is_file() else None


def try_load_config(config_file=None):
    """Load user configuration merged with defaults.

    Resolution order:
    1. Explicit `config_file` argument.
    2. `RBINDGEN_CONFIG` environment variable.
    3. `./rbindgen.toml` relative to current working directory.
    If none are found, return the default config alone.
    """
    default_config = load_default_config()
    path = _user_config_path(config_file)
    if path is None:
        logger.debug("No user config found; falling back to default configuration only")
        return default_config
    logger.debug("Loading configuration from %s", path)
    return _merge_configs(_read_toml(path), default_config)


######## Compiler / process helpers ########
def get_compiler() -> str:
    for compiler in ("clang", "gcc"):
        if shutil.which(compiler):
            return compiler
    raise OSError("No C compiler found")


@lru_cache(maxsize=1)
def get_compiler_include_paths() -> tuple[str, ...]:
    """System include directories the host compiler searches for ``<...>``."""
    cmd = [get_compiler(), '-v', '-E', '-x', 'c', os.devnull]
    lines = run_command(cmd).stderr.splitlines()
    try:
        start = lines.index('#include <...> search starts here:') + 1
        end = lines.index('End of search list.', start)
    except ValueError:
        return ()
    # macOS marks framework directories with a suffix
    return tuple(line.strip().removesuffix(' (framework directory)') for line in lines[start:end])


def run_command(
    cmd: Sequence[str | os.PathLike[str]],
    *,
    capture_output: bool = True,
    timeout: float | None = None,
    cwd: str | os.PathLike[str] | None = None,
    check: bool = False,
    input_data: str | None = None,
) -> ProcessResult:
    pipe = subprocess.PIPE if capture_output else None
    completed = subprocess.run(
        cmd,
        stdout=pipe,
        stderr=pipe,
        cwd=cwd,
        text=True,
        timeout=timeout,
        input=input_data,
    )
    result = ProcessResult(completed.stdout or "", completed.stderr or "", completed.returncode)
    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(result.returncode, cmd, result.stdout, result.stderr)
    return result


def save_code(path, code):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w") as f:
        f.write(code)
