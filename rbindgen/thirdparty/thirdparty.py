from abc import ABC, abstractmethod


class ThirdParty(ABC):
    """An external executable rbindgen can hand its output to."""

    @staticmethod
    @abstractmethod
    def check_requirements() -> list[str]:
        """Names of the missing executables this tool needs."""

    @classmethod
    def ensure_available(cls) -> None:
        """Raise OSError naming the missing executables, if any."""
        missing = cls.check_requirements()
        if missing:
            raise OSError(f"{cls.__name__} needs {', '.join(missing)} on PATH")
