class BindgenError(Exception):
    """Base class for failures that abort a generation run."""


class HeaderParseError(BindgenError):
    def __init__(self, message: str, diagnostics: list[str] | None = None):
        super().__init__(message)
        self.diagnostics: list[str] = diagnostics if diagnostics is not None else []


class UnknownTypeError(BindgenError):
    def __init__(self, spelling: str, location: str | None = None):
        where = f" at {location}" if location else ""
        super().__init__(f"Unknown C type '{spelling}'{where}")
        self.spelling = spelling
        self.location = location
