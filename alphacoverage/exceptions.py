"""Module containing custom exceptions."""


class CoverageError(Exception):
    """Custom AlphaCoverage error class."""

    _error_code = ""
    _msg = ""

    @property
    def error_code(self):
        return self._error_code

    @property
    def msg(self):
        return self._msg

    def __init__(self, msg: str = ""):
        self._msg = msg or self._msg

        super().__init__(self._msg)

    def __str__(self):
        return f"{self._error_code}: {self._msg}"


class ConsistencyError(CoverageError):
    """Raise when the spectrum file and the identification file belong to different runs."""

    _error_code = "FILE_MISMATCH"

    def __init__(
        self,
        raw_path: str,
        id_path: str,
        raw_name: str,
        id_name: str,
    ):
        self.raw_path = raw_path
        self.id_path = id_path
        self.raw_name = raw_name
        self.id_name = id_name

        super().__init__(
            f"Mismatch between spectrum file ({raw_name}) and id file ({id_name}). "
            f"Spectrum file: {raw_path}, identification file: {id_path}"
        )


class SourceReadError(CoverageError):
    """Raise when a spectrum or identification file cannot be read."""

    _error_code = "SOURCE_READ_ERROR"

    def __init__(self, path: str, detail: str = ""):
        self.path = str(path)

        msg = f"Could not read {self.path}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
