class BackendError(Exception):
    """A tracking backend could not produce usable data."""

    def __init__(self, backend: str, detail: str):
        self.backend = backend
        self.detail = detail
        super().__init__(f"{backend}: {detail}")


class BackendNotConfigured(BackendError):
    def __init__(self, backend: str):
        super().__init__(backend, "credential missing")


class ResponseParseError(BackendError):
    """Raw model output did not contain a usable JSON object."""

    def __init__(self, detail: str, backend: str = "parser"):
        super().__init__(backend, detail)
