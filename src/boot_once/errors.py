from __future__ import annotations


class BackendError(Exception):
    """The boot-store tool rejected a request.

    Carries the raw exit status and output of the failed invocation so the
    operator can see exactly what bcdedit said.
    """

    def __init__(self, message: str, returncode: int | None = None, output: str = '') -> None:
        super().__init__(message)
        self.message = message
        self.returncode = returncode
        self.output = output

    def __str__(self) -> str:
        if self.returncode is None:
            return self.message
        return f'{self.message} (exit status {self.returncode})'


class EncryptionUnavailable(Exception):
    """Disk-encryption tooling is missing or its status query failed."""


class NoBootableEntries(Exception):
    pass
