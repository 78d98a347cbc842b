"""Exceptions raised by gameperf."""


class GamePerfError(Exception):
    """Base class for gameperf errors."""


class ExecutionError(GamePerfError):
    """
    An external command could not be run, or ran and exited non-zero.

    ``returncode`` is None when the process could not be spawned at all.
    """

    def __init__(
        self,
        program: str,
        args: list[str],
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.program = program
        self.arguments = args
        self.returncode = returncode
        self.stdout = stdout.strip()
        self.stderr = stderr.strip()
        status = "failed to start" if returncode is None else f"exited with {returncode}"
        super().__init__(f"{program} {args} {status}: {self.stdout} {self.stderr}".rstrip())


class NotFoundError(GamePerfError):
    """No process, package or listing line matched the query."""

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"Not found: {query}")


class PropertyError(GamePerfError):
    """A device property could not be located or parsed."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Property error: {key}")


class InjectionError(GamePerfError):
    """The library is not mapped into the process yet; callers should poll."""

    def __init__(self, library: str) -> None:
        self.library = library
        super().__init__(f"Library not loaded: {library}")
