from __future__ import annotations


class GnuplotError(Exception):
    """Base class for every error raised by gnuplotpipe."""

    def __init__(self, message: str, context: str | None = None) -> None:
        text = message if context is None else f"{message} | Context: {context}"
        super().__init__(text)
        self.plain_message = message
        self.context = context


class LaunchError(GnuplotError):
    """The gnuplot executable could not be found or its pipe could not be opened."""


class ValidationError(GnuplotError, ValueError):
    """Empty or mismatched plot input. Raised before any file or command is produced."""


class ResourceExhausted(GnuplotError):
    """The temporary-file ceiling for a session has been reached."""


class GnuplotIOError(GnuplotError, OSError):
    """Writing to the pipe or to a temporary data file failed."""


class CleanupError(GnuplotError, OSError):
    def __init__(self, path: str, paths: tuple[str, ...] = ()) -> None:
        self.path = path
        self.paths = paths or (path,)
        extra = len(self.paths) - 1
        context = f"{extra} more file(s) could not be removed" if extra > 0 else None
        super().__init__(f'Cannot remove temporary file "{path}"', context)
