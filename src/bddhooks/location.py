import inspect
import os
from typing import NamedTuple, Optional

__all__ = ["Location", "get_caller_location"]

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


class Location(NamedTuple):
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if not self.file:
            return "<unknown>"
        return f"{self.file}:{self.line}"


def get_caller_location(skip_dir: Optional[str] = PACKAGE_DIR) -> Location:
    """Returns the location of the first stack frame outside ``skip_dir``.

    Used to remember where a hook or step was declared. Best effort only, an
    empty Location is returned when the stack cannot be inspected.

    Args:
        skip_dir (Optional[str]): Directory whose frames are skipped (defaults to this package).

    Returns:
        Location: File path, line and column of the declaring code.
    """
    frame = inspect.currentframe()
    try:
        while frame is not None:
            filename = os.path.abspath(frame.f_code.co_filename)
            if skip_dir is None or not filename.startswith(skip_dir + os.sep):
                return Location(filename, frame.f_lineno, 0)
            frame = frame.f_back
    finally:
        # Break the reference cycle between frames and locals
        del frame

    return Location()
