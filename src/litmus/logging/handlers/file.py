import os

from litmus.logging.handlers.base import BaseLogHandler


class FileLogHandler(BaseLogHandler):
    """Appends each flushed batch of lines to a plain-text log.

    Args:
        filepath: Destination, which must end with ``.txt``.
        create: Create missing parent directories and an empty file up front,
            so a bad location fails at construction rather than on first flush.

    Raises:
        ValueError: If ``filepath`` does not end with ``.txt``.
    """

    def __init__(self, filepath: str, create: bool = False) -> None:
        super().__init__()

        if not filepath.endswith(".txt"):
            raise ValueError(
                f"Invalid filepath; expected a '.txt' path but got {filepath}"
            )
        self.filepath = filepath

        if create:
            directory = os.path.dirname(filepath)
            if directory:
                os.makedirs(directory, exist_ok=True)
            # Append mode leaves an existing log untouched.
            with open(filepath, "a"):
                pass

    def push(self, buffer: list[str]) -> None:
        if not buffer:
            return
        with open(self.filepath, "a") as file:
            file.writelines(line + "\n" for line in buffer)
