import os

from litmus.logging.handlers.base import BaseLogHandler


class JsonLinesLogHandler(BaseLogHandler):
    """
    A log handler that appends one JSON object per log message to a file,
    for machine consumption of benchmark progress.
    """

    def __init__(self, filepath: str) -> None:
        """
        Args:
            filepath (str): Path of the output file. Must end with ".jsonl".

        Raises:
            ValueError: If the provided filepath does not end with ".jsonl".
        """
        super().__init__()

        if not filepath.endswith(".jsonl"):
            raise ValueError(
                f"Invalid filepath; expected string ending with '.jsonl' but got {filepath}"
            )
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.filepath = filepath

    def push(self, buffer: list[str]) -> None:
        with open(self.filepath, "ab") as file:
            for line in buffer:
                file.write(self.json_encode({"message": line}) + b"\n")
