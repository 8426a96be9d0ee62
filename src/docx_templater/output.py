"""
Where a rendered document goes and how it is offered for download.

Set the DOCX_TEMPLATER_OUTPUT_DIR environment variable to change the
default output directory.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .constants import DEFAULT_OUTPUT_DIR, DOCX_EXTENSION, DOCX_MIME_TYPE, OUTPUT_DIR_ENV


def default_output_dir() -> Path:
    """Output directory from the environment, or the built-in default."""
    return Path(os.environ.get(OUTPUT_DIR_ENV) or DEFAULT_OUTPUT_DIR)


@dataclass
class OutputTarget:
    """Output file name and directory of a rendered document.

    Attributes:
        filename: File name, with or without the .docx extension
        path: Directory the file is written to

    Example:
        >>> target = OutputTarget("quote", path="/tmp/out")
        >>> target.full_path
        PosixPath('/tmp/out/quote.docx')
    """

    filename: str
    path: Path = field(default_factory=default_output_dir)

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    @property
    def filename_with_extension(self) -> str:
        if self.filename.lower().endswith(DOCX_EXTENSION):
            return self.filename
        return self.filename + DOCX_EXTENSION

    @property
    def full_path(self) -> Path:
        return self.path / self.filename_with_extension

    @property
    def mime_type(self) -> str:
        """Only Word 2007+ documents are produced."""
        return DOCX_MIME_TYPE

    def headers(self) -> dict[str, str]:
        """HTTP headers for sending the document as a download."""
        return {
            "Content-Type": self.mime_type,
            "Pragma": "cache",
            "Cache-Control": "max-age=0",
            "Content-Disposition": f"attachment; filename={self.filename_with_extension}",
        }
