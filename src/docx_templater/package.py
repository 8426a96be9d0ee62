"""
DocxPackage: the .docx package behind a template session.

This module provides the document source a TemplateSession works against.
It separates ZIP handling from marker manipulation: the package is extracted
to a temporary directory, the main document part is kept as a parsed lxml
tree, and the whole package is zipped up again on save.
"""

import io
import logging
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Any, BinaryIO, Protocol

from lxml import etree

from . import editor
from .constants import DOCUMENT_PART
from .errors import ValidationError

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    """What a TemplateSession needs from the underlying package."""

    def get_xml(self) -> str: ...

    def set_xml(self, xml: str) -> None: ...

    def set_value(self, name: str, value: str) -> int: ...

    def clone_row(self, name: str, count: int) -> None: ...

    def save(self, output_path: str | Path) -> None: ...


class DocxPackage:
    """Manages a .docx ZIP package and its main document part.

    This class handles the low-level operations of:
    - Extracting .docx ZIP archives to temporary directories
    - Exposing word/document.xml as text and accepting it back
    - Primitive marker substitution and row cloning
    - Repacking the content back to ZIP format

    Example:
        >>> with DocxPackage.open("template.docx") as pkg:
        ...     pkg.set_value("name", "Jane")
        ...     pkg.save("filled.docx")
    """

    def __init__(self, temp_dir: Path, source_path: Path | None = None) -> None:
        """Initialize package with an already-extracted directory.

        Use the class methods `open()` or `from_bytes()` instead of
        calling this constructor directly.

        Args:
            temp_dir: Path to the extracted package contents
            source_path: Original source file path

        Raises:
            ValidationError: If the package has no main document part
        """
        self._temp_dir = temp_dir
        self._source_path = source_path
        self._closed = False

        part_path = temp_dir / DOCUMENT_PART
        if not part_path.exists():
            self.close()
            raise ValidationError(f"Package has no {DOCUMENT_PART}")

        parser = etree.XMLParser(remove_blank_text=False)
        try:
            self._root = etree.parse(str(part_path), parser).getroot()
        except etree.XMLSyntaxError as e:
            self.close()
            raise ValidationError(f"Failed to parse {DOCUMENT_PART}: {e}") from e

    @classmethod
    def open(cls, source: str | Path | BinaryIO) -> "DocxPackage":
        """Open a .docx package from a file path or file-like object.

        Args:
            source: Path to .docx file or file-like object containing it

        Returns:
            DocxPackage instance with extracted contents

        Raises:
            ValidationError: If the source is missing or not a valid ZIP file
        """
        source_path: Path | None = None

        if isinstance(source, str | Path):
            source_path = Path(source)
            if not source_path.exists():
                raise ValidationError(f"Template not found: {source_path}")
            zip_source: Path | BinaryIO = source_path
        else:
            zip_source = source

        if not zipfile.is_zipfile(zip_source):
            raise ValidationError("Source must be a valid .docx (ZIP) file")

        # Reset stream position if it was checked by is_zipfile
        if hasattr(zip_source, "seek"):
            zip_source.seek(0)

        temp_dir = Path(tempfile.mkdtemp(prefix="docx_templater_"))
        try:
            with zipfile.ZipFile(zip_source, "r") as zip_ref:
                zip_ref.extractall(temp_dir)
        except (zipfile.BadZipFile, OSError) as e:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise ValidationError(f"Failed to extract .docx file: {e}") from e

        logger.debug("Extracted %s to %s", source_path or "stream", temp_dir)
        return cls(temp_dir, source_path)

    @classmethod
    def from_bytes(cls, data: bytes) -> "DocxPackage":
        """Open a .docx package from bytes."""
        return cls.open(io.BytesIO(data))

    @property
    def source_path(self) -> Path | None:
        """Get the original source file path, if available."""
        return self._source_path

    def get_xml(self) -> str:
        """Serialize the main document part (without XML declaration)."""
        return etree.tostring(self._root, encoding="unicode")

    def set_xml(self, xml: str) -> None:
        """Replace the main document part.

        Raises:
            ValidationError: If the markup is not well-formed XML. The current
                part is left untouched in that case.
        """
        parser = etree.XMLParser(remove_blank_text=False)
        try:
            root = etree.fromstring(xml.encode("utf-8"), parser)
        except etree.XMLSyntaxError as e:
            raise ValidationError(f"Document markup is not well-formed: {e}") from e
        self._root = root

    def set_value(self, name: str, value: str) -> int:
        """Replace every ${name} in the document with value.

        Returns:
            Number of replacements made (0 if the marker is absent)
        """
        return editor.replace_marker(self._root, name, value)

    def clone_row(self, name: str, count: int) -> None:
        """Duplicate the table row holding ${name} count times.

        Markers in copy i are renamed from ${x} to ${x#i}.

        Raises:
            MarkerNotFoundError: If the marker is absent
            StructuralBoundaryNotFoundError: If the marker is not in a table row
        """
        editor.clone_row(self._root, name, count)

    def _write_part(self) -> None:
        tree = self._root.getroottree()
        tree.write(
            str(self._temp_dir / DOCUMENT_PART),
            encoding="UTF-8",
            xml_declaration=True,
            standalone=True,
        )

    def _write_zip(self, target: str | Path | BinaryIO) -> None:
        self._write_part()
        with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zip_ref:
            # [Content_Types].xml first, as Word expects
            files = sorted(
                (f for f in self._temp_dir.rglob("*") if f.is_file()),
                key=lambda f: f.name != "[Content_Types].xml",
            )
            for file in files:
                zip_ref.write(file, file.relative_to(self._temp_dir).as_posix())

    def save(self, output_path: str | Path) -> None:
        """Save the package to a .docx file.

        Args:
            output_path: Path to save the .docx file; parent directories are created
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self._write_zip(output_path)
        logger.debug("Saved package to %s", output_path)

    def save_to_bytes(self) -> bytes:
        """Save the package to bytes."""
        buffer = io.BytesIO()
        self._write_zip(buffer)
        return buffer.getvalue()

    def close(self) -> None:
        """Clean up temporary directory."""
        if not self._closed and self._temp_dir.exists():
            shutil.rmtree(self._temp_dir, ignore_errors=True)
        self._closed = True

    def __enter__(self) -> "DocxPackage":
        """Context manager support."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager cleanup."""
        self.close()

    def __del__(self) -> None:
        """Clean up temporary directory on garbage collection."""
        if hasattr(self, "_closed"):
            self.close()
