"""Upload intake: extension allow-list and size ceiling.

Checks run before any byte of the file is parsed. A rejected file never
reaches the spreadsheet readers.
"""

from spreadsheet_viewer.config import settings
from spreadsheet_viewer.utils.exceptions import (
    FileTooLargeError,
    UnsupportedFormatError,
    ValidationError,
)
from spreadsheet_viewer.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls", ".csv", ".ods")

# Value of the file picker's accept attribute
ACCEPT_ATTRIBUTE = ",".join(SUPPORTED_EXTENSIONS)


def file_extension(filename: str) -> str:
    """Return the lowercase extension of a file name, dot included.

    The extension is whatever follows the last dot. A name without any dot
    is treated as being all extension, so "README" gives ".readme".
    """
    return "." + filename.rsplit(".", 1)[-1].lower()


def is_supported(filename: str) -> bool:
    return file_extension(filename) in SUPPORTED_EXTENSIONS


def validate_upload(
    filename: str | None,
    size: int | None = None,
    max_size: int | None = None,
) -> str:
    """Validate an uploaded file before it is parsed.

    Args:
        filename: Name supplied by the browser.
        size: Size of the upload in bytes, when known.
        max_size: Size ceiling in bytes (defaults to the configured one).

    Returns:
        The file's lowercase extension.

    Raises:
        ValidationError: If no file name was supplied.
        UnsupportedFormatError: If the extension is not allowed.
        FileTooLargeError: If the file exceeds the size ceiling.
    """
    if not filename:
        raise ValidationError(message="A file must be provided", field="file")

    extension = file_extension(filename)
    if extension not in SUPPORTED_EXTENSIONS:
        logger.warning(
            "Rejected upload with unsupported extension",
            file_name=filename,
            extension=extension,
        )
        raise UnsupportedFormatError(
            message=(
                f"Unsupported format '{extension}'. "
                f"Supported: {', '.join(SUPPORTED_EXTENSIONS)}"
            ),
            extension=extension,
            file_name=filename,
        )

    limit = settings.max_file_size_bytes if max_size is None else max_size
    if size is not None and size > limit:
        logger.warning(
            "Rejected upload above size limit",
            file_name=filename,
            file_size=size,
            max_size=limit,
        )
        raise FileTooLargeError(file_size=size, max_size=limit, file_name=filename)

    return extension
