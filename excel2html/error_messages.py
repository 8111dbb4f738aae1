"""
Error message definitions for the Excel to HTML converter
Provides readable error messages with a suggested fix for each failure category
"""

import zipfile
from enum import Enum

import xlrd
from openpyxl.utils.exceptions import InvalidFileException


class ErrorCategory(Enum):
    """Error category definitions"""

    FILE_NOT_FOUND = "file_not_found"
    UNSUPPORTED_FORMAT = "unsupported_format"
    INVALID_FILE = "invalid_file"
    STRUCTURE = "structure"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class ConversionError(Exception):
    """Custom exception class for workbook conversion"""

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        solution: str,
        original_error: Exception | None = None,
    ):
        self.category = category
        self.message = message
        self.solution = solution
        self.original_error = original_error
        super().__init__(self.get_formatted_message())

    def get_formatted_message(self) -> str:
        """Get formatted error message"""
        return f"{self.message} {self.solution}"


def get_file_not_found_error(
    file_path: str | None, original_error: Exception | None = None
) -> ConversionError:
    """Generate file not found error message"""
    if file_path:
        message = f"The specified workbook was not found: {file_path}"
    else:
        message = "The requested workbook was not found."

    return ConversionError(
        category=ErrorCategory.FILE_NOT_FOUND,
        message=message,
        solution="Please verify the file path is correct and the file is readable.",
        original_error=original_error,
    )


def get_unsupported_format_error(
    file_path: str, original_error: Exception | None = None
) -> ConversionError:
    """Generate unsupported format error message"""
    return ConversionError(
        category=ErrorCategory.UNSUPPORTED_FORMAT,
        message=f"Unsupported workbook format: {file_path}",
        solution="Only .xlsx, .xlsm, .xltx, .xltm and .xls workbooks can be converted.",
        original_error=original_error,
    )


def get_invalid_file_error(
    file_path: str | None, original_error: Exception
) -> ConversionError:
    """Generate invalid file error message"""
    error_str = str(original_error).lower()
    target = f": {file_path}" if file_path else "."

    if "encrypt" in error_str or "password" in error_str:
        return ConversionError(
            category=ErrorCategory.INVALID_FILE,
            message=f"The workbook is encrypted or password protected{target}",
            solution="Please remove the password protection in Excel and save the workbook again.",
            original_error=original_error,
        )

    return ConversionError(
        category=ErrorCategory.INVALID_FILE,
        message=f"The workbook could not be read{target}",
        solution="The file may be corrupted or saved in a different format than its extension suggests. Please open it in Excel and save it again.",
        original_error=original_error,
    )


def get_structure_error(
    message: str, original_error: Exception | None = None
) -> ConversionError:
    """Generate structural inconsistency error message"""
    return ConversionError(
        category=ErrorCategory.STRUCTURE,
        message=message,
        solution="The workbook contains contradictory layout information. Please check merged cells in Excel and save the workbook again.",
        original_error=original_error,
    )


def get_configuration_error(errors: list[str]) -> ConversionError:
    """Generate configuration error message"""
    return ConversionError(
        category=ErrorCategory.CONFIGURATION,
        message=f"Invalid configuration: {'; '.join(errors)}.",
        solution="Please check the EXCEL2HTML_* environment variables or the .env file.",
    )


def get_unknown_error(original_error: Exception, context: str = "") -> ConversionError:
    """Generate unknown error message"""
    context_info = f" (during {context})" if context else ""
    return ConversionError(
        category=ErrorCategory.UNKNOWN,
        message=f"An unexpected error occurred{context_info}.",
        solution="Please check the workbook and try again. If the problem persists, run with --log-level DEBUG and report the log.",
        original_error=original_error,
    )


def handle_conversion_error(
    error: Exception, context: str = "", file_path: str | None = None
) -> ConversionError:
    """
    Classify conversion-related errors into appropriate categories and generate readable messages

    Args:
        error: The exception that occurred
        context: The context where the error occurred ("load", "render", etc.)
        file_path: The workbook being converted, if known

    Returns:
        ConversionError: Categorized error
    """
    if isinstance(error, ConversionError):
        return error

    # Classification by exception type
    if isinstance(error, FileNotFoundError):
        return get_file_not_found_error(file_path, error)
    if isinstance(error, IsADirectoryError):
        return get_file_not_found_error(file_path, error)
    if isinstance(
        error, (zipfile.BadZipFile, InvalidFileException, xlrd.XLRDError, KeyError)
    ) and context == "load":
        return get_invalid_file_error(file_path, error)

    # Classification by error message content
    error_str = str(error).lower()
    if "no such file" in error_str:
        return get_file_not_found_error(file_path, error)
    elif any(
        keyword in error_str
        for keyword in ["not a zip file", "unsupported format", "corrupt", "encrypt"]
    ):
        return get_invalid_file_error(file_path, error)
    elif "file format" in error_str and context == "load":
        return get_unsupported_format_error(file_path or "", error)

    return get_unknown_error(error, context)
