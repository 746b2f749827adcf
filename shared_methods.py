import os
import shutil
from pathlib import Path

from errors import CopyError, DirectoryCreationError, PathComputationError

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.bmp', '.webp', '.tiff', '.tif', '.heic'}

def is_image_file(file_path):
    """
    Checks whether a file is an image we copy, judging only by its extension.

    The comparison is case-insensitive, so "PHOTO.JPG" and "photo.jpg" are treated the same.
    A file without an extension is never an image.

    Args:
    - file_path (str or Path): The path or file name to classify.

    Returns:
    - bool: True if the extension is one of IMAGE_EXTENSIONS, False otherwise.
    """
    return os.path.splitext(str(file_path))[1].lower() in IMAGE_EXTENSIONS

# Copy a single file byte for byte, creating or truncating the destination
def copy_file(source, destination):
    """
    Copies the contents of a file to a new location.

    Only the bytes are copied; permissions and timestamps get the defaults of a newly created file.
    Both files are closed on every exit path, including when the copy fails midway.

    Args:
    - source (str or Path): The file to read from.
    - destination (str or Path): The file to create or overwrite.

    Raises:
    - CopyError: If the source cannot be read or the destination cannot be written.
    """
    try:
        shutil.copyfile(source, destination)
    except OSError as e:
        raise CopyError(destination, e) from e

def ensure_directory(directory):
    """
    Creates a directory and any missing parents. An existing directory is left alone.

    Raises:
    - DirectoryCreationError: If the directory cannot be created (e.g. permission denied).
    """
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(directory, e) from e

def get_destination(input_root, output_root, file_path):
    """
    Maps a file under the input root to its mirrored location under the output root.

    Args:
    - input_root (str or Path): The root of the tree being copied.
    - output_root (str or Path): The root of the mirrored tree.
    - file_path (str or Path): A file somewhere below input_root.

    Returns:
    - tuple: (relative_path, destination_path), both Path objects.

    Raises:
    - PathComputationError: If file_path is not below input_root.

    Example:
    - Input: ('in', 'out', 'in/sub/b.png')
    - Output: (Path('sub/b.png'), Path('out/sub/b.png'))
    """
    try:
        relative_path = Path(file_path).relative_to(input_root)
    except ValueError as e:
        raise PathComputationError(file_path, e) from e
    return relative_path, Path(output_root) / relative_path

# Get the count of files in a directory based on the filter
def get_file_count(directory, filter, logger, progress_bar=None):
    """
    Counts the files below a directory whose extension is in a filter.

    Used only to size the progress bar, so a directory that cannot be read is logged and left
    out of the count instead of failing; the copy pass itself reports such errors.

    Args:
    - directory (str): The directory to search recursively.
    - filter (set): Lower-case extensions including the dot (e.g. {'.jpg', '.png'}).
    - logger: A logging object used for logging information and errors.
    - progress_bar (optional): An optional progress bar object for visual progress feedback.

    Returns:
    - int: The number of matching files.
    """
    log_debug(logger, f"Counting {sorted(filter)} files in directory: {directory}", progress_bar)
    total_files = 0

    def on_error(e):
        log_warning(logger, f"Skipping unreadable directory while counting: {e}", progress_bar)

    for root, dirs, files in os.walk(directory, onerror=on_error):
        total_files += len([f for f in files if os.path.splitext(f)[1].lower() in filter])
    return total_files

def log_debug(logger, message, progress_bar=None):
    """
    Logs a debug message and mirrors it into the progress bar description, if there is one.
    """
    if progress_bar:
        progress_bar.set_description(message)
    if logger:
        logger.debug(message)

def log_info(logger, message, progress_bar=None):
    """
    Logs an informational message and mirrors it into the progress bar description, if there is one.

    Args:
    - logger: The logging object used to log the message.
    - message (str): The message to be logged.
    - progress_bar (optional): A progress bar object that can be updated with the message (optional).
    """
    if progress_bar:
        progress_bar.set_description(message)
    if logger:
        logger.info(message)

def log_error(logger, message, e=None, progress_bar=None):
    """
    Logs an error message, followed by the exception text when one is given.

    Args:
    - logger: The logging object used to log the error.
    - message (str): The error message to be logged.
    - e (Exception, optional): The exception that caused the error.
    - progress_bar (optional): A progress bar object that can be updated with the error message (optional).
    """
    if progress_bar:
        progress_bar.set_description(message)
    if logger:
        logger.error(f"{message} {e}" if e is not None else message)

def log_warning(logger, message, progress_bar=None):
    if progress_bar:
        progress_bar.set_description(message)
    if logger:
        logger.warning(message)
