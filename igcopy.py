import argparse
import logging
import os
import sys

from tqdm import tqdm

from errors import IgCopyError, TraversalError
from ledger import LedgerCache
from logger_config import setup_custom_logger
from shared_methods import (IMAGE_EXTENSIONS, copy_file, ensure_directory, get_destination, get_file_count,
                            is_image_file, log_debug, log_error, log_info)

LOGGER_NAME = 'igcopy'

logger = logging.getLogger(LOGGER_NAME)


class CopyStats:
    def __init__(self):
        self.copied = 0
        self.skipped = 0


def notice(message, logger, progress_bar=None):
    # One line per file on stdout, without breaking an active progress bar
    tqdm.write(message)
    log_debug(logger, message, progress_bar)

def walk_files(directory):
    """
    Yields every file below a directory, visiting a directory before its contents
    and names in sorted order. Symlinked directories are not followed.

    Raises:
    - TraversalError: If a directory cannot be listed.
    """
    def on_error(e):
        raise TraversalError(e.filename or directory, e) from e

    for root, dirs, files in os.walk(directory, onerror=on_error):
        dirs.sort()
        for filename in sorted(files):
            yield os.path.join(root, filename)

def copy_images(input_dir, output_dir, ledgers, logger=logger, progress_bar=None):
    """
    Copies every image below input_dir to the same relative location below output_dir.

    Each destination directory gets its own ledger of copied file names; a name already in the
    ledger is skipped, which makes repeated runs cheap. Destination directories are created only
    when an image is copied into them.

    The first failure stops the whole run: files copied before it stay copied and registered, and
    nothing after it is processed. A file whose registration fails after the copy is left in place;
    the next run copies it again.

    Args:
    - input_dir (str): The root of the tree to copy from.
    - output_dir (str): The root of the mirrored tree.
    - ledgers (LedgerCache): Open ledgers for this run, owned by the caller.
    - logger: A logging object used for logging information and errors.
    - progress_bar (optional): A progress bar advanced once per image.

    Returns:
    - CopyStats: How many images were copied and how many were skipped.

    Raises:
    - IgCopyError: The first error encountered, naming the failed operation and path.
    """
    stats = CopyStats()
    for file_path in walk_files(input_dir):
        if not is_image_file(file_path):
            continue

        relative_path, destination = get_destination(input_dir, output_dir, file_path)
        destination_dir = os.path.dirname(destination)
        file_name = os.path.basename(destination)

        ensure_directory(destination_dir)
        ledger = ledgers.get_or_open(destination_dir)

        if ledger.exists(file_name):
            notice(f"[Skipped] {relative_path} (already in DB)", logger, progress_bar)
            stats.skipped += 1
        else:
            notice(f"[Copying] {relative_path}", logger, progress_bar)
            copy_file(file_path, destination)
            ledger.insert(file_name)
            stats.copied += 1

        if progress_bar:
            progress_bar.update(1)
    return stats

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Copy images into a mirrored tree, skipping ones already copied.")
    parser.add_argument('--input', required=True, help="Input directory")
    parser.add_argument('--output', required=True, help="Output directory")
    args = parser.parse_args(argv)
    # An empty value counts as missing
    if not args.input or not args.output:
        parser.error("--input and --output are required")
    return args

def main(argv=None):
    args = parse_args(argv)
    logger = setup_custom_logger(LOGGER_NAME)
    log_info(logger, f"Copying images from \"{args.input}\" to \"{args.output}\"")

    total_files = get_file_count(args.input, IMAGE_EXTENSIONS, logger)
    progress_bar = tqdm(total=total_files, desc='Copying Images', unit='files', disable=None)
    try:
        with LedgerCache(logger=logger) as ledgers:
            stats = copy_images(args.input, args.output, ledgers, logger, progress_bar)
    except IgCopyError as e:
        log_error(logger, "Error:", e)
        return 1
    finally:
        progress_bar.close()

    log_info(logger, f"Copied {stats.copied}, skipped {stats.skipped}.")
    return 0

if __name__ == "__main__":
    sys.exit(main())
