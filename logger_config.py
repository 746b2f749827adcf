import logging
import os

def setup_custom_logger(name, log_dir='.'):
    logger = logging.getLogger(name)
    # Already configured by an earlier call in this process
    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt='%(asctime)s - %(levelname)s - %(module)s - %(message)s')

    # File handler keeps per-file notices too
    file_handler = logging.FileHandler(os.path.join(log_dir, name + '.log'))
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.INFO)

    logger.setLevel(logging.DEBUG)
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
