import logging

import pytest


@pytest.fixture(autouse=True)
def clean_logger():
    """Drop logger handlers left behind by a previous test."""
    yield
    logger = logging.getLogger('igcopy')
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def image_tree(tmp_path):
    """in/a.jpg, in/sub/b.png and in/notes.txt, plus an empty out/ root."""
    src = tmp_path / "in"
    (src / "sub").mkdir(parents=True)
    (src / "a.jpg").write_bytes(b"\xff\xd8jpeg-bytes")
    (src / "sub" / "b.png").write_bytes(b"\x89PNG-bytes")
    (src / "notes.txt").write_text("not an image")
    return src, tmp_path / "out"
