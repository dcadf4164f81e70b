import io
import os
import re

from PIL import Image


def clean_cli_output(output: str) -> str:
    """
    Remove ANSI escape codes, Rich formatting characters, whitespace, and newlines
    from CLI output to make assertions robust against terminal wrapping.
    """
    # 1. Remove ANSI escape codes
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    output = ansi_escape.sub("", output)

    # 2. Remove:
    # \s - all whitespace (space, tab, newline, etc.)
    # │, ╭, ╮, ╰, ╯, ─ - Rich box characters
    return re.sub(r"[\s│╭╮╰╯─]", "", output)


def make_image_bytes(
    width: int, height: int, fmt: str = "JPEG", noise: bool = False, **save_kwargs
) -> bytes:
    """Encode a test image. Random noise defeats compression, giving large files."""
    if noise:
        image = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    else:
        image = Image.new("RGB", (width, height), color=(240, 240, 230))
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **save_kwargs)
    return buffer.getvalue()


def make_mpo_bytes(width: int, height: int) -> bytes:
    """Encode a two-frame MPO, the JPEG variant many phone cameras write."""
    first = Image.new("RGB", (width, height), color=(240, 240, 230))
    second = Image.new("RGB", (width // 2, height // 2), color=(20, 20, 20))
    buffer = io.BytesIO()
    first.save(buffer, format="MPO", save_all=True, append_images=[second])
    return buffer.getvalue()
