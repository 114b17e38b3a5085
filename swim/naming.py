"""Readable random names for snapshot images and replacement containers."""
from typing import Optional, Tuple

import petname

NAME_WORDS = 3
NAME_SEPARATOR = "-"


def random_name() -> str:
    return petname.generate(NAME_WORDS, NAME_SEPARATOR)


def placeholder_names(image_name: Optional[str] = None, container_name: Optional[str] = None) -> Tuple[str, str]:
    """Fill in whichever of the two names the operator left out.

    Each missing name is drawn on its own. A generated container name never
    equals the image name, so a listing can tell the two apart.
    """
    image_name = image_name or random_name()
    if container_name:
        return image_name, container_name

    container_name = random_name()
    while container_name == image_name:
        container_name = random_name()
    return image_name, container_name
