from __future__ import annotations

import os
import random
from typing import List, Optional


def load_image_pool(images_dir: str, extension: str = ".webp") -> List[str]:
    """Paths of the candidate images, in sorted order.  Missing directory gives ``[]``."""
    if not os.path.isdir(images_dir):
        return []
    return [
        os.path.join(images_dir, name)
        for name in sorted(os.listdir(images_dir))
        if name.lower().endswith(extension.lower())
    ]


def select_unique_images(pool: List[str], count: int, rng: Optional[random.Random] = None) -> List[str]:
    """
    Pick ``count`` distinct images from ``pool`` with a partial Fisher-Yates
    shuffle.  Returns fewer than ``count`` paths if the pool is too small;
    ``pool`` itself is not modified.
    """
    rng = rng or random.Random()
    candidates = list(pool)
    count = max(0, min(count, len(candidates)))
    for i in range(count):
        j = rng.randrange(i, len(candidates))
        candidates[i], candidates[j] = candidates[j], candidates[i]
    return candidates[:count]
