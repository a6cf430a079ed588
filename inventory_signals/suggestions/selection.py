"""
Random source for the non-deterministic parts of the suggestion engine
(bundle-template pick, category-performance sampling).

Modes
-----
random : A fresh, system-seeded generator per call. The merchant sees a
         different bundle idea each time they open a product.
stable : A generator seeded from SHA-256 of the product id (plus a salt per
         use site). The same product always gets the same draw.

An explicit ``random.Random`` passed by the caller always wins over the mode;
tests use this to assert exact output.
"""

from __future__ import annotations

import hashlib
import random
from typing import Optional

SELECTION_MODES = ("random", "stable")


def make_rng(
    product_id: str,
    mode: str = "random",
    rng: Optional[random.Random] = None,
    salt: str = "",
) -> random.Random:
    """Return the generator to draw from for one product.

    Args:
        product_id: Product the draw is for (used by ``stable`` mode).
        mode:       ``"random"`` or ``"stable"``.
        rng:        Caller-supplied generator; returned unchanged if given.
        salt:       Distinguishes independent draws for the same product.

    Raises:
        ValueError: If ``mode`` is unknown.
    """
    if rng is not None:
        return rng
    if mode == "stable":
        digest = hashlib.sha256(f"{salt}:{product_id}".encode("utf-8")).hexdigest()
        return random.Random(int(digest[:16], 16))
    if mode == "random":
        return random.Random()
    raise ValueError(f"Unknown selection mode '{mode}'. Expected one of {SELECTION_MODES}.")
