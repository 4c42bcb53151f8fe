"""Error taxonomy for kioku."""


class KiokuError(Exception):
    """Base class for every error raised by kioku."""


class InvalidInputError(KiokuError, ValueError):
    """
    Raised when a caller supplies input outside the engine's domain.

    Examples: a review quality outside 0..5, ``max_cards <= 0``, duplicate
    card IDs in a catalog, or a record field that violates its invariants.
    """
