"""kioku: spaced-repetition scheduling and recommendation engine."""

from kioku.consts import VERSION

__version__ = VERSION
