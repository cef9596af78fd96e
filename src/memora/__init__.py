"""memora: spaced-repetition review engine with cascading answer grading."""

from memora.consts import VERSION

__version__ = VERSION
