"""
Constants shared across the engine.
"""

# Encoded value for an omitted or unreadable answer in integer response matrices
MISSING_VALUE = -1

# Character used for a blank answer in scanned answer strings
MISSING_CHAR = "*"

# Options shown for a true/false question that carries no option list
DEFAULT_TRUE_FALSE_OPTIONS = ("True", "False")

# Bounds on the number of variants per generation
MIN_VARIANTS = 1
MAX_VARIANTS = 10

# Fallback letter when a correct answer cannot be located among the options
FALLBACK_ANSWER_LETTER = "A"

# Options are labelled A-Z on the sheet
MAX_OPTIONS = 26
