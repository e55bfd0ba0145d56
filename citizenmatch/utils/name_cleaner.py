"""Name normalization applied before any comparison.

Lower-cases, drops punctuation (anything that is not a letter, digit or
whitespace) and collapses whitespace runs, so that 'DELA  Cruz' and
'dela-cruz' compare on the same footing.
"""

import re
from typing import Optional

# Underscore is a word character for the regex engine but not part of a name
PUNCTUATION = re.compile(r'[^\w\s]|_')
WHITESPACE = re.compile(r'\s+')


def normalize(text: Optional[str]) -> str:
    """Normalize a name field for matching.

    Args:
        text: Raw name value, None for a missing field

    Returns:
        Normalized text, '' for None
    """
    if not text:
        return ''

    normalized = PUNCTUATION.sub('', text.lower())
    return WHITESPACE.sub(' ', normalized).strip()
