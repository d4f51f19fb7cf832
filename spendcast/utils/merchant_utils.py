"""Merchant name normalization"""

import re

# Legal-form suffixes that do not change merchant identity ("Biedronka Sp. z o.o." == "biedronka")
LEGAL_SUFFIXES = (
    "sp z o o",
    "sp k",
    "s a",
    "inc",
    "ltd",
    "llc",
    "plc",
    "gmbh",
    "corp",
    "co",
)

_NON_WORD = re.compile(r"[^\w]+", re.UNICODE)
_UNDERSCORES = re.compile(r"_+")


def normalize_merchant_key(name: str) -> str:
    """
    Reduce a merchant name to a comparison key.

    Case, punctuation, repeated whitespace and a trailing legal-form suffix
    are ignored, so "  ŻABKA  Polska sp. z o.o." and "Żabka polska" share a key.
    """
    key = _NON_WORD.sub(" ", name.lower())
    key = _UNDERSCORES.sub(" ", key)
    key = " ".join(key.split())

    stripped = True
    while stripped:
        stripped = False
        for suffix in LEGAL_SUFFIXES:
            if key.endswith(" " + suffix):
                key = key[: -len(suffix) - 1].rstrip()
                stripped = True
                break

    return key
