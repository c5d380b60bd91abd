"""Collation keys for name uniqueness.

Names are unique per scope under a locale collation at secondary strength:
case differences are ignored, accents are not ("Łódź" == "ŁÓDŹ" but
"Lodz" != "Łódź"). The key is stored next to the name and covered by a
unique index, so the database decides duplicates atomically with the insert.
"""

import unicodedata


def collation_key(value: str) -> str:
    if value is None:
        return ""
    # NFC first so composed and decomposed accents produce the same key
    return unicodedata.normalize("NFC", value.strip()).casefold()


def same_name(a: str, b: str) -> bool:
    return collation_key(a) == collation_key(b)
