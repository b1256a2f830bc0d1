"""
Composite item identifiers.

An item id is "<record-id>:<language-code>". Record ids never contain the
delimiter; language codes might, so decoding splits on the first
occurrence only.
"""

from typing import Tuple, Union

from .exceptions import MalformedIdentity

ITEM_ID_DELIMITER = ":"


def encode_item_id(record_id: Union[str, int], langcode: str) -> str:
    """
    Build the item id of one language variant of a record.

    Record ids are always strings once encoded, so decoding the result of
    `encode_item_id(42, "en")` gives back ("42", "en"), the same id a
    Record carries.

    Args:
        record_id: Identifier of the record; integers are converted to str
        langcode: Language code of the translation

    Returns:
        The composite item id

    Raises:
        MalformedIdentity: If either part is empty or the record id
            contains the delimiter
    """
    record_id = str(record_id)
    if not record_id:
        raise MalformedIdentity("record id cannot be empty")
    if ITEM_ID_DELIMITER in record_id:
        raise MalformedIdentity(
            f"record id '{record_id}' cannot contain '{ITEM_ID_DELIMITER}'"
        )
    if not langcode:
        raise MalformedIdentity("language code cannot be empty")
    return f"{record_id}{ITEM_ID_DELIMITER}{langcode}"


def decode_item_id(item_id: str) -> Tuple[str, str]:
    """
    Split an item id into (record id, language code).

    Raises:
        MalformedIdentity: If the id has no delimiter or an empty part
    """
    if not isinstance(item_id, str):
        raise MalformedIdentity(f"item id must be a string, got {type(item_id).__name__}")

    record_id, delimiter, langcode = item_id.partition(ITEM_ID_DELIMITER)
    if not delimiter:
        raise MalformedIdentity(f"item id '{item_id}' has no '{ITEM_ID_DELIMITER}' delimiter")
    if not record_id or not langcode:
        raise MalformedIdentity(f"item id '{item_id}' has an empty record id or language")
    return record_id, langcode
