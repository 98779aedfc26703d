from uuid import UUID


def build_object_key(folder: str, owner_id: UUID | str, item_name: str) -> str:
    """Deterministic storage key: ``{folder}/{owner_id}/{item_name}``."""
    return f"{folder.strip('/')}/{owner_id}/{item_name.lstrip('/')}"


def owner_prefix(folder: str, owner_id: UUID | str) -> str:
    return f"{folder.strip('/')}/{owner_id}/"


def key_belongs_to_owner(key: str, owner_id: UUID | str, folders: set[str]) -> bool:
    """Check that ``key`` lives under one of ``folders`` for ``owner_id``.

    Args:
        key: Storage key supplied by a caller
        owner_id: Caller's user id
        folders: Top-level folders the caller may read from

    Returns:
        True if the key is inside ``{folder}/{owner_id}/`` for some folder
    """
    if ".." in key.split("/"):
        return False
    return any(key.startswith(owner_prefix(folder, owner_id)) for folder in folders)
