from anyio import to_thread
from pwdlib import PasswordHash

password_hash = PasswordHash.recommended()


def get_password_hash(password: str) -> str:
    """
    Hash password
    Args:
        password: Plain password

    Returns:
        Hashed password
    """
    return password_hash.hash(password)


async def hash_password_async(password: str) -> str:
    """
    Hash password in a worker thread so the event loop keeps serving other requests.
    Args:
        password: Plain password

    Returns:
        Hashed password
    """
    return await to_thread.run_sync(get_password_hash, password)
