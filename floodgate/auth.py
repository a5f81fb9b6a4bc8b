import re
from fastapi import HTTPException
from floodgate.config import ADMIN_KEY

ADDRESS_RE = re.compile(r"^[0-9A-Za-z.:_%\[\]-]{1,64}$")


def safe_address(address: str) -> str:
    address = address.strip()
    if not ADDRESS_RE.match(address):
        raise HTTPException(status_code=400, detail="invalid address")
    return address


def auth_header_key(x_admin_key: str | None):
    if x_admin_key != ADMIN_KEY:
        raise HTTPException(status_code=401, detail="invalid key")
