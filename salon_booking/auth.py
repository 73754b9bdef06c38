import logging
import secrets
from typing import Optional

from fastapi import Header, Request

from . import config
from .errors import Unauthorized

logger = logging.getLogger(__name__)


def admin_key_matches(supplied: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time comparison; an unset expected key never matches"""
    if not expected or not supplied:
        return False
    return secrets.compare_digest(supplied.encode(), expected.encode())


async def require_admin(
    request: Request, x_admin_key: Optional[str] = Header(default=None, alias="x-admin-key")
) -> None:
    """Gate for every /api/admin route: the x-admin-key header must equal ADMIN_KEY"""
    if not admin_key_matches(x_admin_key, config.ADMIN_KEY):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected admin request to {request.url.path} from {client_ip}")
        raise Unauthorized()
