from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import Security
from fastapi.security import APIKeyHeader

from pagewiki.core.config import admin_password
from pagewiki.core.errors import APIError


admin_password_header = APIKeyHeader(name="X-Admin-Password", auto_error=False)


async def require_admin(
    x_admin_password: Annotated[str | None, Security(admin_password_header)],
) -> None:
    expected = admin_password()
    # Missing, wrong and unconfigured credentials all look the same.
    if not expected or not x_admin_password:
        raise APIError(status_code=401, code="unauthorized", message="Invalid admin credentials")
    if not hmac.compare_digest(x_admin_password.encode(), expected.encode()):
        raise APIError(status_code=401, code="unauthorized", message="Invalid admin credentials")
