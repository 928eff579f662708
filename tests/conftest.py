import uuid
from typing import Optional

import pytest
from jose import jwt

from civicconnect.config import settings


def make_token(
    role: str = "user",
    user_id: Optional[uuid.UUID] = None,
    department_id: Optional[uuid.UUID] = None,
    area_id: Optional[uuid.UUID] = None,
    email: str = "someone@example.com",
) -> str:
    claims = {
        "sub": str(user_id or uuid.uuid4()),
        "role": role,
        "email": email,
    }
    if department_id:
        claims["department_id"] = str(department_id)
    if area_id:
        claims["area_id"] = str(area_id)
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token(role='admin', email='admin@city.gov')}"}


@pytest.fixture
def citizen_headers():
    return {"Authorization": f"Bearer {make_token(role='user')}"}


@pytest.fixture
def contractor_headers():
    return {"Authorization": f"Bearer {make_token(role='tender')}"}
