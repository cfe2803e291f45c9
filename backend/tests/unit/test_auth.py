import jwt
import pytest

from app.domain.common.errors import Unauthorized
from app.infra import jwt as jwt_helper
from app.infra.auth import authenticate
from app.settings import settings


def test_authenticate_accepts_bearer_prefix(issue_token):
	token = issue_token("user-1", role="employer", name="Erin")

	user = authenticate(f"Bearer {token}")

	assert user.id == "user-1"
	assert user.role == "employer"
	assert user.name == "Erin"
	assert authenticate(token).id == "user-1"


@pytest.mark.parametrize("credential", [None, "", "   "])
def test_authenticate_requires_token(credential):
	with pytest.raises(Unauthorized) as excinfo:
		authenticate(credential)

	assert excinfo.value.reason == "missing_token"


def test_authenticate_rejects_expired_token():
	token = jwt_helper.encode_access({"sub": "user-1", "role": "jobseeker"}, ttl_seconds=-60)

	with pytest.raises(Unauthorized) as excinfo:
		authenticate(token)

	assert excinfo.value.reason == "invalid_token"


def test_authenticate_rejects_unknown_role(issue_token):
	with pytest.raises(Unauthorized):
		authenticate(issue_token("user-1", role="superuser"))


def test_authenticate_rejects_foreign_signature():
	token = jwt.encode(
		{"sub": "user-1", "role": "jobseeker", "iss": settings.jwt_issuer, "aud": settings.jwt_audience, "iat": 0, "exp": 4102444800},
		"another-secret-key-that-is-long-enough-0123456789",
		algorithm="HS256",
	)

	with pytest.raises(Unauthorized):
		authenticate(token)


def test_authenticate_rejects_wrong_audience():
	token = jwt_helper.encode_access({"sub": "user-1", "role": "jobseeker", "aud": "someone-else"})

	with pytest.raises(Unauthorized):
		authenticate(token)
