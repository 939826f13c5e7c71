"""Tests for JWT token creation and password hashing."""
import pytest
import time
from datetime import timedelta
from jose import jwt, JWTError


class TestJWTTokens:
    """Test JWT access token behavior."""

    def test_create_access_token(self):
        """Access token should be a non-trivial string."""
        from bizvest.api.deps import create_access_token
        token = create_access_token(data={"sub": "1"})
        assert token is not None
        assert isinstance(token, str)
        assert len(token) > 50

    def test_access_token_decode(self):
        """Access token should be decodable with correct secret."""
        from bizvest.api.deps import create_access_token
        from bizvest.config import settings
        token = create_access_token(data={"sub": "42"})
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["sub"] == "42"
        assert "exp" in payload

    def test_access_token_expiry(self):
        """Access token should expire after ACCESS_TOKEN_EXPIRE_MINUTES (one day)."""
        from bizvest.api.deps import create_access_token
        from bizvest.config import settings
        token = create_access_token(data={"sub": "1"})
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        remaining = payload["exp"] - time.time()
        assert 86000 < remaining < 86500

    def test_access_token_custom_expiry(self):
        """Should support custom expiration delta."""
        from bizvest.api.deps import create_access_token
        from bizvest.config import settings
        token = create_access_token(data={"sub": "1"}, expires_delta=timedelta(minutes=30))
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        remaining = payload["exp"] - time.time()
        assert 1700 < remaining < 1900

    def test_wrong_secret_fails(self):
        """Token decoded with wrong secret should fail."""
        from bizvest.api.deps import create_access_token
        token = create_access_token(data={"sub": "1"})
        with pytest.raises(JWTError):
            jwt.decode(token, "wrong-secret-key", algorithms=["HS256"])

    def test_token_algorithm_is_hs256(self):
        from bizvest.config import settings
        assert settings.ALGORITHM == "HS256"


class TestPasswordHashing:
    def test_hash_and_verify(self):
        from bizvest.services.user_service import get_password_hash, verify_password
        hashed = get_password_hash("rahasia123")
        assert hashed != "rahasia123"
        assert verify_password("rahasia123", hashed) is True
        assert verify_password("salah", hashed) is False

