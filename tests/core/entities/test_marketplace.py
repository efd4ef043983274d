"""Tests for marketplace entities."""

from datetime import datetime, timedelta

from src.core.entities.marketplace import OAuthToken

NOW = datetime(2026, 1, 15, 12, 0, 0)


class TestOAuthToken:
    def test_access_token_valid(self):
        token = OAuthToken(
            provider="ebay",
            access_token="abc",
            access_token_expires_at=NOW + timedelta(hours=1),
        )
        assert token.access_token_valid(now=NOW)

    def test_access_token_within_margin_is_invalid(self):
        token = OAuthToken(
            provider="ebay",
            access_token="abc",
            access_token_expires_at=NOW + timedelta(seconds=30),
        )
        assert not token.access_token_valid(margin_seconds=60, now=NOW)

    def test_missing_access_token(self):
        token = OAuthToken(provider="ebay", access_token_expires_at=NOW + timedelta(hours=1))
        assert not token.access_token_valid(now=NOW)

    def test_refresh_token_without_expiry_is_valid(self):
        assert OAuthToken(provider="ebay", refresh_token="r").refresh_token_valid(now=NOW)

    def test_refresh_token_expired(self):
        token = OAuthToken(
            provider="ebay",
            refresh_token="r",
            refresh_token_expires_at=NOW - timedelta(days=1),
        )
        assert not token.refresh_token_valid(now=NOW)

    def test_no_refresh_token(self):
        assert not OAuthToken(provider="ebay").refresh_token_valid(now=NOW)
