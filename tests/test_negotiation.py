"""
Tests for Accept header negotiation of the default error body.
"""

import pytest

from graceful_errors.interfaces.negotiation import negotiate

OFFERED = ["json", "text", "html"]


class TestNegotiate:
    """Tests for negotiate()."""

    @pytest.mark.parametrize("accept", [None, "", "*/*"])
    def test_anything_picks_first_offered(self, accept: object) -> None:
        assert negotiate(accept, OFFERED) == "json"

    def test_exact_match(self) -> None:
        assert negotiate("text/plain", OFFERED) == "text"

    def test_browser_accept_prefers_html(self) -> None:
        accept = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
        assert negotiate(accept, OFFERED) == "html"

    def test_quality_values(self) -> None:
        assert negotiate("application/json;q=0.5, text/plain;q=0.9", OFFERED) == "text"

    def test_subtype_wildcard(self) -> None:
        """text/* matches text/plain before text/html because of server order."""
        assert negotiate("text/*", OFFERED) == "text"

    def test_zero_quality_excludes(self) -> None:
        assert negotiate("application/json;q=0, */*", OFFERED) == "text"

    def test_nothing_acceptable(self) -> None:
        assert negotiate("image/png", OFFERED) is None

    def test_unknown_tokens_ignored(self) -> None:
        assert negotiate("*/*", ["xml"]) is None
