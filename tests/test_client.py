"""Tests for GitHub client."""

import time

import httpx
import pytest
import respx

from prsift.errors import GraphQueryFailure, RemoteFetchError
from prsift.github_client import GitHubAppAuth, GitHubClient, has_next_page, retry_after_seconds
from prsift.repo import PullRequestRef

PR = PullRequestRef(owner="acme", repo="widgets", number=7)
API = "https://api.github.com"


class TestGitHubClient:
    """Test GitHubClient with mocked HTTP."""

    @pytest.fixture
    async def github_client(self):
        """Create async GitHubClient for tests."""
        client = GitHubClient(token="fake-token")
        async with client:
            yield client

    @pytest.mark.trio
    @respx.mock
    async def test_get_page(self, github_client):
        route = respx.get(f"{API}/items").mock(
            return_value=httpx.Response(
                200,
                json=[{"id": 1}, {"id": 2}],
                headers={"link": f'<{API}/items?page=2>; rel="next", <{API}/items?page=5>; rel="last"'},
            )
        )
        page = await github_client.get_page("/items", page=1, per_page=2)

        assert [item["id"] for item in page.items] == [1, 2]
        assert page.has_next is True
        assert github_client.request_count == 1
        assert route.calls.last.request.url.params["per_page"] == "2"
        assert route.calls.last.request.headers["Authorization"] == "Bearer fake-token"

    @pytest.mark.trio
    @respx.mock
    async def test_last_page(self, github_client):
        respx.get(f"{API}/items").mock(
            return_value=httpx.Response(200, json=[{"id": 3}], headers={"link": f'<{API}/items?page=1>; rel="prev"'})
        )
        page = await github_client.get_page("/items", page=2, per_page=2)
        assert page.has_next is False

    @pytest.mark.trio
    @respx.mock
    async def test_pr_listings(self, github_client):
        review_comments = respx.get(f"{API}/repos/acme/widgets/pulls/7/comments").mock(
            return_value=httpx.Response(200, json=[])
        )
        issue_comments = respx.get(f"{API}/repos/acme/widgets/issues/7/comments").mock(
            return_value=httpx.Response(200, json=[])
        )
        reviews = respx.get(f"{API}/repos/acme/widgets/pulls/7/reviews").mock(
            return_value=httpx.Response(200, json=[])
        )

        await github_client.list_review_comments(PR, 3, 20)
        await github_client.list_issue_comments(PR, 3, 20)
        await github_client.list_reviews(PR, 3, 20)

        for route in (review_comments, issue_comments, reviews):
            assert route.calls.last.request.url.params["page"] == "3"

    @pytest.mark.trio
    @respx.mock
    async def test_non_list_payload(self, github_client):
        respx.get(f"{API}/items").mock(return_value=httpx.Response(200, json={"message": "odd"}))
        with pytest.raises(RemoteFetchError, match="Expected a list"):
            await github_client.get_page("/items", 1, 20)

    @pytest.mark.trio
    @respx.mock
    async def test_non_json_body(self, github_client):
        respx.get(f"{API}/items").mock(return_value=httpx.Response(200, text="<html>proxy error</html>"))
        with pytest.raises(RemoteFetchError, match="not JSON"):
            await github_client.get_page("/items", 1, 20)

    @pytest.mark.trio
    @respx.mock
    async def test_not_found(self, github_client):
        respx.get(f"{API}/items").mock(return_value=httpx.Response(404, json={"message": "Not Found"}))
        with pytest.raises(RemoteFetchError) as exc_info:
            await github_client.get_page("/items", 1, 20)
        assert exc_info.value.status_code == 404

    @pytest.mark.trio
    @respx.mock
    async def test_transport_error(self, github_client):
        respx.get(f"{API}/items").mock(side_effect=httpx.ConnectError("boom"))
        with pytest.raises(RemoteFetchError, match="boom"):
            await github_client.get_page("/items", 1, 20)

    @pytest.mark.trio
    @respx.mock
    async def test_rate_limit_handling(self, github_client, autojump_clock):
        respx.get(f"{API}/test").mock(
            side_effect=[
                httpx.Response(403, json={"message": "rate limit"}, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(int(time.time()) + 1)}),
                httpx.Response(200, json=[{"ok": True}]),
            ]
        )
        page = await github_client.get_page("/test", 1, 20)
        assert page.items == [{"ok": True}]

    @pytest.mark.trio
    @respx.mock
    async def test_server_error_retry(self, github_client, autojump_clock):
        respx.get(f"{API}/flaky").mock(
            side_effect=[
                httpx.Response(502, text="Bad Gateway"),
                httpx.Response(200, json=[{"recovered": True}]),
            ]
        )
        page = await github_client.get_page("/flaky", 1, 20)
        assert page.items[0]["recovered"] is True

    @pytest.mark.trio
    @respx.mock
    async def test_server_error_exhausts_retries(self, github_client, autojump_clock):
        respx.get(f"{API}/down").mock(return_value=httpx.Response(503, text="Unavailable"))
        with pytest.raises(RemoteFetchError, match="Max retries exceeded"):
            await github_client.get_page("/down", 1, 20)

    @pytest.mark.trio
    @respx.mock
    async def test_handle_rate_limit_returns_false_for_success(self, github_client):
        response = httpx.Response(200, json={})
        assert await github_client._handle_rate_limit(response) is False

    @pytest.mark.trio
    @respx.mock
    async def test_handle_rate_limit_returns_false_for_other_403(self, github_client):
        response = httpx.Response(403, json={"message": "forbidden"}, headers={"X-RateLimit-Remaining": "100"})
        assert await github_client._handle_rate_limit(response) is False

    @pytest.mark.trio
    @respx.mock
    async def test_secondary_rate_limit_403_with_retry_after(self, github_client, autojump_clock):
        """Test that 403 with Retry-After header is handled as secondary rate limit."""
        respx.get(f"{API}/test").mock(
            side_effect=[
                httpx.Response(
                    403,
                    json={"message": "secondary rate limit"},
                    headers={"Retry-After": "2", "X-RateLimit-Remaining": "100"},
                ),
                httpx.Response(200, json=[]),
            ]
        )
        page = await github_client.get_page("/test", 1, 20)
        assert page.items == []

    @pytest.mark.trio
    @respx.mock
    async def test_secondary_rate_limit_429_with_retry_after(self, github_client, autojump_clock):
        """Test that 429 with Retry-After header triggers proper wait."""
        respx.get(f"{API}/test").mock(
            side_effect=[
                httpx.Response(429, json={"message": "too many requests"}, headers={"Retry-After": "3"}),
                httpx.Response(200, json=[]),
            ]
        )
        page = await github_client.get_page("/test", 1, 20)
        assert page.items == []

    @pytest.mark.trio
    @respx.mock
    async def test_retry_after_http_date(self, github_client, autojump_clock):
        respx.get(f"{API}/test").mock(
            side_effect=[
                httpx.Response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}),
                httpx.Response(200, json=[]),
            ]
        )
        page = await github_client.get_page("/test", 1, 20)
        assert page.items == []

    @pytest.mark.trio
    @respx.mock
    async def test_rate_limit_headers_tracked(self, github_client):
        respx.get(f"{API}/items").mock(
            return_value=httpx.Response(200, json=[], headers={"X-RateLimit-Remaining": "4321", "X-RateLimit-Reset": "1700000000"})
        )
        await github_client.get_page("/items", 1, 20)
        assert github_client.rate_limit_remaining == 4321
        assert github_client.rate_limit_reset == 1700000000

    def test_rate_limit_tracking(self, github_client_uninit):
        """Test that rate limit properties have sensible defaults."""
        assert github_client_uninit.rate_limit_remaining == 5000
        assert github_client_uninit.rate_limit_reset == 0

    def test_auth_type_pat(self, github_client_uninit):
        assert github_client_uninit.auth_type == "pat"

    def test_missing_auth_raises(self, monkeypatch):
        monkeypatch.setattr("prsift.github_client.GITHUB_TOKEN", None)
        monkeypatch.setattr("prsift.github_client.GITHUB_APP_ID", None)
        with pytest.raises(ValueError, match="GitHub auth required"):
            GitHubClient()

    @pytest.mark.trio
    async def test_request_requires_context_manager(self, github_client_uninit):
        with pytest.raises(RuntimeError, match="Client not initialized"):
            await github_client_uninit.get_page("/items", 1, 20)


class TestGraphQL:
    @pytest.fixture
    async def github_client(self):
        async with GitHubClient(token="fake-token") as client:
            yield client

    @pytest.mark.trio
    @respx.mock
    async def test_returns_data(self, github_client):
        respx.post(f"{API}/graphql").mock(return_value=httpx.Response(200, json={"data": {"viewer": {"login": "me"}}}))
        assert await github_client.graphql("query { viewer { login } }", {}) == {"viewer": {"login": "me"}}

    @pytest.mark.trio
    @respx.mock
    async def test_errors_list(self, github_client):
        respx.post(f"{API}/graphql").mock(
            return_value=httpx.Response(200, json={"data": None, "errors": [{"message": "Field 'x' doesn't exist"}]})
        )
        with pytest.raises(GraphQueryFailure, match="doesn't exist"):
            await github_client.graphql("query { x }", {})

    @pytest.mark.trio
    @respx.mock
    async def test_not_json(self, github_client):
        respx.post(f"{API}/graphql").mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(GraphQueryFailure):
            await github_client.graphql("query { x }", {})

    @pytest.mark.trio
    @respx.mock
    async def test_http_failure(self, github_client, autojump_clock):
        respx.post(f"{API}/graphql").mock(return_value=httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(GraphQueryFailure):
            await github_client.graphql("query { x }", {})


class TestRetryAfterSeconds:
    def test_delta_seconds(self):
        assert retry_after_seconds("7") == 7

    def test_missing_uses_default(self):
        assert retry_after_seconds(None) == 60

    def test_unparseable_uses_default(self):
        assert retry_after_seconds("soon") == 60

    def test_past_http_date(self):
        assert retry_after_seconds("Wed, 21 Oct 2015 07:28:00 GMT") == 0

    def test_future_http_date(self):
        assert 0 < retry_after_seconds("Fri, 01 Jan 2999 00:00:00 GMT")


class TestHasNextPage:
    def test_no_link_header(self):
        assert has_next_page(httpx.Response(200, json=[])) is False

    def test_next_link(self):
        response = httpx.Response(200, json=[], headers={"link": '<https://x/?page=2>; rel="next"'})
        assert has_next_page(response) is True


class TestGitHubAppAuth:
    @pytest.fixture
    def private_key_path(self, tmp_path):
        from cryptography.hazmat.primitives import serialization
        from cryptography.hazmat.primitives.asymmetric import rsa

        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        path = tmp_path / "app.pem"
        path.write_bytes(
            key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
        return path

    @pytest.mark.trio
    @respx.mock
    async def test_installation_token_cached(self, private_key_path):
        route = respx.post(f"{API}/app/installations/99/access_tokens").mock(
            return_value=httpx.Response(201, json={"token": "ghs_install", "expires_at": "2999-01-01T00:00:00Z"})
        )
        auth = GitHubAppAuth("123", str(private_key_path), "99")

        assert await auth.get_token() == "ghs_install"
        assert await auth.get_token() == "ghs_install"
        assert route.call_count == 1
        assert route.calls.last.request.headers["Authorization"].startswith("Bearer ey")

    @pytest.mark.trio
    @respx.mock
    async def test_client_uses_app_token(self, private_key_path):
        respx.post(f"{API}/app/installations/99/access_tokens").mock(
            return_value=httpx.Response(201, json={"token": "ghs_install", "expires_at": "2999-01-01T00:00:00Z"})
        )
        items = respx.get(f"{API}/items").mock(return_value=httpx.Response(200, json=[]))

        async with GitHubClient(app_auth=GitHubAppAuth("123", str(private_key_path), "99")) as client:
            assert client.auth_type == "app"
            await client.get_page("/items", 1, 20)

        assert items.calls.last.request.headers["Authorization"] == "Bearer ghs_install"

    @pytest.mark.trio
    @respx.mock
    async def test_token_exchange_failure(self, private_key_path):
        respx.post(f"{API}/app/installations/99/access_tokens").mock(
            return_value=httpx.Response(401, json={"message": "A JSON web token could not be decoded"})
        )
        async with GitHubClient(app_auth=GitHubAppAuth("123", str(private_key_path), "99")) as client:
            with pytest.raises(RemoteFetchError, match="token exchange failed"):
                await client.get_page("/items", 1, 20)

    @pytest.mark.trio
    @respx.mock
    async def test_token_response_missing_fields(self, private_key_path):
        respx.post(f"{API}/app/installations/99/access_tokens").mock(
            return_value=httpx.Response(201, json={"message": "odd"})
        )
        auth = GitHubAppAuth("123", str(private_key_path), "99")
        with pytest.raises(RemoteFetchError, match="Unexpected installation token response"):
            await auth.get_token()
